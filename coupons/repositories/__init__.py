from coupons.repositories.coupon_repository import CouponRepository
from coupons.repositories.coupon_store import (
    CouponCodeTakenError,
    CouponStore,
    PersistenceError,
    RedemptionLimitReachedError,
)
from coupons.repositories.in_memory_coupon_store import InMemoryCouponStore

__all__ = [
    "CouponCodeTakenError",
    "CouponRepository",
    "CouponStore",
    "InMemoryCouponStore",
    "PersistenceError",
    "RedemptionLimitReachedError",
]
