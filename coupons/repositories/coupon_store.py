"""Storage boundary consumed by the coupon service."""

from typing import Protocol
from uuid import UUID

from coupons.models.coupon import Coupon
from coupons.models.coupon_redemption import CouponRedemption
from coupons.schemas.coupon import CouponCreate


class CouponCodeTakenError(ValueError):
    """Raised when creating a coupon whose code already exists."""

    def __init__(self, code: str):
        super().__init__(f"Coupon with code '{code}' already exists")
        self.code = code


class RedemptionLimitReachedError(Exception):
    """Raised when a coupon stopped being redeemable between lookup and insert."""

    def __init__(self, coupon_id: UUID):
        super().__init__(f"Coupon {coupon_id} is no longer redeemable")
        self.coupon_id = coupon_id


class PersistenceError(RuntimeError):
    """Raised when a redemption cannot be durably recorded."""


class CouponStore(Protocol):
    """Persistence operations the coupon service depends on.

    ``record_redemption`` must re-check expiration and the redemption limit in
    the same atomic unit as the insert, so concurrent redemptions can never
    push a coupon past its limit.
    """

    def find_by_code(self, code: str) -> Coupon | None: ...

    def create(self, data: CouponCreate) -> Coupon: ...

    def record_redemption(
        self,
        coupon_id: UUID,
        user_id: str | None = None,
        order_id: str | None = None,
    ) -> CouponRedemption: ...

    def list_coupons(self, skip: int = 0, limit: int = 100) -> list[Coupon]: ...

    def list_redemptions(self, coupon_id: UUID) -> list[CouponRedemption]: ...
