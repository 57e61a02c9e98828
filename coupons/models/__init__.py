from coupons.models.coupon import Coupon, DiscountType
from coupons.models.coupon_redemption import CouponRedemption

__all__ = [
    "Coupon",
    "CouponRedemption",
    "DiscountType",
]
