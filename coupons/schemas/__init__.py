from coupons.schemas.coupon import (
    CouponApplyRequest,
    CouponCreate,
    CouponDiscountResponse,
    CouponRedeemRequest,
    CouponRedemptionResponse,
    CouponResponse,
    CouponUsageResponse,
)

__all__ = [
    "CouponApplyRequest",
    "CouponCreate",
    "CouponDiscountResponse",
    "CouponRedeemRequest",
    "CouponRedemptionResponse",
    "CouponResponse",
    "CouponUsageResponse",
]
