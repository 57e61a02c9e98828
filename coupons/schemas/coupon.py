"""Coupon and CouponRedemption schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from coupons.models.coupon import DiscountType
from coupons.models.shared import as_utc

MAX_PERCENTAGE = Decimal("100")


class CouponCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    discount_type: DiscountType
    discount_value: Decimal = Field(..., ge=0)
    redemption_limit: int | None = Field(default=None, ge=0)
    expires_at: datetime | None = None

    @field_validator("expires_at")
    @classmethod
    def normalize_expires_at(cls, v: datetime | None) -> datetime | None:
        return as_utc(v) if v is not None else None

    @model_validator(mode="after")
    def validate_percentage_range(self) -> Self:
        """Validate percentage coupons do not discount more than 100%."""
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > MAX_PERCENTAGE:
            msg = "discount_value must be between 0 and 100 for percentage coupons"
            raise ValueError(msg)
        return self


class CouponResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    description: str | None = None
    discount_type: str
    discount_value: Decimal
    redemption_limit: int | None = None
    redemptions_count: int
    expires_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CouponRedemptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    coupon_id: UUID
    user_id: str | None = None
    order_id: str | None = None
    created_at: datetime


class CouponApplyRequest(BaseModel):
    """Request body for applying a coupon to an amount.

    Fields other than ``amount`` are passed back unchanged in the response.
    """

    model_config = ConfigDict(extra="allow")

    amount: Decimal = Field(..., ge=0)

    @property
    def extra_fields(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class CouponRedeemRequest(CouponApplyRequest):
    """Request body for redeeming a coupon against an amount."""

    user_id: str | None = Field(default=None, max_length=255)
    order_id: str | None = Field(default=None, max_length=255)

    @property
    def extra_fields(self) -> dict[str, Any]:
        fields = dict(self.model_extra or {})
        if self.user_id is not None:
            fields["user_id"] = self.user_id
        if self.order_id is not None:
            fields["order_id"] = self.order_id
        return fields


class CouponDiscountResponse(BaseModel):
    """Discount outcome; extra caller-supplied fields are echoed back."""

    model_config = ConfigDict(extra="allow")

    amount: Decimal
    discount: Decimal
    total: Decimal


class CouponUsageResponse(BaseModel):
    """Redemption usage for a coupon."""

    code: str
    redemptions_count: int
    redemption_limit: int | None = None
    remaining_redemptions: int | None = None
    redeemable: bool
