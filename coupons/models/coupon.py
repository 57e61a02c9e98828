"""Coupon model for discount codes."""

from enum import Enum

from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text, func
from sqlalchemy.orm import relationship

from coupons.core.database import Base
from coupons.models.shared import UUIDType, generate_uuid


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class Coupon(Base):
    """Coupon model for discount codes."""

    __tablename__ = "coupons"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    code = Column(String(255), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)

    discount_type = Column(String(20), nullable=False)
    discount_value = Column(Numeric(12, 4), nullable=False)

    # NULL means unlimited redemptions
    redemption_limit = Column(Integer, nullable=True)
    # Only ever changed by the store, in the same transaction as a redemption insert
    redemptions_count = Column(Integer, nullable=False, default=0, server_default="0")

    # NULL means the coupon never expires
    expires_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    redemptions = relationship(
        "CouponRedemption",
        back_populates="coupon",
        cascade="all, delete-orphan",
        order_by="CouponRedemption.created_at",
    )
