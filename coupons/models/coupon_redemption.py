"""CouponRedemption model recording each successful use of a coupon."""

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from coupons.core.database import Base
from coupons.models.shared import UUIDType, generate_uuid, utc_now


class CouponRedemption(Base):
    """CouponRedemption model recording each successful use of a coupon."""

    __tablename__ = "coupon_redemptions"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    coupon_id = Column(
        UUIDType, ForeignKey("coupons.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Correlation fields, opaque to the engine
    user_id = Column(String(255), nullable=True, index=True)
    order_id = Column(String(255), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    coupon = relationship("Coupon", back_populates="redemptions")
