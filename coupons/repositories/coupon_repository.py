"""Coupon repository for data access."""

import logging
from uuid import UUID

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from coupons.models.coupon import Coupon
from coupons.models.coupon_redemption import CouponRedemption
from coupons.models.shared import utc_now
from coupons.repositories.coupon_store import (
    CouponCodeTakenError,
    PersistenceError,
    RedemptionLimitReachedError,
)
from coupons.schemas.coupon import CouponCreate

logger = logging.getLogger(__name__)


class CouponRepository:
    """SQLAlchemy-backed coupon store."""

    def __init__(self, db: Session):
        self.db = db

    def list_coupons(self, skip: int = 0, limit: int = 100) -> list[Coupon]:
        """Get coupons, newest first."""
        return (
            self.db.query(Coupon)
            .order_by(Coupon.created_at.desc(), Coupon.code)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def find_by_code(self, code: str) -> Coupon | None:
        """Get a coupon by exact code, refreshing any instance already in the session."""
        return (
            self.db.query(Coupon)
            .filter(Coupon.code == code)
            .populate_existing()
            .first()
        )

    def create(self, data: CouponCreate) -> Coupon:
        """Create a new coupon."""
        coupon = Coupon(
            code=data.code,
            description=data.description,
            discount_type=data.discount_type.value,
            discount_value=data.discount_value,
            redemption_limit=data.redemption_limit,
            expires_at=data.expires_at,
        )
        self.db.add(coupon)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise CouponCodeTakenError(data.code) from exc
        self.db.refresh(coupon)
        return coupon

    def record_redemption(
        self,
        coupon_id: UUID,
        user_id: str | None = None,
        order_id: str | None = None,
    ) -> CouponRedemption:
        """Insert a redemption if the coupon is still redeemable.

        The conditional counter update and the insert commit together, so the
        row lock taken by the update serializes concurrent redemptions of the
        same coupon.
        """
        now = utc_now()
        try:
            result = self.db.execute(
                update(Coupon)
                .where(
                    Coupon.id == coupon_id,
                    or_(
                        Coupon.redemption_limit.is_(None),
                        Coupon.redemptions_count < Coupon.redemption_limit,
                    ),
                    or_(Coupon.expires_at.is_(None), Coupon.expires_at > now),
                )
                .values(redemptions_count=Coupon.redemptions_count + 1, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                self.db.rollback()
                raise RedemptionLimitReachedError(coupon_id)

            redemption = CouponRedemption(
                coupon_id=coupon_id,
                user_id=user_id,
                order_id=order_id,
                created_at=now,
            )
            self.db.add(redemption)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Failed to record redemption for coupon %s", coupon_id)
            raise PersistenceError(f"Could not record redemption for coupon {coupon_id}") from exc

        self.db.refresh(redemption)
        return redemption

    def list_redemptions(self, coupon_id: UUID) -> list[CouponRedemption]:
        """Get all redemptions of a coupon, oldest first."""
        return (
            self.db.query(CouponRedemption)
            .filter(CouponRedemption.coupon_id == coupon_id)
            .order_by(CouponRedemption.created_at.asc())
            .all()
        )

