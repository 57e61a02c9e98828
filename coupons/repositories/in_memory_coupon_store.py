"""Dict-backed coupon store for embedding and tests."""

from collections import defaultdict
from threading import Lock
from uuid import UUID

from coupons.models.coupon import Coupon
from coupons.models.coupon_redemption import CouponRedemption
from coupons.models.shared import as_utc, generate_uuid, utc_now
from coupons.repositories.coupon_store import (
    CouponCodeTakenError,
    RedemptionLimitReachedError,
)
from coupons.schemas.coupon import CouponCreate


class InMemoryCouponStore:
    """In-memory coupon store.

    Redemptions of the same coupon are serialized by a per-code lock that
    spans the redeemable re-check and the insert.
    """

    def __init__(self) -> None:
        self._coupons: dict[str, Coupon] = {}
        self._redemptions: dict[UUID, list[CouponRedemption]] = defaultdict(list)
        self._locks: dict[str, Lock] = defaultdict(Lock)
        self._lock = Lock()

    def _lock_for(self, code: str) -> Lock:
        with self._lock:
            return self._locks[code]

    def find_by_code(self, code: str) -> Coupon | None:
        return self._coupons.get(code)

    def create(self, data: CouponCreate) -> Coupon:
        now = utc_now()
        with self._lock:
            if data.code in self._coupons:
                raise CouponCodeTakenError(data.code)
            coupon = Coupon(
                id=generate_uuid(),
                code=data.code,
                description=data.description,
                discount_type=data.discount_type.value,
                discount_value=data.discount_value,
                redemption_limit=data.redemption_limit,
                redemptions_count=0,
                expires_at=data.expires_at,
                created_at=now,
                updated_at=now,
            )
            self._coupons[data.code] = coupon
        return coupon

    def record_redemption(
        self,
        coupon_id: UUID,
        user_id: str | None = None,
        order_id: str | None = None,
    ) -> CouponRedemption:
        coupon = next((c for c in self._coupons.values() if c.id == coupon_id), None)
        if coupon is None:
            raise RedemptionLimitReachedError(coupon_id)

        with self._lock_for(coupon.code):
            now = utc_now()
            if coupon.expires_at is not None and as_utc(coupon.expires_at) <= now:
                raise RedemptionLimitReachedError(coupon_id)
            if (
                coupon.redemption_limit is not None
                and coupon.redemptions_count >= coupon.redemption_limit
            ):
                raise RedemptionLimitReachedError(coupon_id)

            redemption = CouponRedemption(
                id=generate_uuid(),
                coupon_id=coupon_id,
                user_id=user_id,
                order_id=order_id,
                created_at=now,
            )
            self._redemptions[coupon_id].append(redemption)
            coupon.redemptions_count += 1
            coupon.updated_at = now
        return redemption

    def list_coupons(self, skip: int = 0, limit: int = 100) -> list[Coupon]:
        coupons = sorted(self._coupons.values(), key=lambda c: c.created_at, reverse=True)
        return coupons[skip : skip + limit]

    def list_redemptions(self, coupon_id: UUID) -> list[CouponRedemption]:
        return list(self._redemptions.get(coupon_id, []))
