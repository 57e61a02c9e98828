"""Coupon service for validating, applying and redeeming coupon codes."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from coupons.models.coupon import Coupon, DiscountType
from coupons.models.coupon_redemption import CouponRedemption
from coupons.models.shared import as_utc, utc_now
from coupons.repositories.coupon_store import CouponStore, RedemptionLimitReachedError
from coupons.schemas.coupon import CouponCreate

logger = logging.getLogger(__name__)

CORRELATION_FIELDS = ("user_id", "order_id")


@dataclass
class CouponDiscount:
    """Result of applying or redeeming a coupon against an amount."""

    amount: Decimal
    discount: Decimal
    total: Decimal
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "amount": self.amount,
            "discount": self.discount,
            "total": self.total,
        }


@dataclass
class CouponUsage:
    """Redemption usage for a single coupon."""

    code: str
    redemptions_count: int
    redemption_limit: int | None
    remaining_redemptions: int | None
    redeemable: bool


def to_amount(value: Any) -> Decimal:
    """Coerce a monetary amount to Decimal, rejecting negatives."""
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    if amount < 0:
        raise ValueError(f"Amount must be non-negative, got {amount}")
    return amount


def is_redeemable(coupon: Coupon, now: datetime | None = None) -> bool:
    """Return True if the coupon has not expired and has redemptions left."""
    now = now or utc_now()
    if coupon.expires_at is not None and as_utc(coupon.expires_at) <= now:
        return False
    if coupon.redemption_limit is not None and coupon.redemptions_count >= coupon.redemption_limit:
        return False
    return True


def calculate_discount(coupon: Coupon, amount: Decimal) -> Decimal:
    """Calculate the discount a coupon grants on an amount.

    Fixed amount discounts are capped at the amount so the total never goes
    negative.
    """
    value = Decimal(str(coupon.discount_value))
    if coupon.discount_type == DiscountType.PERCENTAGE.value:
        return amount * value / Decimal("100")
    if coupon.discount_type == DiscountType.FIXED_AMOUNT.value:
        return min(value, amount)
    logger.warning("Coupon %s has unknown discount type %s", coupon.code, coupon.discount_type)
    return Decimal("0")


class CouponService:
    """Service for coupon creation, application and redemption.

    Invalid, expired and exhausted coupons are not errors: ``apply`` and
    ``redeem`` return a zero discount for them.
    """

    def __init__(self, store: CouponStore):
        self.store = store

    def create(self, attributes: CouponCreate | Mapping[str, Any]) -> Coupon:
        """Create a new coupon.

        Raises:
            pydantic.ValidationError: If the attributes are malformed or out of range.
            CouponCodeTakenError: If the code is already in use.
        """
        data = (
            attributes
            if isinstance(attributes, CouponCreate)
            else CouponCreate.model_validate(dict(attributes))
        )
        coupon = self.store.create(data)
        logger.info(
            "Created coupon %s (%s %s)", coupon.code, coupon.discount_type, coupon.discount_value
        )
        return coupon

    def find_by_code(self, code: str) -> Coupon | None:
        return self.store.find_by_code(code)

    def find_valid_by_code(self, code: str) -> Coupon | None:
        """Find a coupon by code, or None if it is unknown or no longer redeemable."""
        coupon = self.store.find_by_code(code)
        if coupon is None or not is_redeemable(coupon):
            return None
        return coupon

    def apply(self, code: str, amount: Any, /, **extra: Any) -> CouponDiscount:
        """Apply a coupon code to an amount without recording a redemption.

        Example:
            apply("ABC123", 100)  # 30% coupon
            #=> CouponDiscount(amount=100, discount=30, total=70)
        """
        result = self._initial_result(amount, extra)

        coupon = self.find_valid_by_code(code)
        if coupon is None:
            return result

        return self._apply_discount(coupon, result)

    def redeem(self, code: str, amount: Any, /, **extra: Any) -> CouponDiscount:
        """Redeem a coupon code against an amount.

        On a redeemable coupon a redemption is recorded carrying only the
        ``user_id`` and ``order_id`` correlation fields, then the discount is
        computed exactly as ``apply`` does.

        Raises:
            PersistenceError: If the redemption could not be stored.
        """
        result = self._initial_result(amount, extra)

        coupon = self.find_valid_by_code(code)
        if coupon is None:
            return result

        correlation = {key: extra[key] for key in CORRELATION_FIELDS if key in extra}
        coupon_id = coupon.id
        try:
            redemption = self.store.record_redemption(coupon_id, **correlation)
        except RedemptionLimitReachedError:
            logger.warning("Coupon %s became unredeemable before redemption was recorded", code)
            return result

        logger.info("Redeemed coupon %s (redemption %s)", code, redemption.id)
        return self._apply_discount(coupon, result)

    def list_coupons(self, skip: int = 0, limit: int = 100) -> list[Coupon]:
        return self.store.list_coupons(skip=skip, limit=limit)

    def list_redemptions(self, code: str) -> list[CouponRedemption] | None:
        """Get the redemptions of a coupon, or None if the code is unknown."""
        coupon = self.store.find_by_code(code)
        if coupon is None:
            return None
        return self.store.list_redemptions(coupon.id)  # type: ignore[arg-type]

    def get_usage(self, code: str) -> CouponUsage | None:
        """Get redemption usage for a coupon, or None if the code is unknown."""
        coupon = self.store.find_by_code(code)
        if coupon is None:
            return None

        count = int(coupon.redemptions_count or 0)
        limit = coupon.redemption_limit
        remaining = max(limit - count, 0) if limit is not None else None
        return CouponUsage(
            code=str(coupon.code),
            redemptions_count=count,
            redemption_limit=limit,  # type: ignore[arg-type]
            remaining_redemptions=remaining,  # type: ignore[arg-type]
            redeemable=is_redeemable(coupon),
        )

    def _initial_result(self, amount: Any, extra: dict[str, Any]) -> CouponDiscount:
        amount = to_amount(amount)
        return CouponDiscount(amount=amount, discount=Decimal("0"), total=amount, extra=dict(extra))

    def _apply_discount(self, coupon: Coupon, result: CouponDiscount) -> CouponDiscount:
        discount = calculate_discount(coupon, result.amount)
        result.discount = discount
        result.total = result.amount - discount
        return result
