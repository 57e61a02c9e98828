"""Coupon API endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from coupons.core.database import get_db
from coupons.models.coupon import Coupon
from coupons.models.coupon_redemption import CouponRedemption
from coupons.repositories.coupon_repository import CouponRepository
from coupons.repositories.coupon_store import CouponCodeTakenError, PersistenceError
from coupons.schemas.coupon import (
    CouponApplyRequest,
    CouponCreate,
    CouponDiscountResponse,
    CouponRedeemRequest,
    CouponRedemptionResponse,
    CouponResponse,
    CouponUsageResponse,
)
from coupons.services.coupon_service import CouponService, CouponUsage

router = APIRouter()


def get_coupon_service(db: Session = Depends(get_db)) -> CouponService:
    return CouponService(CouponRepository(db))


@router.post(
    "/",
    response_model=CouponResponse,
    status_code=201,
    summary="Create coupon",
    responses={
        409: {"description": "Coupon with this code already exists"},
        422: {"description": "Validation error"},
    },
)
async def create_coupon(
    data: CouponCreate,
    service: CouponService = Depends(get_coupon_service),
) -> Coupon:
    """Create a new coupon."""
    try:
        return service.create(data)
    except CouponCodeTakenError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from None


@router.get(
    "/",
    response_model=list[CouponResponse],
    summary="List coupons",
)
async def list_coupons(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    service: CouponService = Depends(get_coupon_service),
) -> list[Coupon]:
    """List coupons, newest first."""
    return service.list_coupons(skip=skip, limit=limit)


@router.get(
    "/{code}",
    response_model=CouponResponse,
    summary="Get coupon",
    responses={404: {"description": "Coupon not found"}},
)
async def get_coupon(
    code: str,
    service: CouponService = Depends(get_coupon_service),
) -> Coupon:
    """Get a coupon by code."""
    coupon = service.find_by_code(code)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return coupon


@router.post(
    "/{code}/apply",
    response_model=CouponDiscountResponse,
    summary="Apply coupon to an amount",
)
async def apply_coupon(
    code: str,
    data: CouponApplyRequest,
    service: CouponService = Depends(get_coupon_service),
) -> dict[str, Any]:
    """Compute the discount for an amount. Unknown or spent codes give no discount."""
    return service.apply(code, data.amount, **data.extra_fields).as_dict()


@router.post(
    "/{code}/redeem",
    response_model=CouponDiscountResponse,
    summary="Redeem coupon against an amount",
    responses={503: {"description": "Redemption could not be recorded"}},
)
async def redeem_coupon(
    code: str,
    data: CouponRedeemRequest,
    service: CouponService = Depends(get_coupon_service),
) -> dict[str, Any]:
    """Redeem a coupon, recording one redemption when the code is still valid."""
    try:
        result = service.redeem(code, data.amount, **data.extra_fields)
    except PersistenceError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from None
    return result.as_dict()


@router.get(
    "/{code}/usage",
    response_model=CouponUsageResponse,
    summary="Get coupon usage",
    responses={404: {"description": "Coupon not found"}},
)
async def get_coupon_usage(
    code: str,
    service: CouponService = Depends(get_coupon_service),
) -> CouponUsage:
    """Get redemption count and remaining redemptions for a coupon."""
    usage = service.get_usage(code)
    if usage is None:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return usage


@router.get(
    "/{code}/redemptions",
    response_model=list[CouponRedemptionResponse],
    summary="List coupon redemptions",
    responses={404: {"description": "Coupon not found"}},
)
async def list_coupon_redemptions(
    code: str,
    service: CouponService = Depends(get_coupon_service),
) -> list[CouponRedemption]:
    """List redemptions of a coupon, oldest first."""
    redemptions = service.list_redemptions(code)
    if redemptions is None:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return redemptions
