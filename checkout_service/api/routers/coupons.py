# checkout_service/api/routers/coupons.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from checkout_service.api.deps import get_owner, get_tx
from checkout_service.api.errors import http_error
from checkout_service.domain.errors import CheckoutError
from checkout_service.domain.owner import Owner
from checkout_service.domain.schemas import (
    CouponCreateIn,
    CouponOut,
    CouponPageOut,
    CouponValidateIn,
    CouponValidateOut,
)
from checkout_service.services.coupon_service import CouponService

router = APIRouter(prefix="/coupons", tags=["coupons"])


@router.post("", response_model=CouponOut, status_code=201)
def create_coupon(payload: CouponCreateIn, tx: Session = Depends(get_tx)):
    try:
        return CouponService(tx).create_coupon(payload)
    except CheckoutError as e:
        raise http_error(e)


@router.get("", response_model=CouponPageOut)
def list_coupons(
    is_system: bool | None = Query(None),
    user_id: str | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    tx: Session = Depends(get_tx),
):
    return CouponService(tx).list_coupons(is_system=is_system, user_id=user_id, page=page, page_size=page_size)


@router.get("/system", response_model=CouponPageOut)
def list_system_coupons(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    tx: Session = Depends(get_tx),
):
    return CouponService(tx).list_coupons(is_system=True, page=page, page_size=page_size)


@router.get("/user/{user_id}", response_model=CouponPageOut)
def list_user_coupons(
    user_id: str,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    tx: Session = Depends(get_tx),
):
    return CouponService(tx).list_coupons(user_id=user_id, page=page, page_size=page_size)


@router.get("/code/{code}", response_model=CouponOut)
def get_coupon(code: str, tx: Session = Depends(get_tx)):
    try:
        return CouponService(tx).get_coupon(code)
    except CheckoutError as e:
        raise http_error(e)


@router.post("/validate", response_model=CouponValidateOut)
def validate_coupon(
    payload: CouponValidateIn,
    owner: Owner = Depends(get_owner),
    tx: Session = Depends(get_tx),
):
    try:
        return CouponService(tx).preview(payload.code, payload.order_amount, owner)
    except CheckoutError as e:
        raise http_error(e)
