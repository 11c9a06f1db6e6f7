# checkout_service/api/routers/carts.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, sessionmaker

from checkout_service.api.deps import get_owner, get_session_factory, get_tx
from checkout_service.api.errors import http_error
from checkout_service.domain.errors import CheckoutError
from checkout_service.domain.owner import Owner
from checkout_service.domain.schemas import CartCountOut, CartOut, CheckoutIn, CheckoutOut, ItemIn, UpdateItemIn
from checkout_service.services.cart_service import CartService
from checkout_service.services.checkout_service import CheckoutService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartOut)
def get_cart(owner: Owner = Depends(get_owner), tx: Session = Depends(get_tx)):
    try:
        return CartService(tx).get_cart(owner)
    except CheckoutError as e:
        raise http_error(e)


@router.get("/count", response_model=CartCountOut)
def get_count(owner: Owner = Depends(get_owner), tx: Session = Depends(get_tx)):
    return {"count": CartService(tx).item_count(owner)}


@router.post("/items", response_model=CartOut)
def add_item(payload: ItemIn, owner: Owner = Depends(get_owner), tx: Session = Depends(get_tx)):
    try:
        return CartService(tx).add_item(owner, payload.product_id, payload.quantity)
    except CheckoutError as e:
        raise http_error(e)


@router.put("/items/{item_id}", response_model=CartOut)
def update_item(
    item_id: int,
    payload: UpdateItemIn,
    owner: Owner = Depends(get_owner),
    tx: Session = Depends(get_tx),
):
    try:
        return CartService(tx).update_item(owner, item_id, payload.quantity)
    except CheckoutError as e:
        raise http_error(e)


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(item_id: int, owner: Owner = Depends(get_owner), tx: Session = Depends(get_tx)):
    try:
        return CartService(tx).remove_item(owner, item_id)
    except CheckoutError as e:
        raise http_error(e)


@router.delete("", status_code=204)
def clear_cart(owner: Owner = Depends(get_owner), tx: Session = Depends(get_tx)):
    try:
        CartService(tx).clear(owner)
    except CheckoutError as e:
        raise http_error(e)


@router.post("/checkout", response_model=CheckoutOut, status_code=201)
def checkout(
    payload: CheckoutIn,
    owner: Owner = Depends(get_owner),
    session_factory: sessionmaker = Depends(get_session_factory),
):
    # opens its own transaction per attempt
    try:
        return CheckoutService(session_factory).checkout_from_cart(owner, payload)
    except CheckoutError as e:
        raise http_error(e)
