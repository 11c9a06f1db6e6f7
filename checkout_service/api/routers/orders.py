# checkout_service/api/routers/orders.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from checkout_service.api.deps import get_tx
from checkout_service.api.errors import http_error
from checkout_service.domain.errors import CheckoutError
from checkout_service.domain.schemas import OrderOut
from checkout_service.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("/{order_number}", response_model=OrderOut)
def get_order(order_number: str, tx: Session = Depends(get_tx)):
    try:
        return OrderOut.model_validate(OrderService(tx).get_order(order_number))
    except CheckoutError as e:
        raise http_error(e)
