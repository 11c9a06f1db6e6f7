# checkout_service/api/routers/payments.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from checkout_service.api.deps import get_tx
from checkout_service.api.errors import http_error
from checkout_service.domain.errors import CheckoutError
from checkout_service.domain.schemas import BankConfigOut, PaymentOut, PaymentVerifyOut, QrImageOut
from checkout_service.services.payment_service import PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("/bank-configs", response_model=List[BankConfigOut])
def list_bank_configs(tx: Session = Depends(get_tx)):
    return [BankConfigOut.model_validate(b) for b in PaymentService(tx).list_bank_configs()]


@router.get("/order/{order_id}", response_model=PaymentOut)
def get_by_order(order_id: int, tx: Session = Depends(get_tx)):
    try:
        return PaymentOut.model_validate(PaymentService(tx).get_by_order(order_id))
    except CheckoutError as e:
        raise http_error(e)


@router.post("/{payment_id}/verify", response_model=PaymentVerifyOut)
def verify(payment_id: int, tx: Session = Depends(get_tx)):
    try:
        return PaymentService(tx).verify(payment_id)
    except CheckoutError as e:
        raise http_error(e)


@router.post("/{payment_id}/mark-paid", response_model=PaymentOut)
def mark_paid(payment_id: int, tx: Session = Depends(get_tx)):
    try:
        return PaymentOut.model_validate(PaymentService(tx).mark_paid(payment_id))
    except CheckoutError as e:
        raise http_error(e)


@router.post("/{payment_id}/cancel", response_model=PaymentOut)
def cancel(payment_id: int, tx: Session = Depends(get_tx)):
    try:
        return PaymentOut.model_validate(PaymentService(tx).cancel(payment_id))
    except CheckoutError as e:
        raise http_error(e)


@router.get("/{payment_id}/qr-image", response_model=QrImageOut)
def qr_image(
    payment_id: int,
    module_size: int = Query(20, ge=1, le=50),
    tx: Session = Depends(get_tx),
):
    try:
        return {"payment_id": payment_id, "image": PaymentService(tx).qr_image(payment_id, module_size)}
    except CheckoutError as e:
        raise http_error(e)
