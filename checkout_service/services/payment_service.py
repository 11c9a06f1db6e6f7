# checkout_service/services/payment_service.py
from datetime import datetime, timedelta
from typing import Any, Dict

from sqlalchemy.orm import Session

from checkout_service.data.models.bank_config import BankTransferConfigModel
from checkout_service.data.models.order import OrderModel
from checkout_service.data.models.payment import PaymentModel
from checkout_service.domain.enums import OrderStatus, PaymentMethod, PaymentStatus
from checkout_service.domain.errors import ConflictError, NotFoundError, PaymentError
from checkout_service.repos.order_repo import OrderRepo
from checkout_service.repos.payment_repo import PaymentRepo
from checkout_service.services import qr_service
from checkout_service.utils.logging import get_logger
from checkout_service.utils.money import as_utc, utcnow
from checkout_service.utils.settings import (
    DEFAULT_BANK_CODE,
    PAYMENT_DESCRIPTION_PREFIX,
    PAYMENT_EXPIRATION_MINUTES,
)

logger = get_logger(__name__)


class PaymentService:
    """
    Payment records for orders.
    The intent (amount, VietQR payload) is created inside the checkout
    transaction; the rest are small state transitions on an existing payment.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = PaymentRepo(db)
        self.orders = OrderRepo(db)

    #commands
    def create_for_order(
        self,
        order: OrderModel,
        method: PaymentMethod | str,
        bank_code: str | None = None,
    ) -> PaymentModel:
        try:
            method = PaymentMethod(method)
        except ValueError as e:
            raise PaymentError(f"Unsupported payment method: {method}") from e

        now = utcnow()
        payment = PaymentModel(
            order_id=order.id,
            transaction_id=f"TXN{now:%Y%m%d%H%M%S}{order.order_number}",
            amount=order.total_amount,
            method=method.value,
            status=PaymentStatus.PENDING.value,
            created_at=now,
        )

        if method is PaymentMethod.BANK_TRANSFER:
            bank = self._resolve_bank(bank_code)
            description = f"{PAYMENT_DESCRIPTION_PREFIX} {order.order_number}"

            payment.bank_code = bank.bank_code
            payment.bank_account_number = bank.account_number
            payment.bank_account_name = bank.account_name
            payment.description = description
            payment.expires_at = now + timedelta(minutes=PAYMENT_EXPIRATION_MINUTES)
            payment.qr_data = qr_service.generate_vietqr_data(
                bank.bank_code, bank.account_number, bank.account_name, order.total_amount, description
            )
            payment.qr_image_url = qr_service.generate_vietqr_image_url(
                bank.bank_code, bank.account_number, bank.account_name, order.total_amount, description
            )

        self.repo.create_payment(payment)
        logger.info(
            f"Payment {payment.transaction_id} ({payment.method}, {payment.amount}) "
            f"opened for order {order.order_number}"
        )
        return payment

    def verify(self, payment_id: int) -> Dict[str, Any]:
        """Report the payment's state, failing it first if its QR has expired."""
        payment = self._get(payment_id)

        expires_at = as_utc(payment.expires_at)
        if payment.status == PaymentStatus.PENDING.value and expires_at and utcnow() > expires_at:
            self._transition(payment, PaymentStatus.FAILED)
            logger.info(f"Payment {payment.id} expired at {expires_at}, marked failed")

        paid = payment.status == PaymentStatus.PAID.value
        return {
            "payment_id": payment.id,
            "status": payment.status,
            "success": paid,
            "message": "Payment completed" if paid else f"Payment {payment.status.lower()}",
            "paid_at": payment.paid_at,
        }

    def mark_paid(self, payment_id: int) -> PaymentModel:
        payment = self._get(payment_id)
        if payment.status == PaymentStatus.PAID.value:
            raise PaymentError("Payment already marked as paid", {"payment_id": payment.id})

        now = utcnow()
        self._transition(payment, PaymentStatus.PAID, paid_at=now)

        order = self.orders.get_order(payment.order_id)
        if order:
            order.payment_status = PaymentStatus.PAID.value
            order.status = OrderStatus.CONFIRMED.value
            self.db.flush()

        logger.info(f"Payment {payment.id} marked paid, order {payment.order_id} confirmed")
        return payment

    def cancel(self, payment_id: int) -> PaymentModel:
        payment = self._get(payment_id)
        if payment.status == PaymentStatus.PAID.value:
            raise PaymentError("Cannot cancel a paid payment", {"payment_id": payment.id})

        if payment.status != PaymentStatus.FAILED.value:
            self._transition(payment, PaymentStatus.FAILED)

        logger.info(f"Payment {payment.id} cancelled")
        return payment

    def expire_overdue(self, now: datetime | None = None) -> int:
        """Fail every pending bank transfer past its expiry; returns how many."""
        now = now or utcnow()
        expired = 0
        for payment in self.repo.get_overdue_pending(now):
            if self.repo.update_status(payment.id, PaymentStatus.PENDING.value, {"status": PaymentStatus.FAILED.value}):
                expired += 1
        return expired

    #queries
    def get_by_order(self, order_id: int) -> PaymentModel:
        payment = self.repo.get_latest_for_order(order_id)
        if not payment:
            raise NotFoundError(f"No payment for order {order_id}")
        return payment

    def list_bank_configs(self) -> list[BankTransferConfigModel]:
        return self.repo.list_bank_configs()

    def qr_image(self, payment_id: int, module_size: int = 20) -> str:
        payment = self._get(payment_id)
        if not payment.qr_data:
            raise PaymentError("Payment has no QR payload", {"payment_id": payment.id})
        return qr_service.generate_qr_code_image(payment.qr_data, module_size)

    #helpers
    def _get(self, payment_id: int) -> PaymentModel:
        payment = self.repo.get_payment(payment_id)
        if not payment:
            raise NotFoundError(f"Payment {payment_id} not found")
        return payment

    def _resolve_bank(self, bank_code: str | None) -> BankTransferConfigModel:
        if not bank_code:
            default = self.repo.get_default_bank_config()
            bank_code = default.bank_code if default else DEFAULT_BANK_CODE

        bank = self.repo.get_bank_config(bank_code)
        if not bank:
            raise PaymentError(f"Bank configuration not found for {bank_code}", {"bank_code": bank_code})
        return bank

    def _transition(self, payment: PaymentModel, status: PaymentStatus, **extra) -> None:
        rowcount = self.repo.update_status(
            payment.id,
            payment.status,
            {"status": status.value, **extra},
        )
        if rowcount == 0:
            raise ConflictError("Payment was updated by another operation", {"payment_id": payment.id})
        self.db.refresh(payment)
