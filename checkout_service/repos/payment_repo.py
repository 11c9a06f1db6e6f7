# checkout_service/repos/payment_repo.py
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from checkout_service.data.models.bank_config import BankTransferConfigModel
from checkout_service.data.models.payment import PaymentModel
from checkout_service.domain.enums import PaymentMethod, PaymentStatus


class PaymentRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_payment(self, payment: PaymentModel) -> PaymentModel:
        self.db.add(payment)
        self.db.flush()
        return payment

    def get_payment(self, payment_id: int) -> PaymentModel | None:
        return self.db.get(PaymentModel, payment_id)

    def get_latest_for_order(self, order_id: int) -> PaymentModel | None:
        return self.db.execute(
            select(PaymentModel)
            .where(PaymentModel.order_id == order_id)
            .order_by(PaymentModel.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def get_overdue_pending(self, now: datetime) -> list[PaymentModel]:
        return list(
            self.db.execute(
                select(PaymentModel).where(
                    PaymentModel.method == PaymentMethod.BANK_TRANSFER.value,
                    PaymentModel.status == PaymentStatus.PENDING.value,
                    PaymentModel.expires_at.is_not(None),
                    PaymentModel.expires_at < now,
                )
            ).scalars()
        )

    def update_status(self, payment_id: int, old_status: str, new_data: Dict[str, Any]) -> int:
        """UPDATE payments SET ... WHERE id = :id AND status = :old_status."""
        result = self.db.execute(
            update(PaymentModel)
            .where(PaymentModel.id == payment_id, PaymentModel.status == old_status)
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    # bank transfer configs

    def get_bank_config(self, bank_code: str) -> BankTransferConfigModel | None:
        return self.db.execute(
            select(BankTransferConfigModel).where(
                BankTransferConfigModel.bank_code == bank_code,
                BankTransferConfigModel.is_active.is_(True),
            )
        ).scalar_one_or_none()

    def get_default_bank_config(self) -> BankTransferConfigModel | None:
        return self.db.execute(
            select(BankTransferConfigModel)
            .where(BankTransferConfigModel.is_active.is_(True))
            .order_by(BankTransferConfigModel.display_order, BankTransferConfigModel.id)
            .limit(1)
        ).scalar_one_or_none()

    def list_bank_configs(self) -> list[BankTransferConfigModel]:
        return list(
            self.db.execute(
                select(BankTransferConfigModel)
                .where(BankTransferConfigModel.is_active.is_(True))
                .order_by(BankTransferConfigModel.display_order, BankTransferConfigModel.id)
            ).scalars()
        )
