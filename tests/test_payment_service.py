from datetime import timedelta
from decimal import Decimal

import pytest

from checkout_service.data.database import transaction
from checkout_service.data.models import BankTransferConfigModel, OrderModel, PaymentModel
from checkout_service.domain.enums import OrderStatus, PaymentMethod, PaymentStatus
from checkout_service.domain.errors import NotFoundError, PaymentError
from checkout_service.services.payment_service import PaymentService
from checkout_service.tasks.expire import expire_payments
from checkout_service.utils.money import utcnow


@pytest.fixture
def open_payment(session_factory, bank):
    """Order + pending payment created straight through PaymentService."""

    def _open(method=PaymentMethod.BANK_TRANSFER, number="ORD-20261019-AAAA0001", total="185000"):
        with transaction(session_factory) as tx:
            order = OrderModel(
                order_number=number,
                customer_name="A",
                customer_email="a@example.com",
                customer_phone="0900",
                sub_total=Decimal(total),
                total_amount=Decimal(total),
                payment_method=PaymentMethod(method).value,
                created_at=utcnow(),
            )
            tx.add(order)
            tx.flush()
            payment = PaymentService(tx).create_for_order(order, method)
            return order.id, payment.id

    return _open


@pytest.fixture
def payments(session_factory):
    def _call(method, *args):
        with transaction(session_factory) as tx:
            return getattr(PaymentService(tx), method)(*args)

    return _call


def _expire(session_factory, payment_id, minutes_ago=1):
    with transaction(session_factory) as tx:
        tx.get(PaymentModel, payment_id).expires_at = utcnow() - timedelta(minutes=minutes_ago)


class TestCreate:
    def test_bank_transfer_payment(self, session_factory, open_payment):
        order_id, payment_id = open_payment()
        with transaction(session_factory) as tx:
            payment = tx.get(PaymentModel, payment_id)
            assert payment.order_id == order_id
            assert payment.transaction_id.startswith("TXN")
            assert payment.transaction_id.endswith("ORD-20261019-AAAA0001")
            assert payment.description == "GOK ORD-20261019-AAAA0001"
            assert "5406185000" in payment.qr_data
            assert payment.expires_at is not None

    def test_cash_payment_has_no_qr(self, session_factory, open_payment):
        _, payment_id = open_payment(method=PaymentMethod.CASH)
        with transaction(session_factory) as tx:
            payment = tx.get(PaymentModel, payment_id)
            assert (payment.qr_data, payment.qr_image_url, payment.expires_at) == (None, None, None)

    def test_unsupported_method(self, session_factory):
        with pytest.raises(PaymentError):
            with transaction(session_factory) as tx:
                PaymentService(tx).create_for_order(OrderModel(id=1, order_number="X"), "CreditCard")

    def test_unknown_bank(self, session_factory, bank):
        with pytest.raises(PaymentError):
            with transaction(session_factory) as tx:
                order = OrderModel(id=1, order_number="X", total_amount=Decimal("1"))
                PaymentService(tx).create_for_order(order, PaymentMethod.BANK_TRANSFER, "000000")

    def test_default_bank_is_first_by_display_order(self, session_factory, bank, open_payment):
        with transaction(session_factory) as tx:
            tx.add(
                BankTransferConfigModel(
                    bank_code="970415",
                    bank_name="VietinBank",
                    account_number="111",
                    account_name="GOK",
                    display_order=0,
                )
            )
        _, payment_id = open_payment()
        with transaction(session_factory) as tx:
            assert tx.get(PaymentModel, payment_id).bank_code == "970415"


class TestLifecycle:
    def test_get_by_order(self, payments, open_payment):
        order_id, payment_id = open_payment()
        assert payments("get_by_order", order_id).id == payment_id
        with pytest.raises(NotFoundError):
            payments("get_by_order", 9999)

    def test_verify_pending(self, payments, open_payment):
        _, payment_id = open_payment()
        result = payments("verify", payment_id)
        assert result["status"] == PaymentStatus.PENDING.value
        assert result["success"] is False

    def test_verify_fails_expired_payment(self, session_factory, payments, open_payment):
        _, payment_id = open_payment()
        _expire(session_factory, payment_id)

        result = payments("verify", payment_id)

        assert result["status"] == PaymentStatus.FAILED.value
        with transaction(session_factory) as tx:
            assert tx.get(PaymentModel, payment_id).status == PaymentStatus.FAILED.value

    def test_mark_paid_confirms_order(self, session_factory, payments, open_payment):
        order_id, payment_id = open_payment()

        payment = payments("mark_paid", payment_id)

        assert payment.status == PaymentStatus.PAID.value
        assert payment.paid_at is not None
        with transaction(session_factory) as tx:
            order = tx.get(OrderModel, order_id)
            assert order.status == OrderStatus.CONFIRMED.value
            assert order.payment_status == PaymentStatus.PAID.value

        assert payments("verify", payment_id)["success"] is True
        with pytest.raises(PaymentError):
            payments("mark_paid", payment_id)

    def test_cancel(self, payments, open_payment):
        _, payment_id = open_payment()
        assert payments("cancel", payment_id).status == PaymentStatus.FAILED.value

    def test_cannot_cancel_paid(self, payments, open_payment):
        _, payment_id = open_payment()
        payments("mark_paid", payment_id)
        with pytest.raises(PaymentError):
            payments("cancel", payment_id)

    def test_unknown_payment(self, payments):
        with pytest.raises(NotFoundError):
            payments("verify", 12345)


class TestQueries:
    def test_bank_configs_in_display_order(self, payments, bank):
        assert [b.bank_code for b in payments("list_bank_configs")] == ["970422", "970436"]

    def test_qr_image(self, payments, open_payment):
        _, payment_id = open_payment()
        assert payments("qr_image", payment_id, 4).startswith("data:image/png;base64,")

    def test_qr_image_needs_payload(self, payments, open_payment):
        _, payment_id = open_payment(method=PaymentMethod.CASH)
        with pytest.raises(PaymentError):
            payments("qr_image", payment_id)


class TestExpireTask:
    def test_fails_only_overdue_pending_transfers(self, session_factory, open_payment):
        _, overdue = open_payment(number="ORD-20261019-AAAA0001")
        _, fresh = open_payment(number="ORD-20261019-AAAA0002")
        _, cash = open_payment(method=PaymentMethod.CASH, number="ORD-20261019-AAAA0003")
        _expire(session_factory, overdue, minutes_ago=5)

        assert expire_payments(session_factory) == 1

        with transaction(session_factory) as tx:
            statuses = {pid: tx.get(PaymentModel, pid).status for pid in (overdue, fresh, cash)}
        assert statuses == {
            overdue: PaymentStatus.FAILED.value,
            fresh: PaymentStatus.PENDING.value,
            cash: PaymentStatus.PENDING.value,
        }
