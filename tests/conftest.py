import os

# module-level engine must not point at a real server during tests
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["TAX_RATE"] = "0"

from datetime import timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from checkout_service.api.deps import get_session_factory
from checkout_service.data.database import init_db, make_engine, make_session_factory, transaction
from checkout_service.data.models import BankTransferConfigModel, CouponModel, ProductModel
from checkout_service.domain.enums import CouponType, DiscountType, PaymentMethod
from checkout_service.domain.owner import Owner
from checkout_service.domain.schemas import CheckoutIn
from checkout_service.main import create_app
from checkout_service.utils.money import utcnow


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'checkout.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def products(session_factory):
    """Three catalog rows; returns their ids by short name."""
    with transaction(session_factory) as tx:
        rows = {
            "espresso": ProductModel(name="Arabica Espresso", price=Decimal("100.00"), stock_quantity=10),
            "robusta": ProductModel(
                name="Robusta",
                price=Decimal("50.00"),
                discount_price=Decimal("40.00"),
                stock_quantity=5,
            ),
            "phin": ProductModel(name="Phin Filter", price=Decimal("25.00"), stock_quantity=1),
        }
        tx.add_all(rows.values())
        tx.flush()
        ids = {name: p.id for name, p in rows.items()}
    return ids


@pytest.fixture
def bank(session_factory):
    with transaction(session_factory) as tx:
        tx.add_all(
            [
                BankTransferConfigModel(
                    bank_code="970422",
                    bank_name="MB Bank",
                    account_number="0123456789",
                    account_name="Công ty GOK Café",
                    display_order=1,
                ),
                BankTransferConfigModel(
                    bank_code="970436",
                    bank_name="Vietcombank",
                    account_number="9988776655",
                    account_name="GOK CAFE",
                    display_order=2,
                ),
            ]
        )
    return "970422"


@pytest.fixture
def make_coupon(session_factory):
    """Factory: insert a coupon with sensible defaults, return its code."""

    def _make(code="SAVE10", **overrides):
        now = utcnow()
        fields = {
            "code": code,
            "name": code,
            "coupon_type": CouponType.ONE_TIME.value,
            "discount_type": DiscountType.PERCENTAGE.value,
            "discount_value": Decimal("10"),
            "is_system_coupon": True,
            "is_active": True,
            "start_date": now - timedelta(days=1),
            "end_date": now + timedelta(days=30),
        }
        fields.update(overrides)
        with transaction(session_factory) as tx:
            tx.add(CouponModel(**fields))
        return code

    return _make


@pytest.fixture
def user():
    return Owner(user_id="user-1")


@pytest.fixture
def guest():
    return Owner(session_id="sess-abc")


@pytest.fixture
def checkout_request():
    def _request(**overrides):
        fields = {
            "customer_name": "Nguyen Van A",
            "customer_email": "a@example.com",
            "customer_phone": "0900000000",
            "shipping_address": "1 Le Loi, District 1",
            "payment_method": PaymentMethod.CASH,
        }
        fields.update(overrides)
        return CheckoutIn(**fields)

    return _request


@pytest.fixture
def client(session_factory):
    app = create_app(create_tables=False)
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
