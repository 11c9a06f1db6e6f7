# checkout_service/data/seed.py
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from checkout_service.data.database import SessionLocal, init_db, transaction
from checkout_service.data.models import BankTransferConfigModel, CouponModel, ProductModel
from checkout_service.domain.enums import CouponType, DiscountType
from checkout_service.utils.money import utcnow


def seed(session_factory: sessionmaker = SessionLocal) -> None:
    """Dev data: a few products, one coupon of each kind, one bank account."""
    with transaction(session_factory) as db:
        # only seed an empty database
        if db.execute(select(ProductModel.id).limit(1)).first():
            return

        now = utcnow()
        db.add_all(
            [
                ProductModel(name="Arabica Espresso 250g", price=Decimal("185000"), stock_quantity=50),
                ProductModel(
                    name="Robusta Dak Lak 500g",
                    price=Decimal("220000"),
                    discount_price=Decimal("199000"),
                    stock_quantity=30,
                ),
                ProductModel(name="Phin Filter", price=Decimal("65000"), stock_quantity=5),
            ]
        )
        db.add_all(
            [
                CouponModel(
                    code="WELCOME10",
                    name="10% off, up to 50k",
                    coupon_type=CouponType.ONE_TIME.value,
                    discount_type=DiscountType.PERCENTAGE.value,
                    discount_value=Decimal("10"),
                    max_discount_amount=Decimal("50000"),
                    is_system_coupon=True,
                    start_date=now - timedelta(days=1),
                    end_date=now + timedelta(days=365),
                ),
                CouponModel(
                    code="GIFT500K",
                    name="Gift card 500k",
                    coupon_type=CouponType.GRADUAL.value,
                    discount_type=DiscountType.FIXED.value,
                    discount_value=Decimal("500000"),
                    remaining_balance=Decimal("500000"),
                    is_system_coupon=True,
                    start_date=now - timedelta(days=1),
                    end_date=now + timedelta(days=365),
                ),
            ]
        )
        db.add(
            BankTransferConfigModel(
                bank_code="970422",
                bank_name="MB Bank",
                account_number="0123456789",
                account_name="CONG TY GOK CAFE",
                display_order=1,
            )
        )


if __name__ == "__main__":
    init_db()
    seed()
