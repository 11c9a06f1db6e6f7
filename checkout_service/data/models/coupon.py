# checkout_service/data/models/coupon.py
from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Index, Integer, Numeric, String, func

from checkout_service.data.database import Base
from checkout_service.domain.enums import CouponType, DiscountType


class CouponModel(Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True)
    # stored as entered; unique and matched case-insensitively
    code = Column(String(64), nullable=False)
    name = Column(String(200), nullable=False, default="")

    coupon_type = Column(String(16), nullable=False, default=CouponType.ONE_TIME.value)
    discount_type = Column(String(16), nullable=False, default=DiscountType.PERCENTAGE.value)
    discount_value = Column(Numeric(12, 2), nullable=False)
    max_discount_amount = Column(Numeric(12, 2), nullable=True)
    min_order_amount = Column(Numeric(12, 2), nullable=True)
    remaining_balance = Column(Numeric(12, 2), nullable=True)  # Gradual only

    is_system_coupon = Column(Boolean, nullable=False, default=True)
    user_id = Column(String(64), nullable=True, index=True)  # personal coupon owner

    is_active = Column(Boolean, nullable=False, default=True)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)

    max_usage_count = Column(Integer, nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("u_coupon_code_ci", func.lower(code), unique=True),
        CheckConstraint(
            "remaining_balance IS NULL OR remaining_balance >= 0",
            name="ck_coupon_balance_non_negative",
        ),
    )
