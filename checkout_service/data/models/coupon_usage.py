# checkout_service/data/models/coupon_usage.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint

from checkout_service.data.database import Base


class CouponUsageModel(Base):
    """Append-only redemption log.

    `one_time_key` repeats `redeemer_key` for OneTime coupons and stays NULL
    for Gradual ones, so the unique constraint on (coupon_id, one_time_key)
    lets a redeemer draw down a Gradual coupon many times but burn a OneTime
    coupon only once, even under concurrent checkouts.
    """

    __tablename__ = "coupon_usages"

    id = Column(Integer, primary_key=True)
    coupon_id = Column(Integer, ForeignKey("coupons.id"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)

    redeemer_key = Column(String(128), nullable=False, index=True)
    one_time_key = Column(String(128), nullable=True)

    original_amount = Column(Numeric(12, 2), nullable=False)
    amount_discounted = Column(Numeric(12, 2), nullable=False)
    remaining_balance = Column(Numeric(12, 2), nullable=True)

    used_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("coupon_id", "order_id", name="u_coupon_order"),
        UniqueConstraint("coupon_id", "one_time_key", name="u_coupon_one_time_redeemer"),
    )
