# checkout_service/data/models/payment.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text

from checkout_service.data.database import Base
from checkout_service.domain.enums import PaymentStatus


class PaymentModel(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    transaction_id = Column(String(64), nullable=False, unique=True)

    amount = Column(Numeric(12, 2), nullable=False)
    method = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)

    # bank transfer only
    qr_data = Column(Text, nullable=True)
    qr_image_url = Column(Text, nullable=True)
    bank_code = Column(String(20), nullable=True)
    bank_account_number = Column(String(50), nullable=True)
    bank_account_name = Column(String(200), nullable=True)
    description = Column(String(100), nullable=True)

    expires_at = Column(DateTime(timezone=True), nullable=True)  # NULL for cash
    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
