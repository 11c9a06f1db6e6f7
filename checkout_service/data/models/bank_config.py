# checkout_service/data/models/bank_config.py
from sqlalchemy import Boolean, Column, Integer, String

from checkout_service.data.database import Base


class BankTransferConfigModel(Base):
    __tablename__ = "bank_transfer_configs"

    id = Column(Integer, primary_key=True)
    bank_code = Column(String(20), nullable=False, unique=True)  # BIN, e.g. 970422
    bank_name = Column(String(200), nullable=False)
    account_number = Column(String(50), nullable=False)
    account_name = Column(String(200), nullable=False)

    is_active = Column(Boolean, nullable=False, default=True)
    display_order = Column(Integer, nullable=False, default=0)
