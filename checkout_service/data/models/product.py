# checkout_service/data/models/product.py
from sqlalchemy import Boolean, CheckConstraint, Column, Integer, Numeric, String

from checkout_service.data.database import Base


class ProductModel(Base):
    """Catalog snapshot; the catalog owns it, checkout only reads price and writes stock."""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)

    price = Column(Numeric(12, 2), nullable=False)
    discount_price = Column(Numeric(12, 2), nullable=True)
    stock_quantity = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (CheckConstraint("stock_quantity >= 0", name="ck_product_stock_non_negative"),)

    @property
    def effective_price(self):
        return self.discount_price if self.discount_price is not None else self.price
