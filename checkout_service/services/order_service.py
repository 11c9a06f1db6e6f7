# checkout_service/services/order_service.py
from sqlalchemy.orm import Session

from checkout_service.data.models.order import OrderModel
from checkout_service.domain.errors import NotFoundError
from checkout_service.repos.order_repo import OrderRepo


class OrderService:
    """Read side of orders; orders are written only by checkout."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepo(db)

    def get_order(self, order_number: str) -> OrderModel:
        order = self.repo.get_by_number(order_number)
        if not order:
            raise NotFoundError(f"Order {order_number} not found")
        return order
