# checkout_service/repos/cart_repo.py
from typing import Any, Dict

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from checkout_service.data.models.cart import CartModel
from checkout_service.data.models.cart_item import CartItemModel
from checkout_service.domain.errors import ConflictError
from checkout_service.domain.owner import Owner


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_owner(self, owner: Owner) -> CartModel | None:
        stmt = select(CartModel)
        if owner.user_id:
            stmt = stmt.where(CartModel.user_id == owner.user_id)
        else:
            stmt = stmt.where(CartModel.session_id == owner.session_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def create_cart(self, owner: Owner) -> CartModel:
        cart = CartModel(user_id=owner.user_id, session_id=owner.session_id, version=1)
        self.db.add(cart)
        try:
            self.db.flush()
        except IntegrityError as e:
            # a parallel request created the same owner's cart first
            raise ConflictError("Cart was created concurrently") from e
        return cart

    def get_cart_items(self, cart_id: int) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .order_by(CartItemModel.id)
            ).scalars()
        )

    def get_cart_item(self, cart_id: int, item_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.id == item_id,
            )
        ).scalar_one_or_none()

    def get_cart_item_by_product(self, cart_id: int, product_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        try:
            self.db.flush()
        except IntegrityError as e:
            raise ConflictError("Cart line was modified concurrently") from e
        return item

    def delete_cart_item(self, item: CartItemModel) -> None:
        self.db.delete(item)
        self.db.flush()

    def clear_items(self, cart_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    def update_cart_version(self, cart_id: int, old_version: int, new_data: Dict[str, Any]) -> int:
        """Conditional write: UPDATE carts SET ... WHERE id = :id AND version = :old_version.

        Returns the number of rows touched; 0 means somebody else bumped the
        version since we read it.
        """
        result = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id, CartModel.version == old_version)
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
