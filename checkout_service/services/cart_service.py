# checkout_service/services/cart_service.py
from decimal import Decimal
from typing import Any, Dict, Tuple

from sqlalchemy.orm import Session

from checkout_service.data.models.cart import CartModel
from checkout_service.data.models.cart_item import CartItemModel
from checkout_service.domain.errors import ConflictError, NotFoundError, OutOfStockError, ValidationError
from checkout_service.domain.owner import Owner
from checkout_service.repos.cart_repo import CartRepo
from checkout_service.repos.product_repo import ProductRepo
from checkout_service.utils.logging import get_logger
from checkout_service.utils.money import ZERO, round_money, utcnow
from checkout_service.utils.settings import CART_MAX_ITEM_QUANTITY

logger = get_logger(__name__)


class CartService:
    """
    Cart store for one owner (user or guest session).
    commands (add, update, remove, clear) bump the cart version with a conditional write
    queries (get, count) only read
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    #queries
    def get_or_create_cart(self, owner: Owner) -> CartModel:
        cart = self.repo.get_by_owner(owner)
        if cart:
            return cart

        cart = self.repo.create_cart(owner)
        logger.info(f"Created cart {cart.id} for {owner.key}")
        return cart

    def get_cart(self, owner: Owner) -> Dict[str, Any]:
        cart = self.get_or_create_cart(owner)
        return self._view(cart)

    def item_count(self, owner: Owner) -> int:
        cart = self.repo.get_by_owner(owner)
        if not cart:
            return 0
        return sum(i.quantity for i in self.repo.get_cart_items(cart.id))

    def compute_totals(self, cart: CartModel) -> Tuple[Decimal, int]:
        """Subtotal and item count at *current* catalog prices."""
        items = self.repo.get_cart_items(cart.id)
        products = self.products.get_products(i.product_id for i in items)

        sub_total = ZERO
        count = 0
        for item in items:
            product = products.get(item.product_id)
            if product is not None:
                sub_total += product.effective_price * item.quantity
            count += item.quantity

        return round_money(sub_total), count

    #commands
    def add_item(self, owner: Owner, product_id: int, quantity: int) -> Dict[str, Any]:
        self._check_quantity(quantity)

        product = self.products.get_product(product_id)
        if not product or not product.is_active:
            raise NotFoundError(f"Product {product_id} not found")

        cart = self.get_or_create_cart(owner)
        read_version = cart.version

        existing = self.repo.get_cart_item_by_product(cart.id, product_id)
        new_quantity = quantity + (existing.quantity if existing else 0)

        if new_quantity > CART_MAX_ITEM_QUANTITY:
            raise ValidationError(
                f"At most {CART_MAX_ITEM_QUANTITY} units of one product fit in a cart",
                {"product_id": product_id, "requested": new_quantity},
            )
        # soft check, checkout re-checks against live stock
        self._check_stock(product, new_quantity)

        if existing:
            logger.info(
                f"Product {product_id} already in cart {cart.id}, "
                f"quantity {existing.quantity} -> {new_quantity}"
            )
            existing.quantity = new_quantity
            self.db.flush()
        else:
            logger.info(f"Adding product {product_id} x{quantity} to cart {cart.id}")
            self.repo.add_cart_item(CartItemModel(cart_id=cart.id, product_id=product_id, quantity=quantity))

        self._bump_version(cart, read_version)
        return self._view(cart)

    def update_item(self, owner: Owner, item_id: int, quantity: int) -> Dict[str, Any]:
        self._check_quantity(quantity)

        cart = self.get_or_create_cart(owner)
        read_version = cart.version

        item = self.repo.get_cart_item(cart.id, item_id)
        if not item:
            raise NotFoundError(f"Cart item {item_id} not found")

        product = self.products.get_product(item.product_id)
        if not product or not product.is_active:
            raise NotFoundError(f"Product {item.product_id} not found")
        self._check_stock(product, quantity)

        logger.info(f"Cart {cart.id}: item {item_id} quantity {item.quantity} -> {quantity}")
        item.quantity = quantity
        self.db.flush()

        self._bump_version(cart, read_version)
        return self._view(cart)

    def remove_item(self, owner: Owner, item_id: int) -> Dict[str, Any]:
        cart = self.get_or_create_cart(owner)
        read_version = cart.version

        item = self.repo.get_cart_item(cart.id, item_id)
        if not item:
            raise NotFoundError(f"Cart item {item_id} not found")

        logger.info(f"Removing item {item_id} (product {item.product_id}) from cart {cart.id}")
        self.repo.delete_cart_item(item)

        self._bump_version(cart, read_version)
        return self._view(cart)

    def clear(self, owner: Owner, expected_version: int | None = None) -> None:
        """Delete every line of the owner's cart.

        `expected_version` pins the write to a version read earlier in the
        same unit of work (checkout); otherwise the current one is used.
        """
        cart = self.repo.get_by_owner(owner)
        if not cart:
            return

        read_version = cart.version if expected_version is None else expected_version
        removed = self.repo.clear_items(cart.id)
        self._bump_version(cart, read_version)

        logger.info(f"Cleared cart {cart.id} ({removed} lines)")

    #helpers
    def _bump_version(self, cart: CartModel, read_version: int) -> None:
        # UPDATE carts SET version = v + 1 WHERE id = :id AND version = v
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=read_version,
            new_data={"version": read_version + 1, "updated_at": utcnow()},
        )

        if rowcount == 0:
            logger.warning(f"Version conflict on cart {cart.id} (read version {read_version})")
            raise ConflictError(
                "Cart was modified by another operation",
                {"cart_id": cart.id, "version": read_version},
            )

        self.db.refresh(cart)

    def _view(self, cart: CartModel) -> Dict[str, Any]:
        items = self.repo.get_cart_items(cart.id)
        products = self.products.get_products(i.product_id for i in items)

        lines = []
        sub_total = ZERO
        for item in items:
            product = products.get(item.product_id)
            unit_price = product.effective_price if product else ZERO
            line_total = round_money(unit_price * item.quantity)
            sub_total += line_total
            lines.append(
                {
                    "id": item.id,
                    "product_id": item.product_id,
                    "product_name": product.name if product else "",
                    "quantity": item.quantity,
                    "unit_price": unit_price,
                    "total_price": line_total,
                    "stock_quantity": product.stock_quantity if product else 0,
                }
            )

        return {
            "id": cart.id,
            "user_id": cart.user_id,
            "session_id": cart.session_id,
            "version": cart.version,
            "items": lines,
            "sub_total": round_money(sub_total),
            "item_count": sum(i.quantity for i in items),
            "updated_at": cart.updated_at,
        }

    @staticmethod
    def _check_quantity(quantity: int) -> None:
        if quantity < 1 or quantity > CART_MAX_ITEM_QUANTITY:
            raise ValidationError(
                f"Quantity must be between 1 and {CART_MAX_ITEM_QUANTITY}",
                {"quantity": quantity},
            )

    @staticmethod
    def _check_stock(product, quantity: int) -> None:
        if quantity > product.stock_quantity:
            raise OutOfStockError(
                [
                    {
                        "product_id": product.id,
                        "name": product.name,
                        "requested": quantity,
                        "available": product.stock_quantity,
                    }
                ],
                f"Insufficient stock. Only {product.stock_quantity} items available",
            )
