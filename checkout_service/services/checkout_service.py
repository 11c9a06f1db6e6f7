# checkout_service/services/checkout_service.py
import uuid
from typing import Dict, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from checkout_service.data.database import SessionLocal, transaction
from checkout_service.data.models.cart_item import CartItemModel
from checkout_service.data.models.order import OrderModel
from checkout_service.data.models.order_item import OrderItemModel
from checkout_service.data.models.product import ProductModel
from checkout_service.domain.enums import OrderStatus, PaymentStatus
from checkout_service.domain.errors import CheckoutError, ConflictError, OutOfStockError, ValidationError
from checkout_service.domain.owner import Owner
from checkout_service.domain.schemas import CheckoutIn, CheckoutOut, OrderOut, PaymentOut
from checkout_service.repos.cart_repo import CartRepo
from checkout_service.repos.order_repo import OrderRepo
from checkout_service.repos.product_repo import ProductRepo
from checkout_service.services.cart_service import CartService
from checkout_service.services.coupon_service import CouponService
from checkout_service.services.payment_service import PaymentService
from checkout_service.utils.logging import get_logger
from checkout_service.utils.money import ZERO, round_money, utcnow
from checkout_service.utils.retry import conflict_retry
from checkout_service.utils.settings import TAX_RATE

logger = get_logger(__name__)


def new_order_number() -> str:
    return f"ORD-{utcnow():%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"


class CheckoutService:
    """
    Use case: turn the owner's cart into an order and a payment intent.

    Every attempt runs in its own transaction:
    1. reload the cart lines
    2. re-read products, reject every line short on stock
    3. subtotal from current prices
    4. optional coupon: validate + discount
    5. tax and total
    6. order + order lines
    7. conditional stock decrement
    8. coupon redemption
    9, 10. payment, plus the VietQR payload for bank transfer
    11. clear the cart against the version read in 1
    A lost optimistic update (ConflictError) re-runs the whole attempt once
    with fresh data; anything else is rolled back and propagated.
    """

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    def checkout_from_cart(self, owner: Owner, request: CheckoutIn) -> CheckoutOut:
        logger.info(f"Checkout started for {owner.key} ({request.payment_method.value})")
        try:
            return conflict_retry()(self._attempt)(owner, request)
        except CheckoutError as e:
            logger.warning(f"Checkout aborted for {owner.key}: {e.code} {e.message}")
            raise

    def _attempt(self, owner: Owner, request: CheckoutIn) -> CheckoutOut:
        with transaction(self.session_factory) as tx:
            result = self._run(tx, owner, request)

        logger.info(
            f"Checkout committed for {owner.key}: order {result.order.order_number}, "
            f"total {result.order.total_amount}"
        )
        return result

    def _run(self, tx: Session, owner: Owner, request: CheckoutIn) -> CheckoutOut:
        # 1
        carts = CartRepo(tx)
        cart = carts.get_by_owner(owner)
        items = carts.get_cart_items(cart.id) if cart else []
        if not items:
            raise ValidationError("Cart is empty")
        cart_version = cart.version

        # 2
        products = self._load_products(tx, items)
        self._check_stock(items, products)

        # 3
        sub_total = round_money(sum((products[i.product_id].effective_price * i.quantity for i in items), ZERO))

        # 4
        coupons = CouponService(tx)
        coupon = None
        discount = ZERO
        coupon_code = (request.coupon_code or "").strip()
        if coupon_code:
            coupon = coupons.validate(coupon_code, sub_total, owner)
            discount = coupons.compute_discount(coupon, sub_total)

        # 5
        shipping_fee = round_money(request.shipping_fee)
        tax = round_money((sub_total - discount) * TAX_RATE)
        total = sub_total - discount + shipping_fee + tax

        # 6
        order = OrderModel(
            order_number=new_order_number(),
            user_id=owner.user_id,
            session_id=owner.session_id,
            customer_name=request.customer_name,
            customer_email=request.customer_email,
            customer_phone=request.customer_phone,
            shipping_address=request.shipping_address,
            notes=request.notes,
            status=OrderStatus.PENDING.value,
            sub_total=sub_total,
            discount_amount=discount,
            shipping_fee=shipping_fee,
            tax=tax,
            total_amount=total,
            coupon_id=coupon.id if coupon else None,
            coupon_code=coupon.code if coupon else None,
            payment_method=request.payment_method.value,
            payment_status=PaymentStatus.PENDING.value,
            created_at=utcnow(),
            items=[self._order_line(i, products[i.product_id]) for i in items],
        )
        try:
            OrderRepo(tx).create_order(order)
        except IntegrityError as e:
            raise ConflictError("Order number collision") from e

        # 7
        self._decrement_stock(tx, items)

        # 8
        if coupon:
            coupons.apply(coupon, discount, owner, order.id, sub_total)

        # 9, 10
        payment = PaymentService(tx).create_for_order(order, request.payment_method, request.bank_code)

        # 11
        CartService(tx).clear(owner, expected_version=cart_version)

        return CheckoutOut(
            order=OrderOut.model_validate(order),
            payment=PaymentOut.model_validate(payment),
        )

    def _load_products(self, tx: Session, items: List[CartItemModel]) -> Dict[int, ProductModel]:
        return ProductRepo(tx).get_products(i.product_id for i in items)

    @staticmethod
    def _check_stock(items: List[CartItemModel], products: Dict[int, ProductModel]) -> None:
        shortages = []
        for item in items:
            product = products.get(item.product_id)
            if product is None or not product.is_active:
                shortages.append(
                    {"product_id": item.product_id, "name": None, "requested": item.quantity, "available": 0}
                )
            elif item.quantity > product.stock_quantity:
                shortages.append(
                    {
                        "product_id": product.id,
                        "name": product.name,
                        "requested": item.quantity,
                        "available": product.stock_quantity,
                    }
                )
        if shortages:
            raise OutOfStockError(shortages)

    @staticmethod
    def _order_line(item: CartItemModel, product: ProductModel) -> OrderItemModel:
        unit_price = round_money(product.effective_price)
        return OrderItemModel(
            product_id=product.id,
            product_name=product.name,
            quantity=item.quantity,
            unit_price=unit_price,
            total_price=round_money(unit_price * item.quantity),
        )

    @staticmethod
    def _decrement_stock(tx: Session, items: List[CartItemModel]) -> None:
        repo = ProductRepo(tx)
        # fixed order keeps concurrent checkouts from locking rows crosswise
        for item in sorted(items, key=lambda i: i.product_id):
            if repo.decrement_stock(item.product_id, item.quantity) == 0:
                logger.warning(f"Stock of product {item.product_id} changed under checkout")
                raise ConflictError(
                    "Stock changed while checking out",
                    {"product_id": item.product_id, "quantity": item.quantity},
                )
