#import of every model so SQLAlchemy registers it on Base.metadata

from checkout_service.data.models.product import ProductModel
from checkout_service.data.models.cart import CartModel
from checkout_service.data.models.cart_item import CartItemModel
from checkout_service.data.models.coupon import CouponModel
from checkout_service.data.models.order import OrderModel
from checkout_service.data.models.order_item import OrderItemModel
from checkout_service.data.models.coupon_usage import CouponUsageModel
from checkout_service.data.models.payment import PaymentModel
from checkout_service.data.models.bank_config import BankTransferConfigModel

__all__ = [
    "ProductModel",
    "CartModel",
    "CartItemModel",
    "CouponModel",
    "OrderModel",
    "OrderItemModel",
    "CouponUsageModel",
    "PaymentModel",
    "BankTransferConfigModel",
]
