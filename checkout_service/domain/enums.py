# checkout_service/domain/enums.py
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"
    REFUNDED = "Refunded"


class PaymentMethod(str, Enum):
    CASH = "Cash"
    BANK_TRANSFER = "BankTransfer"


class CouponType(str, Enum):
    ONE_TIME = "OneTime"
    GRADUAL = "Gradual"


class DiscountType(str, Enum):
    PERCENTAGE = "Percentage"
    FIXED = "Fixed"
