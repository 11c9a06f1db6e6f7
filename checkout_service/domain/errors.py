# checkout_service/domain/errors.py
from typing import Any, Dict, List


class CheckoutError(Exception):
    """Base class for every failure the checkout core reports to its caller.

    `code` is a stable identifier clients can switch on, `message` is human
    readable, `details` carries structured context (e.g. offending items).
    """

    code = "CHECKOUT_ERROR"
    status_code = 400

    def __init__(self, message: str, details: Dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def as_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class ValidationError(CheckoutError):
    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(CheckoutError):
    code = "NOT_FOUND"
    status_code = 404


class OutOfStockError(CheckoutError):
    code = "OUT_OF_STOCK"
    status_code = 409

    def __init__(self, items: List[Dict[str, Any]], message: str | None = None):
        super().__init__(
            message or "Insufficient stock for: " + ", ".join(str(i["product_id"]) for i in items),
            {"items": items},
        )
        self.items = items


class ConflictError(CheckoutError):
    """Lost update on a counter (stock, coupon usage/balance, cart version)."""

    code = "CONFLICT"
    status_code = 409


class PaymentError(CheckoutError):
    code = "PAYMENT_ERROR"
    status_code = 422


# coupons


class CouponError(CheckoutError):
    code = "COUPON_ERROR"
    status_code = 422


class CouponNotFound(CouponError):
    code = "COUPON_NOT_FOUND"
    status_code = 404


class CouponExpired(CouponError):
    code = "COUPON_EXPIRED"


class CouponNotYetActive(CouponError):
    code = "COUPON_NOT_YET_ACTIVE"


class CouponNotAuthorized(CouponError):
    code = "COUPON_NOT_AUTHORIZED"
    status_code = 403


class CouponMinimumNotMet(CouponError):
    code = "COUPON_MINIMUM_NOT_MET"


class CouponUsageLimitReached(CouponError):
    code = "COUPON_USAGE_LIMIT_REACHED"


class CouponAlreadyUsed(CouponError):
    code = "COUPON_ALREADY_USED"


class CouponBalanceExhausted(CouponError):
    code = "COUPON_BALANCE_EXHAUSTED"


class CouponCodeTaken(CouponError):
    code = "COUPON_CODE_EXISTS"
    status_code = 409
