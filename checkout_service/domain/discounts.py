# checkout_service/domain/discounts.py
"""Pure discount arithmetic for coupons.

A coupon is described by two small tagged values: a `DiscountRule` (how much
the coupon takes off an amount) and a `Redemption` (what limits the draw).
Each tag maps to exactly one pure function, so adding a variant means adding a
function and a table entry, never touching the callers.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict

from checkout_service.domain.enums import CouponType, DiscountType
from checkout_service.utils.money import D, ZERO, round_money


@dataclass(frozen=True)
class DiscountRule:
    kind: DiscountType
    value: Decimal
    max_amount: Decimal | None = None


@dataclass(frozen=True)
class Redemption:
    kind: CouponType
    remaining_balance: Decimal | None = None


def _percentage(rule: DiscountRule, amount: Decimal) -> Decimal:
    discount = amount * D(rule.value) / Decimal("100")
    if rule.max_amount is not None:
        discount = min(discount, D(rule.max_amount))
    return discount


def _fixed(rule: DiscountRule, amount: Decimal) -> Decimal:
    return min(D(rule.value), amount)


def _one_time(redemption: Redemption, discount: Decimal) -> Decimal:
    return discount


def _gradual(redemption: Redemption, discount: Decimal) -> Decimal:
    # the draw-down never exceeds what is left on the balance
    return min(discount, D(redemption.remaining_balance))


DISCOUNT_RULES: Dict[DiscountType, Callable[[DiscountRule, Decimal], Decimal]] = {
    DiscountType.PERCENTAGE: _percentage,
    DiscountType.FIXED: _fixed,
}

REDEMPTION_LIMITS: Dict[CouponType, Callable[[Redemption, Decimal], Decimal]] = {
    CouponType.ONE_TIME: _one_time,
    CouponType.GRADUAL: _gradual,
}


def compute_discount(rule: DiscountRule, redemption: Redemption, amount) -> Decimal:
    """Discount for `amount`, always within [0, amount], 2 dp half-up."""
    amount = D(amount)
    if amount <= 0:
        return ZERO

    discount = DISCOUNT_RULES[rule.kind](rule, amount)
    discount = REDEMPTION_LIMITS[redemption.kind](redemption, discount)
    discount = min(max(discount, ZERO), amount)

    return round_money(discount)
