"""Pure discount arithmetic, no database involved."""

from decimal import Decimal

import pytest

from checkout_service.domain.discounts import DiscountRule, Redemption, compute_discount
from checkout_service.domain.enums import CouponType, DiscountType

ONE_TIME = Redemption(CouponType.ONE_TIME)


def gradual(balance):
    return Redemption(CouponType.GRADUAL, Decimal(balance))


class TestPercentage:
    def test_percentage_of_amount(self):
        rule = DiscountRule(DiscountType.PERCENTAGE, Decimal("10"))
        assert compute_discount(rule, ONE_TIME, Decimal("250")) == Decimal("25.00")

    def test_capped_at_max_discount_amount(self):
        rule = DiscountRule(DiscountType.PERCENTAGE, Decimal("10"), max_amount=Decimal("5"))
        assert compute_discount(rule, ONE_TIME, Decimal("100")) == Decimal("5.00")

    def test_rounds_half_up_to_cents(self):
        # 12.5% of 0.20 = 0.025
        rule = DiscountRule(DiscountType.PERCENTAGE, Decimal("12.5"))
        assert compute_discount(rule, ONE_TIME, Decimal("0.20")) == Decimal("0.03")

    def test_never_more_than_amount(self):
        rule = DiscountRule(DiscountType.PERCENTAGE, Decimal("150"))
        assert compute_discount(rule, ONE_TIME, Decimal("40")) == Decimal("40.00")


class TestFixed:
    def test_fixed_value(self):
        rule = DiscountRule(DiscountType.FIXED, Decimal("30"))
        assert compute_discount(rule, ONE_TIME, Decimal("100")) == Decimal("30.00")

    def test_fixed_larger_than_amount(self):
        rule = DiscountRule(DiscountType.FIXED, Decimal("30"))
        assert compute_discount(rule, ONE_TIME, Decimal("12.34")) == Decimal("12.34")

    def test_max_amount_ignored_for_fixed(self):
        rule = DiscountRule(DiscountType.FIXED, Decimal("30"), max_amount=Decimal("5"))
        assert compute_discount(rule, ONE_TIME, Decimal("100")) == Decimal("30.00")


class TestGradual:
    def test_capped_at_remaining_balance(self):
        rule = DiscountRule(DiscountType.FIXED, Decimal("500"))
        assert compute_discount(rule, gradual("120"), Decimal("300")) == Decimal("120.00")

    def test_balance_larger_than_discount(self):
        rule = DiscountRule(DiscountType.PERCENTAGE, Decimal("20"))
        assert compute_discount(rule, gradual("1000"), Decimal("300")) == Decimal("60.00")

    def test_draw_down_sequence_never_goes_negative(self):
        rule = DiscountRule(DiscountType.FIXED, Decimal("70"))
        balance = Decimal("200")
        drawn = []
        for amount in ("100", "50", "100", "100"):
            d = compute_discount(rule, gradual(balance), Decimal(amount))
            drawn.append(d)
            balance -= d
        assert drawn == [Decimal("70.00"), Decimal("50.00"), Decimal("70.00"), Decimal("10.00")]
        assert balance == Decimal("0")


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5")])
def test_zero_or_negative_amount_gives_no_discount(amount):
    rule = DiscountRule(DiscountType.FIXED, Decimal("30"))
    assert compute_discount(rule, ONE_TIME, amount) == Decimal("0")
