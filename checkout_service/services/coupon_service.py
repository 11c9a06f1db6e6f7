# checkout_service/services/coupon_service.py
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from checkout_service.data.models.coupon import CouponModel
from checkout_service.data.models.coupon_usage import CouponUsageModel
from checkout_service.domain.discounts import DiscountRule, Redemption, compute_discount
from checkout_service.domain.enums import CouponType, DiscountType
from checkout_service.domain.errors import (
    ConflictError,
    CouponAlreadyUsed,
    CouponCodeTaken,
    CouponBalanceExhausted,
    CouponExpired,
    CouponMinimumNotMet,
    CouponNotAuthorized,
    CouponNotFound,
    CouponNotYetActive,
    CouponUsageLimitReached,
    ValidationError,
)
from checkout_service.domain.owner import Owner
from checkout_service.domain.schemas import CouponCreateIn
from checkout_service.repos.coupon_repo import CouponRepo
from checkout_service.utils.logging import get_logger
from checkout_service.utils.money import D, as_utc, round_money, utcnow

logger = get_logger(__name__)


class CouponService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = CouponRepo(db)

    # --- admin ---

    def get_coupon(self, code: str) -> CouponModel:
        coupon = self.repo.get_by_code(code or "")
        if not coupon:
            raise CouponNotFound(f"Coupon '{code}' not found", {"code": code})
        return coupon

    def list_coupons(
        self,
        is_system: bool | None = None,
        user_id: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Dict[str, Any]:
        items, total = self.repo.list_coupons(
            is_system=is_system,
            user_id=user_id,
            offset=(page - 1) * page_size,
            limit=page_size,
        )
        return {"items": items, "page": page, "page_size": page_size, "total": total}

    def create_coupon(self, data: CouponCreateIn) -> CouponModel:
        code = data.code.strip()
        if not code:
            raise ValidationError("Coupon code is required")
        if self.repo.get_by_code(code):
            raise CouponCodeTaken(f"Coupon code '{code}' already exists", {"code": code})

        start, end = as_utc(data.start_date), as_utc(data.end_date)
        if end <= start:
            raise ValidationError("End date must be after start date", {"code": code})
        if data.discount_type == DiscountType.PERCENTAGE and data.discount_value > 100:
            raise ValidationError("Percentage discount cannot exceed 100", {"code": code})

        gradual = data.coupon_type == CouponType.GRADUAL
        if gradual and data.initial_balance is None:
            raise ValidationError("Gradual coupon requires an initial balance", {"code": code})
        if not data.is_system_coupon and not data.user_id:
            raise ValidationError("Personal coupon requires a user_id", {"code": code})

        coupon = CouponModel(
            code=code,
            name=data.name,
            coupon_type=data.coupon_type.value,
            discount_type=data.discount_type.value,
            discount_value=round_money(data.discount_value),
            max_discount_amount=(
                round_money(data.max_discount_amount) if data.max_discount_amount is not None else None
            ),
            min_order_amount=round_money(data.min_order_amount) if data.min_order_amount is not None else None,
            remaining_balance=round_money(data.initial_balance) if gradual else None,
            is_system_coupon=data.is_system_coupon,
            user_id=data.user_id,
            is_active=True,
            start_date=start,
            end_date=end,
            max_usage_count=data.max_usage_count,
            usage_count=0,
        )
        try:
            self.repo.add_coupon(coupon)
        except IntegrityError as e:
            raise CouponCodeTaken(f"Coupon code '{code}' already exists", {"code": code}) from e

        logger.info(f"Coupon {code} created ({coupon.coupon_type}, {coupon.discount_type} {coupon.discount_value})")
        return coupon

    # --- redemption ---

    def validate(self, code: str, order_amount, redeemer: Owner) -> CouponModel:
        """Run the eligibility checks in order; the first failing one raises."""
        coupon = self.repo.get_by_code(code or "")
        if not coupon:
            raise CouponNotFound(f"Coupon '{code}' not found", {"code": code})

        details = {"code": coupon.code}
        now = utcnow()

        if not coupon.is_active:
            raise CouponExpired("Coupon is no longer active", details)
        if now < as_utc(coupon.start_date):
            raise CouponNotYetActive("Coupon is not active yet", details)
        if now > as_utc(coupon.end_date):
            raise CouponExpired("Coupon has expired", details)

        if coupon.user_id:
            if coupon.user_id != redeemer.user_id:
                raise CouponNotAuthorized("Coupon belongs to another customer", details)
        elif not coupon.is_system_coupon:
            # personal coupon without an owner
            raise CouponNotAuthorized("Coupon is not assigned to any customer", details)

        if coupon.min_order_amount is not None and D(order_amount) < D(coupon.min_order_amount):
            raise CouponMinimumNotMet(
                f"Order amount must be at least {coupon.min_order_amount}",
                {**details, "min_order_amount": str(coupon.min_order_amount)},
            )

        if coupon.max_usage_count is not None and coupon.usage_count >= coupon.max_usage_count:
            raise CouponUsageLimitReached("Coupon usage limit reached", details)

        if coupon.coupon_type == CouponType.ONE_TIME.value:
            if self.repo.has_usage(coupon.id, redeemer.key):
                raise CouponAlreadyUsed("Coupon has already been used", details)
        elif D(coupon.remaining_balance) <= 0:
            raise CouponBalanceExhausted("Coupon balance is exhausted", details)

        return coupon

    def compute_discount(self, coupon: CouponModel, amount) -> Decimal:
        rule = DiscountRule(
            kind=DiscountType(coupon.discount_type),
            value=D(coupon.discount_value),
            max_amount=D(coupon.max_discount_amount) if coupon.max_discount_amount is not None else None,
        )
        redemption = Redemption(
            kind=CouponType(coupon.coupon_type),
            remaining_balance=D(coupon.remaining_balance) if coupon.remaining_balance is not None else None,
        )
        return compute_discount(rule, redemption, amount)

    def preview(self, code: str, order_amount, redeemer: Owner) -> Dict[str, Any]:
        """Validate and estimate the discount without redeeming anything."""
        coupon = self.validate(code, order_amount, redeemer)
        return {
            "code": coupon.code,
            "name": coupon.name,
            "coupon_type": coupon.coupon_type,
            "discount_type": coupon.discount_type,
            "discount_value": coupon.discount_value,
            "estimated_discount": self.compute_discount(coupon, order_amount),
            "remaining_balance": coupon.remaining_balance,
        }

    def apply(
        self,
        coupon: CouponModel,
        discount: Decimal,
        redeemer: Owner,
        order_id: int,
        original_amount,
    ) -> CouponUsageModel:
        """Record the redemption and move the coupon's counters.

        Must run inside the checkout transaction; any lost race surfaces as
        ConflictError and the caller rolls everything back.
        """
        discount = round_money(discount)
        one_time = coupon.coupon_type == CouponType.ONE_TIME.value
        # a failed flush expires every loaded object, read what the handlers need first
        coupon_id, code, redeemer_key = coupon.id, coupon.code, redeemer.key

        remaining_after = None
        if not one_time:
            remaining_after = round_money(D(coupon.remaining_balance) - discount)

        usage = CouponUsageModel(
            coupon_id=coupon_id,
            order_id=order_id,
            redeemer_key=redeemer_key,
            one_time_key=redeemer_key if one_time else None,
            original_amount=round_money(original_amount),
            amount_discounted=discount,
            remaining_balance=remaining_after,
        )

        try:
            self.repo.add_usage(usage)
        except IntegrityError as e:
            logger.warning(f"Coupon {code} already redeemed by {redeemer_key}")
            raise ConflictError("Coupon was redeemed concurrently", {"code": code}) from e

        if self.repo.increment_usage(coupon_id) == 0:
            raise ConflictError("Coupon usage limit was reached concurrently", {"code": code})

        if not one_time and self.repo.draw_balance(coupon_id, discount) == 0:
            raise ConflictError("Coupon balance changed concurrently", {"code": code})

        logger.info(
            f"Coupon {code} redeemed by {redeemer_key} on order {order_id}: "
            f"-{discount}" + (f", balance left {remaining_after}" if remaining_after is not None else "")
        )
        return usage
