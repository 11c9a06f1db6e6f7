# checkout_service/repos/coupon_repo.py
from decimal import Decimal

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from checkout_service.data.models.coupon import CouponModel
from checkout_service.data.models.coupon_usage import CouponUsageModel


class CouponRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_code(self, code: str) -> CouponModel | None:
        return self.db.execute(
            select(CouponModel)
            .where(func.lower(CouponModel.code) == code.strip().lower())
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def list_coupons(
        self,
        is_system: bool | None = None,
        user_id: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[CouponModel], int]:
        stmt = select(CouponModel)
        if is_system is not None:
            stmt = stmt.where(CouponModel.is_system_coupon.is_(is_system))
        if user_id is not None:
            stmt = stmt.where(CouponModel.user_id == user_id)

        total = self.db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()
        rows = self.db.execute(
            stmt.order_by(CouponModel.created_at.desc(), CouponModel.id.desc()).offset(offset).limit(limit)
        ).scalars()
        return list(rows), total

    def add_coupon(self, coupon: CouponModel) -> CouponModel:
        # IntegrityError on the code index is left to the caller
        self.db.add(coupon)
        self.db.flush()
        return coupon

    def has_usage(self, coupon_id: int, redeemer_key: str) -> bool:
        found = self.db.execute(
            select(CouponUsageModel.id)
            .where(
                CouponUsageModel.coupon_id == coupon_id,
                CouponUsageModel.redeemer_key == redeemer_key,
            )
            .limit(1)
        ).first()
        return found is not None

    def add_usage(self, usage: CouponUsageModel) -> CouponUsageModel:
        # IntegrityError on the unique constraints is left to the caller
        self.db.add(usage)
        self.db.flush()
        return usage

    def increment_usage(self, coupon_id: int) -> int:
        result = self.db.execute(
            update(CouponModel)
            .where(
                CouponModel.id == coupon_id,
                or_(
                    CouponModel.max_usage_count.is_(None),
                    CouponModel.usage_count < CouponModel.max_usage_count,
                ),
            )
            .values(usage_count=CouponModel.usage_count + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def draw_balance(self, coupon_id: int, amount: Decimal) -> int:
        result = self.db.execute(
            update(CouponModel)
            .where(
                CouponModel.id == coupon_id,
                CouponModel.remaining_balance >= amount,
            )
            .values(remaining_balance=CouponModel.remaining_balance - amount)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
