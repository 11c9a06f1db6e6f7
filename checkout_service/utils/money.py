# checkout_service/utils/money.py
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

Money = Decimal

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def D(x) -> Money:
    return x if isinstance(x, Decimal) else Decimal(str(x or "0"))


def round_money(x) -> Money:
    return D(x).quantize(CENT, rounding=ROUND_HALF_UP)


def round_whole(x) -> Money:
    #VND has no minor unit
    return D(x).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    # sqlite hands back naive datetimes
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
