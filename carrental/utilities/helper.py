import math
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable


def utcnow() -> datetime:
    # BSON datetimes come back naive; keep everything naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    # BSON stores milliseconds
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def rental_days(start_date: datetime, end_date: datetime) -> int:
    """Whole days billed for a rental: any started day counts in full."""
    return math.ceil((end_date - start_date) / timedelta(days=1))


def booking_total(price_per_day: float, days: int, service_prices: Iterable[float] = ()) -> float:
    per_day = Decimal(str(price_per_day)) + sum((Decimal(str(p)) for p in service_prices), Decimal(0))
    return float(per_day * days)


def average_rating(ratings: Iterable[float]) -> float:
    ratings = list(ratings)
    if not ratings:
        return 0
    mean = Decimal(str(sum(ratings))) / Decimal(len(ratings))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def page_info(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total_records": total,
        "total_pages": (total + limit - 1) // limit,
    }
