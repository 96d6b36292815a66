"""Date manipulation utilities"""

import calendar
from datetime import date, datetime, time, timezone
from typing import Optional, Union

Moment = Union[date, datetime]


def as_utc_datetime(value: Moment) -> datetime:
    """Normalize a date or datetime to an aware UTC datetime (naive values are treated as UTC)"""
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def effective_timestamp(paid_at: Optional[Moment], created_at: Moment) -> datetime:
    """When a ledger entry took effect: the payment date if recorded, otherwise its creation time"""
    return as_utc_datetime(paid_at if paid_at is not None else created_at)


def add_months(from_date: date, months: int) -> date:
    """Add calendar months, clamping the day to the end of a shorter target month"""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return from_date.replace(year=year, month=month, day=min(from_date.day, last_day))
