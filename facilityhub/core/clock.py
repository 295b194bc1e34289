"""
Datetime helpers.

All timestamps are stored as naive UTC so comparisons behave the same on
SQLite (which drops tzinfo) and PostgreSQL.
"""
from datetime import datetime, timezone
from typing import Annotated, Optional

from pydantic import AfterValidator


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def month_bounds(reference: datetime, months_back: int = 0):
    """Return [start, end) of the calendar month `months_back` months before `reference`."""
    year, month = reference.year, reference.month - months_back
    while month <= 0:
        month += 12
        year -= 1
    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
    return start, end


UTCDateTime = Annotated[datetime, AfterValidator(as_naive_utc)]
