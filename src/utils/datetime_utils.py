"""Datetime utilities for UTC timestamps and date-range bounds.

Usage:
    from src.utils.datetime_utils import utc_now

    created_at = Column(DateTime, default=utc_now)
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Union


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime.

    Returns:
        Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC, as SQLite stores it.

    Naive values are assumed to already be UTC and are returned unchanged.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def range_start(value: Union[date, datetime]) -> datetime:
    """Inclusive lower bound for a date or datetime range endpoint."""
    if isinstance(value, datetime):
        return to_naive_utc(value)
    return datetime.combine(value, time.min)


def range_end_exclusive(value: Union[date, datetime]) -> datetime:
    """Exclusive upper bound covering the whole of an inclusive endpoint.

    A plain date covers the entire day; a datetime covers up to and including
    that instant (down to the microsecond).
    """
    if isinstance(value, datetime):
        return to_naive_utc(value) + timedelta(microseconds=1)
    return datetime.combine(value + timedelta(days=1), time.min)
