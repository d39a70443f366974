"""
Date/time helpers shared across repositories and services.

All persisted timestamps are naive UTC; everything entering the data layer
goes through ``to_utc_naive`` first.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current instant as a naive UTC datetime (storage representation)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime | date | None) -> Optional[datetime]:
    if value is None:
        return None
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def days_ago(days: int | float, now: datetime | None = None) -> datetime:
    return (now or utcnow()) - timedelta(days=days)


def days_from_now(days: int | float, now: datetime | None = None) -> datetime:
    return (now or utcnow()) + timedelta(days=days)


def to_local(value: datetime | None = None) -> datetime:
    """Aware local-time view of ``value``; a naive value is read as UTC like stored timestamps."""
    if value is None:
        return datetime.now(timezone.utc).astimezone()
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone()


def local_day_bounds(now: datetime | None = None) -> tuple[datetime, datetime]:
    """
    Start and end of the caller's local calendar day, as naive UTC.

    The range is inclusive at the start and exclusive at the next day's start.
    ``now`` may be aware or naive; a naive value is taken as UTC.
    """
    local_now = to_local(now)
    start = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    next_day = (start + timedelta(days=1)).date()
    end = datetime.combine(next_day, time.min).astimezone()
    return to_utc_naive(start), to_utc_naive(end)
