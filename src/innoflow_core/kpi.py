"""Weekly pipeline KPIs.

All metrics are recomputed from the full item list on every call; nothing is
cached between calls. The reporting window is the ISO week (Monday 00:00 to
Sunday 23:59:59.999999) containing ``now``.

Items are read by attribute (``status``, ``created_at``, ``f1_locked_at``,
``tags``) so both ORM rows and response schemas can be passed in.
"""
import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Iterable, Optional

from .models import ItemStatus, RygStatus
from .schemas import WeeklyKPIs

GREEN_THRESHOLD = 70  # conversion strictly above this is green
YELLOW_THRESHOLD = 40  # conversion at or above this (up to green) is yellow


def as_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC already."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def iso_week_window(now: datetime) -> tuple[datetime, datetime]:
    """Return the inclusive (start, end) bounds of the ISO week containing ``now``."""
    now = as_naive_utc(now)
    monday = now.date() - timedelta(days=now.weekday())
    start = datetime.combine(monday, time.min)
    end = start + timedelta(days=7) - timedelta(microseconds=1)
    return start, end


def iso_week_number(value: date) -> int:
    """ISO-8601 week of year (week 1 holds the year's first Thursday)."""
    return value.isocalendar()[1]


def in_window(value: Optional[datetime], start: datetime, end: datetime) -> bool:
    if value is None:
        return False
    return start <= as_naive_utc(value) <= end


def lead_time_days(created_at: datetime, locked_at: datetime) -> int:
    """Whole days between two timestamps, truncated toward zero."""
    delta = as_naive_utc(locked_at) - as_naive_utc(created_at)
    return int(delta / timedelta(days=1))


def lower_median(values: Iterable[int]) -> int:
    """Element at index ``len // 2`` of the sorted values; 0 for no values.

    For an even count this picks the upper of the two middle elements rather
    than averaging them: [1, 2, 3, 4] -> 3.
    """
    ordered = sorted(values)
    if not ordered:
        return 0
    return ordered[len(ordered) // 2]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def classify_ryg(conversion: float) -> RygStatus:
    """Traffic light for a conversion percentage. 40 and 70 are both yellow."""
    if conversion > GREEN_THRESHOLD:
        return RygStatus.GREEN
    if conversion >= YELLOW_THRESHOLD:
        return RygStatus.YELLOW
    return RygStatus.RED


def created_this_week(items: Iterable[Any], now: datetime) -> list[Any]:
    """Items whose creation timestamp falls inside the week containing ``now``."""
    start, end = iso_week_window(now)
    return [item for item in items if in_window(item.created_at, start, end)]


def calculate_weekly_kpis(items: Iterable[Any], now: Optional[datetime] = None) -> WeeklyKPIs:
    """
    Compute the weekly pipeline KPIs.

    Args:
        items: All items
        now: Reference time (defaults to the current UTC time)

    Returns:
        WeeklyKPIs with volume, conversion, lead-time median and RYG status
    """
    items = list(items)
    now = now or datetime.utcnow()
    start, end = iso_week_window(now)

    new_this_week = [
        item for item in items
        if ItemStatus(item.status) == ItemStatus.NEW and in_window(item.created_at, start, end)
    ]
    f1_volume = len(new_this_week)

    locked_this_week = [item for item in new_this_week if in_window(item.f1_locked_at, start, end)]
    conversion = (len(locked_this_week) / f1_volume) * 100 if f1_volume > 0 else 0.0

    # Lead time looks at every item that has left New, not just this week's
    lead_times = [
        lead_time_days(item.created_at, item.f1_locked_at)
        for item in items
        if item.f1_locked_at is not None and ItemStatus(item.status) != ItemStatus.NEW
    ]

    return WeeklyKPIs(
        f1_volume=f1_volume,
        f1_to_f2_conversion=round_half_up(conversion),
        f1_to_f2_lead_time_median=lower_median(lead_times),
        ryg_status=classify_ryg(conversion),
    )
