"""Counting scheduled lessons between calendar dates.

Day numbering is ISO everywhere: 1=Monday .. 7=Sunday, matching
``date.isoweekday()``.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timedelta
from typing import Protocol

from app.shared.utils import as_calendar_date

ISO_WEEKDAYS = frozenset(range(1, 8))
ONE_DAY = timedelta(days=1)


class HasDayOfWeek(Protocol):
    day_of_week: int


def schedule_days(schedules: Iterable[HasDayOfWeek]) -> frozenset[int]:
    """Collect the ISO weekdays a group meets on."""
    days = frozenset(schedule.day_of_week for schedule in schedules)
    unknown = days - ISO_WEEKDAYS
    if unknown:
        raise ValueError(f"day_of_week must be within 1..7, got {sorted(unknown)}")
    return days


def count_lessons(
    schedule: Iterable[int],
    start: date | datetime,
    end: date | datetime,
) -> int:
    """Count days in ``[start, end]`` (inclusive) whose ISO weekday is scheduled.

    Time-of-day is ignored. Returns 0 when ``start > end``.
    """
    days = frozenset(schedule)
    current = as_calendar_date(start)
    last = as_calendar_date(end)
    if current > last or not days:
        return 0

    count = 0
    while current <= last:
        if current.isoweekday() in days:
            count += 1
        current += ONE_DAY
    return count
