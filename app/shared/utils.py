"""Shared utility functions."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from zoneinfo import ZoneInfo

from app.core.config import get_settings

WHOLE_UNIT = Decimal("1")


def utc_now() -> datetime:
    """Return aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Normalize datetime to UTC timezone."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def local_today() -> date:
    """Return today's calendar date in the center timezone."""
    return datetime.now(ZoneInfo(get_settings().center_timezone)).date()


def as_calendar_date(value: date | datetime) -> date:
    """Drop time-of-day so comparisons happen on calendar days."""
    if isinstance(value, datetime):
        return value.date()
    return value


def round_currency(value: Decimal | int) -> Decimal:
    """Round to the nearest whole currency unit, halves away from zero."""
    return Decimal(value).quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)
