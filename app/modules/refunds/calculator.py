"""Refund amount computation."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from app.modules.scheduling.lesson_counter import HasDayOfWeek, count_lessons, schedule_days
from app.shared.utils import round_currency

ZERO = Decimal("0")


def calculate_refund_amount(total_paid: Decimal, lessons_attended: int, total_lessons: int) -> Decimal:
    """Refund what was paid for lessons not attended, within [0, total_paid]."""
    if total_lessons <= 0:
        return ZERO
    paid = Decimal(total_paid)
    price_per_lesson = paid / total_lessons
    refund = paid - lessons_attended * price_per_lesson
    # Whole-unit rounding can exceed a fractional payment.
    return min(paid, max(ZERO, round_currency(refund)))


def calculate_total_lessons(
    schedules: Iterable[HasDayOfWeek],
    course_start_date: date,
    today: date,
) -> int:
    """Lessons held from course start through today, inclusive."""
    return count_lessons(schedule_days(schedules), course_start_date, today)
