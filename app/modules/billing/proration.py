"""Prorated billing for the calendar month an enrollment starts in."""

from __future__ import annotations

import calendar
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Protocol

from app.modules.billing.discounts import ZERO, resolve_lesson_price
from app.modules.scheduling.lesson_counter import HasDayOfWeek, count_lessons, schedule_days
from app.shared.utils import as_calendar_date

logger = logging.getLogger(__name__)


class PricedCourse(Protocol):
    monthly_price: Decimal
    course_start_date: date
    course_end_date: date


@dataclass(frozen=True, slots=True)
class ProrationResult:
    """Amount owed for the billing period containing the lesson start date."""

    period_start: date
    period_end: date
    total_lessons_in_period: int
    lessons_missed: int
    lessons_included: int
    base_lesson_price: Decimal
    discount_per_lesson: Decimal
    effective_lesson_price: Decimal
    prorated_amount: Decimal
    discount_applied: Decimal
    is_prorated: bool


def month_bounds(day: date) -> tuple[date, date]:
    """First and last calendar day of the month containing ``day``."""
    last_day = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last_day)


def billing_period(group: PricedCourse, lesson_start_date: date) -> tuple[date, date]:
    """Calendar month of ``lesson_start_date`` clipped to the course window."""
    month_start, month_end = month_bounds(lesson_start_date)
    return (
        max(month_start, as_calendar_date(group.course_start_date)),
        min(month_end, as_calendar_date(group.course_end_date)),
    )


def calculate_proration(
    group: PricedCourse,
    schedules: Iterable[HasDayOfWeek],
    lesson_start_date: date,
    individual_discount: Decimal = ZERO,
) -> ProrationResult:
    """Compute the first billing period and the prorated amount for it."""
    lesson_start_date = as_calendar_date(lesson_start_date)
    days = schedule_days(schedules)
    period_start, period_end = billing_period(group, lesson_start_date)

    total = count_lessons(days, period_start, period_end)
    if total == 0:
        logger.debug(
            "No lessons between %s and %s for start date %s",
            period_start,
            period_end,
            lesson_start_date,
        )
        return ProrationResult(
            period_start=period_start,
            period_end=period_end,
            total_lessons_in_period=0,
            lessons_missed=0,
            lessons_included=0,
            base_lesson_price=ZERO,
            discount_per_lesson=ZERO,
            effective_lesson_price=ZERO,
            prorated_amount=ZERO,
            discount_applied=ZERO,
            is_prorated=False,
        )

    missed_until = min(lesson_start_date - timedelta(days=1), period_end)
    missed = count_lessons(days, period_start, missed_until)
    included = total - missed

    price = resolve_lesson_price(group.monthly_price, total, individual_discount)
    prorated_amount = price.effective_lesson_price * included
    discount_applied = (price.base_lesson_price - price.effective_lesson_price) * included

    return ProrationResult(
        period_start=period_start,
        period_end=period_end,
        total_lessons_in_period=total,
        lessons_missed=missed,
        lessons_included=included,
        base_lesson_price=price.base_lesson_price,
        discount_per_lesson=price.discount_per_lesson,
        effective_lesson_price=price.effective_lesson_price,
        prorated_amount=prorated_amount,
        discount_applied=discount_applied,
        is_prorated=missed > 0,
    )
