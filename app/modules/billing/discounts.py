"""Per-lesson price resolution with an individual monthly discount."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from app.shared.utils import round_currency

ZERO = Decimal("0")


@dataclass(frozen=True, slots=True)
class LessonPrice:
    base_lesson_price: Decimal
    discount_per_lesson: Decimal
    effective_lesson_price: Decimal


def resolve_lesson_price(
    monthly_price: Decimal,
    total_lessons_in_period: int,
    individual_discount_amount: Decimal = ZERO,
) -> LessonPrice:
    """Split monthly price and monthly discount across the period's lessons.

    Both shares are rounded to whole currency units before subtracting, and
    the effective price is clamped at zero however large the discount is.
    Group multi-month tiers are a separate axis, see ``groups.pricing``.
    """
    if total_lessons_in_period <= 0:
        return LessonPrice(ZERO, ZERO, ZERO)

    base = round_currency(Decimal(monthly_price) / total_lessons_in_period)
    discount = round_currency(Decimal(individual_discount_amount) / total_lessons_in_period)
    effective = max(ZERO, base - discount)
    return LessonPrice(
        base_lesson_price=base,
        discount_per_lesson=discount,
        effective_lesson_price=effective,
    )


def effective_individual_discount(
    discount_amount: Decimal | None,
    valid_until: date | None,
    on_date: date,
) -> Decimal:
    """Individual discount in force on ``on_date`` (zero once expired)."""
    if not discount_amount:
        return ZERO
    if valid_until is not None and on_date > valid_until:
        return ZERO
    return Decimal(discount_amount)


def is_free_enrollment(discount_amount: Decimal, monthly_price: Decimal) -> bool:
    """A discount covering the whole monthly price makes the enrollment free."""
    return Decimal(discount_amount) >= Decimal(monthly_price)
