from __future__ import annotations

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

from app.modules.refunds.calculator import calculate_refund_amount, calculate_total_lessons


def test_refund_is_zero_when_every_lesson_was_attended() -> None:
    assert calculate_refund_amount(Decimal("900000"), 30, 30) == Decimal("0")


def test_refund_returns_unattended_share() -> None:
    assert calculate_refund_amount(Decimal("900000"), 10, 30) == Decimal("600000")


def test_refund_is_zero_without_lessons() -> None:
    assert calculate_refund_amount(Decimal("900000"), 0, 0) == Decimal("0")


def test_refund_rounds_to_whole_units_and_stays_within_paid() -> None:
    amount = calculate_refund_amount(Decimal("100000"), 1, 3)

    assert amount == Decimal("66667")
    assert Decimal("0") <= amount <= Decimal("100000")


def test_refund_is_clamped_when_attended_exceeds_total() -> None:
    assert calculate_refund_amount(Decimal("900000"), 40, 30) == Decimal("0")


def test_total_lessons_counts_from_course_start_through_today() -> None:
    schedules = [SimpleNamespace(day_of_week=day) for day in (1, 3, 5)]

    assert calculate_total_lessons(schedules, date(2024, 1, 1), date(2024, 1, 31)) == 14
    assert calculate_total_lessons(schedules, date(2024, 2, 1), date(2024, 1, 31)) == 0


def test_refund_of_fractional_payment_never_exceeds_paid() -> None:
    assert calculate_refund_amount(Decimal("100.60"), 0, 10) == Decimal("100.60")


def test_refund_stays_within_paid_for_every_attendance() -> None:
    for total_paid in (Decimal("100.60"), Decimal("99.50"), Decimal("250000.49")):
        for attended in range(0, 12):
            amount = calculate_refund_amount(total_paid, attended, 10)
            assert Decimal("0") <= amount <= total_paid
