from __future__ import annotations

from datetime import UTC, date, datetime
from types import SimpleNamespace

import pytest

from app.modules.scheduling.lesson_counter import count_lessons, schedule_days

MON_WED_FRI = frozenset({1, 3, 5})


def test_count_lessons_january_2024_mon_wed_fri() -> None:
    assert count_lessons(MON_WED_FRI, date(2024, 1, 1), date(2024, 1, 31)) == 14
    assert count_lessons(MON_WED_FRI, date(2024, 1, 1), date(2024, 1, 30)) == 13


def test_count_lessons_is_inclusive_on_both_ends() -> None:
    assert count_lessons(MON_WED_FRI, date(2024, 1, 1), date(2024, 1, 1)) == 1
    assert count_lessons(MON_WED_FRI, date(2024, 1, 1), date(2024, 1, 5)) == 3


def test_count_lessons_returns_zero_when_start_after_end() -> None:
    assert count_lessons(MON_WED_FRI, date(2024, 1, 10), date(2024, 1, 9)) == 0
    assert count_lessons(MON_WED_FRI, date(2024, 2, 1), date(2024, 1, 1)) == 0


def test_count_lessons_returns_zero_for_empty_schedule() -> None:
    assert count_lessons(frozenset(), date(2024, 1, 1), date(2024, 12, 31)) == 0


def test_count_lessons_sunday_is_day_seven() -> None:
    # 2024-01-07 is a Sunday.
    assert count_lessons({7}, date(2024, 1, 1), date(2024, 1, 7)) == 1
    assert count_lessons({7}, date(2024, 1, 1), date(2024, 1, 6)) == 0


def test_count_lessons_ignores_time_of_day() -> None:
    start = datetime(2024, 1, 1, 23, 59, tzinfo=UTC)
    end = datetime(2024, 1, 3, 0, 1, tzinfo=UTC)
    assert count_lessons(MON_WED_FRI, start, end) == 2


def test_schedule_days_collects_unique_iso_weekdays() -> None:
    schedules = [
        SimpleNamespace(day_of_week=5),
        SimpleNamespace(day_of_week=1),
        SimpleNamespace(day_of_week=3),
    ]
    assert schedule_days(schedules) == MON_WED_FRI


@pytest.mark.parametrize("bad_day", [0, 8])
def test_schedule_days_rejects_non_iso_values(bad_day: int) -> None:
    with pytest.raises(ValueError):
        schedule_days([SimpleNamespace(day_of_week=bad_day)])
