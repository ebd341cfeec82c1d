"""Seed idempotent demo data for local/non-production environments."""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from uuid import NAMESPACE_URL, UUID, uuid5

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import close_engine, session_scope
from app.core.enums import PaymentTypeEnum
from app.modules.audit.repository import AuditRepository
from app.modules.billing.repository import BillingRepository
from app.modules.enrollments.models import Enrollment
from app.modules.enrollments.repository import EnrollmentsRepository
from app.modules.enrollments.schemas import EnrollmentCreate
from app.modules.enrollments.service import EnrollmentService
from app.modules.groups.models import Group, GroupDiscount
from app.modules.groups.repository import GroupsRepository
from app.modules.scheduling.models import LessonSchedule

DEMO_CENTER_ID = uuid5(NAMESPACE_URL, "educenter-demo/center")
DEMO_STUDENT_ID = uuid5(NAMESPACE_URL, "educenter-demo/student")
DEMO_GROUP_NAME = "Demo English A1 (Mon/Wed/Fri)"
DEMO_MONTHLY_PRICE = Decimal("300000")
DEMO_SCHEDULE_DAYS = (1, 3, 5)
DEMO_LESSON_START = time(hour=18)
DEMO_LESSON_END = time(hour=19, minute=30)
DEMO_DISCOUNT_TIERS = {3: Decimal("60000"), 6: Decimal("180000")}


@dataclass(slots=True)
class SeedStats:
    group_created: bool = False
    group_id: str | None = None
    schedules_created: int = 0
    discounts_created: int = 0
    enrollment_created: bool = False
    enrollment_id: str | None = None


def _demo_course_window(today: date) -> tuple[date, date]:
    start = date(today.year, 1, 1)
    return start, date(today.year, 12, 31)


async def _ensure_group(session: AsyncSession) -> tuple[Group, bool]:
    group = await session.scalar(
        select(Group).where(
            Group.center_id == DEMO_CENTER_ID,
            Group.name == DEMO_GROUP_NAME,
            Group.is_deleted.is_(False),
        ),
    )
    if group is not None:
        return group, False

    course_start, course_end = _demo_course_window(date.today())
    group = Group(
        center_id=DEMO_CENTER_ID,
        name=DEMO_GROUP_NAME,
        monthly_price=DEMO_MONTHLY_PRICE,
        course_start_date=course_start,
        course_end_date=course_end,
        payment_type=PaymentTypeEnum.START_TO_END_OF_MONTH,
    )
    session.add(group)
    await session.flush()
    return group, True


async def _ensure_schedules(session: AsyncSession, group: Group) -> int:
    existing_days = set(
        (
            await session.scalars(
                select(LessonSchedule.day_of_week).where(LessonSchedule.group_id == group.id),
            )
        ).all(),
    )
    created = 0
    for day in DEMO_SCHEDULE_DAYS:
        if day in existing_days:
            continue
        session.add(
            LessonSchedule(
                group_id=group.id,
                day_of_week=day,
                start_time=DEMO_LESSON_START,
                end_time=DEMO_LESSON_END,
            ),
        )
        created += 1
    await session.flush()
    return created


async def _ensure_discounts(session: AsyncSession, group: Group) -> int:
    existing_months = set(
        (
            await session.scalars(
                select(GroupDiscount.months).where(
                    GroupDiscount.group_id == group.id,
                    GroupDiscount.is_deleted.is_(False),
                ),
            )
        ).all(),
    )
    created = 0
    for months, amount in DEMO_DISCOUNT_TIERS.items():
        if months in existing_months:
            continue
        session.add(GroupDiscount(group_id=group.id, months=months, discount_amount=amount))
        created += 1
    await session.flush()
    return created


async def _ensure_lead(session: AsyncSession, group_id: UUID) -> tuple[Enrollment, bool]:
    repository = EnrollmentsRepository(session)
    existing = await repository.find_live_enrollment(DEMO_STUDENT_ID, group_id)
    if existing is not None:
        return existing, False

    service = EnrollmentService(
        repository=repository,
        groups_repository=GroupsRepository(session),
        billing_repository=BillingRepository(session),
        audit_repository=AuditRepository(session),
    )
    enrollment = await service.enroll_student(
        EnrollmentCreate(group_id=group_id, student_id=DEMO_STUDENT_ID),
        actor_id=None,
    )
    return enrollment, True


async def _run_seed(*, allow_production: bool) -> SeedStats:
    settings = get_settings()
    app_env = settings.app_env.strip().lower()
    if app_env in {"production", "prod"} and not allow_production:
        raise RuntimeError(
            "Refusing to seed demo data in production. "
            "Re-run with --allow-production only if you are absolutely sure.",
        )

    stats = SeedStats()

    async with session_scope() as session:
        group, stats.group_created = await _ensure_group(session)
        stats.group_id = str(group.id)
        stats.schedules_created = await _ensure_schedules(session, group)
        stats.discounts_created = await _ensure_discounts(session, group)

        enrollment, stats.enrollment_created = await _ensure_lead(session, group.id)
        stats.enrollment_id = str(enrollment.id)

    return stats


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Seed idempotent demo data (a Mon/Wed/Fri group with multi-month "
            "discount tiers and one lead enrollment)."
        ),
    )
    parser.add_argument(
        "--allow-production",
        action="store_true",
        help="Allow seeding even when APP_ENV is production/prod.",
    )
    return parser


def _print_summary(stats: SeedStats) -> None:
    print("Demo seed completed.")
    print(f"- Group created: {stats.group_created}")
    print(f"- Group id: {stats.group_id}")
    print(f"- Schedules created: {stats.schedules_created}")
    print(f"- Discount tiers created: {stats.discounts_created}")
    print(f"- Lead enrollment created: {stats.enrollment_created}")
    print(f"- Lead enrollment id: {stats.enrollment_id}")
    print(f"- Demo student id: {DEMO_STUDENT_ID}")


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    try:
        stats = asyncio.run(_run_seed(allow_production=args.allow_production))
    except Exception as exc:
        print(f"Demo seed failed: {exc}")
        return 1
    finally:
        asyncio.run(close_engine())

    _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
