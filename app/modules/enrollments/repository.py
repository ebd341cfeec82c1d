"""Enrollment repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enums import EnrollmentStatusEnum
from app.modules.enrollments.models import Enrollment
from app.modules.groups.models import Group


class EnrollmentsRepository:
    """DB operations for enrollments."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_enrollment(self, group_id: UUID, student_id: UUID) -> Enrollment:
        enrollment = Enrollment(
            group_id=group_id,
            student_id=student_id,
            status=EnrollmentStatusEnum.LEAD,
        )
        self.session.add(enrollment)
        await self.session.flush()
        return enrollment

    async def get_enrollment_by_id(
        self,
        enrollment_id: UUID,
        *,
        for_update: bool = False,
    ) -> Enrollment | None:
        """Load enrollment with its group pricing data.

        ``for_update`` takes a row lock held until the request transaction
        ends, serializing concurrent state changes of the same enrollment.
        """
        stmt = (
            select(Enrollment)
            .options(
                selectinload(Enrollment.group).selectinload(Group.lesson_schedules),
                selectinload(Enrollment.group).selectinload(Group.group_discounts),
            )
            .where(Enrollment.id == enrollment_id, Enrollment.is_deleted.is_(False))
        )
        if for_update:
            stmt = stmt.with_for_update(of=Enrollment).execution_options(populate_existing=True)
        return await self.session.scalar(stmt)

    async def find_live_enrollment(self, student_id: UUID, group_id: UUID) -> Enrollment | None:
        stmt = select(Enrollment).where(
            Enrollment.student_id == student_id,
            Enrollment.group_id == group_id,
            Enrollment.is_deleted.is_(False),
            Enrollment.status != EnrollmentStatusEnum.DROPPED,
        )
        return await self.session.scalar(stmt)

    async def list_enrollments_by_group(
        self,
        group_id: UUID,
        status: EnrollmentStatusEnum | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Enrollment], int]:
        base_stmt: Select[tuple[Enrollment]] = select(Enrollment).where(
            Enrollment.group_id == group_id,
            Enrollment.is_deleted.is_(False),
        )
        if status is not None:
            base_stmt = base_stmt.where(Enrollment.status == status)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(Enrollment.joined_at.desc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return items, total

    async def save(self, enrollment: Enrollment) -> Enrollment:
        await self.session.flush()
        return enrollment
