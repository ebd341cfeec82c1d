"""Freeze repository layer."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import FreezeStatusEnum
from app.modules.freeze.models import StudentFreeze


class FreezeRepository:
    """DB operations for student freezes."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_freeze(
        self,
        enrollment_id: UUID,
        student_id: UUID,
        reason: str,
        freeze_start_date: date,
        freeze_end_date: date | None,
    ) -> StudentFreeze:
        freeze = StudentFreeze(
            enrollment_id=enrollment_id,
            student_id=student_id,
            reason=reason,
            freeze_start_date=freeze_start_date,
            freeze_end_date=freeze_end_date,
            status=FreezeStatusEnum.ACTIVE,
        )
        self.session.add(freeze)
        await self.session.flush()
        return freeze

    async def get_freeze_by_id(self, freeze_id: UUID, *, for_update: bool = False) -> StudentFreeze | None:
        stmt = select(StudentFreeze).where(
            StudentFreeze.id == freeze_id,
            StudentFreeze.is_deleted.is_(False),
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return await self.session.scalar(stmt)

    async def get_active_freeze(self, enrollment_id: UUID) -> StudentFreeze | None:
        stmt = select(StudentFreeze).where(
            StudentFreeze.enrollment_id == enrollment_id,
            StudentFreeze.status == FreezeStatusEnum.ACTIVE,
            StudentFreeze.is_deleted.is_(False),
        )
        return await self.session.scalar(stmt)

    async def list_freezes_by_enrollment(self, enrollment_id: UUID) -> list[StudentFreeze]:
        stmt = (
            select(StudentFreeze)
            .where(
                StudentFreeze.enrollment_id == enrollment_id,
                StudentFreeze.is_deleted.is_(False),
            )
            .order_by(StudentFreeze.created_at.desc())
        )
        return (await self.session.scalars(stmt)).all()

    async def save(self, freeze: StudentFreeze) -> StudentFreeze:
        await self.session.flush()
        return freeze
