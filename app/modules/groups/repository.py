"""Groups repository layer (read-only for the billing engine)."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.modules.groups.models import Group


class GroupsRepository:
    """DB access for groups, their schedules and discount tiers."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_group_by_id(self, group_id: UUID) -> Group | None:
        stmt = (
            select(Group)
            .options(selectinload(Group.lesson_schedules), selectinload(Group.group_discounts))
            .where(Group.id == group_id, Group.is_deleted.is_(False))
        )
        return await self.session.scalar(stmt)
