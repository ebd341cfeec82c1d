"""Groups business logic layer."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.modules.groups.models import Group
from app.modules.groups.pricing import PaymentOption, list_payment_options
from app.modules.groups.repository import GroupsRepository
from app.shared.exceptions import NotFoundException


class GroupsService:
    """Read access to groups plus prepayment pricing."""

    def __init__(self, repository: GroupsRepository) -> None:
        self.repository = repository

    async def get_group(self, group_id: UUID) -> Group:
        group = await self.repository.get_group_by_id(group_id)
        if group is None:
            raise NotFoundException("Group not found")
        return group

    async def get_payment_options(
        self,
        group_id: UUID,
        individual_discount: Decimal = Decimal("0"),
    ) -> list[PaymentOption]:
        """List 1-month and tiered multi-month prepayment prices."""
        group = await self.get_group(group_id)
        return list_payment_options(
            group.monthly_price,
            group.group_discounts,
            individual_discount,
        )


async def get_groups_service(session: AsyncSession = Depends(get_db_session)) -> GroupsService:
    """Dependency provider for groups service."""
    return GroupsService(GroupsRepository(session))
