"""Groups API router."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.modules.groups.schemas import GroupRead, PaymentOptionRead
from app.modules.groups.service import GroupsService, get_groups_service

router = APIRouter(prefix="/groups", tags=["groups"])


@router.get("/{group_id}", response_model=GroupRead)
async def get_group(
    group_id: UUID,
    service: GroupsService = Depends(get_groups_service),
) -> GroupRead:
    """Get group with schedule and discount tiers."""
    group = await service.get_group(group_id)
    return GroupRead.model_validate(group)


@router.get("/{group_id}/payment-options", response_model=list[PaymentOptionRead])
async def get_payment_options(
    group_id: UUID,
    individual_discount: Decimal = Query(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2),
    service: GroupsService = Depends(get_groups_service),
) -> list[PaymentOptionRead]:
    """Prepayment prices for one month and each discount tier."""
    options = await service.get_payment_options(group_id, individual_discount)
    return [PaymentOptionRead.model_validate(option) for option in options]
