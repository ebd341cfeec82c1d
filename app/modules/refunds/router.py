"""Refunds API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.enums import RefundStatusEnum
from app.core.security import get_actor_id
from app.modules.refunds.schemas import RefundCreate, RefundProcess, RefundRead
from app.modules.refunds.service import RefundService, get_refund_service
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/refunds", tags=["refunds"])


@router.post("", response_model=RefundRead, status_code=status.HTTP_201_CREATED)
async def create_refund(
    payload: RefundCreate,
    service: RefundService = Depends(get_refund_service),
    actor_id: UUID | None = Depends(get_actor_id),
) -> RefundRead:
    """Create refund request."""
    refund = await service.create_refund(payload, actor_id)
    return RefundRead.model_validate(refund)


@router.get("", response_model=Page[RefundRead])
async def list_refunds(
    status_filter: RefundStatusEnum | None = Query(default=None, alias="status"),
    pagination=Depends(get_pagination_params),
    service: RefundService = Depends(get_refund_service),
) -> Page[RefundRead]:
    """List refund requests."""
    items, total = await service.list_refunds(
        status=status_filter,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    serialized = [RefundRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/{refund_id}", response_model=RefundRead)
async def get_refund(
    refund_id: UUID,
    service: RefundService = Depends(get_refund_service),
) -> RefundRead:
    """Get refund request by id."""
    refund = await service.get_refund(refund_id)
    return RefundRead.model_validate(refund)


@router.post("/{refund_id}/process", response_model=RefundRead)
async def process_refund(
    refund_id: UUID,
    payload: RefundProcess,
    service: RefundService = Depends(get_refund_service),
    actor_id: UUID | None = Depends(get_actor_id),
) -> RefundRead:
    """Approve or reject a pending refund."""
    refund = await service.process_refund(
        refund_id,
        payload.decision,
        payload.processing_notes,
        actor_id,
    )
    return RefundRead.model_validate(refund)
