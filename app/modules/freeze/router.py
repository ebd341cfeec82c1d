"""Freeze API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.core.security import get_actor_id
from app.modules.enrollments.schemas import EnrollmentRead
from app.modules.freeze.schemas import FreezeCreate, FreezeEnd, FreezeRead, FreezeTransitionRead
from app.modules.freeze.service import FreezeService, FreezeTransition, get_freeze_service

router = APIRouter(prefix="/freezes", tags=["freezes"])


def _serialize(result: FreezeTransition) -> FreezeTransitionRead:
    return FreezeTransitionRead(
        freeze=FreezeRead.model_validate(result.freeze),
        enrollment=EnrollmentRead.model_validate(result.enrollment),
    )


@router.post("", response_model=FreezeTransitionRead, status_code=status.HTTP_201_CREATED)
async def create_freeze(
    payload: FreezeCreate,
    service: FreezeService = Depends(get_freeze_service),
    actor_id: UUID | None = Depends(get_actor_id),
) -> FreezeTransitionRead:
    """Freeze an active enrollment."""
    return _serialize(await service.create_freeze(payload, actor_id))


@router.post("/{freeze_id}/end", response_model=FreezeTransitionRead)
async def end_freeze(
    freeze_id: UUID,
    payload: FreezeEnd | None = None,
    service: FreezeService = Depends(get_freeze_service),
    actor_id: UUID | None = Depends(get_actor_id),
) -> FreezeTransitionRead:
    """End an active freeze."""
    end_reason = payload.end_reason if payload is not None else None
    return _serialize(await service.end_freeze(freeze_id, end_reason, actor_id))


@router.post("/{freeze_id}/cancel", response_model=FreezeTransitionRead)
async def cancel_freeze(
    freeze_id: UUID,
    service: FreezeService = Depends(get_freeze_service),
    actor_id: UUID | None = Depends(get_actor_id),
) -> FreezeTransitionRead:
    """Cancel a freeze."""
    return _serialize(await service.cancel_freeze(freeze_id, actor_id))


@router.get("/enrollments/{enrollment_id}", response_model=list[FreezeRead])
async def list_enrollment_freezes(
    enrollment_id: UUID,
    service: FreezeService = Depends(get_freeze_service),
) -> list[FreezeRead]:
    """List freezes of an enrollment."""
    freezes = await service.list_freezes(enrollment_id)
    return [FreezeRead.model_validate(item) for item in freezes]
