"""Audit API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.modules.audit.schemas import AuditLogRead, OutboxEventRead
from app.modules.audit.service import AuditService, get_audit_service
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("/logs", response_model=Page[AuditLogRead])
async def list_logs(
    entity_type: str | None = Query(default=None, max_length=64),
    entity_id: UUID | None = None,
    pagination=Depends(get_pagination_params),
    service: AuditService = Depends(get_audit_service),
) -> Page[AuditLogRead]:
    """List audit logs."""
    items, total = await service.list_logs(
        pagination.limit,
        pagination.offset,
        entity_type=entity_type,
        entity_id=entity_id,
    )
    serialized = [AuditLogRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/outbox/dead-letters", response_model=list[OutboxEventRead])
async def list_dead_letters(
    max_retries: int = Query(default=5, ge=1, le=100),
    limit: int = Query(default=100, ge=1, le=500),
    service: AuditService = Depends(get_audit_service),
) -> list[OutboxEventRead]:
    """List outbox events that will not be retried."""
    items = await service.list_dead_letters(max_retries=max_retries, limit=limit)
    return [OutboxEventRead.model_validate(item) for item in items]
