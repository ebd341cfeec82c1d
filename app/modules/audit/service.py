"""Audit business logic layer."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.modules.audit.models import AuditLog, OutboxEvent
from app.modules.audit.repository import AuditRepository


class AuditService:
    """Read side of the audit trail and outbox."""

    def __init__(self, repository: AuditRepository) -> None:
        self.repository = repository

    async def list_logs(
        self,
        limit: int,
        offset: int,
        entity_type: str | None = None,
        entity_id: UUID | None = None,
    ) -> tuple[list[AuditLog], int]:
        """List audit logs, optionally for one entity."""
        return await self.repository.list_audit_logs(
            limit=limit,
            offset=offset,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
        )

    async def list_dead_letters(self, max_retries: int, limit: int) -> list[OutboxEvent]:
        """Outbox events that exhausted delivery retries."""
        return await self.repository.list_dead_letter_outbox(max_retries=max_retries, limit=limit)


async def get_audit_service(session: AsyncSession = Depends(get_db_session)) -> AuditService:
    """Dependency provider for audit service."""
    return AuditService(AuditRepository(session))
