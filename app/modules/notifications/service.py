"""Notifications business logic layer."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import OutboxStatusEnum
from app.modules.audit.repository import AuditRepository
from app.modules.notifications.schemas import NotificationDeliveryMetricsRead


class NotificationsService:
    """Read side of the notification outbox."""

    def __init__(self, audit_repository: AuditRepository) -> None:
        self.audit_repository = audit_repository

    async def get_delivery_metrics(self, max_retries: int) -> NotificationDeliveryMetricsRead:
        """Return delivery pipeline snapshot."""
        outbox_counts = await self.audit_repository.count_outbox_by_status()
        retryable_failed = await self.audit_repository.count_retryable_failed_outbox(max_retries=max_retries)
        dead_letter = await self.audit_repository.count_dead_letter_outbox(max_retries=max_retries)

        outbox_pending = outbox_counts.get(OutboxStatusEnum.PENDING, 0)
        outbox_processed = outbox_counts.get(OutboxStatusEnum.PROCESSED, 0)
        outbox_failed = outbox_counts.get(OutboxStatusEnum.FAILED, 0)

        return NotificationDeliveryMetricsRead(
            outbox_total=outbox_pending + outbox_processed + outbox_failed,
            outbox_pending=outbox_pending,
            outbox_processed=outbox_processed,
            outbox_failed=outbox_failed,
            outbox_retryable_failed=retryable_failed,
            outbox_dead_letter=dead_letter,
            max_retries=max_retries,
        )


async def get_notifications_service(session: AsyncSession = Depends(get_db_session)) -> NotificationsService:
    """Dependency provider for notifications service."""
    return NotificationsService(audit_repository=AuditRepository(session))
