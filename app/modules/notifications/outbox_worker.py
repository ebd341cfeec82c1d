"""Outbox consumer that hands committed domain events to the notifier."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from app.core.enums import NotificationEventEnum
from app.core.metrics import NOTIFICATIONS_DELIVERED_TOTAL
from app.modules.audit.models import OutboxEvent
from app.modules.audit.repository import AuditRepository
from app.modules.notifications.notifier import Notifier
from app.shared.utils import utc_now

logger = logging.getLogger(__name__)

EVENT_NOTIFICATIONS: dict[str, NotificationEventEnum] = {
    "freeze.created": NotificationEventEnum.FREEZE_CREATED,
    "freeze.ended": NotificationEventEnum.FREEZE_ENDED,
    "freeze.cancelled": NotificationEventEnum.FREEZE_CANCELLED,
    "refund.created": NotificationEventEnum.REFUND_CREATED,
    "refund.approved": NotificationEventEnum.REFUND_APPROVED,
    "refund.rejected": NotificationEventEnum.REFUND_REJECTED,
}


class NotificationsOutboxWorker:
    """Process outbox events and deliver student notifications."""

    def __init__(
        self,
        audit_repository: AuditRepository,
        notifier: Notifier,
        *,
        batch_size: int = 100,
        max_retries: int = 5,
        base_backoff_seconds: int = 30,
        max_backoff_seconds: int = 300,
        now_provider=utc_now,
    ) -> None:
        self.audit_repository = audit_repository
        self.notifier = notifier
        self.batch_size = batch_size
        self.max_retries = max_retries
        self.base_backoff_seconds = base_backoff_seconds
        self.max_backoff_seconds = max_backoff_seconds
        self.now_provider = now_provider

    async def run_once(self) -> dict[str, int]:
        """Run one processing cycle."""
        stats = {"requeued": 0, "processed": 0, "failed": 0, "dispatched": 0}
        stats["requeued"] = await self._requeue_retryable_failed_events()

        events = await self.audit_repository.list_pending_outbox(limit=self.batch_size)
        for event in events:
            notification = EVENT_NOTIFICATIONS.get(event.event_type)
            if notification is None:
                await self.audit_repository.mark_outbox_processed(event, self.now_provider())
                stats["processed"] += 1
                continue
            try:
                await self.notifier.notify(notification, event.payload or {})
            except Exception as exc:
                logger.warning(
                    "Notification %s for outbox event %s failed: %s",
                    notification.value,
                    event.id,
                    exc,
                )
                NOTIFICATIONS_DELIVERED_TOTAL.labels(event=notification.value, outcome="failed").inc()
                await self.audit_repository.mark_outbox_failed(event, str(exc))
                stats["failed"] += 1
                continue

            NOTIFICATIONS_DELIVERED_TOTAL.labels(event=notification.value, outcome="delivered").inc()
            await self.audit_repository.mark_outbox_processed(event, self.now_provider())
            stats["processed"] += 1
            stats["dispatched"] += 1
        return stats

    async def _requeue_retryable_failed_events(self) -> int:
        now = self.now_provider()
        failed_events = await self.audit_repository.list_failed_outbox(
            limit=self.batch_size,
            max_retries=self.max_retries,
        )
        requeued = 0
        for event in failed_events:
            if self._is_backoff_elapsed(event, now):
                await self.audit_repository.mark_outbox_pending(event)
                requeued += 1
        return requeued

    def _is_backoff_elapsed(self, event: OutboxEvent, now: datetime) -> bool:
        retries = max(event.retries, 1)
        backoff_seconds = min(
            self.max_backoff_seconds,
            self.base_backoff_seconds * (2 ** (retries - 1)),
        )
        last_attempt_at = event.updated_at or event.occurred_at
        return now >= last_attempt_at + timedelta(seconds=backoff_seconds)
