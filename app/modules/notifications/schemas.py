"""Notifications schemas."""

from __future__ import annotations

from pydantic import BaseModel


class NotificationDeliveryMetricsRead(BaseModel):
    """Outbox delivery pipeline snapshot."""

    outbox_total: int
    outbox_pending: int
    outbox_processed: int
    outbox_failed: int
    outbox_retryable_failed: int
    outbox_dead_letter: int
    max_retries: int
