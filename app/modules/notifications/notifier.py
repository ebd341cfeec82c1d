"""Outbound notification channels."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from app.core.config import Settings
from app.core.enums import NotificationEventEnum

logger = logging.getLogger(__name__)


class NotifierError(Exception):
    """Raised when a notification could not be handed to its channel."""


class Notifier(Protocol):
    async def notify(self, event: NotificationEventEnum, payload: dict[str, Any]) -> None: ...


class LoggingNotifier:
    """Writes notifications to the application log."""

    async def notify(self, event: NotificationEventEnum, payload: dict[str, Any]) -> None:
        logger.info("Notification %s: %s", event.value, payload)


class WebhookNotifier:
    """POSTs ``{"event", "payload"}`` to a relay (e.g. the messaging bot)."""

    def __init__(
        self,
        url: str,
        *,
        timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def notify(self, event: NotificationEventEnum, payload: dict[str, Any]) -> None:
        body = {"event": event.value, "payload": payload}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
                response = await client.post(self.url, json=body)
                response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise NotifierError(f"Webhook timeout for {event.value}") from exc
        except httpx.HTTPStatusError as exc:
            raise NotifierError(
                f"Webhook returned {exc.response.status_code} for {event.value}",
            ) from exc
        except httpx.HTTPError as exc:
            raise NotifierError(f"Webhook request failed for {event.value}: {exc}") from exc


def build_notifier(settings: Settings) -> Notifier:
    """Select the notifier backend configured for this environment."""
    if settings.notifier_backend == "webhook":
        if not settings.notifier_webhook_url:
            raise ValueError("NOTIFIER_WEBHOOK_URL must be set when NOTIFIER_BACKEND=webhook")
        return WebhookNotifier(
            settings.notifier_webhook_url,
            timeout_seconds=settings.notifier_timeout_seconds,
        )
    return LoggingNotifier()
