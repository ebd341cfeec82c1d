"""Executable worker delivering committed outbox events to the notifier."""

from __future__ import annotations

import asyncio
import logging
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.config import get_settings
from app.core.database import close_engine, session_scope
from app.modules.audit.repository import AuditRepository
from app.modules.notifications.notifier import Notifier, build_notifier
from app.modules.notifications.outbox_worker import NotificationsOutboxWorker

logger = logging.getLogger(__name__)


class OutboxWorkerSettings(BaseSettings):
    """Worker tuning read from ``OUTBOX_WORKER_*`` env vars."""

    model_config = SettingsConfigDict(
        env_prefix="OUTBOX_WORKER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    mode: Literal["once", "loop"] = "once"
    poll_seconds: int = Field(default=10, ge=1)
    batch_size: int = Field(default=100, ge=1)
    max_retries: int = Field(default=5, ge=1)
    base_backoff_seconds: int = Field(default=30, ge=0)
    max_backoff_seconds: int = Field(default=300, ge=0)
    log_level: str = "INFO"

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


async def run_cycle(notifier: Notifier, worker_settings: OutboxWorkerSettings) -> dict[str, int]:
    """Run a single outbox processing cycle in one DB transaction."""
    async with session_scope() as session:
        worker = NotificationsOutboxWorker(
            audit_repository=AuditRepository(session),
            notifier=notifier,
            batch_size=worker_settings.batch_size,
            max_retries=worker_settings.max_retries,
            base_backoff_seconds=worker_settings.base_backoff_seconds,
            max_backoff_seconds=worker_settings.max_backoff_seconds,
        )
        return await worker.run_once()


async def main() -> None:
    """Run once or keep polling according to worker mode."""
    worker_settings = OutboxWorkerSettings()
    logging.basicConfig(level=worker_settings.log_level)
    notifier = build_notifier(get_settings())

    try:
        if worker_settings.mode == "once":
            stats = await run_cycle(notifier, worker_settings)
            logger.info("Outbox notifications worker stats: %s", stats)
            return

        while True:
            try:
                stats = await run_cycle(notifier, worker_settings)
                logger.info("Outbox notifications worker stats: %s", stats)
            except Exception:
                logger.exception("Outbox notifications worker cycle failed")
            await asyncio.sleep(worker_settings.poll_seconds)
    finally:
        await close_engine()


if __name__ == "__main__":
    asyncio.run(main())
