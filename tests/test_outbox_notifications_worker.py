from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

import pytest

from app.core.enums import NotificationEventEnum, OutboxStatusEnum
from app.modules.notifications.notifier import NotifierError
from app.modules.notifications.outbox_worker import NotificationsOutboxWorker


@dataclass
class FakeOutboxEvent:
    id: UUID
    event_type: str
    payload: dict
    status: OutboxStatusEnum = OutboxStatusEnum.PENDING
    retries: int = 0
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    processed_at: datetime | None = None
    error_message: str | None = None


class FakeAuditRepository:
    def __init__(self, events: list[FakeOutboxEvent]) -> None:
        self.events = events

    async def list_pending_outbox(self, limit: int) -> list[FakeOutboxEvent]:
        return [event for event in self.events if event.status == OutboxStatusEnum.PENDING][:limit]

    async def list_failed_outbox(self, limit: int, max_retries: int) -> list[FakeOutboxEvent]:
        return [
            event
            for event in self.events
            if event.status == OutboxStatusEnum.FAILED and event.retries < max_retries
        ][:limit]

    async def mark_outbox_pending(self, event: FakeOutboxEvent) -> FakeOutboxEvent:
        event.status = OutboxStatusEnum.PENDING
        event.error_message = None
        event.updated_at = datetime.now(UTC)
        return event

    async def mark_outbox_processed(
        self,
        event: FakeOutboxEvent,
        processed_at: datetime,
    ) -> FakeOutboxEvent:
        event.status = OutboxStatusEnum.PROCESSED
        event.processed_at = processed_at
        event.error_message = None
        event.updated_at = processed_at
        return event

    async def mark_outbox_failed(
        self,
        event: FakeOutboxEvent,
        error_message: str,
    ) -> FakeOutboxEvent:
        event.status = OutboxStatusEnum.FAILED
        event.retries += 1
        event.error_message = error_message
        event.updated_at = datetime.now(UTC)
        return event


class FakeNotifier:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[tuple[NotificationEventEnum, dict[str, Any]]] = []

    async def notify(self, event: NotificationEventEnum, payload: dict[str, Any]) -> None:
        if self.fail:
            raise NotifierError("relay unavailable")
        self.sent.append((event, payload))


def make_worker(
    events: list[FakeOutboxEvent],
    *,
    notifier: FakeNotifier | None = None,
    now: datetime | None = None,
    base_backoff_seconds: int = 30,
) -> tuple[NotificationsOutboxWorker, FakeAuditRepository, FakeNotifier]:
    now_point = now or datetime.now(UTC)
    audit_repo = FakeAuditRepository(events)
    fake_notifier = notifier or FakeNotifier()
    worker = NotificationsOutboxWorker(
        audit_repository=audit_repo,  # type: ignore[arg-type]
        notifier=fake_notifier,
        now_provider=lambda: now_point,
        base_backoff_seconds=base_backoff_seconds,
    )
    return worker, audit_repo, fake_notifier


@pytest.mark.asyncio
async def test_worker_delivers_freeze_created_notification() -> None:
    student_id = uuid4()
    payload = {"student_id": str(student_id), "freeze_id": str(uuid4())}
    event = FakeOutboxEvent(id=uuid4(), event_type="freeze.created", payload=payload)
    now_point = datetime(2024, 2, 1, 12, 0, tzinfo=UTC)
    worker, _, notifier = make_worker([event], now=now_point)

    stats = await worker.run_once()

    assert stats == {"requeued": 0, "processed": 1, "failed": 0, "dispatched": 1}
    assert event.status == OutboxStatusEnum.PROCESSED
    assert event.processed_at == now_point
    assert notifier.sent == [(NotificationEventEnum.FREEZE_CREATED, payload)]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("event_type", "expected"),
    [
        ("freeze.ended", NotificationEventEnum.FREEZE_ENDED),
        ("freeze.cancelled", NotificationEventEnum.FREEZE_CANCELLED),
        ("refund.created", NotificationEventEnum.REFUND_CREATED),
        ("refund.approved", NotificationEventEnum.REFUND_APPROVED),
        ("refund.rejected", NotificationEventEnum.REFUND_REJECTED),
    ],
)
async def test_worker_maps_domain_events_to_notifications(
    event_type: str,
    expected: NotificationEventEnum,
) -> None:
    event = FakeOutboxEvent(id=uuid4(), event_type=event_type, payload={"student_id": str(uuid4())})
    worker, _, notifier = make_worker([event])

    await worker.run_once()

    assert [sent_event for sent_event, _ in notifier.sent] == [expected]


@pytest.mark.asyncio
async def test_worker_processes_unmapped_event_without_dispatch() -> None:
    event = FakeOutboxEvent(id=uuid4(), event_type="enrollment.activated", payload={})
    worker, _, notifier = make_worker([event])

    stats = await worker.run_once()

    assert stats == {"requeued": 0, "processed": 1, "failed": 0, "dispatched": 0}
    assert event.status == OutboxStatusEnum.PROCESSED
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_worker_marks_event_failed_when_delivery_fails() -> None:
    event = FakeOutboxEvent(id=uuid4(), event_type="refund.approved", payload={})
    worker, _, _ = make_worker([event], notifier=FakeNotifier(fail=True))

    stats = await worker.run_once()

    assert stats["processed"] == 0
    assert stats["failed"] == 1
    assert event.status == OutboxStatusEnum.FAILED
    assert event.retries == 1
    assert event.error_message == "relay unavailable"


@pytest.mark.asyncio
async def test_worker_requeues_failed_event_after_backoff() -> None:
    now_point = datetime(2024, 2, 1, 12, 0, tzinfo=UTC)
    event = FakeOutboxEvent(
        id=uuid4(),
        event_type="freeze.ended",
        payload={"student_id": str(uuid4())},
        status=OutboxStatusEnum.FAILED,
        retries=1,
        occurred_at=now_point - timedelta(minutes=10),
        updated_at=now_point - timedelta(minutes=2),
    )
    worker, _, notifier = make_worker([event], now=now_point, base_backoff_seconds=30)

    stats = await worker.run_once()

    assert stats["requeued"] == 1
    assert stats["processed"] == 1
    assert event.status == OutboxStatusEnum.PROCESSED
    assert len(notifier.sent) == 1


@pytest.mark.asyncio
async def test_worker_keeps_failed_event_until_backoff_elapses() -> None:
    now_point = datetime(2024, 2, 1, 12, 0, tzinfo=UTC)
    event = FakeOutboxEvent(
        id=uuid4(),
        event_type="freeze.ended",
        payload={},
        status=OutboxStatusEnum.FAILED,
        retries=3,
        updated_at=now_point - timedelta(seconds=60),
    )
    worker, _, notifier = make_worker([event], now=now_point, base_backoff_seconds=30)

    stats = await worker.run_once()

    assert stats == {"requeued": 0, "processed": 0, "failed": 0, "dispatched": 0}
    assert event.status == OutboxStatusEnum.FAILED
    assert notifier.sent == []
