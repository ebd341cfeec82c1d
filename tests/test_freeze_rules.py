from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

import app.modules.freeze.service as freeze_service_module
from app.core.enums import EnrollmentStatusEnum, FreezeStatusEnum
from app.modules.freeze.schemas import FreezeCreate
from app.modules.freeze.service import FreezeService
from app.shared.exceptions import (
    ConflictException,
    InvalidInputException,
    InvalidStateException,
    NotFoundException,
)


@dataclass
class FakeEnrollment:
    id: UUID = field(default_factory=uuid4)
    student_id: UUID = field(default_factory=uuid4)
    status: EnrollmentStatusEnum = EnrollmentStatusEnum.ACTIVE
    per_lesson_price: Decimal = Decimal("21429")
    next_payment_date: date | None = date(2024, 1, 31)


@dataclass
class FakeFreeze:
    enrollment_id: UUID
    student_id: UUID
    reason: str
    freeze_start_date: date
    freeze_end_date: date | None = None
    status: FreezeStatusEnum = FreezeStatusEnum.ACTIVE
    id: UUID = field(default_factory=uuid4)
    actual_end_date: datetime | None = None
    ended_by: UUID | None = None
    end_reason: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class FakeEnrollmentsRepository:
    def __init__(self, enrollments: list[FakeEnrollment]) -> None:
        self.enrollments = {item.id: item for item in enrollments}
        self.locked: list[UUID] = []

    async def get_enrollment_by_id(
        self,
        enrollment_id: UUID,
        *,
        for_update: bool = False,
    ) -> FakeEnrollment | None:
        if for_update:
            self.locked.append(enrollment_id)
        return self.enrollments.get(enrollment_id)

    async def save(self, enrollment: FakeEnrollment) -> FakeEnrollment:
        return enrollment


class FakeFreezeRepository:
    def __init__(self, freezes: list[FakeFreeze] | None = None) -> None:
        self.freezes = {item.id: item for item in freezes or []}

    async def create_freeze(
        self,
        enrollment_id: UUID,
        student_id: UUID,
        reason: str,
        freeze_start_date: date,
        freeze_end_date: date | None,
    ) -> FakeFreeze:
        freeze = FakeFreeze(
            enrollment_id=enrollment_id,
            student_id=student_id,
            reason=reason,
            freeze_start_date=freeze_start_date,
            freeze_end_date=freeze_end_date,
        )
        self.freezes[freeze.id] = freeze
        return freeze

    async def get_freeze_by_id(self, freeze_id: UUID, *, for_update: bool = False) -> FakeFreeze | None:
        return self.freezes.get(freeze_id)

    async def get_active_freeze(self, enrollment_id: UUID) -> FakeFreeze | None:
        for freeze in self.freezes.values():
            if freeze.enrollment_id == enrollment_id and freeze.status == FreezeStatusEnum.ACTIVE:
                return freeze
        return None

    async def list_freezes_by_enrollment(self, enrollment_id: UUID) -> list[FakeFreeze]:
        items = [item for item in self.freezes.values() if item.enrollment_id == enrollment_id]
        return sorted(items, key=lambda item: item.created_at, reverse=True)

    async def save(self, freeze: FakeFreeze) -> FakeFreeze:
        return freeze


class FakeAuditRepository:
    def __init__(self) -> None:
        self.audit_logs: list[dict] = []
        self.outbox_events: list[dict] = []

    async def create_audit_log(
        self,
        actor_id: UUID | None,
        action: str,
        entity_type: str,
        entity_id: str | None,
        payload: dict,
    ) -> None:
        self.audit_logs.append({"actor_id": actor_id, "action": action, "payload": payload})

    async def create_outbox_event(
        self,
        aggregate_type: str,
        aggregate_id: str,
        event_type: str,
        payload: dict,
    ) -> None:
        self.outbox_events.append({"event_type": event_type, "payload": payload})


def make_service(
    enrollments: list[FakeEnrollment],
    freezes: list[FakeFreeze] | None = None,
) -> tuple[FreezeService, FakeFreezeRepository, FakeAuditRepository]:
    freeze_repo = FakeFreezeRepository(freezes)
    audit_repo = FakeAuditRepository()
    service = FreezeService(
        repository=freeze_repo,  # type: ignore[arg-type]
        enrollments_repository=FakeEnrollmentsRepository(enrollments),  # type: ignore[arg-type]
        audit_repository=audit_repo,  # type: ignore[arg-type]
    )
    return service, freeze_repo, audit_repo


def make_active_freeze(enrollment: FakeEnrollment) -> FakeFreeze:
    return FakeFreeze(
        enrollment_id=enrollment.id,
        student_id=enrollment.student_id,
        reason="travel",
        freeze_start_date=date(2024, 2, 1),
    )


@pytest.mark.asyncio
async def test_create_freeze_moves_active_enrollment_to_frozen() -> None:
    enrollment = FakeEnrollment()
    service, _, audit_repo = make_service([enrollment])

    result = await service.create_freeze(
        FreezeCreate(
            enrollment_id=enrollment.id,
            reason="medical leave",
            freeze_start_date=date(2024, 2, 1),
            freeze_end_date=date(2024, 2, 15),
        ),
        uuid4(),
    )

    assert result.freeze.status == FreezeStatusEnum.ACTIVE
    assert result.freeze.student_id == enrollment.student_id
    assert enrollment.status == EnrollmentStatusEnum.FROZEN
    assert enrollment.per_lesson_price == Decimal("21429")
    assert enrollment.next_payment_date == date(2024, 1, 31)
    assert audit_repo.audit_logs[0]["action"] == "freeze.create"
    assert audit_repo.outbox_events[0]["event_type"] == "freeze.created"


@pytest.mark.asyncio
async def test_create_freeze_allows_indefinite_freeze() -> None:
    enrollment = FakeEnrollment()
    service, _, audit_repo = make_service([enrollment])

    result = await service.create_freeze(
        FreezeCreate(enrollment_id=enrollment.id, reason="unknown", freeze_start_date=date(2024, 2, 1)),
        None,
    )

    assert result.freeze.freeze_end_date is None
    assert audit_repo.outbox_events[0]["payload"]["freeze_end_date"] is None


@pytest.mark.asyncio
async def test_second_freeze_while_one_is_active_conflicts() -> None:
    enrollment = FakeEnrollment(status=EnrollmentStatusEnum.FROZEN)
    first = make_active_freeze(enrollment)
    service, freeze_repo, audit_repo = make_service([enrollment], [first])

    with pytest.raises(ConflictException):
        await service.create_freeze(
            FreezeCreate(enrollment_id=enrollment.id, reason="again", freeze_start_date=date(2024, 2, 3)),
            None,
        )

    assert len(freeze_repo.freezes) == 1
    assert first.status == FreezeStatusEnum.ACTIVE
    assert first.reason == "travel"
    assert audit_repo.outbox_events == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status",
    [EnrollmentStatusEnum.LEAD, EnrollmentStatusEnum.DROPPED],
)
async def test_create_freeze_requires_active_enrollment(status: EnrollmentStatusEnum) -> None:
    enrollment = FakeEnrollment(status=status)
    service, freeze_repo, _ = make_service([enrollment])

    with pytest.raises(InvalidStateException):
        await service.create_freeze(
            FreezeCreate(enrollment_id=enrollment.id, reason="x", freeze_start_date=date(2024, 2, 1)),
            None,
        )

    assert freeze_repo.freezes == {}
    assert enrollment.status == status


@pytest.mark.asyncio
@pytest.mark.parametrize("end_date", [date(2024, 2, 1), date(2024, 1, 31)])
async def test_create_freeze_rejects_end_not_after_start(end_date: date) -> None:
    enrollment = FakeEnrollment()
    service, freeze_repo, _ = make_service([enrollment])

    with pytest.raises(InvalidInputException):
        await service.create_freeze(
            FreezeCreate(
                enrollment_id=enrollment.id,
                reason="x",
                freeze_start_date=date(2024, 2, 1),
                freeze_end_date=end_date,
            ),
            None,
        )

    assert freeze_repo.freezes == {}
    assert enrollment.status == EnrollmentStatusEnum.ACTIVE


@pytest.mark.asyncio
async def test_create_freeze_unknown_enrollment_raises_not_found() -> None:
    service, _, _ = make_service([])

    with pytest.raises(NotFoundException):
        await service.create_freeze(
            FreezeCreate(enrollment_id=uuid4(), reason="x", freeze_start_date=date(2024, 2, 1)),
            None,
        )


@pytest.mark.asyncio
async def test_end_freeze_reactivates_enrollment(monkeypatch: pytest.MonkeyPatch) -> None:
    fixed_now = datetime(2024, 2, 10, 9, 0, tzinfo=UTC)
    monkeypatch.setattr(freeze_service_module, "utc_now", lambda: fixed_now)

    enrollment = FakeEnrollment(status=EnrollmentStatusEnum.FROZEN)
    freeze = make_active_freeze(enrollment)
    service, _, audit_repo = make_service([enrollment], [freeze])
    actor_id = uuid4()

    result = await service.end_freeze(freeze.id, "back from trip", actor_id)

    assert result.freeze.status == FreezeStatusEnum.ENDED
    assert result.freeze.actual_end_date == fixed_now
    assert result.freeze.ended_by == actor_id
    assert result.freeze.end_reason == "back from trip"
    assert enrollment.status == EnrollmentStatusEnum.ACTIVE
    assert enrollment.per_lesson_price == Decimal("21429")
    assert audit_repo.outbox_events[0]["event_type"] == "freeze.ended"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [FreezeStatusEnum.ENDED, FreezeStatusEnum.CANCELLED])
async def test_end_freeze_requires_active_freeze(status: FreezeStatusEnum) -> None:
    enrollment = FakeEnrollment()
    freeze = make_active_freeze(enrollment)
    freeze.status = status
    service, _, audit_repo = make_service([enrollment], [freeze])

    with pytest.raises(InvalidStateException):
        await service.end_freeze(freeze.id, None, None)

    assert freeze.status == status
    assert audit_repo.outbox_events == []


@pytest.mark.asyncio
async def test_end_unknown_freeze_raises_not_found() -> None:
    service, _, _ = make_service([FakeEnrollment()])

    with pytest.raises(NotFoundException):
        await service.end_freeze(uuid4(), None, None)


@pytest.mark.asyncio
async def test_cancel_freeze_reactivates_frozen_enrollment(monkeypatch: pytest.MonkeyPatch) -> None:
    fixed_now = datetime(2024, 2, 2, 12, 0, tzinfo=UTC)
    monkeypatch.setattr(freeze_service_module, "utc_now", lambda: fixed_now)

    enrollment = FakeEnrollment(status=EnrollmentStatusEnum.FROZEN)
    freeze = make_active_freeze(enrollment)
    service, _, audit_repo = make_service([enrollment], [freeze])

    result = await service.cancel_freeze(freeze.id, None)

    assert result.freeze.status == FreezeStatusEnum.CANCELLED
    assert result.freeze.actual_end_date == fixed_now
    assert enrollment.status == EnrollmentStatusEnum.ACTIVE
    assert audit_repo.outbox_events[0]["event_type"] == "freeze.cancelled"


@pytest.mark.asyncio
async def test_cancel_freeze_leaves_non_frozen_enrollment_status() -> None:
    enrollment = FakeEnrollment(status=EnrollmentStatusEnum.DROPPED)
    freeze = make_active_freeze(enrollment)
    service, _, _ = make_service([enrollment], [freeze])

    await service.cancel_freeze(freeze.id, None)

    assert freeze.status == FreezeStatusEnum.CANCELLED
    assert enrollment.status == EnrollmentStatusEnum.DROPPED


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [FreezeStatusEnum.ENDED, FreezeStatusEnum.CANCELLED])
async def test_cancel_closed_freeze_is_rejected(status: FreezeStatusEnum) -> None:
    enrollment = FakeEnrollment()
    freeze = make_active_freeze(enrollment)
    freeze.status = status
    service, _, _ = make_service([enrollment], [freeze])

    with pytest.raises(InvalidStateException):
        await service.cancel_freeze(freeze.id, None)


@pytest.mark.asyncio
async def test_list_freezes_returns_newest_first() -> None:
    enrollment = FakeEnrollment()
    older = make_active_freeze(enrollment)
    older.status = FreezeStatusEnum.ENDED
    older.created_at = datetime(2024, 1, 1, tzinfo=UTC)
    newer = make_active_freeze(enrollment)
    newer.created_at = datetime(2024, 2, 1, tzinfo=UTC)
    service, _, _ = make_service([enrollment], [older, newer])

    freezes = await service.list_freezes(enrollment.id)

    assert [item.id for item in freezes] == [newer.id, older.id]


@pytest.mark.asyncio
async def test_list_freezes_unknown_enrollment_raises_not_found() -> None:
    service, _, _ = make_service([])

    with pytest.raises(NotFoundException):
        await service.list_freezes(uuid4())
