from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import Decimal
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest

import app.modules.refunds.service as refund_service_module
from app.core.enums import EnrollmentStatusEnum, RefundDecisionEnum, RefundStatusEnum
from app.modules.refunds.schemas import RefundCreate
from app.modules.refunds.service import REFUND_APPROVED_REASON, RefundService
from app.shared.exceptions import (
    ConflictException,
    InvalidInputException,
    InvalidStateException,
    NotFoundException,
)

FIXED_NOW = datetime(2024, 2, 1, 10, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def fixed_clock(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(refund_service_module, "local_today", lambda: date(2024, 1, 31))
    monkeypatch.setattr(refund_service_module, "utc_now", lambda: FIXED_NOW)


def make_group() -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid4(),
        center_id=uuid4(),
        course_start_date=date(2024, 1, 1),
        lesson_schedules=[SimpleNamespace(day_of_week=day) for day in (1, 3, 5)],
    )


@dataclass
class FakeEnrollment:
    group: SimpleNamespace = field(default_factory=make_group)
    id: UUID = field(default_factory=uuid4)
    student_id: UUID = field(default_factory=uuid4)
    status: EnrollmentStatusEnum = EnrollmentStatusEnum.ACTIVE
    removed_at: datetime | None = None
    removal_reason: str | None = None

    @property
    def group_id(self) -> UUID:
        return self.group.id


@dataclass
class FakeRefund:
    center_id: UUID
    enrollment_id: UUID
    student_id: UUID
    group_id: UUID
    request_reason: str
    total_paid: Decimal
    lessons_attended: int
    total_lessons: int
    refund_amount: Decimal
    status: RefundStatusEnum = RefundStatusEnum.PENDING
    id: UUID = field(default_factory=uuid4)
    processed_by: UUID | None = None
    processed_at: datetime | None = None
    processing_notes: str | None = None
    completed_at: datetime | None = None


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


class FakeRefundsRepository:
    def __init__(self, refunds: list[FakeRefund] | None = None) -> None:
        self.refunds = {item.id: item for item in refunds or []}

    async def create_refund(self, **kwargs) -> FakeRefund:
        refund = FakeRefund(**kwargs)
        self.refunds[refund.id] = refund
        return refund

    async def get_refund_by_id(self, refund_id: UUID, *, for_update: bool = False) -> FakeRefund | None:
        return self.refunds.get(refund_id)

    async def get_pending_refund(self, student_id: UUID, group_id: UUID) -> FakeRefund | None:
        for refund in self.refunds.values():
            if (
                refund.student_id == student_id
                and refund.group_id == group_id
                and refund.status == RefundStatusEnum.PENDING
            ):
                return refund
        return None

    async def save(self, refund: FakeRefund) -> FakeRefund:
        return refund


@dataclass
class FakeBillingRepository:
    paid: Decimal = Decimal("0")

    async def sum_paid_for_student_group(self, student_id: UUID, group_id: UUID) -> Decimal:
        return self.paid


class FakeAuditRepository:
    def __init__(self) -> None:
        self.audit_logs: list[dict] = []
        self.outbox_events: list[dict] = []

    async def create_audit_log(self, **kwargs) -> None:
        self.audit_logs.append(kwargs)

    async def create_outbox_event(self, **kwargs) -> None:
        self.outbox_events.append(kwargs)


@dataclass
class ServiceBundle:
    service: RefundService
    refunds: FakeRefundsRepository
    enrollments: FakeEnrollmentsRepository
    audit: FakeAuditRepository


def make_bundle(
    enrollments: list[FakeEnrollment],
    *,
    paid: Decimal = Decimal("900000"),
    refunds: list[FakeRefund] | None = None,
) -> ServiceBundle:
    refunds_repo = FakeRefundsRepository(refunds)
    enrollments_repo = FakeEnrollmentsRepository(enrollments)
    audit_repo = FakeAuditRepository()
    service = RefundService(
        repository=refunds_repo,  # type: ignore[arg-type]
        enrollments_repository=enrollments_repo,  # type: ignore[arg-type]
        billing_repository=FakeBillingRepository(paid=paid),  # type: ignore[arg-type]
        audit_repository=audit_repo,  # type: ignore[arg-type]
    )
    return ServiceBundle(service, refunds_repo, enrollments_repo, audit_repo)


def make_pending_refund(enrollment: FakeEnrollment) -> FakeRefund:
    return FakeRefund(
        center_id=enrollment.group.center_id,
        enrollment_id=enrollment.id,
        student_id=enrollment.student_id,
        group_id=enrollment.group_id,
        request_reason="moving away",
        total_paid=Decimal("900000"),
        lessons_attended=14,
        total_lessons=14,
        refund_amount=Decimal("0"),
    )


@pytest.mark.asyncio
async def test_create_refund_counts_held_lessons_as_attended() -> None:
    enrollment = FakeEnrollment()
    bundle = make_bundle([enrollment])

    refund = await bundle.service.create_refund(
        RefundCreate(enrollment_id=enrollment.id, request_reason="moving away"),
        uuid4(),
    )

    assert refund.status == RefundStatusEnum.PENDING
    assert refund.total_paid == Decimal("900000")
    assert refund.total_lessons == 14
    assert refund.lessons_attended == 14
    assert refund.refund_amount == Decimal("0")
    assert refund.center_id == enrollment.group.center_id
    assert bundle.enrollments.locked == [enrollment.id]
    assert bundle.audit.audit_logs[0]["action"] == "refund.create"
    assert bundle.audit.outbox_events[0]["event_type"] == "refund.created"


@pytest.mark.asyncio
async def test_create_refund_before_course_start_refunds_nothing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(refund_service_module, "local_today", lambda: date(2023, 12, 20))
    enrollment = FakeEnrollment()
    bundle = make_bundle([enrollment], paid=Decimal("300000"))

    refund = await bundle.service.create_refund(
        RefundCreate(enrollment_id=enrollment.id, request_reason="changed mind"),
        None,
    )

    assert refund.total_lessons == 0
    assert refund.refund_amount == Decimal("0")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status",
    [EnrollmentStatusEnum.FROZEN, EnrollmentStatusEnum.DROPPED],
)
async def test_create_refund_allowed_for_frozen_and_dropped(status: EnrollmentStatusEnum) -> None:
    enrollment = FakeEnrollment(status=status)
    bundle = make_bundle([enrollment])

    refund = await bundle.service.create_refund(
        RefundCreate(enrollment_id=enrollment.id, request_reason="x"),
        None,
    )

    assert refund.status == RefundStatusEnum.PENDING


@pytest.mark.asyncio
async def test_create_refund_for_lead_is_rejected() -> None:
    enrollment = FakeEnrollment(status=EnrollmentStatusEnum.LEAD)
    bundle = make_bundle([enrollment])

    with pytest.raises(InvalidStateException):
        await bundle.service.create_refund(
            RefundCreate(enrollment_id=enrollment.id, request_reason="x"),
            None,
        )

    assert bundle.refunds.refunds == {}


@pytest.mark.asyncio
async def test_create_refund_without_payments_is_rejected() -> None:
    enrollment = FakeEnrollment()
    bundle = make_bundle([enrollment], paid=Decimal("0"))

    with pytest.raises(InvalidInputException):
        await bundle.service.create_refund(
            RefundCreate(enrollment_id=enrollment.id, request_reason="x"),
            None,
        )

    assert bundle.refunds.refunds == {}
    assert bundle.audit.outbox_events == []


@pytest.mark.asyncio
async def test_second_pending_refund_conflicts() -> None:
    enrollment = FakeEnrollment()
    existing = make_pending_refund(enrollment)
    bundle = make_bundle([enrollment], refunds=[existing])

    with pytest.raises(ConflictException):
        await bundle.service.create_refund(
            RefundCreate(enrollment_id=enrollment.id, request_reason="again"),
            None,
        )

    assert list(bundle.refunds.refunds) == [existing.id]


@pytest.mark.asyncio
async def test_create_refund_unknown_enrollment_raises_not_found() -> None:
    bundle = make_bundle([])

    with pytest.raises(NotFoundException):
        await bundle.service.create_refund(
            RefundCreate(enrollment_id=uuid4(), request_reason="x"),
            None,
        )


@pytest.mark.asyncio
async def test_approve_refund_drops_enrollment() -> None:
    enrollment = FakeEnrollment()
    refund = make_pending_refund(enrollment)
    bundle = make_bundle([enrollment], refunds=[refund])
    actor_id = uuid4()

    result = await bundle.service.process_refund(
        refund.id,
        RefundDecisionEnum.APPROVED,
        "approved by manager",
        actor_id,
    )

    assert result.status == RefundStatusEnum.APPROVED
    assert result.processed_by == actor_id
    assert result.processed_at == FIXED_NOW
    assert result.completed_at == FIXED_NOW
    assert result.processing_notes == "approved by manager"
    assert enrollment.status == EnrollmentStatusEnum.DROPPED
    assert enrollment.removed_at == FIXED_NOW
    assert enrollment.removal_reason == REFUND_APPROVED_REASON
    assert bundle.enrollments.locked == [enrollment.id]
    assert bundle.audit.outbox_events[0]["event_type"] == "refund.approved"


@pytest.mark.asyncio
async def test_approve_refund_keeps_original_removal_of_dropped_enrollment() -> None:
    removed_at = datetime(2024, 1, 20, tzinfo=UTC)
    enrollment = FakeEnrollment(
        status=EnrollmentStatusEnum.DROPPED,
        removed_at=removed_at,
        removal_reason="left group",
    )
    refund = make_pending_refund(enrollment)
    bundle = make_bundle([enrollment], refunds=[refund])

    await bundle.service.process_refund(refund.id, RefundDecisionEnum.APPROVED, None, None)

    assert refund.status == RefundStatusEnum.APPROVED
    assert enrollment.removed_at == removed_at
    assert enrollment.removal_reason == "left group"


@pytest.mark.asyncio
async def test_reject_refund_leaves_enrollment_active() -> None:
    enrollment = FakeEnrollment()
    refund = make_pending_refund(enrollment)
    bundle = make_bundle([enrollment], refunds=[refund])

    result = await bundle.service.process_refund(
        refund.id,
        RefundDecisionEnum.REJECTED,
        "attendance too high",
        None,
    )

    assert result.status == RefundStatusEnum.REJECTED
    assert result.processed_at == FIXED_NOW
    assert result.completed_at is None
    assert enrollment.status == EnrollmentStatusEnum.ACTIVE
    assert bundle.enrollments.locked == []
    assert bundle.audit.outbox_events[0]["event_type"] == "refund.rejected"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [RefundStatusEnum.APPROVED, RefundStatusEnum.REJECTED])
@pytest.mark.parametrize("decision", [RefundDecisionEnum.APPROVED, RefundDecisionEnum.REJECTED])
async def test_processed_refund_cannot_be_processed_again(
    status: RefundStatusEnum,
    decision: RefundDecisionEnum,
) -> None:
    enrollment = FakeEnrollment()
    refund = make_pending_refund(enrollment)
    refund.status = status
    bundle = make_bundle([enrollment], refunds=[refund])

    with pytest.raises(InvalidStateException):
        await bundle.service.process_refund(refund.id, decision, None, None)

    assert refund.status == status
    assert enrollment.status == EnrollmentStatusEnum.ACTIVE
    assert bundle.audit.outbox_events == []


@pytest.mark.asyncio
async def test_process_unknown_refund_raises_not_found() -> None:
    bundle = make_bundle([FakeEnrollment()])

    with pytest.raises(NotFoundException):
        await bundle.service.process_refund(uuid4(), RefundDecisionEnum.REJECTED, None, None)
