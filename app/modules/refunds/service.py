"""Refund business logic layer."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import EnrollmentStatusEnum, RefundDecisionEnum, RefundStatusEnum
from app.core.metrics import REFUND_DECISIONS_TOTAL
from app.modules.audit.repository import AuditRepository
from app.modules.billing.repository import BillingRepository
from app.modules.enrollments.models import Enrollment
from app.modules.enrollments.repository import EnrollmentsRepository
from app.modules.refunds.calculator import calculate_refund_amount, calculate_total_lessons
from app.modules.refunds.models import RefundRequest
from app.modules.refunds.repository import RefundsRepository
from app.modules.refunds.schemas import RefundCreate
from app.shared.exceptions import (
    ConflictException,
    InvalidInputException,
    InvalidStateException,
    NotFoundException,
)
from app.shared.utils import local_today, utc_now

logger = logging.getLogger(__name__)
settings = get_settings()

REFUNDABLE_STATUSES = frozenset(
    {
        EnrollmentStatusEnum.ACTIVE,
        EnrollmentStatusEnum.FROZEN,
        EnrollmentStatusEnum.DROPPED,
    },
)
REFUND_APPROVED_REASON = "refund approved"

DECISION_TO_STATUS: dict[RefundDecisionEnum, RefundStatusEnum] = {
    RefundDecisionEnum.APPROVED: RefundStatusEnum.APPROVED,
    RefundDecisionEnum.REJECTED: RefundStatusEnum.REJECTED,
}


def _refund_payload(refund: RefundRequest) -> dict:
    return {
        "refund_id": str(refund.id),
        "enrollment_id": str(refund.enrollment_id),
        "student_id": str(refund.student_id),
        "group_id": str(refund.group_id),
        "total_paid": str(refund.total_paid),
        "refund_amount": str(refund.refund_amount),
        "currency": settings.billing_currency,
        "status": refund.status.value,
    }


class RefundService:
    """Refund requests and their approval workflow."""

    def __init__(
        self,
        repository: RefundsRepository,
        enrollments_repository: EnrollmentsRepository,
        billing_repository: BillingRepository,
        audit_repository: AuditRepository,
    ) -> None:
        self.repository = repository
        self.enrollments_repository = enrollments_repository
        self.billing_repository = billing_repository
        self.audit_repository = audit_repository

    async def create_refund(self, payload: RefundCreate, actor_id: UUID | None) -> RefundRequest:
        """Open a pending refund request with its computed amount."""
        enrollment = await self.enrollments_repository.get_enrollment_by_id(
            payload.enrollment_id,
            for_update=True,
        )
        if enrollment is None:
            raise NotFoundException("Enrollment not found")
        if enrollment.status not in REFUNDABLE_STATUSES:
            raise InvalidStateException(
                f"Cannot request refund for enrollment with status {enrollment.status}",
            )

        existing = await self.repository.get_pending_refund(enrollment.student_id, enrollment.group_id)
        if existing is not None:
            raise ConflictException("Student already has a pending refund request for this group")

        total_paid = await self.billing_repository.sum_paid_for_student_group(
            enrollment.student_id,
            enrollment.group_id,
        )
        if total_paid <= 0:
            raise InvalidInputException("No payments found for this enrollment. Cannot process refund.")

        group = enrollment.group
        total_lessons = calculate_total_lessons(
            group.lesson_schedules,
            group.course_start_date,
            local_today(),
        )
        # No attendance ledger exists; every held lesson counts as attended.
        lessons_attended = total_lessons
        refund_amount = calculate_refund_amount(total_paid, lessons_attended, total_lessons)

        try:
            refund = await self.repository.create_refund(
                center_id=group.center_id,
                enrollment_id=enrollment.id,
                student_id=enrollment.student_id,
                group_id=enrollment.group_id,
                request_reason=payload.request_reason,
                total_paid=total_paid,
                lessons_attended=lessons_attended,
                total_lessons=total_lessons,
                refund_amount=refund_amount,
            )
        except IntegrityError as exc:
            raise ConflictException("Student already has a pending refund request for this group") from exc

        event_payload = _refund_payload(refund)
        await self.audit_repository.create_audit_log(
            actor_id=actor_id,
            action="refund.create",
            entity_type="refund_request",
            entity_id=str(refund.id),
            payload={
                **event_payload,
                "lessons_attended": lessons_attended,
                "total_lessons": total_lessons,
                "request_reason": payload.request_reason,
            },
        )
        await self.audit_repository.create_outbox_event(
            aggregate_type="refund_request",
            aggregate_id=str(refund.id),
            event_type="refund.created",
            payload=event_payload,
        )
        logger.info(
            "Created refund request %s for student %s, amount %s %s",
            refund.id,
            enrollment.student_id,
            refund_amount,
            settings.billing_currency,
        )
        return refund

    async def process_refund(
        self,
        refund_id: UUID,
        decision: RefundDecisionEnum,
        processing_notes: str | None,
        actor_id: UUID | None,
    ) -> RefundRequest:
        """Approve (dropping the enrollment) or reject a pending refund."""
        refund = await self.repository.get_refund_by_id(refund_id)
        if refund is None:
            raise NotFoundException("Refund request not found")

        enrollment: Enrollment | None = None
        if decision == RefundDecisionEnum.APPROVED:
            enrollment = await self.enrollments_repository.get_enrollment_by_id(
                refund.enrollment_id,
                for_update=True,
            )
            if enrollment is None:
                raise NotFoundException("Enrollment not found")

        refund = await self.repository.get_refund_by_id(refund_id, for_update=True)
        if refund is None:
            raise NotFoundException("Refund request not found")
        if refund.status != RefundStatusEnum.PENDING:
            raise InvalidStateException(f"Cannot process refund with status {refund.status}")

        now = utc_now()
        refund.status = DECISION_TO_STATUS[decision]
        refund.processed_by = actor_id
        refund.processed_at = now
        refund.processing_notes = processing_notes
        refund.completed_at = now if decision == RefundDecisionEnum.APPROVED else None
        await self.repository.save(refund)

        if enrollment is not None and enrollment.status != EnrollmentStatusEnum.DROPPED:
            enrollment.status = EnrollmentStatusEnum.DROPPED
            enrollment.removed_at = now
            enrollment.removal_reason = REFUND_APPROVED_REASON
            await self.enrollments_repository.save(enrollment)

        event_payload = _refund_payload(refund)
        await self.audit_repository.create_audit_log(
            actor_id=actor_id,
            action=f"refund.{decision.value}",
            entity_type="refund_request",
            entity_id=str(refund.id),
            payload={**event_payload, "processing_notes": processing_notes},
        )
        await self.audit_repository.create_outbox_event(
            aggregate_type="refund_request",
            aggregate_id=str(refund.id),
            event_type=f"refund.{decision.value}",
            payload=event_payload,
        )
        REFUND_DECISIONS_TOTAL.labels(decision=decision.value).inc()
        logger.info("Refund %s %s, amount %s", refund.id, decision.value, refund.refund_amount)
        return refund

    async def list_refunds(
        self,
        status: RefundStatusEnum | None,
        limit: int,
        offset: int,
    ) -> tuple[list[RefundRequest], int]:
        """List refund requests, newest first."""
        return await self.repository.list_refunds(status=status, limit=limit, offset=offset)

    async def get_refund(self, refund_id: UUID) -> RefundRequest:
        """Return refund request by id."""
        refund = await self.repository.get_refund_by_id(refund_id)
        if refund is None:
            raise NotFoundException("Refund request not found")
        return refund


async def get_refund_service(
    session: AsyncSession = Depends(get_db_session),
) -> RefundService:
    """Dependency provider for refund service."""
    return RefundService(
        repository=RefundsRepository(session),
        enrollments_repository=EnrollmentsRepository(session),
        billing_repository=BillingRepository(session),
        audit_repository=AuditRepository(session),
    )
