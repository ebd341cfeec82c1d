"""Enrollment lifecycle: lead, activation with proration, individual discounts."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import EnrollmentStatusEnum
from app.core.metrics import ENROLLMENT_ACTIVATIONS_TOTAL
from app.modules.audit.repository import AuditRepository
from app.modules.billing.discounts import effective_individual_discount, is_free_enrollment
from app.modules.billing.models import Payment
from app.modules.billing.proration import ProrationResult, calculate_proration
from app.modules.billing.repository import BillingRepository
from app.modules.enrollments.models import Enrollment
from app.modules.enrollments.repository import EnrollmentsRepository
from app.modules.enrollments.schemas import AssignDiscountRequest, EnrollmentCreate
from app.modules.groups.models import Group
from app.modules.groups.repository import GroupsRepository
from app.shared.exceptions import (
    ConflictException,
    InvalidInputException,
    InvalidStateException,
    NotFoundException,
    OutOfRangeException,
)
from app.shared.utils import local_today

logger = logging.getLogger(__name__)
settings = get_settings()

ACTIVATABLE_STATUSES = frozenset({EnrollmentStatusEnum.LEAD})
TERMINAL_STATUSES = frozenset({EnrollmentStatusEnum.DROPPED})


@dataclass(slots=True)
class ActivationResult:
    enrollment: Enrollment
    payment: Payment | None
    proration: ProrationResult


class EnrollmentService:
    """Enrollment state machine with its billing side effects."""

    def __init__(
        self,
        repository: EnrollmentsRepository,
        groups_repository: GroupsRepository,
        billing_repository: BillingRepository,
        audit_repository: AuditRepository,
    ) -> None:
        self.repository = repository
        self.groups_repository = groups_repository
        self.billing_repository = billing_repository
        self.audit_repository = audit_repository

    async def _get_enrollment(self, enrollment_id: UUID, *, for_update: bool = False) -> Enrollment:
        enrollment = await self.repository.get_enrollment_by_id(enrollment_id, for_update=for_update)
        if enrollment is None:
            raise NotFoundException("Enrollment not found")
        return enrollment

    @staticmethod
    def _ensure_within_course(group: Group, lesson_start_date: date) -> None:
        if lesson_start_date < group.course_start_date:
            raise OutOfRangeException(
                f"Start date cannot be before course start date ({group.course_start_date.isoformat()})",
            )
        if lesson_start_date > group.course_end_date:
            raise OutOfRangeException(
                f"Start date cannot be after course end date ({group.course_end_date.isoformat()})",
            )

    @staticmethod
    def _prorate(
        enrollment: Enrollment,
        lesson_start_date: date,
        discount_amount: Decimal,
    ) -> ProrationResult:
        group = enrollment.group
        return calculate_proration(group, group.lesson_schedules, lesson_start_date, discount_amount)

    async def enroll_student(self, payload: EnrollmentCreate, actor_id: UUID | None) -> Enrollment:
        """Add a student to a group in LEAD status."""
        group = await self.groups_repository.get_group_by_id(payload.group_id)
        if group is None:
            raise NotFoundException("Group not found")

        existing = await self.repository.find_live_enrollment(payload.student_id, payload.group_id)
        if existing is not None:
            raise ConflictException("Student is already enrolled in this group")

        try:
            enrollment = await self.repository.create_enrollment(payload.group_id, payload.student_id)
        except IntegrityError as exc:
            raise ConflictException("Student is already enrolled in this group") from exc
        await self.audit_repository.create_audit_log(
            actor_id=actor_id,
            action="enrollment.enroll",
            entity_type="enrollment",
            entity_id=str(enrollment.id),
            payload={"group_id": str(group.id), "student_id": str(payload.student_id)},
        )
        await self.audit_repository.create_outbox_event(
            aggregate_type="enrollment",
            aggregate_id=str(enrollment.id),
            event_type="enrollment.enrolled",
            payload={
                "enrollment_id": str(enrollment.id),
                "group_id": str(group.id),
                "student_id": str(payload.student_id),
            },
        )
        return enrollment

    async def get_enrollment(self, enrollment_id: UUID) -> Enrollment:
        """Return a non-deleted enrollment."""
        return await self._get_enrollment(enrollment_id)

    async def list_group_enrollments(
        self,
        group_id: UUID,
        status: EnrollmentStatusEnum | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Enrollment], int]:
        """List a group's enrollments, newest first."""
        group = await self.groups_repository.get_group_by_id(group_id)
        if group is None:
            raise NotFoundException("Group not found")
        return await self.repository.list_enrollments_by_group(group_id, status, limit, offset)

    async def get_activation_preview(
        self,
        enrollment_id: UUID,
        lesson_start_date: date,
    ) -> ProrationResult:
        """Compute what activation would charge, without writing anything."""
        enrollment = await self._get_enrollment(enrollment_id)
        if enrollment.status not in ACTIVATABLE_STATUSES:
            raise InvalidStateException(
                f"Enrollment is already {enrollment.status}. Cannot calculate activation preview.",
            )
        self._ensure_within_course(enrollment.group, lesson_start_date)

        discount = effective_individual_discount(
            enrollment.individual_discount_amount,
            enrollment.discount_valid_until,
            lesson_start_date,
        )
        return self._prorate(enrollment, lesson_start_date, discount)

    async def activate(
        self,
        enrollment_id: UUID,
        lesson_start_date: date,
        actor_id: UUID | None,
    ) -> ActivationResult:
        """Activate a lead and bill the (prorated) first period."""
        enrollment = await self._get_enrollment(enrollment_id, for_update=True)
        if enrollment.status not in ACTIVATABLE_STATUSES:
            raise InvalidStateException(
                f"Cannot activate enrollment with status {enrollment.status}. "
                "Only LEAD enrollments can be activated.",
            )
        group = enrollment.group
        self._ensure_within_course(group, lesson_start_date)

        discount = effective_individual_discount(
            enrollment.individual_discount_amount,
            enrollment.discount_valid_until,
            lesson_start_date,
        )
        proration = self._prorate(enrollment, lesson_start_date, discount)

        enrollment.status = EnrollmentStatusEnum.ACTIVE
        enrollment.lesson_start_date = lesson_start_date
        enrollment.base_lesson_price = proration.base_lesson_price
        enrollment.per_lesson_price = proration.effective_lesson_price
        enrollment.next_payment_date = proration.period_end
        await self.repository.save(enrollment)

        payment: Payment | None = None
        if proration.prorated_amount > 0 and not enrollment.is_free_enrollment:
            payment = await self.billing_repository.create_period_payment(
                enrollment_id=enrollment.id,
                group_id=group.id,
                student_id=enrollment.student_id,
                payment_type=group.payment_type,
                currency=settings.billing_currency,
                proration=proration,
                due_date=local_today(),
            )

        await self.audit_repository.create_audit_log(
            actor_id=actor_id,
            action="enrollment.activate",
            entity_type="enrollment",
            entity_id=str(enrollment.id),
            payload={
                "lesson_start_date": lesson_start_date.isoformat(),
                "period_start": proration.period_start.isoformat(),
                "period_end": proration.period_end.isoformat(),
                "lessons_included": proration.lessons_included,
                "prorated_amount": str(proration.prorated_amount),
                "payment_id": str(payment.id) if payment is not None else None,
            },
        )
        await self.audit_repository.create_outbox_event(
            aggregate_type="enrollment",
            aggregate_id=str(enrollment.id),
            event_type="enrollment.activated",
            payload={
                "enrollment_id": str(enrollment.id),
                "group_id": str(group.id),
                "student_id": str(enrollment.student_id),
                "amount": str(proration.prorated_amount),
            },
        )
        ENROLLMENT_ACTIVATIONS_TOTAL.labels(prorated=str(proration.is_prorated).lower()).inc()
        logger.info(
            "Activated enrollment %s: %s lessons, amount %s",
            enrollment.id,
            proration.lessons_included,
            proration.prorated_amount,
        )
        return ActivationResult(enrollment=enrollment, payment=payment, proration=proration)

    async def assign_discount(
        self,
        enrollment_id: UUID,
        payload: AssignDiscountRequest,
        actor_id: UUID | None,
    ) -> Enrollment:
        """Set the individual monthly discount; reprices active enrollments."""
        if not payload.is_recurring and payload.valid_until is None:
            raise InvalidInputException("One-time discount requires valid_until")

        enrollment = await self._get_enrollment(enrollment_id, for_update=True)
        if enrollment.status in TERMINAL_STATUSES:
            raise InvalidStateException(
                f"Cannot assign discount to enrollment with status {enrollment.status}",
            )

        group = enrollment.group
        discount_amount = Decimal(payload.discount_amount)
        is_free = is_free_enrollment(discount_amount, group.monthly_price)

        if enrollment.status == EnrollmentStatusEnum.ACTIVE and enrollment.lesson_start_date is not None:
            discount_now = effective_individual_discount(
                discount_amount,
                payload.valid_until,
                local_today(),
            )
            proration = self._prorate(enrollment, enrollment.lesson_start_date, discount_now)
            enrollment.per_lesson_price = proration.effective_lesson_price

        enrollment.individual_discount_amount = discount_amount
        enrollment.is_recurring_discount = payload.is_recurring
        enrollment.discount_valid_until = payload.valid_until
        enrollment.discount_reason = payload.reason
        enrollment.is_free_enrollment = is_free
        await self.repository.save(enrollment)

        await self.audit_repository.create_audit_log(
            actor_id=actor_id,
            action="enrollment.discount.assign",
            entity_type="enrollment",
            entity_id=str(enrollment.id),
            payload={
                "discount_amount": str(discount_amount),
                "is_recurring": payload.is_recurring,
                "valid_until": payload.valid_until.isoformat() if payload.valid_until else None,
                "reason": payload.reason,
                "is_free_enrollment": is_free,
                "per_lesson_price": str(enrollment.per_lesson_price),
            },
        )
        await self.audit_repository.create_outbox_event(
            aggregate_type="enrollment",
            aggregate_id=str(enrollment.id),
            event_type="enrollment.discount.assigned",
            payload={
                "enrollment_id": str(enrollment.id),
                "student_id": str(enrollment.student_id),
                "discount_amount": str(discount_amount),
                "is_free_enrollment": is_free,
            },
        )
        logger.info(
            "Assigned discount %s to enrollment %s (recurring=%s, until=%s)",
            discount_amount,
            enrollment.id,
            payload.is_recurring,
            payload.valid_until or "forever",
        )
        return enrollment


async def get_enrollment_service(
    session: AsyncSession = Depends(get_db_session),
) -> EnrollmentService:
    """Dependency provider for enrollment service."""
    return EnrollmentService(
        repository=EnrollmentsRepository(session),
        groups_repository=GroupsRepository(session),
        billing_repository=BillingRepository(session),
        audit_repository=AuditRepository(session),
    )
