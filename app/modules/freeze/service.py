"""Freeze business logic layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import EnrollmentStatusEnum, FreezeStatusEnum
from app.core.metrics import FREEZE_TRANSITIONS_TOTAL
from app.modules.audit.repository import AuditRepository
from app.modules.enrollments.models import Enrollment
from app.modules.enrollments.repository import EnrollmentsRepository
from app.modules.freeze.models import StudentFreeze
from app.modules.freeze.repository import FreezeRepository
from app.modules.freeze.schemas import FreezeCreate
from app.shared.exceptions import (
    ConflictException,
    InvalidInputException,
    InvalidStateException,
    NotFoundException,
)
from app.shared.utils import utc_now

logger = logging.getLogger(__name__)

CLOSED_FREEZE_STATUSES = frozenset({FreezeStatusEnum.ENDED, FreezeStatusEnum.CANCELLED})


@dataclass(slots=True)
class FreezeTransition:
    freeze: StudentFreeze
    enrollment: Enrollment


def _freeze_payload(freeze: StudentFreeze) -> dict:
    return {
        "freeze_id": str(freeze.id),
        "enrollment_id": str(freeze.enrollment_id),
        "student_id": str(freeze.student_id),
        "reason": freeze.reason,
        "freeze_start_date": freeze.freeze_start_date.isoformat(),
        "freeze_end_date": freeze.freeze_end_date.isoformat() if freeze.freeze_end_date else None,
        "status": freeze.status.value,
    }


class FreezeService:
    """Freeze lifecycle. Prepaid balance is never touched."""

    def __init__(
        self,
        repository: FreezeRepository,
        enrollments_repository: EnrollmentsRepository,
        audit_repository: AuditRepository,
    ) -> None:
        self.repository = repository
        self.enrollments_repository = enrollments_repository
        self.audit_repository = audit_repository

    async def _lock_enrollment(self, enrollment_id: UUID) -> Enrollment:
        enrollment = await self.enrollments_repository.get_enrollment_by_id(
            enrollment_id,
            for_update=True,
        )
        if enrollment is None:
            raise NotFoundException("Enrollment not found")
        return enrollment

    async def _lock_freeze(self, freeze_id: UUID) -> tuple[StudentFreeze, Enrollment]:
        # Enrollment row is locked before the freeze row, same order as create_freeze.
        freeze = await self.repository.get_freeze_by_id(freeze_id)
        if freeze is None:
            raise NotFoundException("Freeze not found")
        enrollment = await self._lock_enrollment(freeze.enrollment_id)
        freeze = await self.repository.get_freeze_by_id(freeze_id, for_update=True)
        if freeze is None:
            raise NotFoundException("Freeze not found")
        return freeze, enrollment

    async def _record(
        self,
        freeze: StudentFreeze,
        action: str,
        event_type: str,
        actor_id: UUID | None,
        extra: dict | None = None,
    ) -> None:
        payload = _freeze_payload(freeze)
        if extra:
            payload.update(extra)
        await self.audit_repository.create_audit_log(
            actor_id=actor_id,
            action=action,
            entity_type="student_freeze",
            entity_id=str(freeze.id),
            payload=payload,
        )
        await self.audit_repository.create_outbox_event(
            aggregate_type="student_freeze",
            aggregate_id=str(freeze.id),
            event_type=event_type,
            payload=payload,
        )

    async def create_freeze(self, payload: FreezeCreate, actor_id: UUID | None) -> FreezeTransition:
        """Freeze an active enrollment."""
        enrollment = await self._lock_enrollment(payload.enrollment_id)

        existing = await self.repository.get_active_freeze(enrollment.id)
        if existing is not None:
            raise ConflictException("Student already has an active freeze")
        if enrollment.status != EnrollmentStatusEnum.ACTIVE:
            raise InvalidStateException(
                f"Cannot freeze enrollment with status {enrollment.status}. "
                "Only ACTIVE enrollments can be frozen.",
            )
        if payload.freeze_end_date is not None and payload.freeze_end_date <= payload.freeze_start_date:
            raise InvalidInputException("Freeze end date must be after start date")

        try:
            freeze = await self.repository.create_freeze(
                enrollment_id=enrollment.id,
                student_id=enrollment.student_id,
                reason=payload.reason,
                freeze_start_date=payload.freeze_start_date,
                freeze_end_date=payload.freeze_end_date,
            )
        except IntegrityError as exc:
            raise ConflictException("Student already has an active freeze") from exc

        enrollment.status = EnrollmentStatusEnum.FROZEN
        await self.enrollments_repository.save(enrollment)
        await self._record(freeze, "freeze.create", "freeze.created", actor_id)

        FREEZE_TRANSITIONS_TOTAL.labels(action="created").inc()
        logger.info(
            "Created freeze for enrollment %s from %s to %s",
            enrollment.id,
            payload.freeze_start_date,
            payload.freeze_end_date or "indefinite",
        )
        return FreezeTransition(freeze=freeze, enrollment=enrollment)

    async def end_freeze(
        self,
        freeze_id: UUID,
        end_reason: str | None,
        actor_id: UUID | None,
    ) -> FreezeTransition:
        """End an active freeze and reactivate the enrollment."""
        freeze, enrollment = await self._lock_freeze(freeze_id)
        if freeze.status != FreezeStatusEnum.ACTIVE:
            raise InvalidStateException(f"Cannot end freeze with status {freeze.status}")

        freeze.status = FreezeStatusEnum.ENDED
        freeze.actual_end_date = utc_now()
        freeze.ended_by = actor_id
        freeze.end_reason = end_reason
        await self.repository.save(freeze)

        if enrollment.status == EnrollmentStatusEnum.FROZEN:
            enrollment.status = EnrollmentStatusEnum.ACTIVE
            await self.enrollments_repository.save(enrollment)

        await self._record(
            freeze,
            "freeze.end",
            "freeze.ended",
            actor_id,
            extra={"end_reason": end_reason},
        )
        FREEZE_TRANSITIONS_TOTAL.labels(action="ended").inc()
        logger.info("Ended freeze %s for enrollment %s", freeze.id, enrollment.id)
        return FreezeTransition(freeze=freeze, enrollment=enrollment)

    async def cancel_freeze(self, freeze_id: UUID, actor_id: UUID | None) -> FreezeTransition:
        """Cancel a freeze that has not been closed yet."""
        freeze, enrollment = await self._lock_freeze(freeze_id)
        if freeze.status in CLOSED_FREEZE_STATUSES:
            raise InvalidStateException(f"Cannot cancel freeze with status {freeze.status}")

        freeze.status = FreezeStatusEnum.CANCELLED
        freeze.actual_end_date = utc_now()
        freeze.ended_by = actor_id
        await self.repository.save(freeze)

        if enrollment.status == EnrollmentStatusEnum.FROZEN:
            enrollment.status = EnrollmentStatusEnum.ACTIVE
            await self.enrollments_repository.save(enrollment)

        await self._record(freeze, "freeze.cancel", "freeze.cancelled", actor_id)
        FREEZE_TRANSITIONS_TOTAL.labels(action="cancelled").inc()
        logger.info("Cancelled freeze %s", freeze.id)
        return FreezeTransition(freeze=freeze, enrollment=enrollment)

    async def list_freezes(self, enrollment_id: UUID) -> list[StudentFreeze]:
        """Freeze history of an enrollment, newest first."""
        enrollment = await self.enrollments_repository.get_enrollment_by_id(enrollment_id)
        if enrollment is None:
            raise NotFoundException("Enrollment not found")
        return await self.repository.list_freezes_by_enrollment(enrollment_id)


async def get_freeze_service(
    session: AsyncSession = Depends(get_db_session),
) -> FreezeService:
    """Dependency provider for freeze service."""
    return FreezeService(
        repository=FreezeRepository(session),
        enrollments_repository=EnrollmentsRepository(session),
        audit_repository=AuditRepository(session),
    )
