"""Enrollments API router."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.enums import EnrollmentStatusEnum
from app.core.security import get_actor_id
from app.modules.billing.schemas import PaymentRead, ProrationRead
from app.modules.enrollments.schemas import (
    ActivateEnrollmentRequest,
    ActivationRead,
    AssignDiscountRequest,
    EnrollmentCreate,
    EnrollmentRead,
)
from app.modules.enrollments.service import EnrollmentService, get_enrollment_service
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/enrollments", tags=["enrollments"])


@router.post("", response_model=EnrollmentRead, status_code=status.HTTP_201_CREATED)
async def enroll_student(
    payload: EnrollmentCreate,
    service: EnrollmentService = Depends(get_enrollment_service),
    actor_id: UUID | None = Depends(get_actor_id),
) -> EnrollmentRead:
    """Add a student to a group as a lead."""
    enrollment = await service.enroll_student(payload, actor_id)
    return EnrollmentRead.model_validate(enrollment)


@router.get("", response_model=Page[EnrollmentRead])
async def list_group_enrollments(
    group_id: UUID,
    status_filter: EnrollmentStatusEnum | None = Query(default=None, alias="status"),
    pagination=Depends(get_pagination_params),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> Page[EnrollmentRead]:
    """List enrollments of a group."""
    items, total = await service.list_group_enrollments(
        group_id=group_id,
        status=status_filter,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    serialized = [EnrollmentRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/{enrollment_id}", response_model=EnrollmentRead)
async def get_enrollment(
    enrollment_id: UUID,
    service: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollmentRead:
    """Get enrollment by id."""
    enrollment = await service.get_enrollment(enrollment_id)
    return EnrollmentRead.model_validate(enrollment)


@router.get("/{enrollment_id}/activation-preview", response_model=ProrationRead)
async def get_activation_preview(
    enrollment_id: UUID,
    lesson_start_date: date,
    service: EnrollmentService = Depends(get_enrollment_service),
) -> ProrationRead:
    """Preview the first period charge for a lead."""
    proration = await service.get_activation_preview(enrollment_id, lesson_start_date)
    return ProrationRead.model_validate(proration)


@router.post("/{enrollment_id}/activate", response_model=ActivationRead)
async def activate_enrollment(
    enrollment_id: UUID,
    payload: ActivateEnrollmentRequest,
    service: EnrollmentService = Depends(get_enrollment_service),
    actor_id: UUID | None = Depends(get_actor_id),
) -> ActivationRead:
    """Activate a lead and create its first payment."""
    result = await service.activate(enrollment_id, payload.lesson_start_date, actor_id)
    return ActivationRead(
        enrollment=EnrollmentRead.model_validate(result.enrollment),
        payment=PaymentRead.model_validate(result.payment) if result.payment is not None else None,
        proration=ProrationRead.model_validate(result.proration),
    )


@router.put("/{enrollment_id}/discount", response_model=EnrollmentRead)
async def assign_discount(
    enrollment_id: UUID,
    payload: AssignDiscountRequest,
    service: EnrollmentService = Depends(get_enrollment_service),
    actor_id: UUID | None = Depends(get_actor_id),
) -> EnrollmentRead:
    """Assign an individual monthly discount."""
    enrollment = await service.assign_discount(enrollment_id, payload, actor_id)
    return EnrollmentRead.model_validate(enrollment)
