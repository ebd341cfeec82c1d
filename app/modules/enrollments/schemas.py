"""Enrollment schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import EnrollmentStatusEnum
from app.modules.billing.schemas import PaymentRead, ProrationRead


class EnrollmentCreate(BaseModel):
    """Add a student to a group as a lead."""

    group_id: UUID
    student_id: UUID


class ActivateEnrollmentRequest(BaseModel):
    """Activate enrollment request."""

    lesson_start_date: date


class AssignDiscountRequest(BaseModel):
    """Individual monthly discount for one enrollment."""

    discount_amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    is_recurring: bool
    valid_until: date | None = None
    reason: str | None = Field(default=None, max_length=512)


class EnrollmentRead(BaseModel):
    """Enrollment response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    group_id: UUID
    student_id: UUID
    status: EnrollmentStatusEnum
    joined_at: datetime
    lesson_start_date: date | None
    base_lesson_price: Decimal
    per_lesson_price: Decimal
    next_payment_date: date | None
    individual_discount_amount: Decimal
    is_recurring_discount: bool
    discount_valid_until: date | None
    discount_reason: str | None
    is_free_enrollment: bool
    removed_at: datetime | None
    removal_reason: str | None
    created_at: datetime
    updated_at: datetime


class ActivationRead(BaseModel):
    """Result of activating an enrollment."""

    model_config = ConfigDict(from_attributes=True)

    enrollment: EnrollmentRead
    payment: PaymentRead | None
    proration: ProrationRead
