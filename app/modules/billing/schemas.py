"""Billing schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.core.enums import PaymentStatusEnum, PaymentTypeEnum


class ProrationRead(BaseModel):
    """Breakdown of the first billing period."""

    model_config = ConfigDict(from_attributes=True)

    period_start: date
    period_end: date
    total_lessons_in_period: int
    lessons_missed: int
    lessons_included: int
    base_lesson_price: Decimal
    discount_per_lesson: Decimal
    effective_lesson_price: Decimal
    prorated_amount: Decimal
    discount_applied: Decimal
    is_prorated: bool


class PaymentUpdateStatus(BaseModel):
    """Update payment status request."""

    status: PaymentStatusEnum


class PaymentRead(BaseModel):
    """Payment response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    enrollment_id: UUID
    group_id: UUID
    student_id: UUID
    amount: Decimal
    currency: str
    payment_type: PaymentTypeEnum
    period_start: date
    period_end: date
    lessons_in_period: int
    lessons_missed: int
    lessons_included: int
    lesson_price: Decimal
    discount_applied: Decimal
    is_prorated: bool
    status: PaymentStatusEnum
    due_date: date
    paid_at: datetime | None
    created_at: datetime
    updated_at: datetime


class PaymentStatsRead(BaseModel):
    """Payment counts per status."""

    pending: int
    paid: int
    overdue: int
    cancelled: int
    refunded: int
    total: int
