"""Refund schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import RefundDecisionEnum, RefundStatusEnum


class RefundCreate(BaseModel):
    """Create refund request."""

    enrollment_id: UUID
    request_reason: str = Field(min_length=1, max_length=1024)


class RefundProcess(BaseModel):
    """Approve or reject a pending refund."""

    decision: RefundDecisionEnum
    processing_notes: str | None = None


class RefundRead(BaseModel):
    """Refund response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    center_id: UUID
    enrollment_id: UUID
    student_id: UUID
    group_id: UUID
    request_reason: str
    total_paid: Decimal
    lessons_attended: int
    total_lessons: int
    refund_amount: Decimal
    status: RefundStatusEnum
    processed_by: UUID | None
    processed_at: datetime | None
    processing_notes: str | None
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime
