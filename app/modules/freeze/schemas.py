"""Freeze schemas."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import FreezeStatusEnum
from app.modules.enrollments.schemas import EnrollmentRead


class FreezeCreate(BaseModel):
    """Create freeze request. No end date means an indefinite freeze."""

    enrollment_id: UUID
    reason: str = Field(min_length=1, max_length=512)
    freeze_start_date: date
    freeze_end_date: date | None = None


class FreezeEnd(BaseModel):
    end_reason: str | None = Field(default=None, max_length=512)


class FreezeRead(BaseModel):
    """Freeze response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    enrollment_id: UUID
    student_id: UUID
    reason: str
    freeze_start_date: date
    freeze_end_date: date | None
    actual_end_date: datetime | None
    status: FreezeStatusEnum
    ended_by: UUID | None
    end_reason: str | None
    created_at: datetime
    updated_at: datetime


class FreezeTransitionRead(BaseModel):
    """Freeze together with the enrollment it changed."""

    freeze: FreezeRead
    enrollment: EnrollmentRead
