"""Group schemas."""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import PaymentTypeEnum


class LessonScheduleRead(BaseModel):
    """Weekly lesson slot."""

    model_config = ConfigDict(from_attributes=True)

    day_of_week: int = Field(ge=1, le=7)
    start_time: time
    end_time: time


class GroupDiscountRead(BaseModel):
    """Group discount tier."""

    model_config = ConfigDict(from_attributes=True)

    months: int
    discount_amount: Decimal


class GroupRead(BaseModel):
    """Group response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    center_id: UUID
    name: str
    monthly_price: Decimal
    course_start_date: date
    course_end_date: date
    payment_type: PaymentTypeEnum
    lessons_per_payment_period: int | None
    lesson_schedules: list[LessonScheduleRead]
    group_discounts: list[GroupDiscountRead]


class PaymentOptionRead(BaseModel):
    """Prepayment option for a number of months."""

    model_config = ConfigDict(from_attributes=True)

    months: int
    total_price: Decimal
    discount_amount: Decimal
    price_per_month: Decimal
