"""Billing ORM models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BaseModelMixin, SoftDeleteMixin, enum_values
from app.core.enums import PaymentStatusEnum, PaymentTypeEnum

if TYPE_CHECKING:
    from app.modules.enrollments.models import Enrollment


class Payment(BaseModelMixin, SoftDeleteMixin, Base):
    """Charge for one billing period of an enrollment."""

    __tablename__ = "payments"

    enrollment_id: Mapped[UUID] = mapped_column(
        ForeignKey("enrollments.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    group_id: Mapped[UUID] = mapped_column(
        ForeignKey("groups.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False, index=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    payment_type: Mapped[PaymentTypeEnum] = mapped_column(
        SAEnum(
            PaymentTypeEnum,
            name="payment_type_enum",
            native_enum=False,
            values_callable=enum_values,
        ),
        nullable=False,
    )
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    lessons_in_period: Mapped[int] = mapped_column(Integer, nullable=False)
    lessons_missed: Mapped[int] = mapped_column(Integer, nullable=False)
    lessons_included: Mapped[int] = mapped_column(Integer, nullable=False)
    lesson_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    discount_applied: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    is_prorated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    status: Mapped[PaymentStatusEnum] = mapped_column(
        SAEnum(
            PaymentStatusEnum,
            name="payment_status_enum",
            native_enum=False,
            values_callable=enum_values,
        ),
        default=PaymentStatusEnum.PENDING,
        nullable=False,
        index=True,
    )
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    enrollment: Mapped[Enrollment] = relationship(back_populates="payments")
