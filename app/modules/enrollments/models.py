"""Enrollment ORM models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    text,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BaseModelMixin, SoftDeleteMixin, enum_values
from app.core.enums import EnrollmentStatusEnum
from app.shared.utils import utc_now

if TYPE_CHECKING:
    from app.modules.billing.models import Payment
    from app.modules.freeze.models import StudentFreeze
    from app.modules.groups.models import Group


class Enrollment(BaseModelMixin, SoftDeleteMixin, Base):
    """A student's billing relationship to one group."""

    __tablename__ = "enrollments"
    __table_args__ = (
        CheckConstraint(
            "individual_discount_amount >= 0",
            name="individual_discount_non_negative",
        ),
        Index(
            "uq_enrollments_student_id_group_id_live",
            "student_id",
            "group_id",
            unique=True,
            postgresql_where=text("is_deleted = false AND status <> 'dropped'"),
        ),
    )

    group_id: Mapped[UUID] = mapped_column(
        ForeignKey("groups.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False, index=True)
    status: Mapped[EnrollmentStatusEnum] = mapped_column(
        SAEnum(
            EnrollmentStatusEnum,
            name="enrollment_status_enum",
            native_enum=False,
            values_callable=enum_values,
        ),
        default=EnrollmentStatusEnum.LEAD,
        nullable=False,
        index=True,
    )
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)

    lesson_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    base_lesson_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    per_lesson_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    next_payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    individual_discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=Decimal("0"),
        nullable=False,
    )
    is_recurring_discount: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    discount_valid_until: Mapped[date | None] = mapped_column(Date, nullable=True)
    discount_reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    is_free_enrollment: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    removed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    removal_reason: Mapped[str | None] = mapped_column(String(128), nullable=True)

    group: Mapped[Group] = relationship(back_populates="enrollments")
    payments: Mapped[list[Payment]] = relationship(back_populates="enrollment")
    freezes: Mapped[list[StudentFreeze]] = relationship(back_populates="enrollment")
