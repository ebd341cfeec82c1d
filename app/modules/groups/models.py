"""Group ORM models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Integer, Numeric, String, text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BaseModelMixin, SoftDeleteMixin, enum_values
from app.core.enums import PaymentTypeEnum

if TYPE_CHECKING:
    from app.modules.enrollments.models import Enrollment
    from app.modules.scheduling.models import LessonSchedule


class Group(BaseModelMixin, SoftDeleteMixin, Base):
    """Course offering with monthly pricing."""

    __tablename__ = "groups"
    __table_args__ = (
        CheckConstraint("monthly_price >= 0", name="monthly_price_non_negative"),
        CheckConstraint("course_start_date <= course_end_date", name="course_dates_ordered"),
        CheckConstraint(
            "payment_type <> 'lesson_based' OR lessons_per_payment_period >= 1",
            name="lesson_based_requires_period",
        ),
    )

    center_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    monthly_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    course_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    course_end_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_type: Mapped[PaymentTypeEnum] = mapped_column(
        SAEnum(
            PaymentTypeEnum,
            name="payment_type_enum",
            native_enum=False,
            values_callable=enum_values,
        ),
        default=PaymentTypeEnum.START_TO_END_OF_MONTH,
        nullable=False,
    )
    lessons_per_payment_period: Mapped[int | None] = mapped_column(Integer, nullable=True)

    lesson_schedules: Mapped[list[LessonSchedule]] = relationship(
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="LessonSchedule.day_of_week",
    )
    group_discounts: Mapped[list[GroupDiscount]] = relationship(
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="GroupDiscount.months",
    )
    enrollments: Mapped[list[Enrollment]] = relationship(back_populates="group")


class GroupDiscount(BaseModelMixin, SoftDeleteMixin, Base):
    """Lump discount for prepaying exactly ``months`` months."""

    __tablename__ = "group_discounts"
    __table_args__ = (
        CheckConstraint("months >= 2", name="months_at_least_two"),
        CheckConstraint("discount_amount >= 0", name="discount_amount_non_negative"),
        Index(
            "uq_group_discounts_group_id_months_live",
            "group_id",
            "months",
            unique=True,
            postgresql_where=text("is_deleted = false"),
        ),
    )

    group_id: Mapped[UUID] = mapped_column(
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    months: Mapped[int] = mapped_column(Integer, nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    group: Mapped[Group] = relationship(back_populates="group_discounts")
