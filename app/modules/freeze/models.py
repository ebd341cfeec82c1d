"""Student freeze ORM models."""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Index, String, text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BaseModelMixin, SoftDeleteMixin, enum_values
from app.core.enums import FreezeStatusEnum

if TYPE_CHECKING:
    from app.modules.enrollments.models import Enrollment


class StudentFreeze(BaseModelMixin, SoftDeleteMixin, Base):
    """Temporary suspension of an enrollment."""

    __tablename__ = "student_freezes"
    __table_args__ = (
        CheckConstraint(
            "freeze_end_date IS NULL OR freeze_end_date > freeze_start_date",
            name="freeze_dates_ordered",
        ),
        Index(
            "uq_student_freezes_enrollment_id_active",
            "enrollment_id",
            unique=True,
            postgresql_where=text("status = 'active' AND is_deleted = false"),
        ),
    )

    enrollment_id: Mapped[UUID] = mapped_column(
        ForeignKey("enrollments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False, index=True)
    reason: Mapped[str] = mapped_column(String(512), nullable=False)
    freeze_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    freeze_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[FreezeStatusEnum] = mapped_column(
        SAEnum(
            FreezeStatusEnum,
            name="freeze_status_enum",
            native_enum=False,
            values_callable=enum_values,
        ),
        default=FreezeStatusEnum.ACTIVE,
        nullable=False,
        index=True,
    )
    ended_by: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    end_reason: Mapped[str | None] = mapped_column(String(512), nullable=True)

    enrollment: Mapped[Enrollment] = relationship(back_populates="freezes")
