"""Refund request ORM models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin, SoftDeleteMixin, enum_values
from app.core.enums import RefundStatusEnum


class RefundRequest(BaseModelMixin, SoftDeleteMixin, Base):
    """Refund request with the computation snapshot taken at creation."""

    __tablename__ = "refund_requests"
    __table_args__ = (
        CheckConstraint("refund_amount >= 0", name="refund_amount_non_negative"),
        CheckConstraint("refund_amount <= total_paid", name="refund_amount_within_paid"),
        Index(
            "uq_refund_requests_student_id_group_id_pending",
            "student_id",
            "group_id",
            unique=True,
            postgresql_where=text("status = 'pending' AND is_deleted = false"),
        ),
    )

    center_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False, index=True)
    enrollment_id: Mapped[UUID] = mapped_column(
        ForeignKey("enrollments.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False, index=True)
    group_id: Mapped[UUID] = mapped_column(
        ForeignKey("groups.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    request_reason: Mapped[str] = mapped_column(String(1024), nullable=False)
    total_paid: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    lessons_attended: Mapped[int] = mapped_column(Integer, nullable=False)
    total_lessons: Mapped[int] = mapped_column(Integer, nullable=False)
    refund_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[RefundStatusEnum] = mapped_column(
        SAEnum(
            RefundStatusEnum,
            name="refund_status_enum",
            native_enum=False,
            values_callable=enum_values,
        ),
        default=RefundStatusEnum.PENDING,
        nullable=False,
        index=True,
    )
    processed_by: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    processing_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
