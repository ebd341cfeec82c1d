"""Scheduling ORM models."""

from __future__ import annotations

from datetime import time
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, SmallInteger, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BaseModelMixin

if TYPE_CHECKING:
    from app.modules.groups.models import Group


class LessonSchedule(BaseModelMixin, Base):
    """Weekly lesson slot of a group (ISO day numbering, 1=Monday..7=Sunday)."""

    __tablename__ = "lesson_schedules"
    __table_args__ = (
        UniqueConstraint("group_id", "day_of_week", name="uq_lesson_schedules_group_id_day_of_week"),
        CheckConstraint("day_of_week BETWEEN 1 AND 7", name="day_of_week_iso"),
        CheckConstraint("end_time > start_time", name="end_after_start"),
    )

    group_id: Mapped[UUID] = mapped_column(
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day_of_week: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)

    group: Mapped[Group] = relationship(back_populates="lesson_schedules")
