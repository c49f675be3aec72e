"""Recurring class schedules and their per-date exceptions."""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, date, datetime, time
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Time,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studio.db.base import Base
from studio.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover
    from studio.models.class_definition import ClassDefinition
    from studio.models.location import Location


class ExceptionStatus(str, enum.Enum):
    """Terminal states an exception can put a single occurrence in."""

    CANCELLED = "CANCELLED"
    DELETED = "DELETED"


class RecurringSchedule(TimestampMixin, Base):
    """Weekly template for a class offering within a validity window."""

    __tablename__ = "recurring_schedules"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_schedule_date_order"),
        CheckConstraint("duration_minutes > 0", name="ck_schedule_duration"),
        CheckConstraint("max_participants > 0", name="ck_schedule_capacity"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    location_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("locations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    class_definition_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("class_definitions.id", ondelete="RESTRICT"), nullable=False
    )
    coach_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    days_of_week: Mapped[list[int]] = mapped_column(JSON, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    max_participants: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    has_waitlist: Mapped[bool | None] = mapped_column(Boolean)
    special_label: Mapped[str | None] = mapped_column(String(120))

    location: Mapped["Location"] = relationship("Location", back_populates="schedules")
    class_definition: Mapped["ClassDefinition"] = relationship(
        "ClassDefinition", back_populates="schedules"
    )
    exceptions: Mapped[list["ScheduleException"]] = relationship(
        "ScheduleException",
        back_populates="schedule",
        cascade="all, delete-orphan",
    )


class ScheduleException(Base):
    """Override or cancellation of one occurrence of a recurring schedule."""

    __tablename__ = "schedule_exceptions"
    __table_args__ = (
        UniqueConstraint(
            "schedule_id", "class_date", name="uq_exception_schedule_date"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    schedule_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("recurring_schedules.id", ondelete="CASCADE"), nullable=False
    )
    class_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[ExceptionStatus | None] = mapped_column(Enum(ExceptionStatus))
    new_start_time: Mapped[time | None] = mapped_column(Time)
    new_duration_minutes: Mapped[int | None] = mapped_column(Integer)
    new_coach_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    new_max_participants: Mapped[int | None] = mapped_column(Integer)
    special_label: Mapped[str | None] = mapped_column(String(120))
    created_by: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
    )

    schedule: Mapped["RecurringSchedule"] = relationship(
        "RecurringSchedule", back_populates="exceptions"
    )
