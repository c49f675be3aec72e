"""Participant bookings on class instances."""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studio.db.base import Base
from studio.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover
    from studio.models.participant import Participant
    from studio.models.schedule import RecurringSchedule


class BookingStatus(str, enum.Enum):
    """Lifecycle states for a class booking."""

    BOOKED = "BOOKED"
    WAITLISTED = "WAITLISTED"
    CHECKED_IN = "CHECKED-IN"
    CANCELLED = "CANCELLED"


class CancelReason(str, enum.Enum):
    """Who ended a booking."""

    COACH_CANCELLED = "coach_cancelled"
    PARTICIPANT_CANCELLED = "participant_cancelled"


SEATED_STATUSES = frozenset({BookingStatus.BOOKED, BookingStatus.CHECKED_IN})
ACTIVE_STATUSES = SEATED_STATUSES | {BookingStatus.WAITLISTED}


class Booking(TimestampMixin, Base):
    """One participant's seat (or waitlist place) on a class instance."""

    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_instance", "schedule_id", "class_date"),
        Index("ix_bookings_participant", "participant_id"),
        Index(
            "ux_bookings_active_participant_instance",
            "participant_id",
            "schedule_id",
            "class_date",
            unique=True,
            postgresql_where=text("status != 'CANCELLED'"),
            sqlite_where=text("status != 'CANCELLED'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    participant_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("participants.id", ondelete="CASCADE"), nullable=False
    )
    schedule_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("recurring_schedules.id", ondelete="CASCADE"), nullable=False
    )
    class_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus), nullable=False, default=BookingStatus.BOOKED
    )
    booking_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    cancel_reason: Mapped[CancelReason | None] = mapped_column(Enum(CancelReason))

    participant: Mapped["Participant"] = relationship("Participant")
    schedule: Mapped["RecurringSchedule"] = relationship("RecurringSchedule")

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def holds_seat(self) -> bool:
        return self.status in SEATED_STATUSES
