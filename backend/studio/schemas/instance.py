"""Materialized class instance schemas."""
from __future__ import annotations

import uuid
from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict, Field

from studio.models import BookingStatus
from studio.schemas.booking import BookingRead
from studio.scheduling.recurrence import InstanceOverrides


class ClassInstanceRead(BaseModel):
    """One occurrence with its computed availability."""

    instance_id: str
    schedule_id: uuid.UUID
    class_date: date
    class_definition_id: uuid.UUID
    class_name: str
    color: str | None
    location_id: uuid.UUID
    coach_id: uuid.UUID
    start_at: datetime
    end_at: datetime
    duration_minutes: int
    max_participants: int
    has_waitlist: bool
    special_label: str | None
    is_cancelled: bool
    is_modified: bool
    booked_count: int
    waitlist_count: int
    available_spots: int
    is_full: bool
    is_bookable: bool
    cancellation_deadline: datetime
    is_restricted: bool = False
    is_mine: bool = False
    my_booking_id: uuid.UUID | None = None
    my_status: BookingStatus | None = None
    my_waitlist_position: int | None = None

    model_config = ConfigDict(from_attributes=True)


class ClassInstanceDetail(ClassInstanceRead):
    """Instance view for staff, including the roster and the waitlist."""

    booked: list[BookingRead] = Field(default_factory=list)
    waitlisted: list[BookingRead] = Field(default_factory=list)


class InstanceEdit(BaseModel):
    """One-off changes to a single occurrence."""

    start_time: time | None = None
    duration_minutes: int | None = Field(default=None, gt=0)
    coach_id: uuid.UUID | None = None
    max_participants: int | None = Field(default=None, gt=0)
    special_label: str | None = Field(default=None, max_length=120)
    notify: bool = True

    def to_overrides(self) -> InstanceOverrides:
        return InstanceOverrides(
            start_time=self.start_time,
            duration_minutes=self.duration_minutes,
            coach_id=self.coach_id,
            max_participants=self.max_participants,
            special_label=self.special_label,
        )
