"""Mutation plans and side-effect intents produced by engine commands.

Command functions never write to the store. They return a ``CommandOutcome``
describing new bookings, status transitions on existing bookings, an optional
exception upsert and the notifications to emit once the plan is committed.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, time
from typing import Any

from studio.models import (
    Booking,
    BookingStatus,
    CancelReason,
    ExceptionStatus,
    NotificationKind,
)


@dataclass(frozen=True)
class NotificationIntent:
    """Somebody must be told something happened to their class."""

    participant_id: uuid.UUID
    kind: NotificationKind
    schedule_id: uuid.UUID
    class_date: date
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BookingTransition:
    booking_id: uuid.UUID
    status: BookingStatus
    cancel_reason: CancelReason | None = None


@dataclass(frozen=True)
class ExceptionUpsert:
    """Full desired state of the exception row for one instance."""

    schedule_id: uuid.UUID
    class_date: date
    status: ExceptionStatus | None
    new_start_time: time | None = None
    new_duration_minutes: int | None = None
    new_coach_id: uuid.UUID | None = None
    new_max_participants: int | None = None
    special_label: str | None = None
    created_by: uuid.UUID | None = None


@dataclass
class CommandOutcome:
    """Everything one command wants to change, applied atomically."""

    booking_id: uuid.UUID | None = None
    inserts: list[Booking] = field(default_factory=list)
    transitions: list[BookingTransition] = field(default_factory=list)
    exception: ExceptionUpsert | None = None
    notifications: list[NotificationIntent] = field(default_factory=list)
    promoted_booking_id: uuid.UUID | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.inserts or self.transitions or self.exception)
