"""Booking state machine for a single class instance.

Every command is a pure function over an ``InstanceSnapshot``: it validates
the request against the current ledger and returns a ``CommandOutcome`` plan.
Nothing here touches the store; the engine applies plans under the instance
lock.

    NONE -> BOOKED -> CHECKED-IN -> BOOKED (undo)
    NONE -> WAITLISTED -> BOOKED (promotion)
    BOOKED | WAITLISTED | CHECKED-IN -> CANCELLED
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Any

from studio.models import (
    Booking,
    BookingStatus,
    CancelReason,
    ClassDefinition,
    NotificationKind,
    RecurringSchedule,
    RestrictionBehavior,
    ScheduleException,
)
from studio.scheduling.clock import as_utc
from studio.scheduling.effects import BookingTransition, CommandOutcome, NotificationIntent
from studio.scheduling.errors import (
    AlreadyBooked,
    CheckInClosed,
    ClassFull,
    InstanceGone,
    InvalidTransition,
    NoCapacity,
    NotFound,
    PastCutoff,
)
from studio.scheduling.ledger import InstanceLedger
from studio.scheduling.recurrence import EffectiveInstance, occurs_on, resolve_effective

_QUEUE_STEP = timedelta(microseconds=1)


class Initiator(str, enum.Enum):
    """Who issued a command; staff bypass participant-only rules."""

    PARTICIPANT = "participant"
    STAFF = "staff"


@dataclass(frozen=True)
class InstanceSnapshot:
    """Everything loaded for one (schedule, date) before a command runs."""

    schedule: RecurringSchedule
    definition: ClassDefinition | None
    exception: ScheduleException | None
    bookings: tuple[Booking, ...]
    effective: EffectiveInstance
    ledger: InstanceLedger
    tz: tzinfo

    @classmethod
    def build(
        cls,
        schedule: RecurringSchedule,
        class_date: date,
        *,
        exception: ScheduleException | None,
        definition: ClassDefinition | None,
        bookings: list[Booking] | tuple[Booking, ...],
        tz: tzinfo,
    ) -> "InstanceSnapshot":
        effective = resolve_effective(schedule, class_date, exception, definition)
        return cls(
            schedule=schedule,
            definition=definition,
            exception=exception,
            bookings=tuple(bookings),
            effective=effective,
            ledger=InstanceLedger.build(bookings, effective.max_participants),
            tz=tz,
        )

    @property
    def class_date(self) -> date:
        return self.effective.class_date

    @property
    def start_at(self) -> datetime:
        return self.effective.starts_at(self.tz)

    @property
    def class_name(self) -> str:
        return self.definition.name if self.definition else "Class"

    def find_booking(self, booking_id: uuid.UUID) -> Booking:
        for booking in self.bookings:
            if booking.id == booking_id:
                return booking
        raise NotFound(f"Booking {booking_id} not found")

    def require_occurrence(self) -> None:
        if not occurs_on(self.schedule, self.class_date):
            raise NotFound(
                f"Schedule {self.schedule.id} has no class on {self.class_date}"
            )

    def require_live(self) -> None:
        if self.effective.is_cancelled:
            raise InstanceGone("Class has been cancelled")
        if self.effective.is_deleted:
            raise InstanceGone("Class no longer exists")

    def describe(self) -> dict[str, Any]:
        """Notification payload fields shared by every intent."""
        return {
            "class_name": self.class_name,
            "start_at": self.start_at.isoformat(),
            "instance_id": self.effective.instance_id,
        }


def _promotion_intent(snapshot: InstanceSnapshot, booking: Booking) -> NotificationIntent:
    return NotificationIntent(
        participant_id=booking.participant_id,
        kind=NotificationKind.WAITLIST_PROMOTED,
        schedule_id=snapshot.schedule.id,
        class_date=snapshot.class_date,
        payload={**snapshot.describe(), "booking_id": str(booking.id)},
    )


def book(
    snapshot: InstanceSnapshot,
    participant_id: uuid.UUID,
    *,
    now: datetime,
    initiated_by: Initiator = Initiator.PARTICIPANT,
    restriction: RestrictionBehavior = RestrictionBehavior.NONE,
) -> CommandOutcome:
    """Seat the participant, or queue them when the class is full.

    An instance pushed over capacity by an edit admits nobody, not even onto
    the waitlist, until attrition brings it back to capacity.
    """
    snapshot.require_occurrence()
    snapshot.require_live()
    if initiated_by is Initiator.PARTICIPANT:
        if restriction is RestrictionBehavior.HIDE:
            raise NotFound("Class is not available for this membership")
        if snapshot.start_at <= now:
            raise InstanceGone("Class has already started")
    if snapshot.ledger.active_for(participant_id) is not None:
        raise AlreadyBooked()

    ledger = snapshot.ledger
    booking_date = as_utc(now)
    if ledger.available_spots > 0:
        status = BookingStatus.BOOKED
    elif snapshot.effective.has_waitlist and not ledger.is_over_capacity:
        status = BookingStatus.WAITLISTED
        tail = ledger.waitlist_tail()
        if tail is not None:
            booking_date = max(booking_date, as_utc(tail.booking_date) + _QUEUE_STEP)
    else:
        raise ClassFull()

    booking = Booking(
        id=uuid.uuid4(),
        participant_id=participant_id,
        schedule_id=snapshot.schedule.id,
        class_date=snapshot.class_date,
        status=status,
        booking_date=booking_date,
        cancel_reason=None,
        created_at=now,
        updated_at=now,
    )
    return CommandOutcome(booking_id=booking.id, inserts=[booking])


def cancel_booking(
    snapshot: InstanceSnapshot,
    booking_id: uuid.UUID,
    *,
    now: datetime,
    initiated_by: Initiator,
    cancellation_cutoff: timedelta,
) -> CommandOutcome:
    """Cancel a booking and hand a freed seat to the head of the waitlist."""
    booking = snapshot.find_booking(booking_id)
    if not booking.is_active:
        raise InvalidTransition("Booking is already cancelled")

    if initiated_by is Initiator.PARTICIPANT:
        if booking.holds_seat and now >= snapshot.start_at - cancellation_cutoff:
            raise PastCutoff()
        reason = CancelReason.PARTICIPANT_CANCELLED
    else:
        reason = CancelReason.COACH_CANCELLED

    outcome = CommandOutcome(
        booking_id=booking.id,
        transitions=[
            BookingTransition(booking.id, BookingStatus.CANCELLED, cancel_reason=reason)
        ],
    )

    if booking.holds_seat and not snapshot.effective.is_terminal:
        ledger = snapshot.ledger
        if ledger.booked_count - 1 < ledger.capacity:
            candidate = ledger.next_in_line()
            if candidate is not None:
                outcome.transitions.append(
                    BookingTransition(candidate.id, BookingStatus.BOOKED)
                )
                outcome.promoted_booking_id = candidate.id
                outcome.notifications.append(_promotion_intent(snapshot, candidate))
    return outcome


def promote_from_waitlist(
    snapshot: InstanceSnapshot, booking_id: uuid.UUID
) -> CommandOutcome:
    """Move a waitlisted booking into an open seat (staff action)."""
    booking = snapshot.find_booking(booking_id)
    snapshot.require_live()
    if booking.status is not BookingStatus.WAITLISTED:
        raise InvalidTransition("Only waitlisted bookings can be promoted")
    if snapshot.ledger.available_spots <= 0:
        raise NoCapacity()
    return CommandOutcome(
        booking_id=booking.id,
        transitions=[BookingTransition(booking.id, BookingStatus.BOOKED)],
        promoted_booking_id=booking.id,
        notifications=[_promotion_intent(snapshot, booking)],
    )


def check_in(snapshot: InstanceSnapshot, booking_id: uuid.UUID) -> CommandOutcome:
    booking = snapshot.find_booking(booking_id)
    snapshot.require_live()
    if booking.status is not BookingStatus.BOOKED:
        raise InvalidTransition("Only booked participants can be checked in")
    return CommandOutcome(
        booking_id=booking.id,
        transitions=[BookingTransition(booking.id, BookingStatus.CHECKED_IN)],
    )


def undo_check_in(snapshot: InstanceSnapshot, booking_id: uuid.UUID) -> CommandOutcome:
    booking = snapshot.find_booking(booking_id)
    snapshot.require_live()
    if booking.status is not BookingStatus.CHECKED_IN:
        raise InvalidTransition("Booking is not checked in")
    return CommandOutcome(
        booking_id=booking.id,
        transitions=[BookingTransition(booking.id, BookingStatus.BOOKED)],
    )


def self_check_in(
    snapshot: InstanceSnapshot,
    participant_id: uuid.UUID,
    *,
    now: datetime,
    opens_before: timedelta,
) -> CommandOutcome:
    """Participant checks themselves in shortly before the class starts.

    A waitlisted participant standing at the door is admitted when a seat is
    open; the booking passes through BOOKED on its way to CHECKED-IN.
    """
    snapshot.require_occurrence()
    snapshot.require_live()
    start_at = snapshot.start_at
    if now < start_at - opens_before:
        raise CheckInClosed("Check-in has not opened yet")
    if now > start_at:
        raise CheckInClosed("Class has already started")

    booking = snapshot.ledger.active_for(participant_id)
    if booking is None:
        raise NotFound("No active booking for this class")
    if booking.status is BookingStatus.CHECKED_IN:
        raise InvalidTransition("Already checked in")

    transitions: list[BookingTransition] = []
    if booking.status is BookingStatus.WAITLISTED:
        if snapshot.ledger.available_spots <= 0:
            raise NoCapacity("Class is full; waitlisted participants cannot check in")
        transitions.append(BookingTransition(booking.id, BookingStatus.BOOKED))
    transitions.append(BookingTransition(booking.id, BookingStatus.CHECKED_IN))
    return CommandOutcome(booking_id=booking.id, transitions=transitions)
