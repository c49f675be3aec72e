"""Read-side projection of the bookings held on one class instance."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from studio.models import Booking, BookingStatus, SEATED_STATUSES
from studio.scheduling.clock import as_utc


def queue_order(booking: Booking) -> tuple[datetime, str]:
    """Sort key for seats and the waitlist: booking time, then id."""
    return (as_utc(booking.booking_date), str(booking.id))


@dataclass(frozen=True)
class InstanceLedger:
    """Active bookings for a (schedule, date) split into seats and waitlist."""

    capacity: int
    booked: tuple[Booking, ...]
    waitlisted: tuple[Booking, ...]

    @classmethod
    def build(cls, bookings: Iterable[Booking], capacity: int) -> "InstanceLedger":
        booked: list[Booking] = []
        waitlisted: list[Booking] = []
        for booking in bookings:
            if booking.status in SEATED_STATUSES:
                booked.append(booking)
            elif booking.status is BookingStatus.WAITLISTED:
                waitlisted.append(booking)
        booked.sort(key=queue_order)
        waitlisted.sort(key=queue_order)
        return cls(capacity=capacity, booked=tuple(booked), waitlisted=tuple(waitlisted))

    @property
    def booked_count(self) -> int:
        return len(self.booked)

    @property
    def waitlist_count(self) -> int:
        return len(self.waitlisted)

    @property
    def checked_in_count(self) -> int:
        return sum(1 for b in self.booked if b.status is BookingStatus.CHECKED_IN)

    @property
    def available_spots(self) -> int:
        return max(self.capacity - self.booked_count, 0)

    @property
    def is_full(self) -> bool:
        return self.booked_count >= self.capacity

    @property
    def is_over_capacity(self) -> bool:
        return self.booked_count > self.capacity

    @property
    def active(self) -> tuple[Booking, ...]:
        return self.booked + self.waitlisted

    def active_for(self, participant_id: uuid.UUID) -> Booking | None:
        for booking in self.active:
            if booking.participant_id == participant_id:
                return booking
        return None

    def next_in_line(self) -> Booking | None:
        return self.waitlisted[0] if self.waitlisted else None

    def waitlist_position(self, booking_id: uuid.UUID) -> int | None:
        """1-based place in the queue, or ``None`` if not waitlisted."""
        for index, booking in enumerate(self.waitlisted, start=1):
            if booking.id == booking_id:
                return index
        return None

    def waitlist_tail(self) -> Booking | None:
        return self.waitlisted[-1] if self.waitlisted else None
