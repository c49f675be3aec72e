"""Tests for the per-instance booking ledger."""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime, timedelta

from studio.models import Booking, BookingStatus
from studio.scheduling.ledger import InstanceLedger, queue_order

BASE = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


def _booking(status: BookingStatus, minutes: int, booking_id: uuid.UUID | None = None) -> Booking:
    return Booking(
        id=booking_id or uuid.uuid4(),
        participant_id=uuid.uuid4(),
        schedule_id=uuid.uuid4(),
        class_date=date(2026, 3, 9),
        status=status,
        booking_date=BASE + timedelta(minutes=minutes),
    )


def test_split_and_counts() -> None:
    bookings = [
        _booking(BookingStatus.WAITLISTED, 5),
        _booking(BookingStatus.BOOKED, 1),
        _booking(BookingStatus.CANCELLED, 0),
        _booking(BookingStatus.CHECKED_IN, 2),
        _booking(BookingStatus.WAITLISTED, 3),
    ]

    ledger = InstanceLedger.build(bookings, capacity=3)

    assert ledger.booked_count == 2
    assert ledger.checked_in_count == 1
    assert ledger.waitlist_count == 2
    assert ledger.available_spots == 1
    assert not ledger.is_full
    assert [b.booking_date for b in ledger.waitlisted] == [
        BASE + timedelta(minutes=3),
        BASE + timedelta(minutes=5),
    ]


def test_over_capacity_reports_zero_spots() -> None:
    bookings = [_booking(BookingStatus.BOOKED, minute) for minute in range(3)]

    ledger = InstanceLedger.build(bookings, capacity=2)

    assert ledger.available_spots == 0
    assert ledger.is_full
    assert ledger.is_over_capacity


def test_waitlist_position_and_next_in_line() -> None:
    first = _booking(BookingStatus.WAITLISTED, 1)
    second = _booking(BookingStatus.WAITLISTED, 2)
    seated = _booking(BookingStatus.BOOKED, 0)

    ledger = InstanceLedger.build([second, seated, first], capacity=1)

    assert ledger.next_in_line() is first
    assert ledger.waitlist_tail() is second
    assert ledger.waitlist_position(first.id) == 1
    assert ledger.waitlist_position(second.id) == 2
    assert ledger.waitlist_position(seated.id) is None
    assert ledger.active_for(seated.participant_id) is seated
    assert ledger.active_for(uuid.uuid4()) is None


def test_equal_timestamps_break_ties_by_id() -> None:
    low = _booking(BookingStatus.WAITLISTED, 1, uuid.UUID(int=1))
    high = _booking(BookingStatus.WAITLISTED, 1, uuid.UUID(int=2))

    ledger = InstanceLedger.build([high, low], capacity=0)

    assert ledger.next_in_line() is low


def test_queue_order_accepts_naive_timestamps() -> None:
    aware = _booking(BookingStatus.BOOKED, 1)
    naive = _booking(BookingStatus.BOOKED, 0)
    naive.booking_date = naive.booking_date.replace(tzinfo=None)

    assert sorted([aware, naive], key=queue_order) == [naive, aware]
