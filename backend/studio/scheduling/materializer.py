"""Expand recurring schedules into concrete class instances for a window."""

from __future__ import annotations

import uuid
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo

from studio.models import (
    Booking,
    BookingStatus,
    ClassDefinition,
    RecurringSchedule,
    RestrictionBehavior,
    ScheduleException,
)
from studio.scheduling.ledger import InstanceLedger
from studio.scheduling.recurrence import (
    EffectiveInstance,
    InstanceKey,
    iter_days,
    occurs_on,
    resolve_effective,
)


@dataclass(frozen=True)
class Viewer:
    """Who is looking at the schedule, used for per-viewer flags."""

    participant_id: uuid.UUID | None = None
    coach_id: uuid.UUID | None = None
    restrictions: Mapping[str, RestrictionBehavior] = field(default_factory=dict)

    def restriction_for(self, category: str) -> RestrictionBehavior:
        wanted = category.lower()
        for name, behavior in self.restrictions.items():
            if name.lower() == wanted:
                return RestrictionBehavior(behavior)
        return RestrictionBehavior.NONE


@dataclass(frozen=True)
class ClassInstance:
    """One concrete occurrence of a schedule, derived at read time."""

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
    booked: tuple[Booking, ...]
    waitlisted: tuple[Booking, ...]
    available_spots: int
    is_full: bool
    cancellation_deadline: datetime
    is_restricted: bool = False
    is_mine: bool = False
    my_booking_id: uuid.UUID | None = None
    my_status: BookingStatus | None = None
    my_waitlist_position: int | None = None

    @property
    def booked_count(self) -> int:
        return len(self.booked)

    @property
    def waitlist_count(self) -> int:
        return len(self.waitlisted)

    @property
    def is_bookable(self) -> bool:
        return not self.is_cancelled and (not self.is_full or self.has_waitlist)


def group_bookings(bookings: Iterable[Booking]) -> dict[InstanceKey, list[Booking]]:
    grouped: dict[InstanceKey, list[Booking]] = defaultdict(list)
    for booking in bookings:
        grouped[(booking.schedule_id, booking.class_date)].append(booking)
    return grouped


def build_instance(
    effective: EffectiveInstance,
    definition: ClassDefinition,
    bookings: Iterable[Booking],
    *,
    tz: tzinfo,
    cancellation_cutoff: timedelta,
    viewer: Viewer | None = None,
) -> ClassInstance:
    """Assemble the read model for one effective occurrence."""
    ledger = InstanceLedger.build(bookings, effective.max_participants)
    start_at = effective.starts_at(tz)

    is_restricted = False
    is_mine = False
    my_booking: Booking | None = None
    if viewer is not None:
        is_restricted = (
            viewer.restriction_for(definition.name) is RestrictionBehavior.SHOW_LOCK
        )
        is_mine = viewer.coach_id is not None and viewer.coach_id == effective.coach_id
        if viewer.participant_id is not None:
            my_booking = ledger.active_for(viewer.participant_id)

    return ClassInstance(
        instance_id=effective.instance_id,
        schedule_id=effective.schedule_id,
        class_date=effective.class_date,
        class_definition_id=effective.class_definition_id,
        class_name=definition.name,
        color=definition.color,
        location_id=effective.location_id,
        coach_id=effective.coach_id,
        start_at=start_at,
        end_at=effective.ends_at(tz),
        duration_minutes=effective.duration_minutes,
        max_participants=effective.max_participants,
        has_waitlist=effective.has_waitlist,
        special_label=effective.special_label,
        is_cancelled=effective.is_cancelled,
        is_modified=effective.is_modified,
        booked=ledger.booked,
        waitlisted=ledger.waitlisted,
        available_spots=ledger.available_spots,
        is_full=ledger.is_full,
        cancellation_deadline=start_at - cancellation_cutoff,
        is_restricted=is_restricted,
        is_mine=is_mine,
        my_booking_id=my_booking.id if my_booking else None,
        my_status=my_booking.status if my_booking else None,
        my_waitlist_position=(
            ledger.waitlist_position(my_booking.id) if my_booking else None
        ),
    )


def materialize(
    schedules: Iterable[RecurringSchedule],
    exceptions: Iterable[ScheduleException],
    bookings: Iterable[Booking],
    definitions: Mapping[uuid.UUID, ClassDefinition],
    *,
    start: date,
    days: int,
    now: datetime,
    tz: tzinfo,
    cancellation_cutoff: timedelta,
    location_id: uuid.UUID | None = None,
    viewer: Viewer | None = None,
    include_past: bool = False,
) -> list[ClassInstance]:
    """Return the class instances in ``[start, start + days)``.

    DELETED occurrences never appear. CANCELLED ones are kept and flagged.
    Unless ``include_past`` is set, instances that already started are left
    out (booking views); management calendars pass ``include_past=True``.
    Categories a viewer's membership hides are dropped for that viewer.
    """
    if days < 0:
        raise ValueError("days must not be negative")

    exception_index = {(exc.schedule_id, exc.class_date): exc for exc in exceptions}
    bookings_by_key = group_bookings(
        b for b in bookings if b.status is not BookingStatus.CANCELLED
    )
    candidates = [
        schedule
        for schedule in schedules
        if location_id is None or schedule.location_id == location_id
    ]

    instances: list[ClassInstance] = []
    for day in iter_days(start, days):
        for schedule in candidates:
            if not occurs_on(schedule, day):
                continue
            definition = definitions.get(schedule.class_definition_id)
            if definition is None:
                continue
            if (
                viewer is not None
                and viewer.restriction_for(definition.name) is RestrictionBehavior.HIDE
            ):
                continue
            exception = exception_index.get((schedule.id, day))
            effective = resolve_effective(schedule, day, exception, definition)
            if effective.is_deleted:
                continue
            if not include_past and effective.starts_at(tz) < now:
                continue
            instances.append(
                build_instance(
                    effective,
                    definition,
                    bookings_by_key.get((schedule.id, day), ()),
                    tz=tz,
                    cancellation_cutoff=cancellation_cutoff,
                    viewer=viewer,
                )
            )

    instances.sort(key=lambda inst: (inst.start_at, str(inst.schedule_id)))
    return instances
