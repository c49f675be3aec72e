"""Recurrence rules and the exception overlay for single occurrences."""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import TypeVar

from studio.models import (
    ClassDefinition,
    ExceptionStatus,
    RecurringSchedule,
    ScheduleException,
)

InstanceKey = tuple[uuid.UUID, date]

_T = TypeVar("_T")


def instance_key(schedule_id: uuid.UUID, class_date: date) -> InstanceKey:
    return (schedule_id, class_date)


def format_instance_id(schedule_id: uuid.UUID, class_date: date) -> str:
    return f"{schedule_id}-{class_date.isoformat()}"


def occurs_on(schedule: RecurringSchedule, day: date) -> bool:
    """True when the weekly template produces an occurrence on ``day``."""
    if day < schedule.start_date or day > schedule.end_date:
        return False
    return day.isoweekday() in schedule.days_of_week


def iter_days(start: date, days: int) -> Iterator[date]:
    for offset in range(days):
        yield start + timedelta(days=offset)


def resolve_has_waitlist(
    schedule: RecurringSchedule, definition: ClassDefinition | None
) -> bool:
    """Schedule setting wins, then the class definition, then allow."""
    if schedule.has_waitlist is not None:
        return schedule.has_waitlist
    if definition is not None and definition.has_waitlist is not None:
        return definition.has_waitlist
    return True


@dataclass(frozen=True)
class InstanceOverrides:
    """Per-date changes requested by staff; ``None`` means unchanged."""

    start_time: time | None = None
    duration_minutes: int | None = None
    coach_id: uuid.UUID | None = None
    max_participants: int | None = None
    special_label: str | None = None

    def __post_init__(self) -> None:
        if self.duration_minutes is not None and self.duration_minutes <= 0:
            raise ValueError("duration_minutes must be positive")
        if self.max_participants is not None and self.max_participants <= 0:
            raise ValueError("max_participants must be positive")

    @property
    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.start_time,
                self.duration_minutes,
                self.coach_id,
                self.max_participants,
                self.special_label,
            )
        )


@dataclass(frozen=True)
class EffectiveInstance:
    """A schedule's parameters for one date after the exception is applied."""

    schedule_id: uuid.UUID
    class_date: date
    location_id: uuid.UUID
    class_definition_id: uuid.UUID
    start_time: time
    duration_minutes: int
    coach_id: uuid.UUID
    max_participants: int
    has_waitlist: bool
    special_label: str | None
    status: ExceptionStatus | None
    is_modified: bool

    @property
    def instance_id(self) -> str:
        return format_instance_id(self.schedule_id, self.class_date)

    @property
    def is_cancelled(self) -> bool:
        return self.status is ExceptionStatus.CANCELLED

    @property
    def is_deleted(self) -> bool:
        return self.status is ExceptionStatus.DELETED

    @property
    def is_terminal(self) -> bool:
        return self.status is not None

    def starts_at(self, tz: tzinfo) -> datetime:
        return datetime.combine(self.class_date, self.start_time, tzinfo=tz)

    def ends_at(self, tz: tzinfo) -> datetime:
        return self.starts_at(tz) + timedelta(minutes=self.duration_minutes)


def _pick(override: _T | None, base: _T) -> _T:
    return base if override is None else override


def resolve_effective(
    schedule: RecurringSchedule,
    class_date: date,
    exception: ScheduleException | None = None,
    definition: ClassDefinition | None = None,
) -> EffectiveInstance:
    """Overlay ``exception`` onto ``schedule`` for ``class_date``.

    An override field that is present on the exception replaces the schedule's
    value; an absent one falls back to the schedule.
    """
    if exception is not None and (
        exception.schedule_id != schedule.id or exception.class_date != class_date
    ):
        raise ValueError("Exception does not belong to this occurrence")

    if exception is None:
        return EffectiveInstance(
            schedule_id=schedule.id,
            class_date=class_date,
            location_id=schedule.location_id,
            class_definition_id=schedule.class_definition_id,
            start_time=schedule.start_time,
            duration_minutes=schedule.duration_minutes,
            coach_id=schedule.coach_id,
            max_participants=schedule.max_participants,
            has_waitlist=resolve_has_waitlist(schedule, definition),
            special_label=schedule.special_label,
            status=None,
            is_modified=False,
        )

    is_modified = any(
        value is not None
        for value in (
            exception.new_start_time,
            exception.new_duration_minutes,
            exception.new_coach_id,
            exception.new_max_participants,
            exception.special_label,
        )
    )
    return EffectiveInstance(
        schedule_id=schedule.id,
        class_date=class_date,
        location_id=schedule.location_id,
        class_definition_id=schedule.class_definition_id,
        start_time=_pick(exception.new_start_time, schedule.start_time),
        duration_minutes=_pick(
            exception.new_duration_minutes, schedule.duration_minutes
        ),
        coach_id=_pick(exception.new_coach_id, schedule.coach_id),
        max_participants=_pick(
            exception.new_max_participants, schedule.max_participants
        ),
        has_waitlist=resolve_has_waitlist(schedule, definition),
        special_label=_pick(exception.special_label, schedule.special_label),
        status=exception.status,
        is_modified=is_modified,
    )
