"""Collaborators the booking engine depends on."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import date
from typing import Protocol

from studio.models import (
    Booking,
    ClassDefinition,
    RecurringSchedule,
    RestrictionBehavior,
    ScheduleException,
)
from studio.scheduling.effects import CommandOutcome, NotificationIntent


class SchedulingStore(Protocol):
    """Persistence for schedules, exceptions and bookings.

    ``apply`` must write a whole ``CommandOutcome`` or nothing. Infrastructure
    failures surface as ``StoreUnavailable``/``StoreConflict``.
    """

    async def get_schedule(
        self, schedule_id: uuid.UUID, *, for_update: bool = False
    ) -> RecurringSchedule | None: ...

    async def list_schedules(
        self,
        *,
        location_id: uuid.UUID | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[RecurringSchedule]: ...

    async def get_definition(self, definition_id: uuid.UUID) -> ClassDefinition | None: ...

    async def list_definitions(self) -> list[ClassDefinition]: ...

    async def get_exception(
        self, schedule_id: uuid.UUID, class_date: date
    ) -> ScheduleException | None: ...

    async def list_exceptions(
        self, schedule_ids: Iterable[uuid.UUID], start: date, end: date
    ) -> list[ScheduleException]: ...

    async def get_booking(self, booking_id: uuid.UUID) -> Booking | None: ...

    async def list_bookings_for_instance(
        self, schedule_id: uuid.UUID, class_date: date
    ) -> list[Booking]: ...

    async def list_bookings_in_range(
        self, schedule_ids: Iterable[uuid.UUID], start: date, end: date
    ) -> list[Booking]: ...

    async def list_bookings_for_participant(
        self, participant_id: uuid.UUID, *, start: date | None = None
    ) -> list[Booking]: ...

    async def apply(self, outcome: CommandOutcome) -> None: ...

    async def discard(self) -> None: ...


class MembershipDirectory(Protocol):
    """Participant lookups owned by the membership system."""

    async def exists(self, participant_id: uuid.UUID) -> bool: ...

    async def location_for(self, participant_id: uuid.UUID) -> uuid.UUID | None: ...

    async def restrictions_for(
        self, participant_id: uuid.UUID
    ) -> dict[str, RestrictionBehavior]: ...


class NotificationDispatcher(Protocol):
    async def dispatch(self, intent: NotificationIntent) -> None: ...
