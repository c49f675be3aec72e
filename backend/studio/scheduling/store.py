"""In-process implementations of the engine's collaborators."""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from datetime import UTC, date, datetime

from studio.models import (
    Booking,
    ClassDefinition,
    RecurringSchedule,
    RestrictionBehavior,
    ScheduleException,
)
from studio.scheduling.effects import CommandOutcome, ExceptionUpsert, NotificationIntent
from studio.scheduling.errors import StoreConflict
from studio.scheduling.ledger import queue_order
from studio.scheduling.recurrence import InstanceKey


class InMemoryStore:
    """Dictionary-backed store used by engine tests and local tooling."""

    def __init__(self) -> None:
        self.schedules: dict[uuid.UUID, RecurringSchedule] = {}
        self.definitions: dict[uuid.UUID, ClassDefinition] = {}
        self.exceptions: dict[InstanceKey, ScheduleException] = {}
        self.bookings: dict[uuid.UUID, Booking] = {}
        self.applied: int = 0

    def add_definition(self, definition: ClassDefinition) -> ClassDefinition:
        if definition.id is None:
            definition.id = uuid.uuid4()
        self.definitions[definition.id] = definition
        return definition

    def add_schedule(self, schedule: RecurringSchedule) -> RecurringSchedule:
        if schedule.id is None:
            schedule.id = uuid.uuid4()
        self.schedules[schedule.id] = schedule
        return schedule

    def add_booking(self, booking: Booking) -> Booking:
        if booking.id is None:
            booking.id = uuid.uuid4()
        self.bookings[booking.id] = booking
        return booking

    async def get_schedule(
        self, schedule_id: uuid.UUID, *, for_update: bool = False
    ) -> RecurringSchedule | None:
        return self.schedules.get(schedule_id)

    async def list_schedules(
        self,
        *,
        location_id: uuid.UUID | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[RecurringSchedule]:
        result = []
        for schedule in self.schedules.values():
            if location_id is not None and schedule.location_id != location_id:
                continue
            if end is not None and schedule.start_date > end:
                continue
            if start is not None and schedule.end_date < start:
                continue
            result.append(schedule)
        return result

    async def get_definition(self, definition_id: uuid.UUID) -> ClassDefinition | None:
        return self.definitions.get(definition_id)

    async def list_definitions(self) -> list[ClassDefinition]:
        return list(self.definitions.values())

    async def get_exception(
        self, schedule_id: uuid.UUID, class_date: date
    ) -> ScheduleException | None:
        return self.exceptions.get((schedule_id, class_date))

    async def list_exceptions(
        self, schedule_ids: Iterable[uuid.UUID], start: date, end: date
    ) -> list[ScheduleException]:
        wanted = set(schedule_ids)
        return [
            exc
            for (schedule_id, class_date), exc in self.exceptions.items()
            if schedule_id in wanted and start <= class_date <= end
        ]

    async def get_booking(self, booking_id: uuid.UUID) -> Booking | None:
        return self.bookings.get(booking_id)

    async def list_bookings_for_instance(
        self, schedule_id: uuid.UUID, class_date: date
    ) -> list[Booking]:
        return sorted(
            (
                b
                for b in self.bookings.values()
                if b.schedule_id == schedule_id and b.class_date == class_date
            ),
            key=queue_order,
        )

    async def list_bookings_in_range(
        self, schedule_ids: Iterable[uuid.UUID], start: date, end: date
    ) -> list[Booking]:
        wanted = set(schedule_ids)
        return [
            b
            for b in self.bookings.values()
            if b.schedule_id in wanted and start <= b.class_date <= end
        ]

    async def list_bookings_for_participant(
        self, participant_id: uuid.UUID, *, start: date | None = None
    ) -> list[Booking]:
        found = [
            b
            for b in self.bookings.values()
            if b.participant_id == participant_id
            and (start is None or b.class_date >= start)
        ]
        return sorted(found, key=lambda b: (b.class_date, queue_order(b)))

    def _check(self, outcome: CommandOutcome) -> None:
        for booking in outcome.inserts:
            for existing in self.bookings.values():
                if (
                    existing.is_active
                    and existing.participant_id == booking.participant_id
                    and existing.schedule_id == booking.schedule_id
                    and existing.class_date == booking.class_date
                ):
                    raise StoreConflict("Participant already holds an active booking")
        for transition in outcome.transitions:
            if transition.booking_id not in self.bookings:
                raise StoreConflict(f"Booking {transition.booking_id} disappeared")

    def _upsert_exception(self, upsert: ExceptionUpsert) -> None:
        key = (upsert.schedule_id, upsert.class_date)
        row = self.exceptions.get(key)
        if row is None:
            row = ScheduleException(
                id=uuid.uuid4(),
                schedule_id=upsert.schedule_id,
                class_date=upsert.class_date,
                created_by=upsert.created_by,
                created_at=datetime.now(UTC),
            )
            self.exceptions[key] = row
        row.status = upsert.status
        row.new_start_time = upsert.new_start_time
        row.new_duration_minutes = upsert.new_duration_minutes
        row.new_coach_id = upsert.new_coach_id
        row.new_max_participants = upsert.new_max_participants
        row.special_label = upsert.special_label

    async def apply(self, outcome: CommandOutcome) -> None:
        self._check(outcome)
        now = datetime.now(UTC)
        for booking in outcome.inserts:
            self.bookings[booking.id] = booking
        for transition in outcome.transitions:
            booking = self.bookings[transition.booking_id]
            booking.status = transition.status
            if transition.cancel_reason is not None:
                booking.cancel_reason = transition.cancel_reason
            booking.updated_at = now
        if outcome.exception is not None:
            self._upsert_exception(outcome.exception)
        self.applied += 1

    async def discard(self) -> None:
        return None


class StaticMembershipDirectory:
    """Membership lookups backed by plain mappings."""

    def __init__(
        self,
        restrictions: Mapping[uuid.UUID, Mapping[str, RestrictionBehavior | str]]
        | None = None,
        locations: Mapping[uuid.UUID, uuid.UUID] | None = None,
        members: Iterable[uuid.UUID] | None = None,
    ) -> None:
        self._restrictions = {k: dict(v) for k, v in (restrictions or {}).items()}
        self._locations = dict(locations or {})
        self._members = set(members) if members is not None else None

    async def exists(self, participant_id: uuid.UUID) -> bool:
        return self._members is None or participant_id in self._members

    async def location_for(self, participant_id: uuid.UUID) -> uuid.UUID | None:
        return self._locations.get(participant_id)

    async def restrictions_for(
        self, participant_id: uuid.UUID
    ) -> dict[str, RestrictionBehavior]:
        return {
            category: RestrictionBehavior(behavior)
            for category, behavior in self._restrictions.get(participant_id, {}).items()
        }


class RecordingDispatcher:
    """Keeps every dispatched intent; optionally fails to exercise isolation."""

    def __init__(self, *, fail_with: Exception | None = None) -> None:
        self.sent: list[NotificationIntent] = []
        self.fail_with = fail_with

    async def dispatch(self, intent: NotificationIntent) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(intent)

    def of_kind(self, kind) -> list[NotificationIntent]:
        return [intent for intent in self.sent if intent.kind == kind]
