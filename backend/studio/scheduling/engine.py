"""Booking engine facade: serializes commands per class instance."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Sequence
from datetime import date, timedelta

from studio.core.settings import EngineSettings
from studio.models import Booking, RestrictionBehavior
from studio.scheduling import overrides as override_commands
from studio.scheduling import state_machine
from studio.scheduling.clock import Clock, SystemClock
from studio.scheduling.effects import CommandOutcome, NotificationIntent
from studio.scheduling.errors import NotFound, SchedulingError, StoreUnavailable
from studio.scheduling.locks import InstanceLockRegistry
from studio.scheduling.materializer import ClassInstance, Viewer, build_instance, materialize
from studio.scheduling.ports import (
    MembershipDirectory,
    NotificationDispatcher,
    SchedulingStore,
)
from studio.scheduling.recurrence import InstanceKey, InstanceOverrides, instance_key
from studio.scheduling.state_machine import Initiator, InstanceSnapshot

logger = logging.getLogger(__name__)

Planner = Callable[[InstanceSnapshot], CommandOutcome]


class _NullDispatcher:
    async def dispatch(self, intent: NotificationIntent) -> None:
        logger.debug("No dispatcher configured; dropping %s", intent.kind.value)


class BookingEngine:
    """Runs booking and instance commands against a store.

    Each command takes the instance lock, loads a fresh snapshot, plans the
    change with a pure function, applies it in one store call and only then
    hands notification intents to the dispatcher.
    """

    def __init__(
        self,
        store: SchedulingStore,
        *,
        settings: EngineSettings | None = None,
        clock: Clock | None = None,
        membership: MembershipDirectory | None = None,
        dispatcher: NotificationDispatcher | None = None,
        locks: InstanceLockRegistry | None = None,
    ) -> None:
        self.store = store
        self.settings = settings if settings is not None else EngineSettings()
        self.clock = clock if clock is not None else SystemClock()
        self.membership = membership
        self.dispatcher = dispatcher if dispatcher is not None else _NullDispatcher()
        self.locks = locks if locks is not None else InstanceLockRegistry()

    # ------------------------------------------------------------------
    # Read paths
    # ------------------------------------------------------------------
    async def viewer_for(
        self,
        *,
        participant_id: uuid.UUID | None = None,
        coach_id: uuid.UUID | None = None,
    ) -> Viewer:
        restrictions: dict[str, RestrictionBehavior] = {}
        if participant_id is not None and self.membership is not None:
            restrictions = await self.membership.restrictions_for(participant_id)
        return Viewer(
            participant_id=participant_id, coach_id=coach_id, restrictions=restrictions
        )

    async def home_location(self, participant_id: uuid.UUID) -> uuid.UUID:
        location_id = None
        if self.membership is not None:
            location_id = await self.membership.location_for(participant_id)
        if location_id is None:
            raise NotFound(f"Participant {participant_id} has no home location")
        return location_id

    async def home_calendar(
        self,
        participant_id: uuid.UUID,
        *,
        start: date | None = None,
        days: int | None = None,
    ) -> list[ClassInstance]:
        """Booking view of the participant's home location."""
        location_id = await self.home_location(participant_id)
        viewer = await self.viewer_for(participant_id=participant_id)
        return await self.materialize(
            location_id=location_id, start=start, days=days, viewer=viewer
        )

    async def materialize(
        self,
        *,
        location_id: uuid.UUID | None = None,
        start: date | None = None,
        days: int | None = None,
        viewer: Viewer | None = None,
        include_past: bool = False,
    ) -> list[ClassInstance]:
        """Concrete class instances for a window, defaulting to the booking horizon."""
        now = self.clock.now()
        tz = self.settings.tzinfo
        if start is None:
            start = now.astimezone(tz).date()
        if days is None:
            days = self.settings.booking_window_days
        end = start + timedelta(days=max(days - 1, 0))

        schedules = await self.store.list_schedules(
            location_id=location_id, start=start, end=end
        )
        schedule_ids = [schedule.id for schedule in schedules]
        exceptions = await self.store.list_exceptions(schedule_ids, start, end)
        bookings = await self.store.list_bookings_in_range(schedule_ids, start, end)
        definitions = {d.id: d for d in await self.store.list_definitions()}
        return materialize(
            schedules,
            exceptions,
            bookings,
            definitions,
            start=start,
            days=days,
            now=now,
            tz=tz,
            cancellation_cutoff=self.settings.cancellation_cutoff,
            location_id=location_id,
            viewer=viewer,
            include_past=include_past,
        )

    async def instance(
        self,
        schedule_id: uuid.UUID,
        class_date: date,
        *,
        viewer: Viewer | None = None,
    ) -> ClassInstance:
        """One instance with its ledger; deleted or unknown dates are not found."""
        snapshot = await self._load(instance_key(schedule_id, class_date))
        snapshot.require_occurrence()
        if snapshot.effective.is_deleted or snapshot.definition is None:
            raise NotFound("Class not found")
        if (
            viewer is not None
            and viewer.restriction_for(snapshot.definition.name)
            is RestrictionBehavior.HIDE
        ):
            raise NotFound("Class not found")
        return build_instance(
            snapshot.effective,
            snapshot.definition,
            snapshot.bookings,
            tz=snapshot.tz,
            cancellation_cutoff=self.settings.cancellation_cutoff,
            viewer=viewer,
        )

    async def get_booking(self, booking_id: uuid.UUID) -> Booking:
        booking = await self.store.get_booking(booking_id)
        if booking is None:
            raise NotFound(f"Booking {booking_id} not found")
        return booking

    async def bookings_for_participant(
        self, participant_id: uuid.UUID, *, start: date | None = None
    ) -> list[Booking]:
        return await self.store.list_bookings_for_participant(participant_id, start=start)

    # ------------------------------------------------------------------
    # Booking commands
    # ------------------------------------------------------------------
    async def book(
        self,
        participant_id: uuid.UUID,
        schedule_id: uuid.UUID,
        class_date: date,
        *,
        initiated_by: Initiator = Initiator.PARTICIPANT,
    ) -> Booking:
        restrictions: dict[str, RestrictionBehavior] = {}
        if self.membership is not None:
            if not await self.membership.exists(participant_id):
                raise NotFound(f"Participant {participant_id} not found")
            restrictions = await self.membership.restrictions_for(participant_id)
        viewer = Viewer(participant_id=participant_id, restrictions=restrictions)

        def plan(snapshot: InstanceSnapshot) -> CommandOutcome:
            restriction = (
                viewer.restriction_for(snapshot.definition.name)
                if snapshot.definition is not None
                else RestrictionBehavior.NONE
            )
            return state_machine.book(
                snapshot,
                participant_id,
                now=self.clock.now(),
                initiated_by=initiated_by,
                restriction=restriction,
            )

        outcome, _ = await self._run(instance_key(schedule_id, class_date), plan, "book")
        booking = outcome.inserts[0]
        logger.info(
            "Booked participant %s on %s-%s as %s",
            participant_id,
            schedule_id,
            class_date,
            booking.status.value,
        )
        return booking

    async def cancel_booking(
        self, booking_id: uuid.UUID, *, initiated_by: Initiator = Initiator.PARTICIPANT
    ) -> tuple[Booking, Booking | None]:
        """Cancel and return ``(cancelled, promoted)``."""
        key = await self._key_for_booking(booking_id)

        def plan(snapshot: InstanceSnapshot) -> CommandOutcome:
            return state_machine.cancel_booking(
                snapshot,
                booking_id,
                now=self.clock.now(),
                initiated_by=initiated_by,
                cancellation_cutoff=self.settings.cancellation_cutoff,
            )

        outcome, snapshot = await self._run(key, plan, "cancel_booking")
        cancelled = snapshot.find_booking(booking_id)
        promoted = (
            snapshot.find_booking(outcome.promoted_booking_id)
            if outcome.promoted_booking_id
            else None
        )
        logger.info(
            "Cancelled booking %s (%s); promoted %s",
            booking_id,
            initiated_by.value,
            promoted.id if promoted else None,
        )
        return cancelled, promoted

    async def promote_from_waitlist(self, booking_id: uuid.UUID) -> Booking:
        key = await self._key_for_booking(booking_id)
        _, snapshot = await self._run(
            key,
            lambda s: state_machine.promote_from_waitlist(s, booking_id),
            "promote_from_waitlist",
        )
        logger.info("Promoted booking %s from the waitlist", booking_id)
        return snapshot.find_booking(booking_id)

    async def check_in(self, booking_id: uuid.UUID) -> Booking:
        key = await self._key_for_booking(booking_id)
        _, snapshot = await self._run(
            key, lambda s: state_machine.check_in(s, booking_id), "check_in"
        )
        return snapshot.find_booking(booking_id)

    async def undo_check_in(self, booking_id: uuid.UUID) -> Booking:
        key = await self._key_for_booking(booking_id)
        _, snapshot = await self._run(
            key, lambda s: state_machine.undo_check_in(s, booking_id), "undo_check_in"
        )
        return snapshot.find_booking(booking_id)

    async def self_check_in(
        self, participant_id: uuid.UUID, schedule_id: uuid.UUID, class_date: date
    ) -> Booking:
        def plan(snapshot: InstanceSnapshot) -> CommandOutcome:
            return state_machine.self_check_in(
                snapshot,
                participant_id,
                now=self.clock.now(),
                opens_before=self.settings.self_check_in_opens,
            )

        outcome, snapshot = await self._run(
            instance_key(schedule_id, class_date), plan, "self_check_in"
        )
        return snapshot.find_booking(outcome.booking_id)

    # ------------------------------------------------------------------
    # Instance commands
    # ------------------------------------------------------------------
    async def edit_instance(
        self,
        schedule_id: uuid.UUID,
        class_date: date,
        overrides: InstanceOverrides,
        *,
        actor_id: uuid.UUID | None = None,
        notify: bool = True,
    ) -> ClassInstance:
        outcome, _ = await self._run(
            instance_key(schedule_id, class_date),
            lambda s: override_commands.edit_instance(
                s, overrides, actor_id=actor_id, notify=notify
            ),
            "edit_instance",
        )
        logger.info(
            "Edited instance %s-%s (%d participants notified)",
            schedule_id,
            class_date,
            len(outcome.notifications),
        )
        return await self.instance(schedule_id, class_date)

    async def cancel_instance(
        self,
        schedule_id: uuid.UUID,
        class_date: date,
        *,
        actor_id: uuid.UUID | None = None,
    ) -> ClassInstance:
        outcome, _ = await self._run(
            instance_key(schedule_id, class_date),
            lambda s: override_commands.cancel_instance(s, actor_id=actor_id),
            "cancel_instance",
        )
        logger.info(
            "Cancelled instance %s-%s; %d bookings cancelled",
            schedule_id,
            class_date,
            len(outcome.transitions),
        )
        return await self.instance(schedule_id, class_date)

    async def delete_instance_silently(
        self,
        schedule_id: uuid.UUID,
        class_date: date,
        *,
        actor_id: uuid.UUID | None = None,
    ) -> None:
        await self._run(
            instance_key(schedule_id, class_date),
            lambda s: override_commands.delete_instance_silently(s, actor_id=actor_id),
            "delete_instance_silently",
        )
        logger.info("Deleted instance %s-%s", schedule_id, class_date)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _key_for_booking(self, booking_id: uuid.UUID) -> InstanceKey:
        booking = await self.get_booking(booking_id)
        return instance_key(booking.schedule_id, booking.class_date)

    async def _load(
        self, key: InstanceKey, *, for_update: bool = False
    ) -> InstanceSnapshot:
        schedule_id, class_date = key
        schedule = await self.store.get_schedule(schedule_id, for_update=for_update)
        if schedule is None:
            raise NotFound(f"Schedule {schedule_id} not found")
        definition = await self.store.get_definition(schedule.class_definition_id)
        exception = await self.store.get_exception(schedule_id, class_date)
        bookings = await self.store.list_bookings_for_instance(schedule_id, class_date)
        return InstanceSnapshot.build(
            schedule,
            class_date,
            exception=exception,
            definition=definition,
            bookings=bookings,
            tz=self.settings.tzinfo,
        )

    async def _run(
        self, key: InstanceKey, plan: Planner, command: str
    ) -> tuple[CommandOutcome, InstanceSnapshot]:
        attempts = max(self.settings.command_retry_attempts, 1)
        async with self.locks.hold(key):
            for attempt in range(1, attempts + 1):
                try:
                    try:
                        snapshot = await self._load(key, for_update=True)
                        outcome = plan(snapshot)
                    except SchedulingError:
                        await self.store.discard()
                        raise
                    if outcome.is_empty:
                        await self.store.discard()
                    else:
                        await self.store.apply(outcome)
                    break
                except StoreUnavailable as exc:
                    if attempt >= attempts:
                        logger.error(
                            "%s on %s failed after %d attempts: %s",
                            command,
                            key,
                            attempts,
                            exc,
                        )
                        raise
                    logger.warning(
                        "%s on %s hit a store error (attempt %d/%d): %s",
                        command,
                        key,
                        attempt,
                        attempts,
                        exc,
                    )
        await self._dispatch(outcome.notifications)
        return outcome, snapshot

    async def _dispatch(self, intents: Sequence[NotificationIntent]) -> None:
        for intent in intents:
            try:
                await self.dispatcher.dispatch(intent)
            except Exception:
                logger.exception(
                    "Failed to dispatch %s notification to participant %s",
                    intent.kind.value,
                    intent.participant_id,
                )
