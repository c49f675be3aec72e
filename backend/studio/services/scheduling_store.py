"""SQLAlchemy-backed store for the booking engine."""

from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import date

from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from studio.models import Booking, ClassDefinition, RecurringSchedule, ScheduleException
from studio.scheduling.effects import CommandOutcome, ExceptionUpsert
from studio.scheduling.errors import StoreConflict, StoreUnavailable

logger = logging.getLogger(__name__)


class SqlSchedulingStore:
    """Reads and writes scheduling state through one ``AsyncSession``.

    ``get_schedule(for_update=True)`` takes a row lock on the schedule so that
    commands running in separate worker processes serialize on the database
    as well. SQLite ignores the lock clause.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @asynccontextmanager
    async def _guard(self) -> AsyncIterator[None]:
        try:
            yield
        except IntegrityError as exc:
            await self.session.rollback()
            raise StoreConflict(str(exc.orig)) from exc
        except (OperationalError, InterfaceError) as exc:
            await self.session.rollback()
            logger.warning("Scheduling store unavailable: %s", exc)
            raise StoreUnavailable(str(exc.orig)) from exc
        except StoreUnavailable:
            await self.session.rollback()
            raise

    async def _scalars(self, stmt: Select) -> list:
        async with self._guard():
            result = await self.session.execute(
                stmt.execution_options(populate_existing=True)
            )
            return list(result.scalars().all())

    async def _scalar(self, stmt: Select):
        rows = await self._scalars(stmt)
        return rows[0] if rows else None

    async def get_schedule(
        self, schedule_id: uuid.UUID, *, for_update: bool = False
    ) -> RecurringSchedule | None:
        stmt = select(RecurringSchedule).where(RecurringSchedule.id == schedule_id)
        if for_update:
            stmt = stmt.with_for_update()
        return await self._scalar(stmt)

    async def list_schedules(
        self,
        *,
        location_id: uuid.UUID | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[RecurringSchedule]:
        stmt = select(RecurringSchedule).order_by(
            RecurringSchedule.start_time, RecurringSchedule.id
        )
        if location_id is not None:
            stmt = stmt.where(RecurringSchedule.location_id == location_id)
        if start is not None:
            stmt = stmt.where(RecurringSchedule.end_date >= start)
        if end is not None:
            stmt = stmt.where(RecurringSchedule.start_date <= end)
        return await self._scalars(stmt)

    async def get_definition(self, definition_id: uuid.UUID) -> ClassDefinition | None:
        return await self._scalar(
            select(ClassDefinition).where(ClassDefinition.id == definition_id)
        )

    async def list_definitions(self) -> list[ClassDefinition]:
        return await self._scalars(select(ClassDefinition).order_by(ClassDefinition.name))

    async def get_exception(
        self, schedule_id: uuid.UUID, class_date: date
    ) -> ScheduleException | None:
        return await self._scalar(
            select(ScheduleException).where(
                ScheduleException.schedule_id == schedule_id,
                ScheduleException.class_date == class_date,
            )
        )

    async def list_exceptions(
        self, schedule_ids: Iterable[uuid.UUID], start: date, end: date
    ) -> list[ScheduleException]:
        ids = list(schedule_ids)
        if not ids:
            return []
        return await self._scalars(
            select(ScheduleException).where(
                ScheduleException.schedule_id.in_(ids),
                ScheduleException.class_date >= start,
                ScheduleException.class_date <= end,
            )
        )

    async def get_booking(self, booking_id: uuid.UUID) -> Booking | None:
        return await self._scalar(select(Booking).where(Booking.id == booking_id))

    async def list_bookings_for_instance(
        self, schedule_id: uuid.UUID, class_date: date
    ) -> list[Booking]:
        return await self._scalars(
            select(Booking)
            .where(Booking.schedule_id == schedule_id, Booking.class_date == class_date)
            .order_by(Booking.booking_date, Booking.id)
        )

    async def list_bookings_in_range(
        self, schedule_ids: Iterable[uuid.UUID], start: date, end: date
    ) -> list[Booking]:
        ids = list(schedule_ids)
        if not ids:
            return []
        return await self._scalars(
            select(Booking).where(
                Booking.schedule_id.in_(ids),
                Booking.class_date >= start,
                Booking.class_date <= end,
            )
        )

    async def list_bookings_for_participant(
        self, participant_id: uuid.UUID, *, start: date | None = None
    ) -> list[Booking]:
        stmt = (
            select(Booking)
            .where(Booking.participant_id == participant_id)
            .order_by(Booking.class_date, Booking.booking_date, Booking.id)
        )
        if start is not None:
            stmt = stmt.where(Booking.class_date >= start)
        return await self._scalars(stmt)

    async def _upsert_exception(self, upsert: ExceptionUpsert) -> None:
        row = await self.session.scalar(
            select(ScheduleException).where(
                ScheduleException.schedule_id == upsert.schedule_id,
                ScheduleException.class_date == upsert.class_date,
            )
        )
        if row is None:
            row = ScheduleException(
                schedule_id=upsert.schedule_id,
                class_date=upsert.class_date,
                created_by=upsert.created_by,
            )
            self.session.add(row)
        row.status = upsert.status
        row.new_start_time = upsert.new_start_time
        row.new_duration_minutes = upsert.new_duration_minutes
        row.new_coach_id = upsert.new_coach_id
        row.new_max_participants = upsert.new_max_participants
        row.special_label = upsert.special_label

    async def apply(self, outcome: CommandOutcome) -> None:
        """Write the whole outcome in one commit."""
        async with self._guard():
            for booking in outcome.inserts:
                self.session.add(booking)
            if outcome.transitions:
                ids = {transition.booking_id for transition in outcome.transitions}
                result = await self.session.execute(
                    select(Booking).where(Booking.id.in_(ids))
                )
                rows = {booking.id: booking for booking in result.scalars()}
                for transition in outcome.transitions:
                    booking = rows.get(transition.booking_id)
                    if booking is None:
                        raise StoreConflict(f"Booking {transition.booking_id} disappeared")
                    booking.status = transition.status
                    if transition.cancel_reason is not None:
                        booking.cancel_reason = transition.cancel_reason
            if outcome.exception is not None:
                await self._upsert_exception(outcome.exception)
            await self.session.commit()

    async def discard(self) -> None:
        if self.session.in_transaction():
            await self.session.rollback()
