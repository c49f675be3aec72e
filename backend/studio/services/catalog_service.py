"""Locations, class definitions and recurring schedules."""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from studio.models import (
    ACTIVE_STATUSES,
    Booking,
    ClassDefinition,
    Location,
    RecurringSchedule,
)
from studio.schemas.class_definition import ClassDefinitionCreate, ClassDefinitionUpdate
from studio.schemas.location import LocationCreate
from studio.schemas.schedule import ScheduleCreate, ScheduleUpdate
from studio.services import audit_service


class CatalogConflict(ValueError):
    """The change would orphan data that still depends on the record."""


async def list_locations(
    session: AsyncSession, *, skip: int = 0, limit: int = 50
) -> list[Location]:
    stmt: Select[tuple[Location]] = (
        select(Location).order_by(Location.name).offset(skip).limit(min(limit, 100))
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_location(session: AsyncSession, location_id: uuid.UUID) -> Location | None:
    return await session.get(Location, location_id)


async def create_location(session: AsyncSession, payload: LocationCreate) -> Location:
    location = Location(**payload.model_dump())
    session.add(location)
    await session.commit()
    await session.refresh(location)
    return location


async def list_class_definitions(session: AsyncSession) -> list[ClassDefinition]:
    result = await session.execute(select(ClassDefinition).order_by(ClassDefinition.name))
    return list(result.scalars().all())


async def get_class_definition(
    session: AsyncSession, definition_id: uuid.UUID
) -> ClassDefinition | None:
    return await session.get(ClassDefinition, definition_id)


async def create_class_definition(
    session: AsyncSession, payload: ClassDefinitionCreate
) -> ClassDefinition:
    definition = ClassDefinition(**payload.model_dump())
    session.add(definition)
    await session.commit()
    await session.refresh(definition)
    return definition


async def update_class_definition(
    session: AsyncSession,
    definition: ClassDefinition,
    payload: ClassDefinitionUpdate,
) -> ClassDefinition:
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(definition, field, value)
    await session.commit()
    await session.refresh(definition)
    return definition


async def delete_class_definition(
    session: AsyncSession, definition: ClassDefinition
) -> None:
    """Remove a class from the catalog unless schedules still use it."""
    in_use = await session.scalar(
        select(func.count())
        .select_from(RecurringSchedule)
        .where(RecurringSchedule.class_definition_id == definition.id)
    )
    if in_use:
        raise CatalogConflict("Class definition is used by recurring schedules")
    await session.delete(definition)
    await session.commit()


async def list_schedules(
    session: AsyncSession,
    *,
    location_id: uuid.UUID | None = None,
    active_on: date | None = None,
) -> list[RecurringSchedule]:
    stmt = select(RecurringSchedule).order_by(
        RecurringSchedule.start_date, RecurringSchedule.start_time
    )
    if location_id is not None:
        stmt = stmt.where(RecurringSchedule.location_id == location_id)
    if active_on is not None:
        stmt = stmt.where(
            RecurringSchedule.start_date <= active_on,
            RecurringSchedule.end_date >= active_on,
        )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_schedule(
    session: AsyncSession, schedule_id: uuid.UUID
) -> RecurringSchedule | None:
    return await session.get(RecurringSchedule, schedule_id)


async def create_schedule(
    session: AsyncSession,
    payload: ScheduleCreate,
    *,
    actor_id: uuid.UUID | None = None,
) -> RecurringSchedule:
    """Create a weekly schedule after checking its references."""
    if await session.get(Location, payload.location_id) is None:
        raise LookupError("Location not found")
    definition = await session.get(ClassDefinition, payload.class_definition_id)
    if definition is None:
        raise LookupError("Class definition not found")

    data = payload.model_dump()
    if data["duration_minutes"] is None:
        if not definition.default_duration_minutes:
            raise ValueError("duration_minutes is required for this class")
        data["duration_minutes"] = definition.default_duration_minutes

    schedule = RecurringSchedule(**data)
    session.add(schedule)
    await session.commit()
    await session.refresh(schedule)
    await audit_service.record_event(
        session,
        event_type="schedule.created",
        actor_id=actor_id,
        description=f"Schedule created for {definition.name}",
        payload={"schedule_id": str(schedule.id)},
    )
    return schedule


async def update_schedule(
    session: AsyncSession,
    schedule: RecurringSchedule,
    payload: ScheduleUpdate,
    *,
    actor_id: uuid.UUID | None = None,
) -> RecurringSchedule:
    """Change the template; existing bookings and exceptions are kept."""
    changes = payload.model_dump(exclude_unset=True)
    start_date = changes.get("start_date") or schedule.start_date
    end_date = changes.get("end_date") or schedule.end_date
    if start_date > end_date:
        raise ValueError("start_date must be on or before end_date")
    for field, value in changes.items():
        if value is None and field not in {"has_waitlist", "special_label"}:
            continue
        setattr(schedule, field, value)
    await session.commit()
    await session.refresh(schedule)
    await audit_service.record_event(
        session,
        event_type="schedule.updated",
        actor_id=actor_id,
        description="Schedule updated",
        payload={"schedule_id": str(schedule.id), "fields": sorted(changes)},
    )
    return schedule


async def delete_schedule(
    session: AsyncSession,
    schedule: RecurringSchedule,
    *,
    actor_id: uuid.UUID | None = None,
) -> None:
    """Delete a schedule that no longer carries active bookings."""
    active = await session.scalar(
        select(func.count())
        .select_from(Booking)
        .where(
            Booking.schedule_id == schedule.id,
            Booking.status.in_(ACTIVE_STATUSES),
        )
    )
    if active:
        raise CatalogConflict("Schedule still has active bookings")
    schedule_id = schedule.id
    await session.delete(schedule)
    await session.commit()
    await audit_service.record_event(
        session,
        event_type="schedule.deleted",
        actor_id=actor_id,
        description="Schedule deleted",
        payload={"schedule_id": str(schedule_id)},
    )
