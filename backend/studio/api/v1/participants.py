"""Participant-scoped bookings, notifications and home-location calendar."""
from __future__ import annotations

import uuid
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from studio.api import deps
from studio.schemas.booking import BookingRead
from studio.schemas.instance import ClassInstanceRead
from studio.schemas.notification import NotificationRead
from studio.scheduling import BookingEngine, SchedulingError, StoreUnavailable
from studio.services import notification_service

router = APIRouter(prefix="/participants")


@router.get(
    "/{participant_id}/bookings",
    response_model=list[BookingRead],
    summary="List a participant's bookings",
)
async def list_participant_bookings(
    participant_id: uuid.UUID,
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
    engine: Annotated[BookingEngine, Depends(deps.get_engine)],
    upcoming_only: bool = Query(default=False),
) -> list[BookingRead]:
    deps.require_self_or_staff(actor, participant_id)
    start = None
    if upcoming_only:
        start = engine.clock.now().astimezone(engine.settings.tzinfo).date()
    try:
        bookings = await engine.bookings_for_participant(participant_id, start=start)
    except (SchedulingError, StoreUnavailable) as exc:
        raise deps.scheduling_http_error(exc) from exc
    return [BookingRead.model_validate(booking) for booking in bookings]


@router.get(
    "/{participant_id}/notifications",
    response_model=list[NotificationRead],
    summary="List a participant's notifications",
)
async def list_participant_notifications(
    participant_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
    undelivered_only: bool = Query(default=False),
    limit: int = Query(default=50, ge=1, le=200),
) -> list[NotificationRead]:
    deps.require_self_or_staff(actor, participant_id)
    records = await notification_service.list_for_participant(
        session,
        participant_id=participant_id,
        undelivered_only=undelivered_only,
        limit=limit,
    )
    return [NotificationRead.model_validate(record) for record in records]


@router.get(
    "/{participant_id}/classes",
    response_model=list[ClassInstanceRead],
    summary="List bookable classes at the participant's home location",
)
async def list_participant_classes(
    participant_id: uuid.UUID,
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
    engine: Annotated[BookingEngine, Depends(deps.get_engine)],
    start: date | None = None,
    days: int | None = Query(default=None, ge=1, le=92),
) -> list[ClassInstanceRead]:
    deps.require_self_or_staff(actor, participant_id)
    try:
        instances = await engine.home_calendar(participant_id, start=start, days=days)
    except (SchedulingError, StoreUnavailable) as exc:
        raise deps.scheduling_http_error(exc) from exc
    return [ClassInstanceRead.model_validate(instance) for instance in instances]
