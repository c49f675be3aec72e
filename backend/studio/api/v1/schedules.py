"""Recurring schedule endpoints."""
from __future__ import annotations

import uuid
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from studio.api import deps
from studio.models import RecurringSchedule
from studio.schemas.schedule import ScheduleCreate, ScheduleRead, ScheduleUpdate
from studio.services import catalog_service

router = APIRouter()


async def _get_schedule_or_404(
    session: AsyncSession, schedule_id: uuid.UUID
) -> RecurringSchedule:
    schedule = await catalog_service.get_schedule(session, schedule_id)
    if schedule is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Schedule not found")
    return schedule


@router.get("", response_model=list[ScheduleRead], summary="List recurring schedules")
async def list_schedules(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
    location_id: uuid.UUID | None = None,
    active_on: date | None = None,
) -> list[ScheduleRead]:
    schedules = await catalog_service.list_schedules(
        session, location_id=location_id, active_on=active_on
    )
    return [ScheduleRead.model_validate(obj) for obj in schedules]


@router.post(
    "",
    response_model=ScheduleRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create recurring schedule",
)
async def create_schedule(
    payload: ScheduleCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
) -> ScheduleRead:
    deps.require_staff(actor)
    try:
        schedule = await catalog_service.create_schedule(
            session, payload, actor_id=actor.id
        )
    except LookupError as exc:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return ScheduleRead.model_validate(schedule)


@router.get("/{schedule_id}", response_model=ScheduleRead, summary="Get schedule")
async def read_schedule(
    schedule_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
) -> ScheduleRead:
    schedule = await _get_schedule_or_404(session, schedule_id)
    return ScheduleRead.model_validate(schedule)


@router.patch("/{schedule_id}", response_model=ScheduleRead, summary="Update schedule")
async def update_schedule(
    schedule_id: uuid.UUID,
    payload: ScheduleUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
) -> ScheduleRead:
    deps.require_staff(actor)
    schedule = await _get_schedule_or_404(session, schedule_id)
    try:
        updated = await catalog_service.update_schedule(
            session, schedule, payload, actor_id=actor.id
        )
    except ValueError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return ScheduleRead.model_validate(updated)


@router.delete(
    "/{schedule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete schedule",
)
async def delete_schedule(
    schedule_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
) -> Response:
    deps.require_staff(actor)
    schedule = await _get_schedule_or_404(session, schedule_id)
    try:
        await catalog_service.delete_schedule(session, schedule, actor_id=actor.id)
    except catalog_service.CatalogConflict as exc:
        raise HTTPException(status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
