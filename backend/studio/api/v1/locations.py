"""Location endpoints and the per-location class calendar."""
from __future__ import annotations

import uuid
from datetime import date
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from studio.api import deps
from studio.schemas.instance import ClassInstanceRead
from studio.schemas.location import LocationCreate, LocationRead
from studio.scheduling import BookingEngine, SchedulingError, StoreUnavailable
from studio.services import catalog_service

router = APIRouter()


@router.get("", response_model=list[LocationRead], summary="List locations")
async def list_locations(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
    skip: int = 0,
    limit: int = 50,
) -> list[LocationRead]:
    locations = await catalog_service.list_locations(session, skip=skip, limit=limit)
    return [LocationRead.model_validate(obj) for obj in locations]


@router.post(
    "",
    response_model=LocationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create location",
)
async def create_location(
    payload: LocationCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
) -> LocationRead:
    deps.require_staff(actor)
    location = await catalog_service.create_location(session, payload)
    return LocationRead.model_validate(location)


@router.get(
    "/{location_id}/classes",
    response_model=list[ClassInstanceRead],
    summary="List class instances at a location",
)
async def list_location_classes(
    location_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
    engine: Annotated[BookingEngine, Depends(deps.get_engine)],
    start: date | None = None,
    days: int | None = Query(default=None, ge=1, le=92),
    view: Literal["booking", "management"] = "booking",
) -> list[ClassInstanceRead]:
    """Materialize the calendar for a window.

    The booking view hides classes that already started and applies the
    caller's membership restrictions; the management view (staff only) shows
    everything that is not deleted.
    """
    if await catalog_service.get_location(session, location_id) is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Location not found")
    management = view == "management"
    if management:
        deps.require_staff(actor)
        viewer = await engine.viewer_for(coach_id=actor.id)
    elif actor.is_staff:
        viewer = await engine.viewer_for(coach_id=actor.id)
    else:
        viewer = await engine.viewer_for(participant_id=actor.id)
    try:
        instances = await engine.materialize(
            location_id=location_id,
            start=start,
            days=days,
            viewer=viewer,
            include_past=management,
        )
    except (SchedulingError, StoreUnavailable) as exc:
        raise deps.scheduling_http_error(exc) from exc
    return [ClassInstanceRead.model_validate(instance) for instance in instances]
