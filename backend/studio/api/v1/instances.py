"""Single class instance endpoints: view, edit, cancel, delete."""
from __future__ import annotations

import uuid
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from studio.api import deps
from studio.schemas.instance import ClassInstanceDetail, InstanceEdit
from studio.scheduling import BookingEngine, SchedulingError, StoreUnavailable
from studio.services import audit_service

router = APIRouter(prefix="/instances")


@router.get(
    "/{schedule_id}/{class_date}",
    response_model=ClassInstanceDetail,
    summary="Get class instance",
)
async def read_instance(
    schedule_id: uuid.UUID,
    class_date: date,
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
    engine: Annotated[BookingEngine, Depends(deps.get_engine)],
) -> ClassInstanceDetail:
    try:
        if actor.is_staff:
            viewer = await engine.viewer_for(coach_id=actor.id)
        else:
            viewer = await engine.viewer_for(participant_id=actor.id)
        instance = await engine.instance(schedule_id, class_date, viewer=viewer)
    except (SchedulingError, StoreUnavailable) as exc:
        raise deps.scheduling_http_error(exc) from exc
    detail = ClassInstanceDetail.model_validate(instance)
    if not actor.is_staff:
        detail = detail.model_copy(update={"booked": [], "waitlisted": []})
    return detail


@router.patch(
    "/{schedule_id}/{class_date}",
    response_model=ClassInstanceDetail,
    summary="Edit a single class instance",
)
async def edit_instance(
    schedule_id: uuid.UUID,
    class_date: date,
    payload: InstanceEdit,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
    engine: Annotated[BookingEngine, Depends(deps.get_engine)],
) -> ClassInstanceDetail:
    deps.require_staff(actor)
    try:
        instance = await engine.edit_instance(
            schedule_id,
            class_date,
            payload.to_overrides(),
            actor_id=actor.id,
            notify=payload.notify,
        )
    except (SchedulingError, StoreUnavailable) as exc:
        raise deps.scheduling_http_error(exc) from exc
    await audit_service.record_event(
        session,
        event_type="instance.edited",
        actor_id=actor.id,
        description=f"Edited class on {class_date}",
        payload={
            "instance_id": instance.instance_id,
            "fields": sorted(payload.model_dump(exclude_unset=True, exclude={"notify"})),
        },
    )
    return ClassInstanceDetail.model_validate(instance)


@router.post(
    "/{schedule_id}/{class_date}/cancel",
    response_model=ClassInstanceDetail,
    summary="Cancel a single class instance",
)
async def cancel_instance(
    schedule_id: uuid.UUID,
    class_date: date,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
    engine: Annotated[BookingEngine, Depends(deps.get_engine)],
) -> ClassInstanceDetail:
    deps.require_staff(actor)
    try:
        instance = await engine.cancel_instance(
            schedule_id, class_date, actor_id=actor.id
        )
    except (SchedulingError, StoreUnavailable) as exc:
        raise deps.scheduling_http_error(exc) from exc
    await audit_service.record_event(
        session,
        event_type="instance.cancelled",
        actor_id=actor.id,
        description=f"Cancelled class on {class_date}",
        payload={"instance_id": instance.instance_id},
    )
    return ClassInstanceDetail.model_validate(instance)


@router.delete(
    "/{schedule_id}/{class_date}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Silently delete a single class instance",
)
async def delete_instance(
    schedule_id: uuid.UUID,
    class_date: date,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
    engine: Annotated[BookingEngine, Depends(deps.get_engine)],
) -> Response:
    deps.require_staff(actor)
    try:
        await engine.delete_instance_silently(schedule_id, class_date, actor_id=actor.id)
    except (SchedulingError, StoreUnavailable) as exc:
        raise deps.scheduling_http_error(exc) from exc
    await audit_service.record_event(
        session,
        event_type="instance.deleted",
        actor_id=actor.id,
        description=f"Deleted class on {class_date}",
        payload={"schedule_id": str(schedule_id), "class_date": class_date.isoformat()},
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
