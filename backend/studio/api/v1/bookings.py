"""Booking endpoints."""
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status

from studio.api import deps
from studio.schemas.booking import (
    BookingCancelResponse,
    BookingCreate,
    BookingRead,
    SelfCheckInRequest,
)
from studio.scheduling import (
    BookingEngine,
    Initiator,
    SchedulingError,
    StoreUnavailable,
)

router = APIRouter(prefix="/bookings")


def _initiator(actor: deps.Actor) -> Initiator:
    return Initiator.STAFF if actor.is_staff else Initiator.PARTICIPANT


@router.post(
    "",
    response_model=BookingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Book a class instance",
    dependencies=[deps.BOOKING_RATE_LIMIT],
)
async def create_booking(
    payload: BookingCreate,
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
    engine: Annotated[BookingEngine, Depends(deps.get_engine)],
) -> BookingRead:
    """Seat the participant or put them on the waitlist."""
    participant_id = payload.participant_id or actor.id
    deps.require_self_or_staff(actor, participant_id)
    try:
        booking = await engine.book(
            participant_id,
            payload.schedule_id,
            payload.class_date,
            initiated_by=_initiator(actor),
        )
    except (SchedulingError, StoreUnavailable) as exc:
        raise deps.scheduling_http_error(exc) from exc
    return BookingRead.model_validate(booking)


@router.post(
    "/self-check-in",
    response_model=BookingRead,
    summary="Check yourself in at the studio",
    dependencies=[deps.BOOKING_RATE_LIMIT],
)
async def self_check_in(
    payload: SelfCheckInRequest,
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
    engine: Annotated[BookingEngine, Depends(deps.get_engine)],
) -> BookingRead:
    try:
        booking = await engine.self_check_in(
            actor.id, payload.schedule_id, payload.class_date
        )
    except (SchedulingError, StoreUnavailable) as exc:
        raise deps.scheduling_http_error(exc) from exc
    return BookingRead.model_validate(booking)


@router.get("/{booking_id}", response_model=BookingRead, summary="Get booking")
async def read_booking(
    booking_id: uuid.UUID,
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
    engine: Annotated[BookingEngine, Depends(deps.get_engine)],
) -> BookingRead:
    try:
        booking = await engine.get_booking(booking_id)
    except (SchedulingError, StoreUnavailable) as exc:
        raise deps.scheduling_http_error(exc) from exc
    deps.require_self_or_staff(actor, booking.participant_id)
    return BookingRead.model_validate(booking)


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingCancelResponse,
    summary="Cancel a booking",
    dependencies=[deps.BOOKING_RATE_LIMIT],
)
async def cancel_booking(
    booking_id: uuid.UUID,
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
    engine: Annotated[BookingEngine, Depends(deps.get_engine)],
) -> BookingCancelResponse:
    """Cancel a booking; a freed seat goes to the head of the waitlist."""
    try:
        booking = await engine.get_booking(booking_id)
        deps.require_self_or_staff(actor, booking.participant_id)
        cancelled, promoted = await engine.cancel_booking(
            booking_id, initiated_by=_initiator(actor)
        )
    except (SchedulingError, StoreUnavailable) as exc:
        raise deps.scheduling_http_error(exc) from exc
    return BookingCancelResponse(
        booking=BookingRead.model_validate(cancelled),
        promoted=BookingRead.model_validate(promoted) if promoted else None,
    )


@router.post(
    "/{booking_id}/promote",
    response_model=BookingRead,
    summary="Promote a waitlisted booking",
)
async def promote_booking(
    booking_id: uuid.UUID,
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
    engine: Annotated[BookingEngine, Depends(deps.get_engine)],
) -> BookingRead:
    deps.require_staff(actor)
    try:
        booking = await engine.promote_from_waitlist(booking_id)
    except (SchedulingError, StoreUnavailable) as exc:
        raise deps.scheduling_http_error(exc) from exc
    return BookingRead.model_validate(booking)


@router.post(
    "/{booking_id}/check-in",
    response_model=BookingRead,
    summary="Check a participant in",
)
async def check_in_booking(
    booking_id: uuid.UUID,
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
    engine: Annotated[BookingEngine, Depends(deps.get_engine)],
) -> BookingRead:
    deps.require_staff(actor)
    try:
        booking = await engine.check_in(booking_id)
    except (SchedulingError, StoreUnavailable) as exc:
        raise deps.scheduling_http_error(exc) from exc
    return BookingRead.model_validate(booking)


@router.post(
    "/{booking_id}/undo-check-in",
    response_model=BookingRead,
    summary="Revert a check-in",
)
async def undo_check_in_booking(
    booking_id: uuid.UUID,
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
    engine: Annotated[BookingEngine, Depends(deps.get_engine)],
) -> BookingRead:
    deps.require_staff(actor)
    try:
        booking = await engine.undo_check_in(booking_id)
    except (SchedulingError, StoreUnavailable) as exc:
        raise deps.scheduling_http_error(exc) from exc
    return BookingRead.model_validate(booking)
