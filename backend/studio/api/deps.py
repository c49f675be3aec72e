"""Common API dependencies."""

from __future__ import annotations

import enum
import uuid
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated

from fastapi import BackgroundTasks, Depends, Header, HTTPException, Request, Response, status
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
from sqlalchemy.ext.asyncio import AsyncSession

from studio.core.config import get_settings
from studio.core.settings import get_engine_settings
from studio.db.session import get_session
from studio.scheduling import BookingEngine, InstanceLockRegistry
from studio.scheduling.clock import Clock, SystemClock
from studio.scheduling.errors import (
    AlreadyBooked,
    CheckInClosed,
    ClassFull,
    InstanceGone,
    InvalidTransition,
    NoCapacity,
    NotFound,
    PastCutoff,
    SchedulingError,
    StoreUnavailable,
)
from studio.services.membership_service import SqlMembershipDirectory
from studio.services.notification_service import BackgroundNotificationDispatcher
from studio.services.scheduling_store import SqlSchedulingStore

settings = get_settings()


class ActorRole(str, enum.Enum):
    PARTICIPANT = "participant"
    COACH = "coach"
    MANAGER = "manager"


@dataclass(frozen=True)
class Actor:
    """Caller identity forwarded by the gateway."""

    id: uuid.UUID
    role: ActorRole

    @property
    def is_staff(self) -> bool:
        return self.role in {ActorRole.COACH, ActorRole.MANAGER}


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session."""
    async for session in get_session():
        yield session


async def get_actor(
    x_actor_id: Annotated[str | None, Header()] = None,
    x_actor_role: Annotated[str | None, Header()] = None,
) -> Actor:
    """Resolve the caller from gateway headers."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Missing or invalid actor headers",
    )
    if not x_actor_id:
        raise credentials_exception
    try:
        actor_id = uuid.UUID(x_actor_id)
        role = ActorRole((x_actor_role or ActorRole.PARTICIPANT.value).lower())
    except ValueError as exc:
        raise credentials_exception from exc
    return Actor(id=actor_id, role=role)


def require_staff(actor: Actor) -> None:
    if not actor.is_staff:
        raise HTTPException(status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")


def require_self_or_staff(actor: Actor, participant_id: uuid.UUID) -> None:
    if not actor.is_staff and actor.id != participant_id:
        raise HTTPException(
            status.HTTP_403_FORBIDDEN, detail="Cannot act for another participant"
        )


_system_clock = SystemClock()


def get_clock() -> Clock:
    """Time source for engine commands; tests override this dependency."""
    return _system_clock


@lru_cache
def get_lock_registry() -> InstanceLockRegistry:
    return InstanceLockRegistry()


async def get_engine(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    clock: Annotated[Clock, Depends(get_clock)],
    background_tasks: BackgroundTasks,
) -> BookingEngine:
    """Build a booking engine bound to this request's session."""
    return BookingEngine(
        SqlSchedulingStore(session),
        settings=get_engine_settings(),
        clock=clock,
        membership=SqlMembershipDirectory(session),
        dispatcher=BackgroundNotificationDispatcher(background_tasks),
        locks=get_lock_registry(),
    )


_ERROR_STATUS: dict[type[SchedulingError], int] = {
    ClassFull: status.HTTP_409_CONFLICT,
    NoCapacity: status.HTTP_409_CONFLICT,
    PastCutoff: status.HTTP_409_CONFLICT,
    AlreadyBooked: status.HTTP_409_CONFLICT,
    InvalidTransition: status.HTTP_409_CONFLICT,
    CheckInClosed: status.HTTP_409_CONFLICT,
    InstanceGone: status.HTTP_410_GONE,
    NotFound: status.HTTP_404_NOT_FOUND,
}


def scheduling_http_error(exc: SchedulingError | StoreUnavailable) -> HTTPException:
    """Translate an engine failure into an HTTP error body."""
    if isinstance(exc, StoreUnavailable):
        return HTTPException(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "code": "store_unavailable",
                "message": "Booking store is temporarily unavailable",
            },
        )
    status_code = _ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code, detail={"code": exc.code, "message": exc.message})


def _parse_rate(value: str, *, fallback: tuple[int, int]) -> tuple[int, int]:
    try:
        count_str, window_str = value.split("/", 1)
        count = int(count_str.strip())
    except (AttributeError, ValueError):
        return fallback
    seconds_map = {
        "second": 1,
        "seconds": 1,
        "minute": 60,
        "minutes": 60,
        "hour": 3600,
        "hours": 3600,
        "day": 86400,
        "days": 86400,
    }
    return count, seconds_map.get(window_str.strip().lower(), fallback[1])


def _rate_dependency(limit: tuple[int, int]):
    async def _dependency(request: Request, response: Response) -> None:
        if FastAPILimiter.redis is None:
            return None
        limiter = RateLimiter(times=limit[0], seconds=limit[1])
        await limiter(request, response)

    return Depends(_dependency)


BOOKING_RATE_LIMIT = _rate_dependency(
    _parse_rate(settings.rate_limit_booking, fallback=(30, 60))
)
