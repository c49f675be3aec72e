"""Versioned API router."""

from fastapi import APIRouter

from . import (
    bookings,
    class_definitions,
    health,
    instances,
    locations,
    participants,
    schedules,
)

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(locations.router, prefix="/locations", tags=["locations"])
router.include_router(
    class_definitions.router, prefix="/class-definitions", tags=["class-definitions"]
)
router.include_router(schedules.router, prefix="/schedules", tags=["schedules"])
router.include_router(instances.router, tags=["instances"])
router.include_router(bookings.router, tags=["bookings"])
router.include_router(participants.router, tags=["participants"])

__all__ = ["router"]
