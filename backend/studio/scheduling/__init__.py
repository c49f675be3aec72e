"""Class scheduling and booking engine."""

from studio.scheduling.clock import Clock, FixedClock, SystemClock
from studio.scheduling.engine import BookingEngine
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
    StoreConflict,
    StoreUnavailable,
)
from studio.scheduling.locks import InstanceLockRegistry
from studio.scheduling.materializer import ClassInstance, Viewer, materialize
from studio.scheduling.recurrence import EffectiveInstance, InstanceOverrides
from studio.scheduling.state_machine import Initiator, InstanceSnapshot

__all__ = [
    "AlreadyBooked",
    "BookingEngine",
    "CheckInClosed",
    "ClassFull",
    "ClassInstance",
    "Clock",
    "EffectiveInstance",
    "FixedClock",
    "Initiator",
    "InstanceGone",
    "InstanceLockRegistry",
    "InstanceOverrides",
    "InstanceSnapshot",
    "InvalidTransition",
    "NoCapacity",
    "NotFound",
    "PastCutoff",
    "SchedulingError",
    "StoreConflict",
    "StoreUnavailable",
    "SystemClock",
    "Viewer",
    "materialize",
]
