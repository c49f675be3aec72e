"""ORM models package export."""

from studio.models.audit_event import AuditEvent
from studio.models.booking import (
    ACTIVE_STATUSES,
    SEATED_STATUSES,
    Booking,
    BookingStatus,
    CancelReason,
)
from studio.models.class_definition import ClassDefinition
from studio.models.location import Location
from studio.models.notification import NotificationKind, NotificationRecord
from studio.models.participant import Participant, RestrictionBehavior
from studio.models.schedule import (
    ExceptionStatus,
    RecurringSchedule,
    ScheduleException,
)

__all__ = [
    "ACTIVE_STATUSES",
    "AuditEvent",
    "Booking",
    "BookingStatus",
    "CancelReason",
    "ClassDefinition",
    "ExceptionStatus",
    "Location",
    "NotificationKind",
    "NotificationRecord",
    "Participant",
    "RestrictionBehavior",
    "RecurringSchedule",
    "SEATED_STATUSES",
    "ScheduleException",
]
