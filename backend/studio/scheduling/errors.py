"""Typed failures raised by the booking engine."""

from __future__ import annotations


class SchedulingError(Exception):
    """Base class for expected, recoverable booking-engine failures."""

    code = "scheduling_error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__class__.__doc__ or self.code)

    @property
    def message(self) -> str:
        return str(self)


class ClassFull(SchedulingError):
    """The class has no open spot and no waitlist."""

    code = "class_full"


class NoCapacity(SchedulingError):
    """There is no open spot to move a waitlisted booking into."""

    code = "no_capacity"


class PastCutoff(SchedulingError):
    """The cancellation window for this class has closed."""

    code = "past_cutoff"


class AlreadyBooked(SchedulingError):
    """The participant already holds an active booking for this class."""

    code = "already_booked"


class InstanceGone(SchedulingError):
    """The class instance is cancelled, deleted or no longer bookable."""

    code = "instance_gone"


class NotFound(SchedulingError):
    """The requested booking, schedule or class instance does not exist."""

    code = "not_found"


class InvalidTransition(SchedulingError):
    """The booking is not in a state that allows this change."""

    code = "invalid_transition"


class CheckInClosed(SchedulingError):
    """Self check-in is not open for this class right now."""

    code = "check_in_closed"


class StoreUnavailable(Exception):
    """The backing store could not complete the operation."""


class StoreConflict(StoreUnavailable):
    """A concurrent writer changed the instance; the command may be retried."""
