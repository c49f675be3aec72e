"""Per-date overrides, cancellations and silent deletions of class instances."""

from __future__ import annotations

import uuid
from typing import Any

from studio.models import (
    BookingStatus,
    CancelReason,
    ExceptionStatus,
    NotificationKind,
    ScheduleException,
)
from studio.scheduling.effects import (
    BookingTransition,
    CommandOutcome,
    ExceptionUpsert,
    NotificationIntent,
)
from studio.scheduling.errors import InstanceGone
from studio.scheduling.recurrence import (
    EffectiveInstance,
    InstanceOverrides,
    resolve_effective,
)
from studio.scheduling.state_machine import InstanceSnapshot

_TRACKED_FIELDS = (
    "start_time",
    "duration_minutes",
    "coach_id",
    "max_participants",
    "special_label",
)


def _require_editable(snapshot: InstanceSnapshot) -> None:
    snapshot.require_occurrence()
    if snapshot.effective.is_terminal:
        raise InstanceGone(
            f"Class on {snapshot.class_date} is {snapshot.effective.status.value.lower()}"
        )


def _stored_upsert(
    snapshot: InstanceSnapshot,
    *,
    status: ExceptionStatus | None,
    actor_id: uuid.UUID | None,
) -> ExceptionUpsert:
    """Carry existing override fields into a new exception state."""
    existing = snapshot.exception
    return ExceptionUpsert(
        schedule_id=snapshot.schedule.id,
        class_date=snapshot.class_date,
        status=status,
        new_start_time=existing.new_start_time if existing else None,
        new_duration_minutes=existing.new_duration_minutes if existing else None,
        new_coach_id=existing.new_coach_id if existing else None,
        new_max_participants=existing.new_max_participants if existing else None,
        special_label=existing.special_label if existing else None,
        created_by=actor_id if existing is None else existing.created_by,
    )


def _preview(snapshot: InstanceSnapshot, upsert: ExceptionUpsert) -> EffectiveInstance:
    row = ScheduleException(
        schedule_id=upsert.schedule_id,
        class_date=upsert.class_date,
        status=upsert.status,
        new_start_time=upsert.new_start_time,
        new_duration_minutes=upsert.new_duration_minutes,
        new_coach_id=upsert.new_coach_id,
        new_max_participants=upsert.new_max_participants,
        special_label=upsert.special_label,
    )
    return resolve_effective(snapshot.schedule, snapshot.class_date, row, snapshot.definition)


def _merge(new: Any, stored: Any) -> Any:
    return stored if new is None else new


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (int, str)):
        return value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def changed_fields(
    before: EffectiveInstance, after: EffectiveInstance
) -> dict[str, dict[str, Any]]:
    """Effective fields that differ, as ``{field: {"from": .., "to": ..}}``."""
    changes: dict[str, dict[str, Any]] = {}
    for name in _TRACKED_FIELDS:
        old, new = getattr(before, name), getattr(after, name)
        if old != new:
            changes[name] = {"from": _jsonable(old), "to": _jsonable(new)}
    return changes


def edit_instance(
    snapshot: InstanceSnapshot,
    overrides: InstanceOverrides,
    *,
    actor_id: uuid.UUID | None = None,
    notify: bool = True,
) -> CommandOutcome:
    """Apply one-off changes to a single occurrence.

    Fields left as ``None`` keep whatever an earlier edit stored. Bookings are
    never touched, so lowering capacity below the booked count leaves the
    instance over capacity until participants cancel.
    """
    _require_editable(snapshot)
    base = _stored_upsert(snapshot, status=None, actor_id=actor_id)
    upsert = ExceptionUpsert(
        schedule_id=base.schedule_id,
        class_date=base.class_date,
        status=None,
        new_start_time=_merge(overrides.start_time, base.new_start_time),
        new_duration_minutes=_merge(
            overrides.duration_minutes, base.new_duration_minutes
        ),
        new_coach_id=_merge(overrides.coach_id, base.new_coach_id),
        new_max_participants=_merge(
            overrides.max_participants, base.new_max_participants
        ),
        special_label=_merge(overrides.special_label, base.special_label),
        created_by=base.created_by,
    )
    if upsert == base:
        return CommandOutcome()

    after = _preview(snapshot, upsert)
    changes = changed_fields(snapshot.effective, after)
    outcome = CommandOutcome(exception=upsert)
    if not (notify and changes):
        return outcome

    payload = {
        "class_name": snapshot.class_name,
        "instance_id": after.instance_id,
        "start_at": after.starts_at(snapshot.tz).isoformat(),
        "changes": changes,
    }
    for booking in snapshot.ledger.active:
        outcome.notifications.append(
            NotificationIntent(
                participant_id=booking.participant_id,
                kind=NotificationKind.INSTANCE_MODIFIED,
                schedule_id=snapshot.schedule.id,
                class_date=snapshot.class_date,
                payload=payload,
            )
        )
    return outcome


def cancel_instance(
    snapshot: InstanceSnapshot, *, actor_id: uuid.UUID | None = None
) -> CommandOutcome:
    """Cancel one occurrence and every active booking on it."""
    _require_editable(snapshot)
    outcome = CommandOutcome(
        exception=_stored_upsert(
            snapshot, status=ExceptionStatus.CANCELLED, actor_id=actor_id
        )
    )
    payload = snapshot.describe()
    for booking in snapshot.ledger.active:
        outcome.transitions.append(
            BookingTransition(
                booking.id,
                BookingStatus.CANCELLED,
                cancel_reason=CancelReason.COACH_CANCELLED,
            )
        )
        outcome.notifications.append(
            NotificationIntent(
                participant_id=booking.participant_id,
                kind=NotificationKind.CLASS_CANCELLED,
                schedule_id=snapshot.schedule.id,
                class_date=snapshot.class_date,
                payload={**payload, "booking_id": str(booking.id)},
            )
        )
    return outcome


def delete_instance_silently(
    snapshot: InstanceSnapshot, *, actor_id: uuid.UUID | None = None
) -> CommandOutcome:
    """Hide one occurrence without touching bookings or telling anyone."""
    _require_editable(snapshot)
    return CommandOutcome(
        exception=_stored_upsert(
            snapshot, status=ExceptionStatus.DELETED, actor_id=actor_id
        )
    )
