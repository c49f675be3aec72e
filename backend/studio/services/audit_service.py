"""Helper utilities for recording audit events."""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studio.models.audit_event import AuditEvent


async def record_event(
    session: AsyncSession,
    *,
    event_type: str,
    actor_id: uuid.UUID | None = None,
    description: str | None = None,
    payload: dict[str, Any] | None = None,
) -> AuditEvent:
    """Persist an audit event and return it."""
    event = AuditEvent(
        actor_id=actor_id,
        event_type=event_type,
        description=description,
        payload=payload,
    )
    session.add(event)
    await session.commit()
    await session.refresh(event)
    return event


async def list_events(
    session: AsyncSession, *, event_type: str | None = None
) -> list[AuditEvent]:
    stmt = select(AuditEvent).order_by(AuditEvent.created_at, AuditEvent.id)
    if event_type is not None:
        stmt = stmt.where(AuditEvent.event_type == event_type)
    result = await session.execute(stmt)
    return list(result.scalars().all())
