"""Participant notification outbox."""

from __future__ import annotations

import logging
import uuid

from fastapi import BackgroundTasks
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studio.db.session import open_session
from studio.models import NotificationRecord
from studio.scheduling.effects import NotificationIntent

logger = logging.getLogger(__name__)


def build_record(intent: NotificationIntent) -> NotificationRecord:
    return NotificationRecord(
        participant_id=intent.participant_id,
        kind=intent.kind,
        schedule_id=intent.schedule_id,
        class_date=intent.class_date,
        payload=dict(intent.payload),
    )


async def store_intent(
    intent: NotificationIntent, *, database_url: str | None = None
) -> None:
    """Persist one intent to the outbox in its own session."""
    async with open_session(database_url) as session:
        session.add(build_record(intent))
        await session.commit()
    logger.info(
        "Queued %s notification for participant %s",
        intent.kind.value,
        intent.participant_id,
    )


async def _deliver(intent: NotificationIntent, database_url: str | None) -> None:
    try:
        await store_intent(intent, database_url=database_url)
    except Exception:
        logger.exception(
            "Failed to store %s notification for participant %s",
            intent.kind.value,
            intent.participant_id,
        )


class BackgroundNotificationDispatcher:
    """Defers outbox writes until the response has been sent."""

    def __init__(
        self, background_tasks: BackgroundTasks, *, database_url: str | None = None
    ) -> None:
        self.background_tasks = background_tasks
        self.database_url = database_url

    async def dispatch(self, intent: NotificationIntent) -> None:
        self.background_tasks.add_task(_deliver, intent, self.database_url)


async def list_for_participant(
    session: AsyncSession,
    *,
    participant_id: uuid.UUID,
    undelivered_only: bool = False,
    limit: int = 50,
) -> list[NotificationRecord]:
    stmt = (
        select(NotificationRecord)
        .where(NotificationRecord.participant_id == participant_id)
        .order_by(NotificationRecord.created_at.desc(), NotificationRecord.id)
        .limit(min(limit, 200))
    )
    if undelivered_only:
        stmt = stmt.where(NotificationRecord.delivered_at.is_(None))
    result = await session.execute(stmt)
    return list(result.scalars().all())

