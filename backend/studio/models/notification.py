"""Outbox of participant notification intents."""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy import JSON, Date, DateTime, Enum, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from studio.db.base import Base


class NotificationKind(str, enum.Enum):
    """What happened to a participant's class."""

    WAITLIST_PROMOTED = "waitlist_promoted"
    CLASS_CANCELLED = "class_cancelled"
    INSTANCE_MODIFIED = "instance_modified"


class NotificationRecord(Base):
    """A notification intent waiting for the delivery service."""

    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_participant", "participant_id"),)

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    participant_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("participants.id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[NotificationKind] = mapped_column(
        Enum(NotificationKind), nullable=False
    )
    schedule_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    class_date: Mapped[date] = mapped_column(Date, nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
