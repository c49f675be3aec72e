"""Notification outbox schemas."""
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from studio.models import NotificationKind


class NotificationRead(BaseModel):
    id: uuid.UUID
    participant_id: uuid.UUID
    kind: NotificationKind
    schedule_id: uuid.UUID
    class_date: date
    payload: dict[str, Any]
    created_at: datetime
    delivered_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
