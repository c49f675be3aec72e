"""Location schemas for CRUD operations."""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class LocationBase(BaseModel):
    """Shared location fields."""

    name: str = Field(min_length=1, max_length=255)
    address_line1: str | None = None
    city: str | None = None


class LocationCreate(LocationBase):
    """Payload for creating a location."""


class LocationRead(LocationBase):
    """Serialized location response."""

    id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
