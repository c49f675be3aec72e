"""Class catalog schemas."""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ClassDefinitionBase(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: str | None = None
    default_duration_minutes: int | None = Field(default=None, gt=0)
    color: str | None = Field(default=None, max_length=32)
    has_waitlist: bool | None = None


class ClassDefinitionCreate(ClassDefinitionBase):
    """Payload for adding a class to the catalog."""


class ClassDefinitionUpdate(BaseModel):
    """Mutable class definition fields."""

    name: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = None
    default_duration_minutes: int | None = Field(default=None, gt=0)
    color: str | None = Field(default=None, max_length=32)
    has_waitlist: bool | None = None


class ClassDefinitionRead(ClassDefinitionBase):
    id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
