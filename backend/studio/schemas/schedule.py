"""Recurring schedule schemas."""
from __future__ import annotations

import uuid
from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _normalize_days(value: list[int] | None) -> list[int] | None:
    if value is None:
        return None
    days = sorted(set(value))
    if not days:
        raise ValueError("days_of_week must not be empty")
    if days[0] < 1 or days[-1] > 7:
        raise ValueError("days_of_week entries must be ISO weekdays 1-7")
    return days


class ScheduleCreate(BaseModel):
    """Payload for a new weekly schedule.

    ``duration_minutes`` falls back to the class definition's default.
    """

    location_id: uuid.UUID
    class_definition_id: uuid.UUID
    coach_id: uuid.UUID
    days_of_week: list[int]
    start_time: time
    duration_minutes: int | None = Field(default=None, gt=0)
    max_participants: int = Field(gt=0)
    start_date: date
    end_date: date
    has_waitlist: bool | None = None
    special_label: str | None = Field(default=None, max_length=120)

    @field_validator("days_of_week")
    @classmethod
    def _check_days(cls, value: list[int] | None) -> list[int] | None:
        return _normalize_days(value)

    @model_validator(mode="after")
    def _check_window(self) -> "ScheduleCreate":
        if self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self


class ScheduleUpdate(BaseModel):
    """Mutable schedule fields; changes apply to every future occurrence."""

    coach_id: uuid.UUID | None = None
    days_of_week: list[int] | None = None
    start_time: time | None = None
    duration_minutes: int | None = Field(default=None, gt=0)
    max_participants: int | None = Field(default=None, gt=0)
    start_date: date | None = None
    end_date: date | None = None
    has_waitlist: bool | None = None
    special_label: str | None = Field(default=None, max_length=120)

    @field_validator("days_of_week")
    @classmethod
    def _check_days(cls, value: list[int] | None) -> list[int] | None:
        return _normalize_days(value)


class ScheduleRead(BaseModel):
    id: uuid.UUID
    location_id: uuid.UUID
    class_definition_id: uuid.UUID
    coach_id: uuid.UUID
    days_of_week: list[int]
    start_time: time
    duration_minutes: int
    max_participants: int
    start_date: date
    end_date: date
    has_waitlist: bool | None
    special_label: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
