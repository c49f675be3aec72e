"""Booking request and response schemas."""
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict

from studio.models import BookingStatus, CancelReason


class BookingCreate(BaseModel):
    """Book a class instance; participants may omit their own id."""

    schedule_id: uuid.UUID
    class_date: date
    participant_id: uuid.UUID | None = None


class SelfCheckInRequest(BaseModel):
    schedule_id: uuid.UUID
    class_date: date


class BookingRead(BaseModel):
    id: uuid.UUID
    participant_id: uuid.UUID
    schedule_id: uuid.UUID
    class_date: date
    status: BookingStatus
    booking_date: datetime
    cancel_reason: CancelReason | None = None

    model_config = ConfigDict(from_attributes=True)


class BookingCancelResponse(BaseModel):
    """The cancelled booking and whoever took the freed seat."""

    booking: BookingRead
    promoted: BookingRead | None = None
