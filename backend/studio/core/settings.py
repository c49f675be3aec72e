"""Specialized settings adapters for the booking engine."""

from __future__ import annotations

from datetime import timedelta
from zoneinfo import ZoneInfo

from pydantic import BaseModel

from studio.core.config import get_settings


class EngineSettings(BaseModel):
    """Slim view of scheduling-related configuration."""

    timezone: str = "UTC"
    cancellation_cutoff_hours: float = 2
    booking_lead_time_weeks: int = 2
    self_check_in_opens_minutes: int = 15
    command_retry_attempts: int = 3

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def cancellation_cutoff(self) -> timedelta:
        return timedelta(hours=self.cancellation_cutoff_hours)

    @property
    def self_check_in_opens(self) -> timedelta:
        return timedelta(minutes=self.self_check_in_opens_minutes)

    @property
    def booking_window_days(self) -> int:
        return self.booking_lead_time_weeks * 7


def get_engine_settings() -> EngineSettings:
    """Return booking-engine configuration."""

    settings = get_settings()
    return EngineSettings(
        timezone=settings.studio_timezone,
        cancellation_cutoff_hours=settings.cancellation_cutoff_hours,
        booking_lead_time_weeks=settings.booking_lead_time_weeks,
        self_check_in_opens_minutes=settings.self_check_in_opens_minutes,
        command_retry_attempts=settings.command_retry_attempts,
    )
