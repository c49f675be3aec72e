"""Application configuration via pydantic settings."""

from functools import lru_cache
from pathlib import Path

from typing import Any

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed application configuration."""

    app_env: str = Field("local", alias="APP_ENV")
    app_name: str = "Studio Class Booking API"
    api_v1_prefix: str = "/api/v1"

    database_url: str = Field(..., alias="DATABASE_URL")
    sync_database_url: str | None = Field(default=None, alias="SYNC_DATABASE_URL")

    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    studio_timezone: str = Field("UTC", alias="STUDIO_TIMEZONE")
    cancellation_cutoff_hours: float = Field(
        2, ge=0, alias="CANCELLATION_CUTOFF_HOURS"
    )
    booking_lead_time_weeks: int = Field(2, ge=1, alias="BOOKING_LEAD_TIME_WEEKS")
    self_check_in_opens_minutes: int = Field(
        15, ge=0, alias="SELF_CHECK_IN_OPENS_MINUTES"
    )
    command_retry_attempts: int = Field(3, ge=1, alias="COMMAND_RETRY_ATTEMPTS")

    cors_allow_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://localhost:5174",
        ],
        alias="CORS_ALLOW_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=False, alias="CORS_ALLOW_CREDENTIALS")
    cors_allowlist: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"], alias="CORS_ALLOWLIST"
    )

    rate_limit_default: str = Field("100/minute", alias="RATE_LIMIT_DEFAULT")
    rate_limit_booking: str = Field("30/minute", alias="RATE_LIMIT_BOOKING")

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[3] / ".env",
        case_sensitive=False,
    )

    @field_validator("cors_allow_origins", "cors_allowlist", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()  # type: ignore[call-arg]
