# backend/studio_booking/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz

from .constants import BRAND_NAME

logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug("[CONFIG] Looking for .env at: %s (exists=%s)", env_path, env_path.exists())
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: str = Field(default="development", alias="ENVIRONMENT")
    brand_name: str = BRAND_NAME

    # Store
    database_url: str = Field(
        default="sqlite:///./studio_booking.db",
        alias="DATABASE_URL",
        description="SQLAlchemy URL of the booking store",
    )
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")

    # Single operating timezone: every session date/time is wall-clock time here
    operating_timezone: str = Field(default="America/New_York", alias="OPERATING_TIMEZONE")

    # Booking rules
    cancellation_notice_hours: int = Field(default=24, ge=0)
    package_session_count: int = Field(default=8, ge=1)
    package_validity_days: int = Field(default=90, ge=1)

    # Capacity lock
    capacity_lock_ttl_seconds: int = Field(default=30, ge=1)
    capacity_lock_wait_seconds: float = Field(default=5.0, ge=0)

    # Reminder scan
    reminder_lead_minutes: int = Field(default=120, ge=1)
    reminder_early_tolerance_minutes: int = Field(default=7, ge=0)
    reminder_late_tolerance_minutes: int = Field(default=8, ge=0)
    reminder_scan_interval_minutes: int = Field(default=15, ge=1)
    reminder_dispatch_concurrency: int = Field(default=5, ge=1)

    # Notification dispatch
    dispatch_max_attempts: int = Field(default=3, ge=1)
    dispatch_attempt_timeout_seconds: float = Field(
        default=1.5,
        gt=0,
        description="Per-attempt send timeout; must stay below the first backoff (2s)",
    )

    # Email settings
    email_provider: Literal["console", "resend"] = Field(
        default="console",
        alias="EMAIL_PROVIDER",
        description="Email provider name",
    )
    resend_api_key: SecretStr | None = Field(
        default=None,
        alias="RESEND_API_KEY",
        description="API key for Resend provider (optional)",
    )
    from_email: str = f"{BRAND_NAME} <hello@studio-booking.local>"

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("operating_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown operating timezone: {value}") from exc
        return value

    @model_validator(mode="after")
    def _attempt_timeout_below_backoff(self) -> "Settings":
        # First backoff after a failed attempt is 2**1 seconds
        if self.dispatch_attempt_timeout_seconds >= 2:
            raise ValueError("dispatch_attempt_timeout_seconds must be shorter than 2 seconds")
        return self

    @model_validator(mode="after")
    def _resend_requires_key(self) -> "Settings":
        if self.email_provider == "resend" and not self.resend_api_key:
            logger.warning("EMAIL_PROVIDER=resend but RESEND_API_KEY is not set")
        return self


settings = Settings()
