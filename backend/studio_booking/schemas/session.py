# backend/studio_booking/schemas/session.py
"""Training session request and response schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import ConfigDict, Field, field_validator

from ..core.constants import (
    DEFAULT_PACKAGE_DURATION_DAYS,
    DEFAULT_PACKAGE_PRICE,
    DEFAULT_SESSION_PRICE,
    MAX_SESSION_CAPACITY,
    MAX_SESSION_DESCRIPTION_LENGTH,
    MIN_SESSION_CAPACITY,
)
from ..core.timezone_utils import parse_session_time
from ..models.training_session import ExerciseType
from .base import StandardizedModel, StrictRequestModel


class SessionCreate(StrictRequestModel):
    """
    Admin request to open a new session.

    ``start_time`` is an HH:MM wall-clock time in the operating timezone;
    single-digit hours are accepted and normalized to two digits.
    """

    session_date: date = Field(..., description="Calendar date in the operating timezone")
    start_time: str = Field(..., description="Start time (HH:MM)")
    exercise_type: ExerciseType
    max_capacity: int = Field(..., ge=MIN_SESSION_CAPACITY, le=MAX_SESSION_CAPACITY)
    trainer_id: str = Field(..., description="Admin user who runs the session")
    description: str = Field("", max_length=MAX_SESSION_DESCRIPTION_LENGTH)
    price: Decimal = Field(Decimal(DEFAULT_SESSION_PRICE), ge=0)
    package_price: Decimal = Field(Decimal(DEFAULT_PACKAGE_PRICE), ge=0)
    package_duration_days: int = Field(DEFAULT_PACKAGE_DURATION_DAYS, ge=1)

    @field_validator("start_time")
    @classmethod
    def normalize_start_time(cls, v: str) -> str:
        hour, minute = parse_session_time(v.strip())
        return f"{hour:02d}:{minute:02d}"

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str) -> str:
        return v.strip()


class SessionResponse(StandardizedModel):
    id: str
    session_date: date
    start_time: str
    exercise_type: str
    max_capacity: int
    is_active: bool
    description: str
    price: Decimal
    package_price: Decimal
    package_duration_days: int
    trainer_id: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SessionAvailability(StandardizedModel):
    """Seat summary for one session."""

    session_id: str
    max_capacity: int
    booked: int
    spots_left: int
    is_active: bool
    is_full: bool
