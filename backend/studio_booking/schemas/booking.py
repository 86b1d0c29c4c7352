# backend/studio_booking/schemas/booking.py
"""Booking request and response schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator

from ..core.constants import (
    MAX_BOOKING_NOTES_LENGTH,
    MAX_PACKAGE_SESSION_NUMBER,
    MIN_PACKAGE_SESSION_NUMBER,
)
from .base import StandardizedModel, StrictRequestModel


class BookingCreate(StrictRequestModel):
    """
    Client request to book seats on a session.

    Group size is range-checked by the booking service so that callers get
    the domain error rather than a schema error.
    """

    session_id: str
    group_size: int = 1
    notes: str = Field("", max_length=MAX_BOOKING_NOTES_LENGTH)
    is_package_booking: bool = False
    package_id: Optional[str] = None
    session_number: Optional[int] = Field(
        None, ge=MIN_PACKAGE_SESSION_NUMBER, le=MAX_PACKAGE_SESSION_NUMBER
    )

    @field_validator("notes")
    @classmethod
    def strip_notes(cls, v: str) -> str:
        return v.strip()


class BookingNotesUpdate(StrictRequestModel):
    notes: str = Field(..., max_length=MAX_BOOKING_NOTES_LENGTH)

    @field_validator("notes")
    @classmethod
    def strip_notes(cls, v: str) -> str:
        return v.strip()


class BookingResponse(StandardizedModel):
    id: str
    session_id: str
    client_id: str
    group_size: int
    status: str
    notes: str
    reminder_sent: Optional[bool] = None
    can_cancel: bool
    cancellation_deadline: Optional[datetime] = None
    is_package_booking: bool
    package_id: Optional[str] = None
    session_number: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BookingCreateResponse(StandardizedModel):
    """Created booking plus any best-effort side effects that did not go through."""

    booking: BookingResponse
    warnings: List[str] = Field(default_factory=list)
