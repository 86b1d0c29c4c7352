"""Pydantic schemas for the studio booking engine."""

from .booking import BookingCreate, BookingCreateResponse, BookingNotesUpdate, BookingResponse
from .notifications import NotificationContent, SessionMessageRequest
from .package import PackageInfo
from .session import SessionAvailability, SessionCreate, SessionResponse

__all__ = [
    "BookingCreate",
    "BookingCreateResponse",
    "BookingNotesUpdate",
    "BookingResponse",
    "NotificationContent",
    "PackageInfo",
    "SessionAvailability",
    "SessionCreate",
    "SessionMessageRequest",
    "SessionResponse",
]
