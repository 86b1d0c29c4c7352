# backend/studio_booking/schemas/notifications.py
"""Notification schemas: rendered content and admin session messages."""

from typing import List, Optional

from pydantic import Field, field_validator

from .base import StandardizedModel, StrictRequestModel


class NotificationContent(StandardizedModel):
    """Rendered message handed to a NotificationSender."""

    subject: str
    html: str
    text: Optional[str] = None


class SessionMessageRequest(StrictRequestModel):
    """Admin bulk message to (a subset of) a session's booked clients."""

    subject: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=5000)
    recipient_ids: Optional[List[str]] = Field(
        None, description="Client ids to message; all confirmed clients when omitted"
    )

    @field_validator("subject", "message")
    @classmethod
    def strip_text(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped
