# backend/studio_booking/models/booking.py
"""
Booking model.

A booking is a client's claim on part of a session's capacity. The
cancellation deadline and ``can_cancel`` flag are derived once at creation
and never recomputed, even if the session is later moved; the booking's
own record is authoritative.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.constants import MAX_BOOKING_NOTES_LENGTH
from ..core.timezone_utils import ensure_utc, utc_now
from ..core.ulid_helper import generate_ulid
from ..database import Base


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Booking(Base):
    """Reservation of ``group_size`` seats on a training session."""

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("group_size >= 1 AND group_size <= 4", name="ck_bookings_group_size"),
        CheckConstraint(
            "session_number IS NULL OR (session_number >= 1 AND session_number <= 8)",
            name="ck_bookings_session_number",
        ),
        Index("ix_bookings_session_status", "session_id", "status"),
        Index("ix_bookings_client_status", "client_id", "status"),
    )

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    session_id = Column(
        String(26),
        ForeignKey("training_sessions.id", ondelete="CASCADE"),
        nullable=False,
    )
    client_id = Column(String(26), ForeignKey("users.id"), nullable=False)
    group_size = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value)
    notes = Column(String(MAX_BOOKING_NOTES_LENGTH), nullable=False, default="")

    # NULL means "unset" after an admin reset; treated like False
    reminder_sent = Column(Boolean, nullable=True, default=False)
    can_cancel = Column(Boolean, nullable=False, default=True)
    cancellation_deadline = Column(DateTime(timezone=True), nullable=True)

    is_package_booking = Column(Boolean, nullable=False, default=False)
    package_id = Column(String(64), nullable=True)
    session_number = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    session = relationship("TrainingSession", back_populates="bookings")
    client = relationship("User", foreign_keys=[client_id])

    def is_cancellable(self, now: Optional[datetime] = None) -> bool:
        """Whether a non-admin may still cancel, judged against the stored deadline."""
        deadline = ensure_utc(self.cancellation_deadline)
        if deadline is None:
            return False
        current = ensure_utc(now) if now is not None else utc_now()
        return current < deadline

    def __repr__(self) -> str:
        return f"<Booking {self.id} session={self.session_id} size={self.group_size}>"
