# backend/studio_booking/repositories/booking_repository.py
"""
Booking Repository for the studio booking engine.

Owns the capacity sum used by admission and the reminder flag updates.
The reminder flag is only ever set through a conditional UPDATE so a
second writer can tell that another tick already marked the booking.
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy import delete, func, or_, update
from sqlalchemy.orm import Session, joinedload

from ..models.booking import Booking, BookingStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """Repository for Booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    # ==========================================
    # Reads
    # ==========================================

    def get_with_details(self, booking_id: str) -> Optional[Booking]:
        return self._execute_first(
            self._build_query()
            .options(joinedload(Booking.session), joinedload(Booking.client))
            .filter(Booking.id == booking_id)
        )

    def sum_confirmed_group_size(self, session_id: str) -> int:
        """Seats currently held by confirmed bookings on a session."""
        query = self.db.query(func.coalesce(func.sum(Booking.group_size), 0)).filter(
            Booking.session_id == session_id,
            Booking.status == BookingStatus.CONFIRMED.value,
        )
        return int(self._execute_scalar(query) or 0)

    def get_confirmed_for_session(self, session_id: str) -> List[Booking]:
        return self._execute_query(
            self._build_query()
            .options(joinedload(Booking.client))
            .filter(
                Booking.session_id == session_id,
                Booking.status == BookingStatus.CONFIRMED.value,
            )
            .order_by(Booking.created_at)
        )

    def get_for_session(self, session_id: str) -> List[Booking]:
        return self._execute_query(
            self._build_query()
            .options(joinedload(Booking.client))
            .filter(Booking.session_id == session_id)
            .order_by(Booking.created_at)
        )

    def get_for_client(self, client_id: str, status: Optional[str] = None) -> List[Booking]:
        query = (
            self._build_query()
            .options(joinedload(Booking.session))
            .filter(Booking.client_id == client_id)
        )
        if status is not None:
            query = query.filter(Booking.status == status)
        return self._execute_query(query.order_by(Booking.created_at.desc()))

    def get_unsent_confirmed_for_sessions(self, session_ids: Sequence[str]) -> List[Booking]:
        """Confirmed bookings whose reminder flag is not true (false or unset)."""
        if not session_ids:
            return []
        return self._execute_query(
            self._build_query()
            .options(joinedload(Booking.client), joinedload(Booking.session))
            .filter(
                Booking.session_id.in_(list(session_ids)),
                Booking.status == BookingStatus.CONFIRMED.value,
                or_(Booking.reminder_sent.is_(None), Booking.reminder_sent.is_(False)),
            )
            .order_by(Booking.session_id, Booking.created_at)
        )

    def count_sent_confirmed_for_sessions(self, session_ids: Sequence[str]) -> int:
        if not session_ids:
            return 0
        query = self.db.query(func.count(Booking.id)).filter(
            Booking.session_id.in_(list(session_ids)),
            Booking.status == BookingStatus.CONFIRMED.value,
            Booking.reminder_sent.is_(True),
        )
        return int(self._execute_scalar(query) or 0)

    # ==========================================
    # Writes
    # ==========================================

    def mark_reminder_sent(self, booking_id: str) -> bool:
        """
        Set the reminder flag if it is not already set.

        Returns False when another writer marked it first.
        """
        stmt = (
            update(Booking)
            .where(
                Booking.id == booking_id,
                or_(Booking.reminder_sent.is_(None), Booking.reminder_sent.is_(False)),
            )
            .values(reminder_sent=True)
            .execution_options(synchronize_session="fetch")
        )
        return self._execute_update(stmt, "Reminder flag update") == 1

    def reset_reminder_flags(self) -> int:
        """Unset every true reminder flag; returns how many were cleared."""
        stmt = (
            update(Booking)
            .where(Booking.reminder_sent.is_(True))
            .values(reminder_sent=None)
            .execution_options(synchronize_session="fetch")
        )
        return self._execute_update(stmt, "Reminder flag reset")

    def delete_for_session(self, session_id: str) -> int:
        stmt = (
            delete(Booking)
            .where(Booking.session_id == session_id)
            .execution_options(synchronize_session="fetch")
        )
        return self._execute_update(stmt, "Session bookings delete")
