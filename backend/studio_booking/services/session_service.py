# backend/studio_booking/services/session_service.py
"""
Session administration.

Creation enforces one session per (trainer, date, time) with a service
check backed by the database unique constraint. Deactivation and deletion
both cascade: every confirmed booking gets a cancellation notification and
is removed before the session is hidden or deleted. Package counters are
not adjusted by a cascade.
"""

from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import (
    ForbiddenException,
    NotFoundException,
    RepositoryException,
    SessionSlotTakenException,
    ValidationException,
)
from ..models.booking import Booking
from ..models.training_session import TrainingSession
from ..models.user import User, UserRole
from ..repositories.factory import RepositoryFactory
from ..schemas.notifications import SessionMessageRequest
from ..schemas.session import SessionAvailability, SessionCreate
from .base import BaseService
from .notification_service import NotificationService

logger = logging.getLogger(__name__)


@dataclass
class SessionCascadeReport:
    session_id: str
    bookings_cancelled: int
    warnings: List[str] = field(default_factory=list)


@dataclass
class SessionMessageReport:
    session_id: str
    queued: int
    warnings: List[str] = field(default_factory=list)


@dataclass
class SessionDetails:
    session: TrainingSession
    bookings: List[Booking]
    current_bookings: int
    spots_left: int


class SessionService(BaseService):
    """Create, inspect, deactivate and delete training sessions."""

    def __init__(self, db: Session, notification_service: Optional[NotificationService] = None):
        super().__init__(db)
        self.session_repository = RepositoryFactory.create_session_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.notification_service = notification_service or NotificationService()

    def _require_admin(self, user_id: str) -> User:
        user = self.user_repository.get_by_id(user_id)
        if user is None or not user.is_admin:
            raise ForbiddenException("Admin access required", code="ADMIN_REQUIRED")
        return user

    def _get_session(self, session_id: str) -> TrainingSession:
        session = self.session_repository.get_by_id(session_id)
        if session is None:
            raise NotFoundException("Session not found", code="SESSION_NOT_FOUND")
        return session

    # ==========================================
    # Creation
    # ==========================================

    @BaseService.measure_operation("create_session")
    def create_session(self, data: SessionCreate, created_by_id: str) -> TrainingSession:
        """
        Open a new session.

        Raises:
            ForbiddenException: Creator is not an admin
            ValidationException: Trainer is not an admin
            SessionSlotTakenException: Trainer already has a session at that date/time
        """
        self._require_admin(created_by_id)
        trainer = self.user_repository.get_by_id(data.trainer_id)
        if trainer is None or not trainer.is_admin:
            raise ValidationException("Invalid trainer selected", code="INVALID_TRAINER")

        slot_args = (data.trainer_id, data.session_date.isoformat(), data.start_time)
        if self.session_repository.find_slot(data.trainer_id, data.session_date, data.start_time):
            raise SessionSlotTakenException(*slot_args)

        with self.transaction():
            try:
                session = self.session_repository.create(
                    session_date=data.session_date,
                    start_time=data.start_time,
                    exercise_type=data.exercise_type.value,
                    max_capacity=data.max_capacity,
                    is_active=True,
                    description=data.description,
                    price=data.price,
                    package_price=data.package_price,
                    package_duration_days=data.package_duration_days,
                    trainer_id=data.trainer_id,
                    created_by_id=created_by_id,
                )
            except RepositoryException as exc:
                # Lost a race with a concurrent create for the same slot
                raise SessionSlotTakenException(*slot_args) from exc

        self.log_operation(
            "session_created",
            session_id=session.id,
            trainer_id=data.trainer_id,
            session_date=data.session_date.isoformat(),
            start_time=data.start_time,
        )
        return session

    # ==========================================
    # Cascades
    # ==========================================

    def _remove_bookings(self, session: TrainingSession) -> List[Booking]:
        """Delete all bookings of the session; returns the confirmed ones removed."""
        confirmed = self.booking_repository.get_confirmed_for_session(session.id)
        # Loaded now so notifications can render after the rows are gone
        session.trainer
        self.booking_repository.delete_for_session(session.id)
        return confirmed

    def _notify_cancelled(self, session: TrainingSession, bookings: List[Booking]) -> List[str]:
        warnings: List[str] = []
        for booking in bookings:
            warnings.extend(
                self.notification_service.notify_booking_cancelled(booking, session, booking.client)
            )
        return warnings

    @BaseService.measure_operation("deactivate_session")
    def deactivate_session(self, session_id: str) -> SessionCascadeReport:
        with self.transaction():
            session = self._get_session(session_id)
            removed = self._remove_bookings(session)
            session.is_active = False
            self.db.flush()
        warnings = self._notify_cancelled(session, removed)
        cancelled = len(removed)
        self.log_operation("session_deactivated", session_id=session_id, cancelled=cancelled)
        return SessionCascadeReport(session_id, cancelled, warnings)

    @BaseService.measure_operation("delete_session")
    def delete_session(self, session_id: str) -> SessionCascadeReport:
        with self.transaction():
            session = self._get_session(session_id)
            removed = self._remove_bookings(session)
            self.session_repository.delete(session_id)
        warnings = self._notify_cancelled(session, removed)
        cancelled = len(removed)
        self.log_operation("session_deleted", session_id=session_id, cancelled=cancelled)
        return SessionCascadeReport(session_id, cancelled, warnings)

    # ==========================================
    # Reads
    # ==========================================

    def get_availability(self, session_id: str) -> SessionAvailability:
        session = self._get_session(session_id)
        booked = self.booking_repository.sum_confirmed_group_size(session_id)
        spots_left = max(0, session.max_capacity - booked)
        return SessionAvailability(
            session_id=session.id,
            max_capacity=session.max_capacity,
            booked=booked,
            spots_left=spots_left,
            is_active=bool(session.is_active),
            is_full=spots_left == 0,
        )

    def get_session_details(self, session_id: str) -> SessionDetails:
        session = self._get_session(session_id)
        bookings = self.booking_repository.get_confirmed_for_session(session_id)
        booked = sum(b.group_size for b in bookings)
        return SessionDetails(
            session=session,
            bookings=bookings,
            current_bookings=booked,
            spots_left=session.max_capacity - booked,
        )

    def list_trainers(self) -> List[User]:
        return self.user_repository.list_by_role(UserRole.ADMIN)

    def get_sessions_in_range(self, start_date: date, end_date: date) -> List[TrainingSession]:
        return self.session_repository.get_active_in_date_range(start_date, end_date)

    def get_sessions_for_month(self, year: int, month: int) -> List[TrainingSession]:
        if not 1 <= month <= 12:
            raise ValidationException("Invalid month", code="INVALID_MONTH")
        last_day = monthrange(year, month)[1]
        return self.get_sessions_in_range(date(year, month, 1), date(year, month, last_day))

    def get_sessions_by_date(self, day: date) -> List[TrainingSession]:
        return self.get_sessions_in_range(day, day)

    # ==========================================
    # Messaging
    # ==========================================

    @BaseService.measure_operation("send_session_message")
    def send_session_message(
        self, session_id: str, request: SessionMessageRequest
    ) -> SessionMessageReport:
        """
        Queue an admin message to a session's clients.

        With no explicit recipients, every client holding a confirmed booking
        is messaged once.
        """
        session = self._get_session(session_id)
        if request.recipient_ids:
            recipients = self.user_repository.get_by_ids(request.recipient_ids)
            missing = set(request.recipient_ids) - {user.id for user in recipients}
            if missing:
                raise ValidationException(
                    "Invalid recipient ID",
                    code="INVALID_RECIPIENT",
                    details={"recipient_ids": sorted(missing)},
                )
        else:
            seen = set()
            recipients = []
            for booking in self.booking_repository.get_confirmed_for_session(session_id):
                if booking.client_id not in seen:
                    seen.add(booking.client_id)
                    recipients.append(booking.client)
        if not recipients:
            raise ValidationException("No recipients for this session", code="NO_RECIPIENTS")

        warnings: List[str] = []
        queued = 0
        for recipient in recipients:
            problems = self.notification_service.send_custom_message(
                recipient, request.subject, request.message, session
            )
            if problems:
                warnings.extend(problems)
            else:
                queued += 1
        self.log_operation(
            "session_message_sent", session_id=session_id, queued=queued, failed=len(warnings)
        )
        return SessionMessageReport(session_id=session_id, queued=queued, warnings=warnings)
