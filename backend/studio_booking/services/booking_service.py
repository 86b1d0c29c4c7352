# backend/studio_booking/services/booking_service.py
"""
Booking Service: the capacity ledger and booking lifecycle.

Admission is serialized per session. The capacity lock (Redis, or a
process-local lock when Redis is unreachable) orders concurrent requests;
inside it, one transaction row-locks the session where the dialect allows,
re-sums the confirmed seats and inserts the booking. Package accounting
joins the same transaction. Notifications are queued after commit and can
only add warnings to the outcome.
"""

from dataclasses import dataclass, field
from datetime import datetime
import logging
from typing import List, Optional

import pytz
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import MAX_BOOKING_NOTES_LENGTH, MAX_GROUP_SIZE, MIN_GROUP_SIZE
from ..core.exceptions import (
    CancellationWindowClosedException,
    CapacityExceededException,
    ForbiddenException,
    InvalidGroupSizeException,
    NotFoundException,
    SessionUnavailableException,
    ValidationException,
)
from ..core.locks import capacity_lock
from ..core.timezone_utils import ensure_utc, utc_now
from ..models.booking import Booking, BookingStatus
from ..models.training_session import TrainingSession
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from ..schemas.booking import BookingCreate
from .base import BaseService
from .cancellation_policy import compute_deadline, is_cancellable
from .notification_service import NotificationService
from .package_service import PackageService

logger = logging.getLogger(__name__)


@dataclass
class BookingOutcome:
    """Result of a booking operation plus warnings from best-effort side effects."""

    booking: Booking
    warnings: List[str] = field(default_factory=list)


class BookingService(BaseService):
    """Admits, cancels and annotates bookings."""

    def __init__(
        self,
        db: Session,
        notification_service: Optional[NotificationService] = None,
        package_service: Optional[PackageService] = None,
    ):
        super().__init__(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.session_repository = RepositoryFactory.create_session_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.package_service = package_service or PackageService(db)
        self.notification_service = notification_service or NotificationService()

    # ==========================================
    # Admission
    # ==========================================

    @staticmethod
    def _validate_group_size(group_size: object) -> int:
        if (
            isinstance(group_size, bool)
            or not isinstance(group_size, int)
            or not MIN_GROUP_SIZE <= group_size <= MAX_GROUP_SIZE
        ):
            raise InvalidGroupSizeException(group_size, MIN_GROUP_SIZE, MAX_GROUP_SIZE)
        return group_size

    def _load_booking_client(self, client_id: str) -> User:
        client = self.user_repository.get_by_id(client_id)
        if client is None:
            raise NotFoundException("User not found", code="USER_NOT_FOUND")
        if client.is_admin:
            raise ForbiddenException("Admins cannot book sessions", code="ADMIN_CANNOT_BOOK")
        return client

    @BaseService.measure_operation("admit_booking")
    def admit_booking(
        self,
        session_id: str,
        group_size: int,
        client_id: str,
        *,
        notes: str = "",
        is_package_booking: bool = False,
        package_id: Optional[str] = None,
        session_number: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> BookingOutcome:
        """
        Admit a booking if the session has room for the whole group.

        Raises:
            InvalidGroupSizeException: group_size outside 1..4
            NotFoundException: Unknown client
            ForbiddenException: Client is an admin
            SessionUnavailableException: Session missing or inactive
            CapacityExceededException: Not enough seats left
            CapacityLockBusyException: Another admission held the lock too long
        """
        size = self._validate_group_size(group_size)
        if notes and len(notes) > MAX_BOOKING_NOTES_LENGTH:
            raise ValidationException(
                f"Notes cannot exceed {MAX_BOOKING_NOTES_LENGTH} characters",
                code="NOTES_TOO_LONG",
            )
        client = self._load_booking_client(client_id)
        current = ensure_utc(now) if now is not None else utc_now()

        with capacity_lock(session_id):
            with self.transaction():
                session = self.session_repository.get_for_update(session_id)
                if session is None:
                    raise SessionUnavailableException(session_id, reason="not_found")
                if not session.is_active:
                    raise SessionUnavailableException(session_id, reason="inactive")

                booked = self.booking_repository.sum_confirmed_group_size(session_id)
                available = session.max_capacity - booked
                if available < size:
                    raise CapacityExceededException(session_id, size, available)

                deadline = compute_deadline(session.session_date, session.start_time)
                booking = self.booking_repository.create(
                    session_id=session_id,
                    client_id=client.id,
                    group_size=size,
                    status=BookingStatus.CONFIRMED.value,
                    notes=(notes or "").strip(),
                    reminder_sent=False,
                    cancellation_deadline=deadline.astimezone(pytz.UTC),
                    can_cancel=is_cancellable(current, deadline, is_admin=False),
                    is_package_booking=is_package_booking,
                    package_id=package_id if is_package_booking else None,
                    session_number=session_number if is_package_booking else None,
                )
                if is_package_booking:
                    self.package_service.on_package_booking(
                        client.id, session.package_duration_days, now=current
                    )

        self.log_operation(
            "booking_admitted",
            booking_id=booking.id,
            session_id=session_id,
            group_size=size,
            seats_left=available - size,
        )
        warnings = self.notification_service.notify_booking_confirmed(booking, session, client)
        return BookingOutcome(booking=booking, warnings=warnings)

    def create_booking(
        self, client_id: str, data: BookingCreate, now: Optional[datetime] = None
    ) -> BookingOutcome:
        """Admit a booking from a validated request body."""
        return self.admit_booking(
            data.session_id,
            data.group_size,
            client_id,
            notes=data.notes,
            is_package_booking=data.is_package_booking,
            package_id=data.package_id,
            session_number=data.session_number,
            now=now,
        )

    # ==========================================
    # Cancellation
    # ==========================================

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(
        self,
        booking_id: str,
        requester_id: str,
        requester_is_admin: bool,
        now: Optional[datetime] = None,
    ) -> BookingOutcome:
        """
        Cancel and hard-delete a booking.

        Non-admins may cancel only their own bookings, and only strictly
        before the stored deadline. The returned booking is detached; its
        status is set to cancelled for the caller's benefit.

        Raises:
            NotFoundException: Unknown booking
            ForbiddenException: Requester is neither the owner nor an admin
            CancellationWindowClosedException: Deadline passed (non-admin)
        """
        current = ensure_utc(now) if now is not None else utc_now()

        with self.transaction():
            booking = self.booking_repository.get_with_details(booking_id)
            if booking is None:
                raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
            if not requester_is_admin and booking.client_id != requester_id:
                raise ForbiddenException(
                    "You can only cancel your own bookings", code="NOT_BOOKING_OWNER"
                )
            if not is_cancellable(current, booking.cancellation_deadline, requester_is_admin):
                raise CancellationWindowClosedException(
                    booking.id,
                    ensure_utc(booking.cancellation_deadline),
                    settings.cancellation_notice_hours,
                )

            session = booking.session
            client = booking.client
            if booking.is_package_booking:
                self.package_service.on_package_cancellation(booking.client_id)
            self.booking_repository.delete(booking.id)

        booking.status = BookingStatus.CANCELLED.value
        self.log_operation(
            "booking_cancelled",
            booking_id=booking_id,
            session_id=booking.session_id,
            by_admin=requester_is_admin,
        )
        warnings = self.notification_service.notify_booking_cancelled(booking, session, client)
        return BookingOutcome(booking=booking, warnings=warnings)

    # ==========================================
    # Administration
    # ==========================================

    @BaseService.measure_operation("update_booking_notes")
    def update_notes(self, booking_id: str, notes: str) -> Booking:
        notes = (notes or "").strip()
        if len(notes) > MAX_BOOKING_NOTES_LENGTH:
            raise ValidationException(
                f"Notes cannot exceed {MAX_BOOKING_NOTES_LENGTH} characters",
                code="NOTES_TOO_LONG",
            )
        with self.transaction():
            booking = self.booking_repository.update(booking_id, notes=notes)
            if booking is None:
                raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
        self.log_operation("booking_notes_updated", booking_id=booking_id)
        return booking

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.booking_repository.get_with_details(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
        return booking

    def get_client_bookings(
        self, client_id: str, status: Optional[str] = BookingStatus.CONFIRMED.value
    ) -> List[Booking]:
        return self.booking_repository.get_for_client(client_id, status=status)

    def get_session_bookings(self, session_id: str) -> List[Booking]:
        return self.booking_repository.get_confirmed_for_session(session_id)

    def get_available_spots(self, session: TrainingSession) -> int:
        return session.max_capacity - self.booking_repository.sum_confirmed_group_size(session.id)
