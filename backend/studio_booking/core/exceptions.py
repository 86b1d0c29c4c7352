# backend/studio_booking/core/exceptions.py
"""
Domain-specific exceptions for the studio booking engine.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException using the class-level status code."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class CapacityExceededException(ConflictException):
    """Raised when a session has fewer free spots than the requested group size."""

    def __init__(self, session_id: str, requested: int, available: int):
        super().__init__(
            message="Not enough spots available",
            code="CAPACITY_EXCEEDED",
            details={
                "session_id": session_id,
                "requested": requested,
                "available": max(0, available),
            },
        )


class CapacityLockBusyException(ConflictException):
    """Raised when another admission holds the session's capacity lock for too long."""

    def __init__(self, session_id: str):
        super().__init__(
            message="Session is busy, please retry the booking",
            code="CAPACITY_LOCK_BUSY",
            details={"session_id": session_id},
        )


class SessionUnavailableException(BusinessRuleException):
    """Raised when a session is missing or no longer active."""

    def __init__(self, session_id: str, reason: str = "inactive"):
        super().__init__(
            message="Session not available",
            code="SESSION_UNAVAILABLE",
            details={"session_id": session_id, "reason": reason},
        )


class InvalidGroupSizeException(ValidationException):
    """Raised when a group size falls outside the allowed range."""

    def __init__(self, group_size: Any, minimum: int, maximum: int):
        super().__init__(
            message=f"Group size must be between {minimum} and {maximum}",
            code="INVALID_GROUP_SIZE",
            details={"group_size": group_size, "min": minimum, "max": maximum},
        )


class CancellationWindowClosedException(BusinessRuleException):
    """Raised when a non-admin tries to cancel after the cancellation deadline."""

    def __init__(self, booking_id: str, deadline: Optional[datetime], notice_hours: int = 24):
        super().__init__(
            message=(
                f"Cannot cancel booking within {notice_hours} hours of the session time"
            ),
            code="CANCELLATION_WINDOW_CLOSED",
            details={
                "booking_id": booking_id,
                "deadline": deadline.isoformat() if deadline else None,
            },
        )


class SessionSlotTakenException(ConflictException):
    """Raised when a trainer already has a session at the requested date and time."""

    def __init__(self, trainer_id: str, session_date: str, start_time: str):
        super().__init__(
            message="Trainer already has a session at this date and time",
            code="SESSION_SLOT_TAKEN",
            details={
                "trainer_id": trainer_id,
                "date": session_date,
                "time": start_time,
            },
        )


class DispatchFailedException(ServiceException):
    """Raised when a notification could not be delivered after all retries."""

    def __init__(self, destination: str, attempts: int, last_error: Optional[str]):
        super().__init__(
            message=f"Notification to {destination} failed after {attempts} attempts",
            code="DISPATCH_FAILED",
            details={"destination": destination, "attempts": attempts, "error": last_error},
        )


class SchedulingTickFailedException(ServiceException):
    """Raised when a reminder scan tick has to be aborted (store unavailable)."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="SCHEDULING_TICK_FAILED", details=details)


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
