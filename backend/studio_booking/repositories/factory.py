# backend/studio_booking/repositories/factory.py
"""
Repository Factory for the studio booking engine.

Centralizes repository construction so services depend on a single
creation point.
"""

from sqlalchemy.orm import Session

from .booking_repository import BookingRepository
from .session_repository import SessionRepository
from .user_repository import UserRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_user_repository(db: Session) -> UserRepository:
        return UserRepository(db)

    @staticmethod
    def create_session_repository(db: Session) -> SessionRepository:
        return SessionRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> BookingRepository:
        return BookingRepository(db)
