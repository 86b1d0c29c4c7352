"""Data access layer for the studio booking engine."""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .session_repository import SessionRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "RepositoryFactory",
    "SessionRepository",
    "UserRepository",
]
