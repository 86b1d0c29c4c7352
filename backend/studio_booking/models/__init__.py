"""
Database models for the studio booking engine.

- User: admins (trainers) and clients, including package counters
- TrainingSession: bookable capacity-bounded time slots
- Booking: a client's seats on a session
"""

from .booking import Booking, BookingStatus
from .training_session import ExerciseType, TrainingSession
from .user import User, UserRole

__all__ = [
    "Booking",
    "BookingStatus",
    "ExerciseType",
    "TrainingSession",
    "User",
    "UserRole",
]
