# backend/tests/conftest.py
"""
Pytest configuration shared by every test.

The environment is pinned BEFORE any studio_booking import so the settings
object and the module-level engine never point at a real store or broker.
"""

import os

os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["EMAIL_PROVIDER"] = "console"
os.environ["OPERATING_TIMEZONE"] = "America/New_York"
os.environ.setdefault("CI", "true")

# CRITICAL: Mock Resend API globally to prevent real emails in ANY test
import unittest.mock

global_resend_mock = unittest.mock.patch("resend.Emails.send")
mocked_send = global_resend_mock.start()
mocked_send.return_value = {"id": "test-email-id"}

from datetime import date
from typing import Optional

import pytest

from studio_booking.core import locks
from studio_booking.models.booking import Booking, BookingStatus
from studio_booking.models.training_session import ExerciseType, TrainingSession
from studio_booking.models.user import User, UserRole


@pytest.fixture(autouse=True)
def no_redis(monkeypatch):
    """Capacity locks use the process-local fallback unless a test says otherwise."""
    monkeypatch.setattr(locks, "_get_sync_redis", lambda: None)
    yield


# ============================================================================
# Row builders
# ============================================================================


def make_user(
    db,
    email: str,
    *,
    role: UserRole = UserRole.CLIENT,
    name: Optional[str] = None,
    active_sessions: int = 0,
    package_expiry=None,
) -> User:
    user = User(
        email=email,
        name=name or email.split("@")[0].title(),
        role=role.value,
        active_sessions=active_sessions,
        package_expiry=package_expiry,
    )
    db.add(user)
    db.commit()
    return user


def make_session(
    db,
    trainer: User,
    session_date: date,
    start_time: str,
    *,
    max_capacity: int = 4,
    is_active: bool = True,
    package_duration_days: int = 90,
) -> TrainingSession:
    session = TrainingSession(
        session_date=session_date,
        start_time=start_time,
        exercise_type=ExerciseType.REGULAR_TRAINING.value,
        max_capacity=max_capacity,
        is_active=is_active,
        description="",
        package_duration_days=package_duration_days,
        trainer_id=trainer.id,
        created_by_id=trainer.id,
    )
    db.add(session)
    db.commit()
    return session


def make_booking(
    db,
    session: TrainingSession,
    client: User,
    *,
    group_size: int = 1,
    reminder_sent: Optional[bool] = False,
    cancellation_deadline=None,
    is_package_booking: bool = False,
) -> Booking:
    booking = Booking(
        session_id=session.id,
        client_id=client.id,
        group_size=group_size,
        status=BookingStatus.CONFIRMED.value,
        notes="",
        reminder_sent=reminder_sent,
        can_cancel=True,
        cancellation_deadline=cancellation_deadline,
        is_package_booking=is_package_booking,
    )
    db.add(booking)
    db.commit()
    return booking


@pytest.fixture
def user_factory():
    return make_user


@pytest.fixture
def training_session_factory():
    return make_session


@pytest.fixture
def booking_factory():
    return make_booking
