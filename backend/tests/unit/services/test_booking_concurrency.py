"""
Concurrent admissions against one session never overshoot capacity.

Uses a file-backed SQLite store so every thread gets its own connection,
with the process-local capacity lock doing the serialization.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
import threading
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from studio_booking.core.exceptions import CapacityExceededException
from studio_booking.database import init_db
from studio_booking.models.user import UserRole
from studio_booking.repositories.booking_repository import BookingRepository
from studio_booking.services.booking_service import BookingService
from studio_booking.services.notification_service import NotificationService


@pytest.fixture
def file_session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'concurrency.db'}",
        connect_args={"check_same_thread": False, "timeout": 15},
    )

    @event.listens_for(engine, "connect")
    def _connect(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    init_db(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


def _notifications():
    mock = MagicMock(spec=NotificationService)
    mock.notify_booking_confirmed.return_value = []
    return mock


@pytest.mark.parametrize("group_size, clients, expected_admitted", [(1, 8, 4), (2, 5, 2), (3, 4, 1)])
def test_parallel_admissions_respect_capacity(
    file_session_factory, user_factory, training_session_factory, group_size, clients, expected_admitted
):
    setup = file_session_factory()
    trainer = user_factory(setup, "trainer@example.com", role=UserRole.ADMIN)
    session = training_session_factory(
        setup, trainer, date.today() + timedelta(days=5), "18:00", max_capacity=4
    )
    client_ids = [user_factory(setup, f"client{i}@example.com").id for i in range(clients)]
    session_id = session.id
    setup.close()

    start = threading.Barrier(clients)

    def book(client_id):
        db = file_session_factory()
        try:
            service = BookingService(db, notification_service=_notifications())
            start.wait()
            try:
                service.admit_booking(session_id, group_size, client_id)
            except CapacityExceededException:
                return False
            return True
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=clients) as pool:
        results = list(pool.map(book, client_ids))

    assert results.count(True) == expected_admitted

    check = file_session_factory()
    try:
        booked = BookingRepository(check).sum_confirmed_group_size(session_id)
    finally:
        check.close()
    assert booked == expected_admitted * group_size
    assert booked <= 4
