# backend/tests/unit/conftest.py
"""
Database fixtures for unit tests.

One in-memory SQLite engine per run. Each test runs inside an outer
transaction that is rolled back afterwards; service commits and rollbacks
only touch savepoints nested inside it.
"""

from datetime import date, timedelta

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from studio_booking.database import init_db
from studio_booking.models.user import UserRole


@pytest.fixture(scope="session")
def unit_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _connect(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself so SAVEPOINTs work
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def unit_connection(unit_engine):
    connection = unit_engine.connect()
    outer = connection.begin()
    try:
        yield connection
    finally:
        outer.rollback()
        connection.close()


@pytest.fixture
def unit_session_factory(unit_connection):
    """Factory for extra store sessions sharing the test's connection."""
    return sessionmaker(
        bind=unit_connection,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )


@pytest.fixture
def unit_db(unit_session_factory):
    session = unit_session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def trainer(unit_db, user_factory):
    return user_factory(unit_db, "trainer@example.com", role=UserRole.ADMIN, name="Tess Trainer")


@pytest.fixture
def client_user(unit_db, user_factory):
    return user_factory(unit_db, "client@example.com", name="Casey Client")


@pytest.fixture
def other_client(unit_db, user_factory):
    return user_factory(unit_db, "other@example.com", name="Olive Other")


@pytest.fixture
def future_date():
    return date.today() + timedelta(days=10)


@pytest.fixture
def training_session(unit_db, trainer, training_session_factory, future_date):
    return training_session_factory(unit_db, trainer, future_date, "18:00", max_capacity=4)
