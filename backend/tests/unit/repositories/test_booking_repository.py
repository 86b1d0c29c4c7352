"""BookingRepository queries and conditional flag updates."""

from datetime import date

import pytest

from studio_booking.models.booking import BookingStatus
from studio_booking.repositories.factory import RepositoryFactory


@pytest.fixture
def repository(unit_db):
    return RepositoryFactory.create_booking_repository(unit_db)


@pytest.fixture
def session(unit_db, trainer, training_session_factory):
    return training_session_factory(unit_db, trainer, date(2024, 6, 10), "18:00")


def test_sum_counts_confirmed_only(repository, unit_db, session, client_user, other_client, booking_factory):
    booking_factory(unit_db, session, client_user, group_size=2)
    cancelled = booking_factory(unit_db, session, other_client, group_size=1)
    cancelled.status = BookingStatus.CANCELLED.value
    unit_db.commit()

    assert repository.sum_confirmed_group_size(session.id) == 2


def test_sum_for_empty_session_is_zero(repository, session):
    assert repository.sum_confirmed_group_size(session.id) == 0


def test_mark_reminder_sent_is_conditional(repository, unit_db, session, client_user, booking_factory):
    booking = booking_factory(unit_db, session, client_user)

    assert repository.mark_reminder_sent(booking.id) is True
    assert repository.mark_reminder_sent(booking.id) is False


def test_unsent_includes_unset_flags(repository, unit_db, session, client_user, other_client, user_factory, booking_factory):
    third = user_factory(unit_db, "third@example.com")
    unsent = booking_factory(unit_db, session, client_user, reminder_sent=False)
    unset = booking_factory(unit_db, session, other_client, reminder_sent=None)
    booking_factory(unit_db, session, third, reminder_sent=True)

    found = {b.id for b in repository.get_unsent_confirmed_for_sessions([session.id])}

    assert found == {unsent.id, unset.id}
    assert repository.count_sent_confirmed_for_sessions([session.id]) == 1
    assert repository.get_unsent_confirmed_for_sessions([]) == []


def test_reset_reminder_flags(repository, unit_db, session, client_user, other_client, booking_factory):
    sent = booking_factory(unit_db, session, client_user, reminder_sent=True)
    booking_factory(unit_db, session, other_client, reminder_sent=False)

    assert repository.reset_reminder_flags() == 1
    unit_db.expire_all()
    assert repository.get_by_id(sent.id).reminder_sent is None


def test_delete_for_session(repository, unit_db, session, client_user, other_client, booking_factory):
    booking_factory(unit_db, session, client_user)
    booking_factory(unit_db, session, other_client)

    assert repository.delete_for_session(session.id) == 2
    assert repository.get_for_session(session.id) == []


def test_get_for_client_filters_status(repository, unit_db, session, client_user, booking_factory):
    booking = booking_factory(unit_db, session, client_user)

    assert [b.id for b in repository.get_for_client(client_user.id)] == [booking.id]
    assert repository.get_for_client(client_user.id, status=BookingStatus.CANCELLED.value) == []
