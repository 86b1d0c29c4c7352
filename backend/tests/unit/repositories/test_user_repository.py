"""Package counter updates on UserRepository."""

from datetime import datetime

import pytest
import pytz

from studio_booking.models.user import UserRole
from studio_booking.repositories.factory import RepositoryFactory

EXPIRY = datetime(2024, 9, 1, tzinfo=pytz.UTC)


@pytest.fixture
def repository(unit_db):
    return RepositoryFactory.create_user_repository(unit_db)


def test_get_by_email_normalizes(repository, client_user):
    assert repository.get_by_email("  Client@Example.com ").id == client_user.id


def test_get_client_ignores_admins(repository, trainer, client_user):
    assert repository.get_client(trainer.id) is None
    assert repository.get_client(client_user.id).id == client_user.id


def test_list_by_role(repository, trainer, client_user, other_client):
    assert [u.id for u in repository.list_by_role(UserRole.ADMIN)] == [trainer.id]
    assert {u.id for u in repository.list_by_role(UserRole.CLIENT)} == {
        client_user.id,
        other_client.id,
    }


def test_increment_then_decrement(repository, unit_db, client_user):
    assert repository.increment_package(client_user.id, 8, EXPIRY) == 1
    assert repository.decrement_package(client_user.id) == 1
    unit_db.refresh(client_user)
    assert client_user.active_sessions == 7


def test_decrement_never_goes_negative(repository, unit_db, client_user):
    assert repository.decrement_package(client_user.id) == 0
    unit_db.refresh(client_user)
    assert client_user.active_sessions == 0


def test_reset_clears_expiry(repository, unit_db, client_user):
    repository.increment_package(client_user.id, 8, EXPIRY)
    repository.reset_package(client_user.id)
    unit_db.refresh(client_user)
    assert client_user.active_sessions == 0
    assert client_user.package_expiry is None
