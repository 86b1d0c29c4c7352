# backend/studio_booking/repositories/user_repository.py
"""
User Repository for the studio booking engine.

Besides lookups, this repository owns the package counters. Every count
change is a single atomic UPDATE so concurrent bookings and cancellations
for the same client never lose an update.
"""

from datetime import datetime
import logging
from typing import Optional, Sequence

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..models.user import User, UserRole
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for User data access and package counter updates."""

    def __init__(self, db: Session):
        super().__init__(db, User)
        self.logger = logging.getLogger(__name__)

    # ==========================================
    # Lookups
    # ==========================================

    def get_by_email(self, email: str) -> Optional[User]:
        return self._execute_first(self._build_query().filter(User.email == email.strip().lower()))

    def get_by_ids(self, user_ids: Sequence[str]) -> list[User]:
        if not user_ids:
            return []
        return self._execute_query(self._build_query().filter(User.id.in_(list(user_ids))))

    def list_by_role(self, role: UserRole) -> list[User]:
        return self._execute_query(
            self._build_query().filter(User.role == role.value).order_by(User.name)
        )

    def get_client(self, user_id: str) -> Optional[User]:
        """Return the user only if they hold the client role."""
        return self._execute_first(
            self._build_query().filter(User.id == user_id, User.role == UserRole.CLIENT.value)
        )

    # ==========================================
    # Package counters
    # ==========================================

    def increment_package(
        self, user_id: str, sessions: int, expires_at: Optional[datetime]
    ) -> int:
        """Add ``sessions`` to the counter and set the expiry in one statement."""
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(active_sessions=User.active_sessions + sessions, package_expiry=expires_at)
            .execution_options(synchronize_session="fetch")
        )
        return self._execute_update(stmt, "Package increment")

    def decrement_package(self, user_id: str) -> int:
        """
        Take one session off the counter, floored at zero.

        Returns 0 when the counter was already zero.
        """
        stmt = (
            update(User)
            .where(User.id == user_id, User.active_sessions > 0)
            .values(active_sessions=User.active_sessions - 1)
            .execution_options(synchronize_session="fetch")
        )
        return self._execute_update(stmt, "Package decrement")

    def reset_package(self, user_id: str) -> int:
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(active_sessions=0, package_expiry=None)
            .execution_options(synchronize_session="fetch")
        )
        return self._execute_update(stmt, "Package reset")
