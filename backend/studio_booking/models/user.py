# backend/studio_booking/models/user.py
"""
User model for the studio booking engine.

Admins double as trainers; clients book sessions and may hold a session
package tracked by ``active_sessions`` and ``package_expiry``.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from ..core.constants import MAX_USER_NAME_LENGTH
from ..core.timezone_utils import ensure_utc, utc_now
from ..core.ulid_helper import generate_ulid
from ..database import Base


class UserRole(str, Enum):
    ADMIN = "admin"
    CLIENT = "client"


class User(Base):
    """
    Studio user.

    Attributes:
        id: ULID primary key
        email: Unique, lower-cased login address and notification destination
        name: Display name
        phone: Optional phone number
        role: admin (trainer) or client
        active_sessions: Package sessions counter, never negative
        package_expiry: UTC expiry of the current package, NULL when none
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("active_sessions >= 0", name="ck_users_active_sessions_non_negative"),
    )

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String(MAX_USER_NAME_LENGTH), nullable=False)
    phone = Column(String(20), nullable=True)
    role = Column(String(10), nullable=False, default=UserRole.CLIENT.value)

    active_sessions = Column(Integer, nullable=False, default=0, server_default="0")
    package_expiry = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def has_active_package(self, now: Optional[datetime] = None) -> bool:
        """Active iff sessions remain, an expiry is set, and now is strictly before it."""
        expiry = ensure_utc(self.package_expiry)
        if not self.active_sessions or self.active_sessions <= 0 or expiry is None:
            return False
        current = ensure_utc(now) if now is not None else utc_now()
        return current < expiry

    def __repr__(self) -> str:
        return f"<User {self.email} role={self.role}>"
