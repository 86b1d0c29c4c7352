# backend/studio_booking/services/package_service.py
"""
Package Accountant.

Tracks a client's remaining package sessions and the package expiry. All
counter changes go through single-statement UPDATEs in UserRepository.
Methods here do not commit; callers that compose them into a larger
unit (booking admission, cancellation) own the transaction, while the
admin operations open their own.
"""

from datetime import datetime, timedelta
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import NotFoundException
from ..core.timezone_utils import ensure_utc, utc_now
from ..models.user import User, UserRole
from ..repositories.factory import RepositoryFactory
from ..schemas.package import PackageInfo
from .base import BaseService

logger = logging.getLogger(__name__)


class PackageService(BaseService):
    """Package counters and expiry for clients."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    def _require_client(self, client_id: str) -> User:
        client = self.user_repository.get_client(client_id)
        if client is None:
            raise NotFoundException("Client not found", code="CLIENT_NOT_FOUND")
        return client

    # Composed into booking admission/cancellation; no commit here

    def on_package_booking(
        self, client_id: str, package_duration_days: int, now: Optional[datetime] = None
    ) -> None:
        """A package-flagged booking adds a session and restarts the expiry."""
        current = ensure_utc(now) if now is not None else utc_now()
        self.user_repository.increment_package(
            client_id, 1, current + timedelta(days=package_duration_days)
        )

    def on_package_cancellation(self, client_id: str) -> bool:
        """Take one session back, floored at zero. Returns False if already zero."""
        changed = self.user_repository.decrement_package(client_id) == 1
        if not changed:
            self.logger.info(
                "Package decrement skipped; counter already zero",
                extra={"client_id": client_id},
            )
        return changed

    # Admin operations

    @BaseService.measure_operation("admin_add_package")
    def admin_add_package(self, client_id: str, now: Optional[datetime] = None) -> PackageInfo:
        current = ensure_utc(now) if now is not None else utc_now()
        with self.transaction():
            self._require_client(client_id)
            self.user_repository.increment_package(
                client_id,
                settings.package_session_count,
                current + timedelta(days=settings.package_validity_days),
            )
        self.log_operation("admin_add_package", client_id=client_id)
        return self.get_package_info(client_id, now=current)

    @BaseService.measure_operation("admin_reset_package")
    def admin_reset_package(self, client_id: str, now: Optional[datetime] = None) -> PackageInfo:
        """Clear the package. Replaying a reset changes nothing."""
        with self.transaction():
            self._require_client(client_id)
            self.user_repository.reset_package(client_id)
        self.log_operation("admin_reset_package", client_id=client_id)
        return self.get_package_info(client_id, now=now)

    # Reads

    def list_clients_with_package_info(self, now: Optional[datetime] = None) -> List[PackageInfo]:
        current = ensure_utc(now) if now is not None else utc_now()
        return [
            self._package_info(client, current)
            for client in self.user_repository.list_by_role(UserRole.CLIENT)
        ]

    def has_active_package(self, client_id: str, now: Optional[datetime] = None) -> bool:
        client = self.user_repository.get_by_id(client_id)
        return bool(client is not None and client.has_active_package(now))

    def get_package_info(self, client_id: str, now: Optional[datetime] = None) -> PackageInfo:
        client = self.user_repository.get_by_id(client_id)
        if client is None:
            raise NotFoundException("Client not found", code="CLIENT_NOT_FOUND")
        self.db.refresh(client)
        current = ensure_utc(now) if now is not None else utc_now()
        return self._package_info(client, current)

    @staticmethod
    def _package_info(client: User, current: datetime) -> PackageInfo:
        expiry = ensure_utc(client.package_expiry)
        return PackageInfo(
            client_id=client.id,
            has_active_package=client.has_active_package(current),
            active_sessions=client.active_sessions or 0,
            package_expiry=expiry,
            is_expired=expiry is not None and current > expiry,
        )
