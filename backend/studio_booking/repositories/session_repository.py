# backend/studio_booking/repositories/session_repository.py
"""
Training session repository.

Provides the point reads used by admission (optionally row-locked), the
trainer slot lookup backing the uniqueness rule, and the date-range query
the reminder scan filters on.
"""

from datetime import date
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.training_session import TrainingSession
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class SessionRepository(BaseRepository[TrainingSession]):
    """Repository for TrainingSession data access."""

    def __init__(self, db: Session):
        super().__init__(db, TrainingSession)
        self.logger = logging.getLogger(__name__)

    def get_for_update(self, session_id: str) -> Optional[TrainingSession]:
        """
        Load a session for a capacity decision.

        On dialects with real row locks the row is held until the enclosing
        transaction ends; elsewhere the caller's capacity lock is the only
        serialization.
        """
        query = (
            self._build_query().filter(TrainingSession.id == session_id).populate_existing()
        )
        if self.supports_row_locks:
            query = query.with_for_update()
        return self._execute_first(query)

    def find_slot(
        self, trainer_id: str, session_date: date, start_time: str
    ) -> Optional[TrainingSession]:
        return self._execute_first(
            self._build_query().filter(
                TrainingSession.trainer_id == trainer_id,
                TrainingSession.session_date == session_date,
                TrainingSession.start_time == start_time,
            )
        )

    def get_active_in_date_range(self, start_date: date, end_date: date) -> List[TrainingSession]:
        """Active sessions whose calendar date falls within [start_date, end_date]."""
        return self._execute_query(
            self._build_query()
            .filter(
                TrainingSession.is_active.is_(True),
                TrainingSession.session_date >= start_date,
                TrainingSession.session_date <= end_date,
            )
            .order_by(TrainingSession.session_date, TrainingSession.start_time)
        )
