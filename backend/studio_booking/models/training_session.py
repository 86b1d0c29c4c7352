# backend/studio_booking/models/training_session.py
"""
Training session model.

A session is a bookable, capacity-bounded time slot owned by a trainer.
Its ``session_date`` and ``start_time`` are wall-clock values in the
operating timezone.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.constants import (
    DEFAULT_PACKAGE_DURATION_DAYS,
    DEFAULT_PACKAGE_PRICE,
    DEFAULT_SESSION_PRICE,
    MAX_SESSION_DESCRIPTION_LENGTH,
)
from ..core.timezone_utils import combine_session_datetime
from ..core.ulid_helper import generate_ulid
from ..database import Base


class ExerciseType(str, Enum):
    BODY_HEALTH = "body-health"
    REGULAR_TRAINING = "regular-training"

    @property
    def label(self) -> str:
        return "Body Health" if self is ExerciseType.BODY_HEALTH else "Regular Training"


class TrainingSession(Base):
    """Bookable time slot with a fixed maximum capacity."""

    __tablename__ = "training_sessions"
    __table_args__ = (
        UniqueConstraint(
            "trainer_id", "session_date", "start_time", name="uq_training_sessions_trainer_slot"
        ),
        CheckConstraint(
            "max_capacity >= 1 AND max_capacity <= 4", name="ck_training_sessions_capacity"
        ),
        CheckConstraint("price >= 0 AND package_price >= 0", name="ck_training_sessions_prices"),
        CheckConstraint("package_duration_days >= 1", name="ck_training_sessions_package_days"),
    )

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    session_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)
    exercise_type = Column(String(32), nullable=False)
    max_capacity = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    description = Column(String(MAX_SESSION_DESCRIPTION_LENGTH), nullable=False, default="")

    price = Column(Numeric(10, 2), nullable=False, default=DEFAULT_SESSION_PRICE)
    package_price = Column(Numeric(10, 2), nullable=False, default=DEFAULT_PACKAGE_PRICE)
    package_duration_days = Column(Integer, nullable=False, default=DEFAULT_PACKAGE_DURATION_DAYS)

    trainer_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    created_by_id = Column(String(26), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    trainer = relationship("User", foreign_keys=[trainer_id])
    created_by = relationship("User", foreign_keys=[created_by_id])
    bookings = relationship(
        "Booking",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def starts_at(self) -> datetime:
        """Session start as an aware datetime in the operating timezone."""
        return combine_session_datetime(self.session_date, self.start_time)

    @property
    def exercise_label(self) -> str:
        return ExerciseType(self.exercise_type).label

    def __repr__(self) -> str:
        return f"<TrainingSession {self.session_date} {self.start_time} cap={self.max_capacity}>"
