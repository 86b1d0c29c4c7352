"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from ..core.config import settings

logger = logging.getLogger(__name__)


def _build_engine_kwargs(db_url: str) -> dict[str, Any]:
    """Engine options per dialect."""
    if db_url.startswith("sqlite"):
        return {"future": True, "connect_args": {"check_same_thread": False}}
    return {
        "future": True,
        "pool_size": 5,
        "max_overflow": 5,
        "pool_timeout": 5,
        "pool_recycle": 300,
        "pool_pre_ping": True,
    }


engine: Engine = create_engine(settings.database_url, **_build_engine_kwargs(settings.database_url))


@event.listens_for(engine, "connect")
def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
    if engine.dialect.name == "sqlite":
        # Enforce ON DELETE CASCADE for bookings
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
    logger.debug("Database connection established")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base = declarative_base()


def init_db(bind: Engine | None = None) -> None:
    """Create all tables on ``bind`` (the application engine by default)."""
    from .. import models  # noqa: F401  registers the mappers on Base

    Base.metadata.create_all(bind=bind or engine)


__all__ = [
    "init_db",
    "Base",
    "SessionLocal",
    "engine",
]
