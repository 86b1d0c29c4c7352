"""
Helpers for working with SQLAlchemy sessions in a dialect-agnostic way.
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

# Dialects where SELECT ... FOR UPDATE takes a real row lock
_ROW_LOCK_DIALECTS = frozenset({"postgresql", "mysql", "mariadb", "oracle"})


def get_dialect_name(session: Session, default: str = "sqlite") -> str:
    """
    Return the SQLAlchemy dialect name of the engine bound to ``session``.

    Falls back to ``default`` when the bound engine cannot be resolved.
    """
    try:
        bind = session.get_bind()
    except SQLAlchemyError:
        return default
    dialect = getattr(bind, "dialect", None)
    return getattr(dialect, "name", None) or default


def supports_row_locks(session: Session) -> bool:
    """Whether ``with_for_update()`` locks rows on this session's database."""
    return get_dialect_name(session) in _ROW_LOCK_DIALECTS
