# backend/studio_booking/repositories/base_repository.py
"""
Base repository for the studio booking store.

Repositories own every query against the store. They flush but never
commit; transaction boundaries belong to the service layer. SQLAlchemy
errors are logged and re-raised as RepositoryException.
"""

import logging
from typing import Any, Generic, List, NoReturn, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException
from ..database.session_utils import supports_row_locks

T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """
    Common data access for a single model.

    Attributes:
        db: SQLAlchemy session (managed by the service layer)
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @property
    def supports_row_locks(self) -> bool:
        return supports_row_locks(self.db)

    def _fail(self, operation: str, exc: SQLAlchemyError) -> NoReturn:
        self.logger.error(f"{operation} failed for {self.model.__name__}: {exc}")
        if isinstance(exc, IntegrityError):
            raise RepositoryException(f"{operation}: integrity constraint violated: {exc}") from exc
        raise RepositoryException(f"{operation} failed: {exc}") from exc

    def get_by_id(self, id: str) -> Optional[T]:
        return self._execute_first(self._build_query().filter(self.model.id == id))

    def create(self, **kwargs: Any) -> T:
        """
        Create and flush a new entity.

        Note: Does NOT commit.
        """
        entity = self.model(**kwargs)
        try:
            self.db.add(entity)
            self.db.flush()
        except SQLAlchemyError as e:
            self._fail("Create", e)
        return entity

    def update(self, id: str, **kwargs: Any) -> Optional[T]:
        """Update only the provided fields; returns None when the entity is missing."""
        entity = self.get_by_id(id)
        if entity is None:
            return None
        for key, value in kwargs.items():
            if hasattr(entity, key):
                setattr(entity, key, value)
        try:
            self.db.flush()
        except SQLAlchemyError as e:
            self._fail("Update", e)
        return entity

    def delete(self, id: str) -> bool:
        """Hard-delete an entity. Returns False if it does not exist."""
        entity = self.get_by_id(id)
        if entity is None:
            return False
        try:
            self.db.delete(entity)
            self.db.flush()
        except SQLAlchemyError as e:
            self._fail("Delete", e)
        return True

    # Protected helpers for subclasses

    def _build_query(self) -> Query:
        return self.db.query(self.model)

    def _execute_query(self, query: Query) -> List[T]:
        try:
            return query.all()
        except SQLAlchemyError as e:
            self._fail("Query", e)

    def _execute_first(self, query: Query) -> Optional[T]:
        try:
            return query.first()
        except SQLAlchemyError as e:
            self._fail("Query", e)

    def _execute_scalar(self, query: Query) -> Any:
        try:
            return query.scalar()
        except SQLAlchemyError as e:
            self._fail("Scalar query", e)

    def _execute_update(self, statement: Any, operation: str) -> int:
        """Run a bulk UPDATE/DELETE statement and return the affected row count."""
        try:
            result = self.db.execute(statement)
        except SQLAlchemyError as e:
            self._fail(operation, e)
        return int(result.rowcount or 0)
