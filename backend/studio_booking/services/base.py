# backend/studio_booking/services/base.py
"""
Base service for the studio booking engine.

Provides the pieces every service shares:
- Transaction management (commit on success, rollback on any error)
- Operation timing with slow-operation warnings and Prometheus recording
- Structured operation logging
"""

import asyncio
from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Iterator, Optional, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SLOW_OPERATION_SECONDS = 1.0


class BaseService:
    """
    Base class for all service layer components.

    Services own transaction boundaries; repositories only flush.
    """

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Context manager for database transactions.

        Usage:
            with self.transaction():
                self.booking_repository.create(...)
        """
        try:
            yield self.db
            self.db.commit()
            self.logger.debug("Transaction committed successfully")
        except SQLAlchemyError as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            raise ServiceException(f"Database operation failed: {str(e)}") from e
        except Exception:
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Decorator to measure operation performance.

        Works on both sync and async methods.

        Usage:
            @BaseService.measure_operation("admit_booking")
            def admit_booking(self, ...):
                ...
        """

        def decorator(func: F) -> F:
            if asyncio.iscoroutinefunction(func):

                @wraps(func)
                async def async_wrapper(self: "BaseService", *args: Any, **kwargs: Any) -> Any:
                    start = time.monotonic()
                    error_type: Optional[str] = None
                    try:
                        return await func(self, *args, **kwargs)
                    except Exception as e:
                        error_type = type(e).__name__
                        raise
                    finally:
                        self._finish_operation(operation_name, time.monotonic() - start, error_type)

                return cast(F, async_wrapper)

            @wraps(func)
            def wrapper(self: "BaseService", *args: Any, **kwargs: Any) -> Any:
                start = time.monotonic()
                error_type: Optional[str] = None
                try:
                    return func(self, *args, **kwargs)
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    self._finish_operation(operation_name, time.monotonic() - start, error_type)

            return cast(F, wrapper)

        return decorator

    def _finish_operation(self, operation: str, elapsed: float, error_type: Optional[str]) -> None:
        if elapsed > SLOW_OPERATION_SECONDS:
            self.logger.warning(f"Slow operation detected: {operation} took {elapsed:.2f}s")
        prometheus_metrics.record_service_operation(
            service=self.__class__.__name__,
            operation=operation,
            duration=elapsed,
            status="error" if error_type else "success",
            error_type=error_type,
        )

    def log_operation(self, operation: str, **context: Any) -> None:
        """Log an operation with structured context."""
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})
