# backend/studio_booking/services/dispatch_retrier.py
"""
Bounded exponential-backoff retry around a single notification send.

After failed attempt n (1-indexed) the retrier waits 2**n seconds, so 2s
then 4s with the default three attempts, and never waits after the last
attempt. Each attempt runs in a worker thread under a timeout shorter than
the first backoff so a hung provider call cannot stall the caller.

A timed-out attempt's thread is abandoned, not killed; if the provider
eventually delivers it, the recipient can see a duplicate.
"""

import asyncio
from dataclasses import dataclass
import logging
from typing import Awaitable, Callable, Optional

from pydantic import EmailStr, TypeAdapter, ValidationError

from ..core.config import settings
from ..core.exceptions import DispatchFailedException
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..schemas.notifications import NotificationContent
from .email import NotificationSender

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]

_EMAIL_ADAPTER = TypeAdapter(EmailStr)


@dataclass(frozen=True)
class DispatchResult:
    success: bool
    attempts: int
    delivery_id: Optional[str] = None
    error: Optional[str] = None

    def raise_for_failure(self, destination: str) -> None:
        if not self.success:
            raise DispatchFailedException(destination, self.attempts, self.error)


def backoff_seconds(attempt: int) -> float:
    """Wait after failed attempt ``attempt`` (1-indexed)."""
    return float(2**attempt)


def is_valid_destination(destination: Optional[str]) -> bool:
    if not destination:
        return False
    try:
        _EMAIL_ADAPTER.validate_python(destination)
    except ValidationError:
        return False
    return True


async def send_with_retry(
    sender: NotificationSender,
    destination: str,
    content: NotificationContent,
    *,
    max_attempts: Optional[int] = None,
    attempt_timeout: Optional[float] = None,
    sleep: SleepFn = asyncio.sleep,
) -> DispatchResult:
    """
    Try to deliver ``content`` up to ``max_attempts`` times.

    Invalid destination addresses fail immediately with zero attempts.
    Never raises for delivery errors; inspect the returned result.
    """
    attempts_allowed = max_attempts if max_attempts is not None else settings.dispatch_max_attempts
    timeout = (
        attempt_timeout if attempt_timeout is not None else settings.dispatch_attempt_timeout_seconds
    )

    if not is_valid_destination(destination):
        logger.warning("dispatch_invalid_destination", extra={"destination": destination})
        prometheus_metrics.record_dispatch_result("invalid")
        return DispatchResult(success=False, attempts=0, error="Invalid email address")

    last_error: Optional[str] = None
    for attempt in range(1, attempts_allowed + 1):
        try:
            delivery_id = await asyncio.wait_for(
                asyncio.to_thread(sender.send, destination, content), timeout=timeout
            )
        except asyncio.TimeoutError:
            last_error = f"Attempt timed out after {timeout}s"
            prometheus_metrics.record_dispatch_attempt("timeout")
        except Exception as e:
            last_error = str(e) or type(e).__name__
            prometheus_metrics.record_dispatch_attempt("error")
        else:
            prometheus_metrics.record_dispatch_attempt("success")
            prometheus_metrics.record_dispatch_result("sent")
            if attempt > 1:
                logger.info(f"Delivered to {destination} on attempt {attempt}/{attempts_allowed}")
            return DispatchResult(success=True, attempts=attempt, delivery_id=delivery_id)

        if attempt < attempts_allowed:
            wait_time = backoff_seconds(attempt)
            logger.warning(
                f"Attempt {attempt}/{attempts_allowed} failed for {destination}: {last_error}. "
                f"Retrying in {wait_time}s..."
            )
            await sleep(wait_time)

    logger.error(f"All {attempts_allowed} attempts failed for {destination}: {last_error}")
    prometheus_metrics.record_dispatch_result("failed")
    return DispatchResult(success=False, attempts=attempts_allowed, error=last_error)
