# backend/studio_booking/tasks/notification_tasks.py
"""
Best-effort notification delivery.

The task retries inside the dispatch retrier, never through Celery, so a
failed confirmation or cancellation email is logged once and dropped.
"""

import asyncio
from typing import Any, Dict, Optional

from celery.utils.log import get_task_logger

from ..schemas.notifications import NotificationContent
from ..services.dispatch_retrier import send_with_retry
from ..services.email import get_notification_sender
from .celery_app import celery_app

logger = get_task_logger(__name__)


@celery_app.task(name="studio_booking.tasks.notification_tasks.send_notification")
def send_notification(
    destination: str,
    content: Dict[str, Any],
    kind: str = "notification",
    reference_id: Optional[str] = None,
) -> Dict[str, Any]:
    message = NotificationContent.model_validate(content)
    result = asyncio.run(send_with_retry(get_notification_sender(), destination, message))
    if not result.success:
        logger.warning(
            f"{kind} notification to {destination} failed after {result.attempts} attempt(s): "
            f"{result.error}",
            extra={"kind": kind, "reference_id": reference_id},
        )
        return {"status": "failed", "attempts": result.attempts, "error": result.error}
    logger.info(
        f"{kind} notification delivered to {destination}",
        extra={"kind": kind, "reference_id": reference_id, "delivery_id": result.delivery_id},
    )
    return {"status": "sent", "attempts": result.attempts, "delivery_id": result.delivery_id}
