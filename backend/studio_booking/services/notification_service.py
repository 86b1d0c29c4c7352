# backend/studio_booking/services/notification_service.py
"""
Best-effort notifications for booking lifecycle events.

Content is rendered synchronously and handed to a Celery task that performs
the retried send. Nothing here can fail the booking operation that
triggered it: a render or enqueue failure is logged and returned as a
warning.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..models.booking import Booking
from ..models.training_session import TrainingSession
from ..models.user import User
from ..schemas.notifications import NotificationContent
from ..tasks.enqueue import enqueue_task
from . import notification_templates
from .template_service import TemplateService

logger = logging.getLogger(__name__)

SEND_NOTIFICATION_TASK = "studio_booking.tasks.notification_tasks.send_notification"

EnqueueFn = Callable[..., Any]


class NotificationService:
    """
    Renders booking notifications and queues them for delivery.

    Every public method returns a list of human-readable warnings, empty
    when everything was queued.
    """

    def __init__(
        self,
        enqueue: Optional[EnqueueFn] = None,
        templates: Optional[TemplateService] = None,
    ):
        self._enqueue = enqueue or enqueue_task
        self.templates = templates or TemplateService()
        self.logger = logging.getLogger(self.__class__.__name__)

    def _queue(
        self,
        kind: str,
        destination: Optional[str],
        build: Callable[[], NotificationContent],
        reference_id: str,
    ) -> Optional[str]:
        if not destination:
            return f"{kind}: no destination address"
        try:
            content = build()
        except Exception as exc:
            # Missing template or bad context; the triggering operation still succeeds
            self.logger.error(
                f"Failed to render {kind} notification for {destination}: {exc}",
                extra={"kind": kind, "reference_id": reference_id},
                exc_info=True,
            )
            return f"{kind}: notification could not be rendered"
        payload: Dict[str, Any] = {
            "destination": destination,
            "content": content.model_dump(),
            "kind": kind,
            "reference_id": reference_id,
        }
        try:
            self._enqueue(SEND_NOTIFICATION_TASK, kwargs=payload)
        except Exception as exc:
            # Broker down or misconfigured; the triggering operation still succeeds
            self.logger.warning(
                f"Failed to queue {kind} notification for {destination}: {exc}",
                extra={"kind": kind, "reference_id": reference_id},
                exc_info=True,
            )
            return f"{kind}: notification could not be queued"
        return None

    def notify_booking_confirmed(
        self, booking: Booking, session: TrainingSession, client: User
    ) -> List[str]:
        """Confirmation to the client and a new-booking alert to the trainer."""
        warnings: List[str] = []
        warning = self._queue(
            "booking_confirmation",
            client.email,
            lambda: notification_templates.booking_confirmation(
                booking, session, client, self.templates
            ),
            booking.id,
        )
        if warning:
            warnings.append(warning)

        trainer = session.trainer
        if trainer is not None and trainer.email and trainer.email != client.email:
            warning = self._queue(
                "trainer_new_booking",
                trainer.email,
                lambda: notification_templates.trainer_new_booking(
                    booking, session, client, self.templates
                ),
                booking.id,
            )
            if warning:
                warnings.append(warning)
        return warnings

    def notify_booking_cancelled(
        self, booking: Booking, session: TrainingSession, client: User
    ) -> List[str]:
        warning = self._queue(
            "booking_cancellation",
            client.email,
            lambda: notification_templates.booking_cancellation(
                booking, session, client, self.templates
            ),
            booking.id,
        )
        return [warning] if warning else []

    def send_custom_message(
        self,
        recipient: User,
        subject: str,
        message: str,
        session: Optional[TrainingSession] = None,
    ) -> List[str]:
        reference = session.id if session is not None else recipient.id
        warning = self._queue(
            "custom_message",
            recipient.email,
            lambda: notification_templates.custom_message(
                recipient, subject, message, session, self.templates
            ),
            reference,
        )
        return [warning] if warning else []
