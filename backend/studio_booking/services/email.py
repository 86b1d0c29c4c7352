# backend/studio_booking/services/email.py
"""
Notification senders.

A sender performs exactly one delivery attempt and either returns the
provider's delivery id or raises. Retries, timeouts and address checks live
in the dispatch retrier, not here.
"""

from abc import ABC, abstractmethod
import logging
from typing import Optional

import resend

from ..core.config import settings
from ..core.exceptions import ServiceException
from ..core.ulid_helper import generate_ulid
from ..schemas.notifications import NotificationContent

logger = logging.getLogger(__name__)


class NotificationSender(ABC):
    """Single-attempt delivery of rendered content to one destination."""

    @abstractmethod
    def send(self, destination: str, content: NotificationContent) -> str:
        """
        Deliver ``content`` to ``destination``.

        Returns:
            Provider delivery identifier

        Raises:
            Exception: Any failure; callers treat every exception as transient
        """


class ResendEmailSender(NotificationSender):
    """Sends email through the Resend API."""

    def __init__(self, api_key: Optional[str] = None, from_email: Optional[str] = None):
        key = api_key or (
            settings.resend_api_key.get_secret_value() if settings.resend_api_key else None
        )
        if not key:
            raise ServiceException("Resend API key not configured")
        resend.api_key = key
        self.from_email = from_email or settings.from_email
        self.logger = logging.getLogger(self.__class__.__name__)

    def send(self, destination: str, content: NotificationContent) -> str:
        email_data = {
            "from": self.from_email,
            "to": destination,
            "subject": content.subject,
            "html": content.html,
        }
        if content.text:
            email_data["text"] = content.text

        response = resend.Emails.send(email_data)
        delivery_id = response.get("id") if isinstance(response, dict) else None
        if not delivery_id:
            raise ServiceException(f"Resend returned no message id for {destination}")
        self.logger.info(f"Email sent successfully to {destination} - Subject: {content.subject}")
        return str(delivery_id)


class ConsoleEmailSender(NotificationSender):
    """Logs messages instead of sending them; used in development and tests."""

    def send(self, destination: str, content: NotificationContent) -> str:
        delivery_id = f"console-{generate_ulid()}"
        logger.info(
            "console_email_sent",
            extra={"to": destination, "subject": content.subject, "delivery_id": delivery_id},
        )
        return delivery_id


def get_notification_sender() -> NotificationSender:
    """Build the sender selected by ``settings.email_provider``."""
    if settings.email_provider == "resend":
        return ResendEmailSender()
    return ConsoleEmailSender()
