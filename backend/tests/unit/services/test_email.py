"""Notification senders."""

from unittest.mock import patch

import pytest

from studio_booking.core.exceptions import ServiceException
from studio_booking.schemas.notifications import NotificationContent
from studio_booking.services.email import (
    ConsoleEmailSender,
    ResendEmailSender,
    get_notification_sender,
)

CONTENT = NotificationContent(subject="Hello", html="<p>Hello</p>", text="Hello")


def test_resend_sender_returns_message_id():
    sender = ResendEmailSender(api_key="re_test", from_email="Studio <hi@studio.test>")
    with patch("resend.Emails.send", return_value={"id": "msg-123"}) as send:
        assert sender.send("client@example.com", CONTENT) == "msg-123"

    payload = send.call_args.args[0]
    assert payload["to"] == "client@example.com"
    assert payload["from"] == "Studio <hi@studio.test>"
    assert payload["text"] == "Hello"


def test_resend_sender_without_id_raises():
    sender = ResendEmailSender(api_key="re_test")
    with patch("resend.Emails.send", return_value={}):
        with pytest.raises(ServiceException):
            sender.send("client@example.com", CONTENT)


def test_resend_sender_requires_key():
    with pytest.raises(ServiceException):
        ResendEmailSender(api_key="")


def test_console_sender_ids_are_unique():
    sender = ConsoleEmailSender()
    first = sender.send("client@example.com", CONTENT)
    second = sender.send("client@example.com", CONTENT)
    assert first.startswith("console-")
    assert first != second


def test_default_provider_is_console():
    assert isinstance(get_notification_sender(), ConsoleEmailSender)
