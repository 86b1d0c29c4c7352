"""
Unit tests for the dispatch retrier.

Sleeps are recorded instead of awaited so backoff is checked without delay.
"""

import time
from unittest.mock import MagicMock

import pytest

from studio_booking.core.exceptions import DispatchFailedException
from studio_booking.schemas.notifications import NotificationContent
from studio_booking.services.dispatch_retrier import (
    DispatchResult,
    backoff_seconds,
    is_valid_destination,
    send_with_retry,
)
from studio_booking.services.email import NotificationSender

CONTENT = NotificationContent(subject="Hi", html="<p>Hi</p>", text="Hi")


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def sleep():
    return RecordingSleep()


def _sender(*effects):
    sender = MagicMock(spec=NotificationSender)
    sender.send.side_effect = list(effects)
    return sender


def test_backoff_doubles():
    assert [backoff_seconds(n) for n in (1, 2, 3)] == [2.0, 4.0, 8.0]


@pytest.mark.parametrize(
    "destination, valid",
    [("client@example.com", True), ("not-an-email", False), ("", False), (None, False)],
)
def test_is_valid_destination(destination, valid):
    assert is_valid_destination(destination) is valid


@pytest.mark.asyncio
async def test_first_attempt_success(sleep):
    sender = _sender("msg-1")
    result = await send_with_retry(sender, "client@example.com", CONTENT, sleep=sleep)

    assert result == DispatchResult(success=True, attempts=1, delivery_id="msg-1")
    assert sleep.calls == []


@pytest.mark.asyncio
async def test_fail_fail_succeed(sleep):
    sender = _sender(RuntimeError("503"), RuntimeError("503"), "msg-3")
    result = await send_with_retry(
        sender, "client@example.com", CONTENT, max_attempts=3, sleep=sleep
    )

    assert result.success
    assert result.attempts == 3
    assert result.delivery_id == "msg-3"
    assert sleep.calls == [2.0, 4.0]
    assert sender.send.call_count == 3


@pytest.mark.asyncio
async def test_all_attempts_fail(sleep):
    sender = _sender(RuntimeError("a"), RuntimeError("b"), RuntimeError("c"))
    result = await send_with_retry(
        sender, "client@example.com", CONTENT, max_attempts=3, sleep=sleep
    )

    assert not result.success
    assert result.attempts == 3
    assert result.error == "c"
    # No wait after the final attempt
    assert sleep.calls == [2.0, 4.0]
    with pytest.raises(DispatchFailedException):
        result.raise_for_failure("client@example.com")


@pytest.mark.asyncio
async def test_invalid_destination_fails_without_attempts(sleep):
    sender = _sender("never")
    result = await send_with_retry(sender, "not-an-email", CONTENT, sleep=sleep)

    assert result.success is False
    assert result.attempts == 0
    sender.send.assert_not_called()
    assert sleep.calls == []


@pytest.mark.asyncio
async def test_attempt_timeout_counts_as_failure(sleep):
    def slow_then_fast():
        calls = {"n": 0}

        def send(destination, content):
            calls["n"] += 1
            if calls["n"] == 1:
                time.sleep(0.3)
            return f"msg-{calls['n']}"

        return send

    sender = MagicMock(spec=NotificationSender)
    sender.send.side_effect = slow_then_fast()
    result = await send_with_retry(
        sender, "client@example.com", CONTENT, attempt_timeout=0.05, sleep=sleep
    )

    assert result.success
    assert result.attempts == 2
    assert result.delivery_id == "msg-2"
    assert sleep.calls == [2.0]
