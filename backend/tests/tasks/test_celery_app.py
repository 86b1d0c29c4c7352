"""Celery application wiring, beat schedule and the enqueue helper."""

from datetime import timedelta
from unittest.mock import patch

from studio_booking.tasks.beat_schedule import (
    REMINDER_TICK_TASK,
    get_beat_schedule,
    reminder_tick_soft_limit_seconds,
)
from studio_booking.tasks.celery_app import celery_app
from studio_booking.tasks.enqueue import enqueue_task
import studio_booking.tasks.notification_tasks  # noqa: F401
import studio_booking.tasks.reminder_tasks  # noqa: F401


def test_beat_runs_reminder_tick_every_interval():
    entry = get_beat_schedule()["send-session-reminders"]
    assert entry["task"] == REMINDER_TICK_TASK
    assert entry["schedule"] == timedelta(minutes=15)
    assert entry["options"]["expires"] == 900


def test_soft_limit_stays_below_interval():
    assert reminder_tick_soft_limit_seconds() == 840


def test_tasks_registered_under_their_names():
    assert REMINDER_TICK_TASK in celery_app.tasks
    assert "studio_booking.tasks.reminder_tasks.reset_reminder_flags" in celery_app.tasks
    assert "studio_booking.tasks.notification_tasks.send_notification" in celery_app.tasks


def test_routes_split_queues():
    routes = celery_app.conf.task_routes
    assert routes["studio_booking.tasks.notification_tasks.*"] == {"queue": "notifications"}
    assert routes["studio_booking.tasks.reminder_tasks.*"] == {"queue": "reminders"}


def test_enqueue_sends_by_name():
    with patch.object(celery_app, "send_task") as send_task:
        enqueue_task("some.task", kwargs={"a": 1}, countdown=5)
    send_task.assert_called_once_with("some.task", args=(), kwargs={"a": 1}, countdown=5)
