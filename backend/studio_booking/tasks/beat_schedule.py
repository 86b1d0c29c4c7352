# backend/studio_booking/tasks/beat_schedule.py
"""
Celery Beat schedule for the studio booking engine.

The reminder scan is the only periodic task. Its soft time limit stays
below the scan interval so a stuck tick cannot overlap the next one.
"""

from datetime import timedelta
from typing import Any, Dict

from ..core.config import settings

REMINDER_TICK_TASK = "studio_booking.tasks.reminder_tasks.run_reminder_tick"


def get_beat_schedule() -> Dict[str, Dict[str, Any]]:
    interval = timedelta(minutes=settings.reminder_scan_interval_minutes)
    return {
        "send-session-reminders": {
            "task": REMINDER_TICK_TASK,
            "schedule": interval,
            "options": {
                "queue": "reminders",
                # A tick that could not start before the next one is due is dropped
                "expires": interval.total_seconds(),
            },
        },
    }


def reminder_tick_soft_limit_seconds() -> int:
    """Soft limit for one tick: one minute short of the scan interval."""
    return max(30, settings.reminder_scan_interval_minutes * 60 - 60)
