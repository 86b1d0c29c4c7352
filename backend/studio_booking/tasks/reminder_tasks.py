# backend/studio_booking/tasks/reminder_tasks.py
"""
Celery tasks for the reminder scan and its operator functions.
"""

import asyncio
from typing import Any, Dict

from celery.exceptions import SoftTimeLimitExceeded
from celery.utils.log import get_task_logger

from ..core.exceptions import SchedulingTickFailedException
from ..database import SessionLocal
from ..services.email import get_notification_sender
from ..services.reminder_service import ReminderService, ReminderTickReport
from .beat_schedule import reminder_tick_soft_limit_seconds
from .celery_app import celery_app

logger = get_task_logger(__name__)


def build_reminder_service() -> ReminderService:
    return ReminderService(SessionLocal, get_notification_sender())


def _report_to_dict(report: ReminderTickReport) -> Dict[str, Any]:
    return {
        "now": report.now.isoformat(),
        "window_start": report.window.start.isoformat(),
        "window_end": report.window.end.isoformat(),
        "skipped": report.skipped,
        "sessions_scanned": report.sessions_scanned,
        "sessions_due": report.sessions_due,
        "reminders_sent": report.reminders_sent,
        "failed": report.failed,
        "missed": report.missed,
        "already_sent": report.already_sent,
        "missed_booking_ids": report.missed_booking_ids,
    }


@celery_app.task(
    name="studio_booking.tasks.reminder_tasks.run_reminder_tick",
    soft_time_limit=reminder_tick_soft_limit_seconds(),
)
def run_reminder_tick() -> Dict[str, Any]:
    """
    Run one reminder scan.

    A tick aborted by a store failure is logged and not retried; the next
    scheduled tick starts from scratch.
    """
    service = build_reminder_service()
    try:
        report = asyncio.run(service.run_tick())
    except SchedulingTickFailedException as exc:
        logger.error(f"Reminder tick failed: {exc.message}", extra={"details": exc.details})
        return {"status": "failed", "error": exc.message}
    except SoftTimeLimitExceeded:
        logger.error("Reminder tick exceeded its time limit")
        return {"status": "timeout"}
    if report.missed:
        logger.error(
            f"Reminder tick missed {report.missed} reminder(s)",
            extra={"booking_ids": report.missed_booking_ids},
        )
    return {"status": "skipped" if report.skipped else "ok", **_report_to_dict(report)}


@celery_app.task(name="studio_booking.tasks.reminder_tasks.reset_reminder_flags")
def reset_reminder_flags() -> Dict[str, Any]:
    count = build_reminder_service().reset_reminder_flags()
    return {"status": "ok", "reset": count}
