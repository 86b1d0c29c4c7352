# backend/studio_booking/services/reminder_service.py
"""
Reminder Scheduler.

One tick scans for confirmed, unreminded bookings on active sessions that
start inside the reminder window around ``now + lead`` and sends each one
reminder. A booking's flag is written the moment its send succeeds, through
a conditional UPDATE, so a later tick (or a concurrent one) never sends it
again.

Per-booking failures stay inside their own unit. A failure whose session
will already be outside the window at the next tick is reported as missed.
A store failure while loading the work aborts the whole tick.

Ticks are exclusive within one process only; running several scheduler
instances against the same store is not supported.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta
import logging
import time
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import RepositoryException, SchedulingTickFailedException
from ..core.locks import reminder_tick_lock
from ..core.timezone_utils import ensure_utc, local_date_span, utc_now
from ..models.booking import Booking
from ..models.training_session import TrainingSession
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..schemas.notifications import NotificationContent
from . import notification_templates
from .dispatch_retrier import SleepFn, send_with_retry
from .email import NotificationSender
from .template_service import TemplateService

logger = logging.getLogger(__name__)

OUTCOME_SENT = "sent"
OUTCOME_FAILED = "failed"
OUTCOME_MISSED = "missed"
OUTCOME_ALREADY_SENT = "already_sent"
OUTCOME_MARK_FAILED = "mark_failed"


@dataclass
class ReminderWindow:
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


@dataclass
class ReminderTickReport:
    """What one tick saw and did."""

    now: datetime
    window: ReminderWindow
    skipped: bool = False
    sessions_scanned: int = 0
    sessions_due: int = 0
    reminders_sent: int = 0
    failed: int = 0
    missed: int = 0
    already_sent: int = 0
    duration_seconds: float = 0.0
    missed_booking_ids: List[str] = field(default_factory=list)
    failed_booking_ids: List[str] = field(default_factory=list)


class ReminderService:
    """
    Periodic reminder scan.

    Args:
        session_factory: Opens a fresh store session per tick
        sender: NotificationSender used for every reminder
        config: Settings carrying the window and dispatch knobs
        clock: Returns the current aware UTC time
        sleep: Awaitable used for dispatch backoff
        templates: Template renderer
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        sender: NotificationSender,
        *,
        config: Optional[Settings] = None,
        clock: Callable[[], datetime] = utc_now,
        sleep: SleepFn = asyncio.sleep,
        templates: Optional[TemplateService] = None,
    ):
        self.session_factory = session_factory
        self.sender = sender
        self.config = config or default_settings
        self.clock = clock
        self.sleep = sleep
        self.templates = templates or TemplateService()
        self.logger = logging.getLogger(self.__class__.__name__)

    # ==========================================
    # Window
    # ==========================================

    def compute_window(self, now: datetime) -> ReminderWindow:
        target = ensure_utc(now) + timedelta(minutes=self.config.reminder_lead_minutes)
        return ReminderWindow(
            start=target - timedelta(minutes=self.config.reminder_early_tolerance_minutes),
            end=target + timedelta(minutes=self.config.reminder_late_tolerance_minutes),
        )

    def _next_tick_window(self, now: datetime) -> ReminderWindow:
        return self.compute_window(
            now + timedelta(minutes=self.config.reminder_scan_interval_minutes)
        )

    # ==========================================
    # Tick
    # ==========================================

    async def run_tick(self, now: Optional[datetime] = None) -> ReminderTickReport:
        """
        Execute one scan.

        Returns a skipped report if another tick is running in this process.

        Raises:
            SchedulingTickFailedException: The store could not be read
        """
        current = ensure_utc(now) if now is not None else ensure_utc(self.clock())
        window = self.compute_window(current)
        report = ReminderTickReport(now=current, window=window)

        with reminder_tick_lock() as acquired:
            if not acquired:
                self.logger.warning("Reminder tick skipped; previous tick still running")
                report.skipped = True
                prometheus_metrics.record_reminder_outcome("tick_skipped")
                return report

            started = time.monotonic()
            db = self.session_factory()
            try:
                await self._run_locked(db, current, window, report)
            finally:
                db.close()
                report.duration_seconds = time.monotonic() - started
                prometheus_metrics.observe_reminder_tick(report.duration_seconds)

        self.logger.info(
            "Reminder tick complete",
            extra={
                "sessions_scanned": report.sessions_scanned,
                "sessions_due": report.sessions_due,
                "reminders_sent": report.reminders_sent,
                "failed": report.failed,
                "missed": report.missed,
                "already_sent": report.already_sent,
            },
        )
        return report

    def _load_due(
        self, db: Session, window: ReminderWindow, report: ReminderTickReport
    ) -> Tuple[List[TrainingSession], List[Booking]]:
        session_repository = RepositoryFactory.create_session_repository(db)
        booking_repository = RepositoryFactory.create_booking_repository(db)
        try:
            first_day, last_day = local_date_span(window.start, window.end)
            candidates = session_repository.get_active_in_date_range(first_day, last_day)
            report.sessions_scanned = len(candidates)
            due = [s for s in candidates if window.contains(s.starts_at())]
            report.sessions_due = len(due)
            due_ids = [s.id for s in due]
            bookings = booking_repository.get_unsent_confirmed_for_sessions(due_ids)
            report.already_sent = booking_repository.count_sent_confirmed_for_sessions(due_ids)
        except (RepositoryException, SQLAlchemyError) as exc:
            prometheus_metrics.record_reminder_outcome("tick_failed")
            self.logger.error(f"Reminder tick aborted, store unavailable: {exc}")
            raise SchedulingTickFailedException(
                "Reminder tick aborted: could not load due sessions",
                details={"window_start": window.start.isoformat(), "error": str(exc)},
            ) from exc
        return due, bookings

    async def _run_locked(
        self, db: Session, now: datetime, window: ReminderWindow, report: ReminderTickReport
    ) -> None:
        due, bookings = self._load_due(db, window, report)
        if not bookings:
            return

        next_window = self._next_tick_window(now)
        starts: Dict[str, datetime] = {s.id: s.starts_at() for s in due}
        booking_repository = RepositoryFactory.create_booking_repository(db)
        semaphore = asyncio.Semaphore(self.config.reminder_dispatch_concurrency)

        async def remind(booking: Booking, content: NotificationContent) -> str:
            async with semaphore:
                result = await send_with_retry(
                    self.sender,
                    booking.client.email,
                    content,
                    max_attempts=self.config.dispatch_max_attempts,
                    attempt_timeout=self.config.dispatch_attempt_timeout_seconds,
                    sleep=self.sleep,
                )
            if result.success:
                return self._mark_sent(db, booking_repository, booking)
            if not next_window.contains(starts[booking.session_id]):
                self.logger.error(
                    f"Reminder missed for booking {booking.id}: {result.error}",
                    extra={"booking_id": booking.id, "session_id": booking.session_id},
                )
                return OUTCOME_MISSED
            self.logger.warning(
                f"Reminder failed for booking {booking.id}, will retry next tick: {result.error}",
                extra={"booking_id": booking.id, "session_id": booking.session_id},
            )
            return OUTCOME_FAILED

        units = []
        for booking in bookings:
            try:
                content = notification_templates.session_reminder(
                    booking, booking.session, booking.client, self.templates,
                    lead_minutes=self.config.reminder_lead_minutes,
                )
            except Exception as exc:
                # One unrenderable booking must not sink the tick
                self.logger.error(
                    f"Could not render reminder for {booking.id}: {exc}", exc_info=True
                )
                self._tally(report, booking, self._failure_outcome(booking, starts, next_window))
                continue
            units.append((booking, remind(booking, content)))

        outcomes = await asyncio.gather(*(unit for _, unit in units), return_exceptions=True)
        for (booking, _), outcome in zip(units, outcomes):
            if isinstance(outcome, BaseException):
                self.logger.error(
                    f"Reminder unit for booking {booking.id} raised: {outcome!r}",
                    exc_info=outcome,
                )
                outcome = self._failure_outcome(booking, starts, next_window)
            self._tally(report, booking, outcome)

    def _mark_sent(
        self, db: Session, booking_repository: BookingRepository, booking: Booking
    ) -> str:
        try:
            marked = booking_repository.mark_reminder_sent(booking.id)
            db.commit()
        except (RepositoryException, SQLAlchemyError) as exc:
            db.rollback()
            self.logger.error(
                f"Reminder sent but flag not saved for booking {booking.id}: {exc}",
                extra={"booking_id": booking.id},
            )
            return OUTCOME_MARK_FAILED
        if not marked:
            self.logger.warning(
                f"Booking {booking.id} was already marked by another tick",
                extra={"booking_id": booking.id},
            )
            return OUTCOME_ALREADY_SENT
        return OUTCOME_SENT

    @staticmethod
    def _failure_outcome(
        booking: Booking, starts: Dict[str, datetime], next_window: ReminderWindow
    ) -> str:
        return OUTCOME_FAILED if next_window.contains(starts[booking.session_id]) else OUTCOME_MISSED

    @staticmethod
    def _tally(report: ReminderTickReport, booking: Booking, outcome: str) -> None:
        prometheus_metrics.record_reminder_outcome(outcome)
        if outcome == OUTCOME_SENT:
            report.reminders_sent += 1
        elif outcome == OUTCOME_ALREADY_SENT:
            report.already_sent += 1
        elif outcome == OUTCOME_MARK_FAILED:
            report.reminders_sent += 1
            report.failed_booking_ids.append(booking.id)
        else:
            report.failed += 1
            report.failed_booking_ids.append(booking.id)
            if outcome == OUTCOME_MISSED:
                report.missed += 1
                report.missed_booking_ids.append(booking.id)

    # ==========================================
    # Operator functions
    # ==========================================

    async def send_reminders_now(self) -> ReminderTickReport:
        """Manual tick, same rules as the scheduled one."""
        self.logger.info("Manually triggering reminder check")
        return await self.run_tick()

    def reset_reminder_flags(self) -> int:
        """Unset every sent reminder flag. Returns the number of bookings reset."""
        db = self.session_factory()
        try:
            count = RepositoryFactory.create_booking_repository(db).reset_reminder_flags()
            db.commit()
        except (RepositoryException, SQLAlchemyError):
            db.rollback()
            raise
        finally:
            db.close()
        self.logger.info(f"Reset reminder flags for {count} bookings")
        return count

    def get_upcoming_sessions(
        self, hours_ahead: float = 2, now: Optional[datetime] = None
    ) -> List[TrainingSession]:
        """Active sessions starting between now and ``hours_ahead`` hours from now."""
        current = ensure_utc(now) if now is not None else ensure_utc(self.clock())
        horizon = current + timedelta(hours=hours_ahead)
        db = self.session_factory()
        try:
            first_day, last_day = local_date_span(current, horizon)
            sessions = RepositoryFactory.create_session_repository(db).get_active_in_date_range(
                first_day, last_day
            )
            upcoming = [s for s in sessions if current <= s.starts_at() <= horizon]
            for session in upcoming:
                # Loaded before the store session closes
                session.trainer
            return upcoming
        finally:
            db.close()
