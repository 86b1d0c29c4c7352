# backend/studio_booking/services/cancellation_policy.py
"""
Cancellation deadline rules.

The deadline is the session start in the operating timezone minus the
notice period, measured in absolute hours. It is computed once when a
booking is admitted and stored on the booking; moving the session later
does not move existing deadlines.
"""

from datetime import date, datetime, timedelta
from typing import Optional

from ..core.config import settings
from ..core.timezone_utils import combine_session_datetime, ensure_utc, shift_absolute, utc_now


def compute_deadline(
    session_date: date, session_time: str, notice_hours: Optional[int] = None
) -> datetime:
    """
    Latest instant at which a client may still cancel.

    Returned in the operating timezone. Across a DST change the wall-clock
    hour can differ from the session's, since the notice is absolute time.
    """
    hours = notice_hours if notice_hours is not None else settings.cancellation_notice_hours
    start = combine_session_datetime(session_date, session_time)
    return shift_absolute(start, timedelta(hours=-hours))


def is_cancellable(now: Optional[datetime], deadline: Optional[datetime], is_admin: bool) -> bool:
    """Admins may always cancel; everyone else only strictly before the deadline."""
    if is_admin:
        return True
    if deadline is None:
        return False
    current = ensure_utc(now) if now is not None else utc_now()
    return current < ensure_utc(deadline)
