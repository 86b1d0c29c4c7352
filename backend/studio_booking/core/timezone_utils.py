"""
Timezone utilities for the studio booking engine.

The studio runs in a single operating timezone. Session dates and HH:MM
times are wall-clock values in that zone; every persisted timestamp is UTC.
"""

from datetime import date, datetime, timedelta
from typing import Optional, Tuple

import pytz

from .config import settings
from .constants import SESSION_TIME_PATTERN


def get_operating_timezone() -> pytz.BaseTzInfo:
    """Return the configured operating timezone as a pytz timezone."""
    return pytz.timezone(settings.operating_timezone)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(pytz.UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to aware UTC.

    Naive values are assumed to already be UTC, which is how SQLite hands
    back DateTime(timezone=True) columns.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def parse_session_time(value: str) -> Tuple[int, int]:
    """
    Parse an ``HH:MM`` session time into (hour, minute).

    Raises:
        ValueError: If the value does not match the session time format
    """
    if not isinstance(value, str) or not SESSION_TIME_PATTERN.match(value):
        raise ValueError(f"Invalid time format {value!r}. Use HH:MM")
    hours, minutes = value.split(":")
    return int(hours), int(minutes)


def combine_session_datetime(session_date: date, session_time: str) -> datetime:
    """
    Combine a session date and HH:MM time into an aware datetime.

    The result is localized to the operating timezone.
    """
    hour, minute = parse_session_time(session_time)
    tz = get_operating_timezone()
    naive = datetime(session_date.year, session_date.month, session_date.day, hour, minute)
    return tz.localize(naive)


def shift_absolute(dt: datetime, delta: timedelta) -> datetime:
    """
    Shift an aware datetime by an absolute duration.

    pytz arithmetic keeps the starting UTC offset, so the shift is done in
    UTC and converted back to pick the offset valid at the new instant.
    """
    return (dt.astimezone(pytz.UTC) + delta).astimezone(dt.tzinfo)


def local_date_span(start: datetime, end: datetime) -> Tuple[date, date]:
    """Return the operating-timezone calendar dates covering [start, end]."""
    tz = get_operating_timezone()
    return start.astimezone(tz).date(), end.astimezone(tz).date()
