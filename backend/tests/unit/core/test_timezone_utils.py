"""Unit tests for the operating-timezone helpers."""

from datetime import date, datetime, timedelta

import pytest
import pytz

from studio_booking.core.timezone_utils import (
    combine_session_datetime,
    ensure_utc,
    local_date_span,
    parse_session_time,
    shift_absolute,
)


class TestParseSessionTime:
    def test_two_digit_time(self):
        assert parse_session_time("18:30") == (18, 30)

    def test_single_digit_hour(self):
        assert parse_session_time("9:05") == (9, 5)

    @pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "", "1830"])
    def test_rejects_malformed(self, value):
        with pytest.raises(ValueError):
            parse_session_time(value)


class TestCombineSessionDatetime:
    def test_summer_session_uses_daylight_offset(self):
        start = combine_session_datetime(date(2024, 6, 10), "18:00")
        assert start.utcoffset() == timedelta(hours=-4)
        assert start.astimezone(pytz.UTC) == datetime(2024, 6, 10, 22, 0, tzinfo=pytz.UTC)

    def test_winter_session_uses_standard_offset(self):
        start = combine_session_datetime(date(2024, 1, 15), "07:00")
        assert start.utcoffset() == timedelta(hours=-5)


class TestShiftAbsolute:
    def test_shift_across_spring_forward_is_absolute(self):
        start = combine_session_datetime(date(2024, 3, 10), "12:00")
        shifted = shift_absolute(start, timedelta(hours=-24))

        assert start - shifted == timedelta(hours=24)
        # 24 real hours before noon EDT is 11:00 EST the previous day
        assert shifted.hour == 11
        assert shifted.utcoffset() == timedelta(hours=-5)


class TestEnsureUtc:
    def test_none_passthrough(self):
        assert ensure_utc(None) is None

    def test_naive_assumed_utc(self):
        result = ensure_utc(datetime(2024, 6, 10, 12, 0))
        assert result.tzinfo is not None
        assert result.utcoffset() == timedelta(0)
        assert result.hour == 12

    def test_aware_converted(self):
        local = pytz.timezone("America/New_York").localize(datetime(2024, 6, 10, 8, 0))
        assert ensure_utc(local).hour == 12


def test_local_date_span_crosses_midnight():
    start = datetime(2024, 6, 11, 3, 0, tzinfo=pytz.UTC)
    end = datetime(2024, 6, 11, 5, 0, tzinfo=pytz.UTC)
    assert local_date_span(start, end) == (date(2024, 6, 10), date(2024, 6, 11))
