"""Tests for time-of-day helpers."""
from datetime import date, datetime

import pytest

from carerota.utils.time_utils import (
    absolute_interval,
    duration_hours,
    format_minutes,
    intervals_overlap,
    is_overnight,
    is_valid_hhmm,
    normalized_interval,
    parse_hhmm,
    rest_period_minutes,
    to_date,
    window_covers,
)


class TestParse:
    """Tests for HH:MM parsing."""

    def test_parse_valid(self):
        assert parse_hhmm("00:00") == 0
        assert parse_hhmm("08:30") == 510
        assert parse_hhmm("23:59") == 1439

    @pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "", "8", "-1:00"])
    def test_parse_invalid_raises(self, value):
        with pytest.raises(ValueError, match="HH:MM"):
            parse_hhmm(value)

    def test_is_valid(self):
        assert is_valid_hhmm("07:15")
        assert not is_valid_hhmm("7.15")

    def test_format_minutes_wraps(self):
        assert format_minutes(510) == "08:30"
        assert format_minutes(1440 + 60) == "01:00"


class TestDuration:
    """Tests for overnight-aware durations."""

    def test_day_shift(self):
        assert duration_hours("08:00", "20:00") == 12.0

    def test_overnight_shift(self):
        assert is_overnight("20:00", "08:00")
        assert normalized_interval("20:00", "08:00") == (1200, 1920)
        assert duration_hours("20:00", "08:00") == 12.0

    def test_partial_hours(self):
        assert duration_hours("09:15", "13:45") == 4.5


class TestOverlap:
    """Tests for same-day range checks."""

    def test_overlapping(self):
        assert intervals_overlap("08:00", "16:00", "15:00", "23:00")

    def test_touching_does_not_overlap(self):
        assert not intervals_overlap("08:00", "16:00", "16:00", "23:00")

    def test_overnight_against_evening(self):
        assert intervals_overlap("22:00", "06:00", "20:00", "23:00")

    def test_window_covers(self):
        assert window_covers("07:00", "21:00", "08:00", "20:00")
        assert not window_covers("09:00", "17:00", "08:00", "16:00")

    def test_overnight_window_covers_early_morning_shift(self):
        assert window_covers("22:00", "08:00", "02:00", "06:00")
        assert window_covers("22:00", "08:00", "23:00", "07:00")


class TestAnchoredIntervals:
    """Tests for date-anchored intervals and rest gaps."""

    def test_overnight_end_lands_next_day(self):
        start, end = absolute_interval(date(2025, 9, 1), "20:00", "08:00")
        assert start == datetime(2025, 9, 1, 20, 0)
        assert end == datetime(2025, 9, 2, 8, 0)

    def test_rest_gap_across_midnight(self):
        night = absolute_interval(date(2025, 9, 1), "20:00", "08:00")
        next_day = absolute_interval(date(2025, 9, 2), "14:00", "22:00")
        assert rest_period_minutes(night, next_day) == 360
        assert rest_period_minutes(next_day, night) == 360

    def test_overlap_is_negative(self):
        a = absolute_interval(date(2025, 9, 1), "08:00", "16:00")
        b = absolute_interval(date(2025, 9, 1), "15:00", "23:00")
        assert rest_period_minutes(a, b) < 0

    def test_touching_is_zero(self):
        a = absolute_interval(date(2025, 9, 1), "08:00", "16:00")
        b = absolute_interval(date(2025, 9, 1), "16:00", "23:00")
        assert rest_period_minutes(a, b) == 0

    def test_to_date(self):
        assert to_date("2025-09-01") == date(2025, 9, 1)
        assert to_date("2025-09-01T10:00:00") == date(2025, 9, 1)
        assert to_date(datetime(2025, 9, 1, 10)) == date(2025, 9, 1)
