"""Tests for shift duration calculation."""

import logging
from datetime import datetime, time

import pytest

from ops_core.durations import parse_time_of_day, shift_hours


def test_overnight_wrap() -> None:
    """23:00 -> 01:00 with no break is two hours."""
    assert shift_hours("23:00", "01:00", 0) == 2.0


def test_overnight_wrap_with_break() -> None:
    assert shift_hours("22:00", "02:00", 30) == 3.5


def test_iso_datetimes_use_time_of_day() -> None:
    assert shift_hours("2024-05-01T09:00:00", "2024-05-01T17:30:00", 30) == 8.0
    assert shift_hours("2024-05-01 18:00:00", "2024-05-02 00:30:00") == 6.5


def test_offset_suffix_is_ignored() -> None:
    assert shift_hours("2024-05-01T23:15:00+02:00", "2024-05-02T01:15:00+02:00") == 2.0


def test_datetime_and_time_objects() -> None:
    assert shift_hours(datetime(2024, 5, 1, 9, 0), time(13, 45)) == 4.75


def test_rounding_to_two_decimals() -> None:
    assert shift_hours("09:00", "09:20") == 0.33


@pytest.mark.parametrize("start, end", [(None, "10:00"), ("09:00", None), ("", "10:00")])
def test_missing_input_returns_none(start, end) -> None:
    assert shift_hours(start, end) is None


def test_unparsable_input_returns_none_and_warns(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="ops_core.durations"):
        assert shift_hours("yesterday", "10:00") is None
    assert "Unparsable shift timestamps" in caplog.text


def test_non_positive_result_is_none() -> None:
    assert shift_hours("09:00", "09:00") is None
    assert shift_hours("09:00", "09:30", 45) is None


class TestParseTimeOfDay:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("07:30", 450),
            ("7:05", 425),
            ("23:59:59", 1439),
            ("2024-05-01T23:15:00.123Z", 1395),
        ],
    )
    def test_valid(self, value, expected) -> None:
        assert parse_time_of_day(value) == expected

    @pytest.mark.parametrize("value", ["24:00", "12:60", "noon", 930, None])
    def test_invalid(self, value) -> None:
        assert parse_time_of_day(value) is None
