"""Tests for timestamp parsing and formatting."""
import math

import pytest

from autoshorts.utils.timestamps import (
    format_srt_timestamp,
    format_timestamp,
    parse_timestamp,
)


class TestParseTimestamp:
    def test_hours_minutes_seconds(self):
        assert parse_timestamp("01:02:03") == 3723.0

    def test_minutes_seconds(self):
        assert parse_timestamp("02:03") == 123.0

    def test_zero_is_not_failure(self):
        assert parse_timestamp("00:00:00") == 0.0
        assert parse_timestamp("00:00:00") is not None

    def test_surrounding_whitespace(self):
        assert parse_timestamp("  00:01:00 ") == 60.0

    @pytest.mark.parametrize("token", ["abc", "12", "1:2:3:4", "", "00:xx:10", "-1:00", None])
    def test_malformed_returns_none(self, token):
        assert parse_timestamp(token) is None


class TestFormatTimestamp:
    def test_pads_fields(self):
        assert format_timestamp(3723) == "01:02:03"

    def test_truncates_fraction(self):
        assert format_timestamp(59.99) == "00:00:59"

    def test_negative_clamps_to_zero(self):
        assert format_timestamp(-5) == "00:00:00"

    def test_round_trip_whole_seconds(self):
        for value in (0, 59, 60, 3599, 3600, 86399):
            assert parse_timestamp(format_timestamp(value)) == float(value)

    def test_round_trip_floors_fractions(self):
        for value in (0.4, 59.99, 3600.5, 3661.999, 86399.01):
            assert parse_timestamp(format_timestamp(value)) == float(math.floor(value))

    def test_srt_milliseconds(self):
        assert format_srt_timestamp(3661.25) == "01:01:01,250"
        assert format_srt_timestamp(0) == "00:00:00,000"
        assert format_srt_timestamp(2.5) == "00:00:02,500"
