"""Unit tests for storyclip.timecode."""

from __future__ import annotations

import pytest

from storyclip.errors import InvalidInputError
from storyclip.timecode import format_timestamp, parse_timestamp


class TestFormatTimestamp:
    def test_zero(self) -> None:
        assert format_timestamp(0.0) == "00:00:00,000"

    def test_hours_minutes_seconds(self) -> None:
        """3723.456s → 01:02:03,456."""
        assert format_timestamp(3723.456) == "01:02:03,456"

    def test_float_noise_rounds_to_nearest_ms(self) -> None:
        """2.3 % 1 is 0.2999…; the millisecond field must still read 300."""
        assert format_timestamp(2.3) == "00:00:02,300"

    def test_negative_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            format_timestamp(-1.0)


class TestParseTimestamp:
    def test_parse_basic(self) -> None:
        assert parse_timestamp("00:01:02,500") == 62.5

    @pytest.mark.parametrize("value", ["1:02:03,456", "00:00:02.300", "00:61:00,000", "garbage"])
    def test_malformed_rejected(self, value: str) -> None:
        with pytest.raises(InvalidInputError):
            parse_timestamp(value)

    @pytest.mark.parametrize("seconds", [0.001, 1.5, 59.999, 61.07, 3599.999, 36000.25])
    def test_round_trip_to_millisecond(self, seconds: float) -> None:
        assert parse_timestamp(format_timestamp(seconds)) == pytest.approx(seconds, abs=5e-4)
