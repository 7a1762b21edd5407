"""Tests for wearfeat.features.timeindex -- minute axis and anchor handling."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from wearfeat.errors import FeatureBuildError, InvalidAnchorError
from wearfeat.features.timeindex import (
    local_fractional_hour,
    local_naive,
    localize_anchor,
    minutes_since_midnight,
    normalize_minutes_for_window,
    parse_local_timestamp,
    parse_time_to_minutes,
    resolve_anchor,
)


class TestParseTimeToMinutes:
    def test_hh_mm(self):
        assert parse_time_to_minutes("13:45") == 13 * 60 + 45

    def test_hh_mm_ss(self):
        assert parse_time_to_minutes("00:00:30") == pytest.approx(0.5)

    def test_iso_timestamp_uses_clock_part(self):
        assert parse_time_to_minutes("2025-11-19T23:50:00.000") == 23 * 60 + 50

    def test_fractional_seconds(self):
        assert parse_time_to_minutes("10:00:30.000") == pytest.approx(600.5)

    @pytest.mark.parametrize("raw", [None, "", "noon", "12", "1:2:3:4", "25:00", "10:61"])
    def test_unparseable(self, raw):
        assert parse_time_to_minutes(raw) is None


class TestNormalizeMinutes:
    def test_earlier_sample_unchanged(self):
        assert normalize_minutes_for_window(600.0, 840.0) == 600.0

    def test_equal_to_anchor_unchanged(self):
        assert normalize_minutes_for_window(840.0, 840.0) == 840.0

    def test_later_sample_shifted_back_one_day(self):
        # Anchor 00:10, sample 23:50 belongs to yesterday
        assert normalize_minutes_for_window(1430.0, 10.0) == -10.0

    def test_non_finite(self):
        assert normalize_minutes_for_window(None, 10.0) is None
        assert normalize_minutes_for_window(float("nan"), 10.0) is None
        assert normalize_minutes_for_window("x", 10.0) is None


class TestMinutesSinceMidnight:
    def test_wall_clock(self):
        dt = datetime(2025, 11, 19, 14, 30, 30, tzinfo=timezone.utc)
        assert minutes_since_midnight(dt) == pytest.approx(870.5)


class TestResolveAnchor:
    def test_z_suffix(self):
        anchor = resolve_anchor("2025-11-19T14:00:00Z")
        assert anchor == datetime(2025, 11, 19, 14, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        anchor = resolve_anchor(datetime(2025, 11, 19, 14))
        assert anchor.tzinfo is timezone.utc

    def test_aware_passthrough(self):
        tz = timezone(timedelta(hours=-8))
        dt = datetime(2025, 11, 19, 6, tzinfo=tz)
        assert resolve_anchor(dt) is dt

    @pytest.mark.parametrize("value", ["yesterday", 12345, None])
    def test_invalid(self, value):
        with pytest.raises(InvalidAnchorError):
            resolve_anchor(value)

    def test_error_hierarchy(self):
        with pytest.raises(FeatureBuildError):
            resolve_anchor("not a date")
        with pytest.raises(ValueError):
            resolve_anchor("not a date")


class TestLocalTime:
    def test_localize_anchor(self):
        anchor = datetime(2025, 11, 19, 22, tzinfo=timezone.utc)
        local = localize_anchor(anchor, ZoneInfo("America/Los_Angeles"))
        assert local.hour == 14
        assert local_naive(local) == datetime(2025, 11, 19, 14)

    def test_fractional_hour(self):
        assert local_fractional_hour(datetime(2025, 11, 19, 22, 30)) == 22.5


class TestParseLocalTimestamp:
    def test_naive_string_kept_as_wall_clock(self):
        parsed = parse_local_timestamp("2025-11-18T23:30:00.000")
        assert parsed == datetime(2025, 11, 18, 23, 30)
        assert parsed.tzinfo is None

    def test_aware_string_converted(self):
        parsed = parse_local_timestamp("2025-11-19T07:30:00Z", ZoneInfo("America/Los_Angeles"))
        assert parsed == datetime(2025, 11, 18, 23, 30)

    @pytest.mark.parametrize("raw", [None, "", "garbage"])
    def test_missing(self, raw):
        assert parse_local_timestamp(raw) is None
