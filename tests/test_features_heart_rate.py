"""Tests for wearfeat.features.heart_rate -- intraday HR and resting-HR baseline."""

import pytest

from tests.conftest import ANCHOR, at, daily_rows, minute_series
from wearfeat.features.heart_rate import (
    features_from_heart_intraday,
    latest_hr,
    resting_hr_7d_trend,
    resting_hr_values,
)

RHR = daily_rows([60, 61, 59, 60, 62, 60, 65])


class TestRestingHr:
    def test_values_from_nested_shape(self):
        rows = [{"dateTime": "2025-11-18", "value": {"restingHeartRate": 58}}, {"value": {}}]
        assert resting_hr_values(rows) == [58.0]

    def test_trend(self):
        # 65 - mean(60, 61, 59, 60, 62, 60)
        assert resting_hr_7d_trend(RHR) == pytest.approx(4.6667, abs=1e-4)

    def test_trend_needs_two_days(self):
        assert resting_hr_7d_trend(daily_rows([60])) is None
        assert resting_hr_7d_trend(None) is None


class TestLatestHr:
    def test_most_recent_at_or_before_anchor(self):
        series = [
            {"time": "13:58:00", "value": 70},
            {"time": "13:59:00", "value": 72},
            {"time": "14:05:00", "value": 99},
        ]
        assert latest_hr(series, ANCHOR) == 72

    def test_across_midnight(self):
        series = [{"time": "23:58:00", "value": 55}, {"time": "00:05:00", "value": 57}]
        assert latest_hr(series, at(0, 10)) == 57


class TestFeaturesFromHeartIntraday:
    def test_no_series(self):
        result = features_from_heart_intraday(None, RHR, ANCHOR)
        assert result.hr_now is None
        assert result.resting_hr_today == 65
        assert result.resting_hr_7d_avg == pytest.approx(61.0)
        assert result.resting_hr_deviation_from_7d == pytest.approx(4.0)
        assert "no_heart_series" in result.notes

    def test_no_resting_series(self):
        result = features_from_heart_intraday(minute_series(ANCHOR, [70] * 10), None, ANCHOR)
        assert result.hr_now == 70
        assert result.hr_z_now is None
        assert "no_resting_hr_7d" in result.notes

    def test_windows(self):
        series = minute_series(ANCHOR, [60] * 15 + [70] * 10 + [80] * 5)
        result = features_from_heart_intraday(series, RHR, ANCHOR)
        assert result.hr_now == 80
        assert result.hr_avg_last_5m == 80
        assert result.hr_avg_last_15m == pytest.approx(220 / 3)
        assert result.hr_min_last_15m == 70
        assert result.hr_max_last_15m == 80
        assert result.hr_delta_5m == pytest.approx(10.0)
        assert result.hr_delta_15m == pytest.approx(220 / 3 - 60)
        assert result.hr_slope_last_30m > 0

    def test_elevation_relative_to_baseline(self):
        rhr = daily_rows([60] * 7)
        series = minute_series(ANCHOR, [72] * 15)
        result = features_from_heart_intraday(series, rhr, ANCHOR)
        assert result.hr_z_now == pytest.approx(0.2)
        assert result.hr_z_last_15m == pytest.approx(0.2)
        assert result.resting_hr_7d_std_dev == 0.0

    def test_empty_window(self):
        result = features_from_heart_intraday([], RHR, ANCHOR)
        assert result.hr_avg_last_5m is None
        assert result.hr_max_last_15m is None
        assert result.hr_slope_last_60m == 0.0
