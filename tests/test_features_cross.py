"""Tests for wearfeat.features.cross -- bounded cross-signal scores."""

import pytest

from wearfeat.features.cross import (
    build_cross_features,
    compute_acute_arousal_index,
    expected_activity,
    low_sleep_high_activity_flag_feature,
    recent_activity_x_time_of_day_feature,
)


class TestExpectedActivity:
    @pytest.mark.parametrize("hour, expected", [
        (3, (60.0, 0.2)),
        (9, (400.0, 3.0)),
        (14, (550.0, 4.0)),
        (23, (350.0, 2.5)),
    ])
    def test_bins(self, hour, expected):
        assert expected_activity(hour, False) == pytest.approx(expected)

    def test_weekend_multiplier(self):
        assert expected_activity(14, True) == pytest.approx((687.5, 5.0))


class TestRecentActivityXTimeOfDay:
    def test_no_hour(self):
        assert recent_activity_x_time_of_day_feature({"stepsLast30m": 100}) is None
        assert recent_activity_x_time_of_day_feature({"hourOfDay": float("nan")}) is None

    def test_matches_expectation(self):
        features = {"hourOfDay": 14, "stepsLast30m": 550, "azmLast30m": 4}
        assert recent_activity_x_time_of_day_feature(features) == pytest.approx(0.0, abs=1e-9)

    def test_falls_back_to_60m_window(self):
        features = {"hourOfDay": 14, "stepsLast60m": 550, "azmLast60m": 4}
        assert recent_activity_x_time_of_day_feature(features) == pytest.approx(0.0, abs=1e-9)

    def test_hr_confirmation(self):
        features = {"hourOfDay": 14, "stepsLast30m": 550, "azmLast30m": 4, "hrZLast15m": 0.6}
        assert recent_activity_x_time_of_day_feature(features) == pytest.approx(0.3)

    def test_night_penalty(self):
        features = {"hourOfDay": 3, "stepsLast30m": 60, "azmLast30m": 0.2}
        assert recent_activity_x_time_of_day_feature(features) == pytest.approx(-1.0)
        features["postExerciseWindow90m"] = True
        assert recent_activity_x_time_of_day_feature(features) == pytest.approx(0.0, abs=1e-9)

    def test_clamped(self):
        high = {"hourOfDay": 14, "stepsLast30m": 100000, "azmLast30m": 30}
        low = {"hourOfDay": 3, "stepsZToday": -5, "hrZNow": -2}
        assert recent_activity_x_time_of_day_feature(high) == 2.0
        assert recent_activity_x_time_of_day_feature(low) == -2.0


class TestLowSleepHighActivity:
    def test_no_sleep_inputs(self):
        assert low_sleep_high_activity_flag_feature({"azmToday": 90}) is None

    def test_short_sleep(self):
        assert low_sleep_high_activity_flag_feature({"sleepDurationLastNightHrs": 5.5}) == pytest.approx(0.6)
        assert low_sleep_high_activity_flag_feature({"sleepDurationLastNightHrs": 6.5}) == pytest.approx(0.3)
        assert low_sleep_high_activity_flag_feature({"sleepDurationLastNightHrs": 8}) == 0.0

    def test_day_load(self):
        features = {"sleepDurationLastNightHrs": 8, "azmToday": 60, "stepsZToday": 1.0}
        assert low_sleep_high_activity_flag_feature(features) == pytest.approx(0.4)

    def test_clamped_with_huge_debt(self):
        features = {
            "sleepDebtHrs": 1000,
            "azmToday": 1000,
            "stepsZToday": 50,
            "lastExerciseDurationMinutes": 90,
            "hoursSinceLastExercise": 1,
            "hrZNow": 3,
        }
        assert low_sleep_high_activity_flag_feature(features) == 1.0
        assert low_sleep_high_activity_flag_feature({"sleepDebtHrs": 1000}) == pytest.approx(0.6)


class TestAcuteArousalIndex:
    def test_no_signals(self):
        assert compute_acute_arousal_index({}) is None
        assert compute_acute_arousal_index({"sleepDurationLastNightHrs": 4}) is None

    def test_zero_signals_are_measured(self):
        assert compute_acute_arousal_index({"stepsLast15m": 0}) == 0.0

    def test_weighted_sum(self):
        features = {"hrDelta5m": 5, "stepsLast15m": 100}
        assert compute_acute_arousal_index(features) == pytest.approx(7.5)

    def test_post_exercise_suppression(self):
        features = {"hrDelta5m": 5, "postExerciseWindow90m": True}
        assert compute_acute_arousal_index(features) == pytest.approx(4.5)

    def test_clamped(self):
        assert compute_acute_arousal_index({"hrDelta5m": 100}) == 10.0
        calm = {"zeroStreakMax60m": 60, "stepBurst5m": 0, "hrDelta5m": 0, "hrZNow": 0}
        assert compute_acute_arousal_index(calm) == 0.0


class TestBuildCrossFeatures:
    def test_keys_and_notes(self):
        result = build_cross_features({})
        assert result.to_dict() == {
            "recentActivityXTimeOfDay": None,
            "lowSleepHighActivityFlag": None,
            "acuteArousalIndex": None,
        }
        assert result.notes == ["no_arousal_signals"]

    def test_bounds_hold(self):
        features = {
            "hourOfDay": 23, "stepsLast30m": 9e9, "azmLast30m": 9e9,
            "sleepDebtHrs": 1000, "hrDelta5m": 9e9, "hrSlopeLast30m": -9e9,
        }
        result = build_cross_features(features)
        assert -2.0 <= result.recent_activity_x_time_of_day <= 2.0
        assert 0.0 <= result.low_sleep_high_activity_flag <= 1.0
        assert 0.0 <= result.acute_arousal_index <= 10.0
