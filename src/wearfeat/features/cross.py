"""Cross-signal interaction features.

Each function reads the already-merged base features (a flat
``{featureName: value}`` mapping) and returns one bounded score:

  - ``recentActivityXTimeOfDay`` in [-2, 2]: is recent movement unusual for
    this hour of the day?
  - ``lowSleepHighActivityFlag`` in [0, 1]: sleep deprivation combined with
    a heavy day
  - ``acuteArousalIndex`` in [0, 10]: immediate sympathetic activation

All thresholds and weights below are tunable defaults.  Non-finite inputs
are treated as missing, so the clamps always hold.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from wearfeat.features.record import FeatureGroup
from wearfeat.features.windows import clamp, finite

# (upper hour bound exclusive, expected steps per 30 min, expected AZM per 30 min)
TIME_OF_DAY_EXPECTATIONS = (
    (6, 60.0, 0.2),     # night
    (12, 400.0, 3.0),   # morning
    (17, 550.0, 4.0),   # afternoon
    (24, 350.0, 2.5),   # evening
)
WEEKEND_MULTIPLIER = 1.25
NIGHT_END_HOUR = 6

DEVIATION_WEIGHT = 0.7
HR_CONFIRM_HIGH_Z = 0.5
HR_CONFIRM_LOW_Z = -0.5
HR_CONFIRM_BOOST = 0.3
HR_CONFIRM_PENALTY = -0.2
NIGHT_MOVEMENT_PENALTY = -1.0
SEDENTARY_BREAK_STREAK_MIN = 30
SEDENTARY_BREAK_STEPS = 400
SEDENTARY_BREAK_AZM = 4
SEDENTARY_BREAK_BOOST = 0.5
ACTIVE_DAY_Z = 1.5
ACTIVE_DAY_BIAS = 0.3
INACTIVE_DAY_Z = -1.0
INACTIVE_DAY_BIAS = -0.2

SHORT_SLEEP_HRS = 6.0
SOMEWHAT_SHORT_SLEEP_HRS = 7.0
SLEEP_DEBT_SATURATION_HRS = 2.5
ACTIVE_DAY_AZM = 60.0
HEAVY_EXERCISE_MIN = 40.0
HEAVY_EXERCISE_RECENT_HRS = 6.0
HEAVY_EXERCISE_BOOST = 0.7
LOW_SLEEP_HR_Z = 0.5
LOW_SLEEP_HR_BOOST = 0.4

AROUSAL_SEDENTARY_STREAK_MIN = 45
AROUSAL_POST_EXERCISE_SUPPRESS = -1.5
AROUSAL_SLEEP_SUPPRESS = -0.5


@dataclass
class CrossFeatures(FeatureGroup):
    recent_activity_x_time_of_day: float | None = None
    low_sleep_high_activity_flag: float | None = None
    acute_arousal_index: float | None = None


def _num(features: Mapping[str, Any], *keys: str) -> float | None:
    """First finite value among *keys*."""
    for key in keys:
        v = finite(features.get(key))
        if v is not None:
            return v
    return None


def _flag(features: Mapping[str, Any], key: str) -> bool:
    return features.get(key) is True


def expected_activity(hour: float, weekend: bool) -> tuple[float, float]:
    """``(expected steps, expected AZM)`` over 30 minutes at *hour*."""
    steps, azm = TIME_OF_DAY_EXPECTATIONS[-1][1:]
    for upper, bin_steps, bin_azm in TIME_OF_DAY_EXPECTATIONS:
        if hour < upper:
            steps, azm = bin_steps, bin_azm
            break
    if weekend:
        steps *= WEEKEND_MULTIPLIER
        azm *= WEEKEND_MULTIPLIER
    return steps, azm


def recent_activity_x_time_of_day_feature(features: Mapping[str, Any]) -> float | None:
    """Deviation of recent activity from the hour-of-day expectation.

    Returns None without an hour of day.
    """
    hour = _num(features, "hourOfDay")
    if hour is None:
        return None

    steps30 = _num(features, "stepsLast30m", "stepsLast60m") or 0.0
    azm = _num(features, "azmLast30m", "azmLast60m") or 0.0
    hr_z = _num(features, "hrZLast15m", "hrZNow") or 0.0
    zero_streak = _num(features, "zeroStreakMax60m")
    steps_z = _num(features, "stepsZToday")

    expected_steps, expected_azm = expected_activity(hour, _flag(features, "isWeekend"))
    step_dev = (steps30 - expected_steps) / expected_steps
    azm_dev = (azm - expected_azm) / (expected_azm + 0.01)

    if hr_z > HR_CONFIRM_HIGH_Z:
        hr_component = HR_CONFIRM_BOOST
    elif hr_z < HR_CONFIRM_LOW_Z:
        hr_component = HR_CONFIRM_PENALTY
    else:
        hr_component = 0.0

    night_penalty = 0.0
    if hour < NIGHT_END_HOUR and not _flag(features, "postExerciseWindow90m"):
        night_penalty = NIGHT_MOVEMENT_PENALTY

    sedentary_boost = 0.0
    if (
        zero_streak is not None
        and zero_streak >= SEDENTARY_BREAK_STREAK_MIN
        and (steps30 > SEDENTARY_BREAK_STEPS or azm > SEDENTARY_BREAK_AZM)
    ):
        sedentary_boost = SEDENTARY_BREAK_BOOST

    day_bias = 0.0
    if steps_z is not None:
        if steps_z > ACTIVE_DAY_Z:
            day_bias = ACTIVE_DAY_BIAS
        elif steps_z < INACTIVE_DAY_Z:
            day_bias = INACTIVE_DAY_BIAS

    score = (
        DEVIATION_WEIGHT * (step_dev + azm_dev)
        + hr_component
        + sedentary_boost
        + day_bias
        + night_penalty
    )
    return clamp(score, -2.0, 2.0)


def low_sleep_high_activity_flag_feature(features: Mapping[str, Any]) -> float | None:
    """Blend of sleep deprivation and daytime load, clamped to [0, 1].

    Returns None when neither last night's duration nor sleep debt is known.
    """
    duration = _num(features, "sleepDurationLastNightHrs")
    debt = _num(features, "sleepDebtHrs")
    if duration is None and debt is None:
        return None

    short_sleep = 0.0
    if duration is not None:
        if duration < SHORT_SLEEP_HRS:
            short_sleep = 1.0
        elif duration < SOMEWHAT_SHORT_SLEEP_HRS:
            short_sleep = 0.5
    debt_score = clamp(debt / SLEEP_DEBT_SATURATION_HRS, 0.0, 1.0) if debt is not None else 0.0
    sleep_stress = max(short_sleep, debt_score)

    azm_today = _num(features, "azmToday")
    steps_z = _num(features, "stepsZToday")
    high_azm = clamp(azm_today / ACTIVE_DAY_AZM, 0.0, 1.0) if azm_today is not None else 0.0
    high_steps = clamp(steps_z, 0.0, 1.0) if steps_z is not None else 0.0
    day_load = 0.6 * high_azm + 0.4 * high_steps

    exercise_min = _num(features, "lastExerciseDurationMinutes")
    hours_since = _num(features, "hoursSinceLastExercise")
    recent_exercise = 0.0
    if (
        exercise_min is not None
        and exercise_min >= HEAVY_EXERCISE_MIN
        and hours_since is not None
        and hours_since <= HEAVY_EXERCISE_RECENT_HRS
    ):
        recent_exercise = HEAVY_EXERCISE_BOOST

    hr_z = _num(features, "hrZNow")
    hr_component = LOW_SLEEP_HR_BOOST if hr_z is not None and hr_z > LOW_SLEEP_HR_Z else 0.0

    score = 0.6 * sleep_stress + 0.4 * day_load + recent_exercise + hr_component
    return clamp(score, 0.0, 1.0)


def compute_acute_arousal_index(features: Mapping[str, Any]) -> float | None:
    """0-10 acute arousal score.

    Returns None if no HR signal and no movement signal is present; a 0
    would read as "measured calm".
    """
    hr_delta = _num(features, "hrDelta5m")
    hr_slope = _num(features, "hrSlopeLast30m")
    hr_z = _num(features, "hrZNow")
    burst = _num(features, "stepBurst5m")
    steps15 = _num(features, "stepsLast15m")
    azm_spike = _num(features, "azmSpike30m")

    has_hr = any(v is not None for v in (hr_delta, hr_slope, hr_z))
    has_movement = any(v is not None for v in (burst, steps15, azm_spike))
    if not has_hr and not has_movement:
        return None

    hr_delta = hr_delta or 0.0
    burst = burst or 0.0
    zero_streak = _num(features, "zeroStreakMax60m")

    hr_component = 1.2 * hr_delta + 30.0 * (hr_slope or 0.0) + 1.0 * (hr_z or 0.0)
    movement_component = 0.015 * (steps15 or 0.0) + 0.5 * burst + 1.0 * (azm_spike or 0.0)

    sedentary = 0.0
    if zero_streak is not None and zero_streak >= AROUSAL_SEDENTARY_STREAK_MIN:
        if burst < 15 and hr_delta < 5:
            sedentary = -1.0
        elif burst > 30 or hr_delta > 10:
            sedentary = 1.0

    exercise_suppress = AROUSAL_POST_EXERCISE_SUPPRESS if _flag(features, "postExerciseWindow90m") else 0.0

    sleep_hrs = _num(features, "sleepDurationLastNightHrs")
    sleep_suppress = AROUSAL_SLEEP_SUPPRESS if sleep_hrs is not None and sleep_hrs < SHORT_SLEEP_HRS else 0.0

    score = hr_component + movement_component + sedentary + exercise_suppress + sleep_suppress
    return clamp(score, 0.0, 10.0)


def build_cross_features(features: Mapping[str, Any]) -> CrossFeatures:
    """Compute every cross feature from the merged base features."""
    result = CrossFeatures(
        recent_activity_x_time_of_day=recent_activity_x_time_of_day_feature(features),
        low_sleep_high_activity_flag=low_sleep_high_activity_flag_feature(features),
        acute_arousal_index=compute_acute_arousal_index(features),
    )
    if result.acute_arousal_index is None:
        result.notes.append("no_arousal_signals")
    return result
