"""Composite psychophysiological scores.

Small rule engines over the merged base and cross features:

  - ``overexertionFlag``: too much output, not enough recovery
  - ``stressSpikeFlag``: acute HR arousal not explained by recent exercise
  - ``eveningRestlessnessScore`` (18-23h), ``morningLethargyScore`` (6-11h)
    and ``doomscrollingScore`` (22-2h, wrapping midnight), each in [0, 1]

Flags are None when there is not enough input to decide.  Scores are None
without an hour of day and 0 outside their time window.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from wearfeat.features.record import FeatureGroup
from wearfeat.features.windows import clamp01, finite

LOW_SLEEP_HIGH_ACTIVITY_DECISIVE = 0.7
OVEREXERTION_SHORT_SLEEP_HRS = 6.0
OVEREXERTION_SLEEP_DEBT_HRS = 2.0
OVEREXERTION_ACTIVE_DAY_AZM = 60.0
OVEREXERTION_LONG_EXERCISE_MIN = 45.0
OVEREXERTION_RECENT_EXERCISE_HRS = 8.0

STRESS_HR_Z = 1.0
STRESS_DELTA_5M = 10.0
STRESS_DELTA_15M = 15.0
STRESS_SLOPE_30M = 0.3

EVENING_HOURS = (18, 23)
MORNING_HOURS = (6, 11)
LATE_NIGHT_START = 22
LATE_NIGHT_END = 2


@dataclass
class CompositeFeatures(FeatureGroup):
    overexertion_flag: bool | None = None
    stress_spike_flag: bool | None = None
    evening_restlessness_score: float | None = None
    morning_lethargy_score: float | None = None
    doomscrolling_score: float | None = None


def _num(f: Mapping[str, Any], *keys: str) -> float | None:
    for key in keys:
        v = finite(f.get(key))
        if v is not None:
            return v
    return None


# ---------------------------------------------------------------------------
# Flags
# ---------------------------------------------------------------------------


def overexertion_flag(f: Mapping[str, Any]) -> bool | None:
    low_sleep_high_activity = _num(f, "lowSleepHighActivityFlag")
    if low_sleep_high_activity is not None and low_sleep_high_activity >= LOW_SLEEP_HIGH_ACTIVITY_DECISIVE:
        return True

    sleep_hrs = _num(f, "sleepDurationLastNightHrs")
    debt = _num(f, "sleepDebtHrs")
    azm_today = _num(f, "azmToday")
    exercise_min = _num(f, "lastExerciseDurationMinutes")

    hours_since = _num(f, "hoursSinceLastExercise")
    if hours_since is None:
        minutes_since = _num(f, "timeSinceLastExerciseMin")
        hours_since = minutes_since / 60.0 if minutes_since is not None else None

    short_sleep = sleep_hrs is not None and sleep_hrs < OVEREXERTION_SHORT_SLEEP_HRS
    high_debt = debt is not None and debt >= OVEREXERTION_SLEEP_DEBT_HRS
    active_day = azm_today is not None and azm_today >= OVEREXERTION_ACTIVE_DAY_AZM
    recent_long_exercise = (
        exercise_min is not None
        and exercise_min >= OVEREXERTION_LONG_EXERCISE_MIN
        and hours_since is not None
        and hours_since <= OVEREXERTION_RECENT_EXERCISE_HRS
    )

    if active_day and (short_sleep or high_debt or recent_long_exercise):
        return True
    if any(v is not None for v in (sleep_hrs, debt, azm_today, exercise_min)):
        return False
    return None


def stress_spike_flag(f: Mapping[str, Any]) -> bool | None:
    z = _num(f, "hrZLast15m", "hrZNow")
    if z is None:
        return None

    delta5 = _num(f, "hrDelta5m")
    delta15 = _num(f, "hrDelta15m")
    slope30 = _num(f, "hrSlopeLast30m")
    sharp_jump = (
        (delta5 is not None and delta5 >= STRESS_DELTA_5M)
        or (delta15 is not None and delta15 >= STRESS_DELTA_15M)
        or (slope30 is not None and slope30 >= STRESS_SLOPE_30M)
    )
    if z < STRESS_HR_Z or not sharp_jump:
        return False
    # HR decay right after a workout is not stress
    return f.get("postExerciseWindow90m") is not True


# ---------------------------------------------------------------------------
# Time-windowed scores
# ---------------------------------------------------------------------------


def evening_restlessness_score(f: Mapping[str, Any]) -> float | None:
    hour = _num(f, "hourOfDay")
    if hour is None:
        return None
    if not EVENING_HOURS[0] <= hour <= EVENING_HOURS[1]:
        return 0.0

    steps60 = _num(f, "stepsLast60m")
    azm60 = _num(f, "azmLast60m", "azmLast30m")
    hr_z = _num(f, "hrZNow", "hrZLast15m")

    movement = clamp01(steps60 / 1000.0) if steps60 is not None else 0.0
    azm = clamp01(azm60 / 20.0) if azm60 is not None else 0.0
    hr = clamp01((hr_z + 1.0) / 3.0) if hr_z is not None else 0.0
    return clamp01(0.4 * movement + 0.3 * azm + 0.3 * hr)


def morning_lethargy_score(f: Mapping[str, Any]) -> float | None:
    hour = _num(f, "hourOfDay")
    if hour is None:
        return None
    if not MORNING_HOURS[0] <= hour <= MORNING_HOURS[1]:
        return 0.0

    steps60 = _num(f, "stepsLast60m")
    debt = _num(f, "sleepDebtHrs")
    hr_z = _num(f, "hrZNow", "hrZLast15m")

    debt_score = clamp01(debt / 3.0) if debt is not None else 0.0
    inactivity = clamp01((200.0 - steps60) / 200.0) if steps60 is not None else 0.0
    low_hr = clamp01(-hr_z / 2.0) if hr_z is not None and hr_z < 0 else 0.0
    return clamp01(0.5 * debt_score + 0.3 * inactivity + 0.2 * low_hr)


def doomscrolling_score(f: Mapping[str, Any]) -> float | None:
    hour = _num(f, "hourOfDay")
    if hour is None:
        return None
    if not (hour >= LATE_NIGHT_START or hour <= LATE_NIGHT_END):
        return 0.0

    sedentary = _num(f, "sedentaryMinsLast3h")
    steps30 = _num(f, "stepsLast30m", "stepsLast60m")
    snack_fraction = _num(f, "snackCaloriesFraction")

    sed_score = clamp01(sedentary / 180.0) if sedentary is not None else 0.0
    low_steps = clamp01((100.0 - steps30) / 100.0) if steps30 is not None else 0.0
    snack = clamp01(snack_fraction) if snack_fraction is not None else 0.0
    return clamp01(0.5 * sed_score + 0.3 * low_steps + 0.2 * snack)


def build_composite_psychophys_features(features: Mapping[str, Any]) -> CompositeFeatures:
    """Evaluate every composite score over the merged features."""
    return CompositeFeatures(
        overexertion_flag=overexertion_flag(features),
        stress_spike_flag=stress_spike_flag(features),
        evening_restlessness_score=evening_restlessness_score(features),
        morning_lethargy_score=morning_lethargy_score(features),
        doomscrolling_score=doomscrolling_score(features),
    )
