"""Personal 7-day baselines and deviation of "today" from them.

  - ``stepsZToday``: today's step total as a z-score against the prior days
  - ``activityInertia``: normalized, sign-flipped OLS slope of daily steps
    (positive means activity is trending down)
  - ``sleepDebtHrs``: target sleep minus the mean of the last 3 nights
  - ``recoveryIndex``: ``-restingHr7dTrend - sleepDebtHrs``
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from wearfeat.features.record import FeatureGroup
from wearfeat.features.sleep import aggregate_sleep_nights
from wearfeat.features.timeindex import local_naive
from wearfeat.features.windows import (
    daily_values,
    finite,
    mean_or_none,
    ols_slope,
    population_std_or_none,
)

STEP_KEYS = ("value", "steps")

DEFAULT_SLEEP_TARGET_HRS = 8.0
SLEEP_DEBT_NIGHTS = 3


@dataclass
class BaselineFeatures(FeatureGroup):
    steps_z_today: float | None = None
    activity_inertia: float | None = None
    sleep_debt_hrs: float | None = None
    recovery_index: float | None = None
    steps_7d_avg: float | None = None
    steps_deviation_from_7d_avg: float | None = None


def daily_steps(steps_7d: Any) -> list[float]:
    """Daily step totals, oldest first (upstream totals may be strings)."""
    return daily_values(steps_7d, *STEP_KEYS)


def steps_z_today_from_timeseries(steps_7d: Any) -> float | None:
    """Z-score of today's steps against the preceding days.

    None with fewer than 2 prior days or when the prior days have zero
    variance.
    """
    values = daily_steps(steps_7d)
    if len(values) < 3:
        return None
    today, prior = values[-1], values[:-1]
    std = population_std_or_none(prior)
    if not std:
        return None
    return (today - float(mean_or_none(prior))) / std


def activity_inertia_from_steps_7d(steps_7d: Any) -> float | None:
    values = daily_steps(steps_7d)
    slope = ols_slope(list(range(len(values))), values)
    if slope is None:
        return None
    mean = float(mean_or_none(values))
    norm = slope / mean if mean > 0 else slope
    return -norm


def sleep_debt_hrs_from_sleep_range(
    sleep_logs: Any,
    now: datetime,
    target_hrs: float = DEFAULT_SLEEP_TARGET_HRS,
) -> float | None:
    """Hours short of *target_hrs* over the last nights ending before *now*.

    Nights are aggregated the same way as the sleep extractor.  Being ahead
    of target gives 0, never negative debt.
    """
    local_now = local_naive(now)
    nights = [
        n for n in aggregate_sleep_nights(sleep_logs, now.tzinfo)
        if n.end is not None and n.end < local_now and n.duration_hrs is not None
    ]
    recent = nights[-SLEEP_DEBT_NIGHTS:]
    if not recent:
        return None
    avg = float(mean_or_none([n.duration_hrs for n in recent]))
    return max(0.0, target_hrs - avg)


def recovery_index_from_signals(
    resting_hr_7d_trend: float | None,
    sleep_debt_hrs: float | None,
) -> float | None:
    """Higher is better recovery; None only if both inputs are missing."""
    trend = finite(resting_hr_7d_trend)
    debt = finite(sleep_debt_hrs)
    if trend is None and debt is None:
        return None
    return -(trend or 0.0) - (debt or 0.0)


def build_baseline_features(
    steps_7d: Any,
    sleep_logs: Any,
    resting_hr_7d_trend: float | None,
    now: datetime,
    sleep_target_hrs: float = DEFAULT_SLEEP_TARGET_HRS,
) -> BaselineFeatures:
    """Compute every personal-baseline feature for one anchor."""
    result = BaselineFeatures(
        steps_z_today=steps_z_today_from_timeseries(steps_7d),
        activity_inertia=activity_inertia_from_steps_7d(steps_7d),
        sleep_debt_hrs=sleep_debt_hrs_from_sleep_range(sleep_logs, now, sleep_target_hrs),
    )
    result.recovery_index = recovery_index_from_signals(resting_hr_7d_trend, result.sleep_debt_hrs)

    steps = daily_steps(steps_7d)
    if steps:
        result.steps_7d_avg = mean_or_none(steps)
        result.steps_deviation_from_7d_avg = steps[-1] - result.steps_7d_avg
    else:
        result.notes.append("no_steps_7d")
    return result
