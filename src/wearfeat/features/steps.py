"""Intraday step features.

Windows are relative to the anchor on the local minute axis.  A missing
series yields all-None features; a present series with nothing in a window
yields real zeros.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from wearfeat.features.record import FeatureGroup
from wearfeat.features.windows import (
    Sample,
    count_points,
    is_zero,
    longest_streak,
    max_points,
    select_window,
    slope_points,
    std_points,
    sum_points,
)

STEP_KEYS = ("value", "steps")

# Steps per minute that count as an "active" minute
ACTIVE_STEPS_PER_MIN = 60


@dataclass
class StepsFeatures(FeatureGroup):
    """Step counts and dynamics around the anchor."""

    steps_last_5m: float | None = None
    steps_last_15m: float | None = None
    steps_last_30m: float | None = None
    steps_last_60m: float | None = None
    steps_last_3h: float | None = None
    step_burst_5m: float | None = None
    zero_streak_max_60m: int | None = None
    steps_slope_last_60m: float | None = None
    steps_accel_5to15m: float | None = None
    steps_std_dev_60m: float | None = None
    sedentary_mins_last_3h: int | None = None
    step_active_spike_30m: int | None = None


def _window(series: Iterable[Sample], now: datetime, minutes: float, offset: float = 0.0):
    return select_window(series, now, minutes, offset=offset, value_keys=STEP_KEYS)


def sedentary_mins_last_3h_from_steps(series: Iterable[Sample] | None, now: datetime) -> int | None:
    """Minutes with exactly 0 steps in the last 180 minutes."""
    if series is None:
        return None
    return count_points(_window(series, now, 180), is_zero)


def step_active_spike_30m(
    series: Iterable[Sample] | None,
    now: datetime,
    threshold: float = ACTIVE_STEPS_PER_MIN,
) -> int | None:
    """Active minutes (>= *threshold* steps) in the last 30m minus the prior 30m."""
    if series is None:
        return None

    def active(v: float) -> bool:
        return v >= threshold

    last30 = count_points(_window(series, now, 30), active)
    prev30 = count_points(_window(series, now, 30, offset=30), active)
    return last30 - prev30


def features_from_steps(series: Iterable[Sample] | None, now: datetime) -> StepsFeatures:
    """Compute step features from a 1-minute step series.

    Args:
        series: ``[{time, value}]`` samples for the anchor's day (and the
            previous day when the window crosses midnight), or None.
        now: Localized anchor time.
    """
    if series is None:
        return StepsFeatures(notes=["no_steps_series"])

    series = list(series)
    last5 = _window(series, now, 5)
    last15 = _window(series, now, 15)
    last60 = _window(series, now, 60)

    sum5 = sum_points(last5)
    sum15 = sum_points(last15)

    return StepsFeatures(
        steps_last_5m=sum5,
        steps_last_15m=sum15,
        steps_last_30m=sum_points(_window(series, now, 30)),
        steps_last_60m=sum_points(last60),
        steps_last_3h=sum_points(_window(series, now, 180)),
        step_burst_5m=max_points(last5),
        zero_streak_max_60m=longest_streak(last60, is_zero),
        steps_slope_last_60m=slope_points(last60),
        steps_accel_5to15m=(sum15 - sum5) / 10.0,
        steps_std_dev_60m=std_points(last60),
        sedentary_mins_last_3h=sedentary_mins_last_3h_from_steps(series, now),
        step_active_spike_30m=step_active_spike_30m(series, now),
    )
