"""Heart rate features: intraday windows plus the 7-day resting-HR baseline.

Elevation ratios (``hrZNow``, ``hrZLast15m``) are relative to the mean
resting HR over the 7-day series: 0.0 at baseline, 0.2 when 20% above it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping

from wearfeat.features.record import FeatureGroup
from wearfeat.features.timeindex import (
    minutes_since_midnight,
    normalize_minutes_for_window,
    parse_time_to_minutes,
)
from wearfeat.features.windows import (
    Sample,
    daily_values,
    max_points,
    mean_or_none,
    mean_points,
    min_points,
    relative_elevation,
    sample_std,
    sample_value,
    select_window,
    slope_points,
    std_points,
)

HR_KEYS = ("value", "hr")
RESTING_HR_KEYS = ("value", "restingHeartRate")


@dataclass
class HeartRateFeatures(FeatureGroup):
    """Acute HR statistics and resting-HR baseline comparisons."""

    hr_now: float | None = None
    hr_avg_last_5m: float | None = None
    hr_avg_last_15m: float | None = None
    hr_avg_last_60m: float | None = None
    hr_min_last_15m: float | None = None
    hr_max_last_15m: float | None = None
    hr_std_dev_last_30m: float | None = None
    hr_std_dev_last_60m: float | None = None
    hr_slope_last_30m: float | None = None
    hr_slope_last_60m: float | None = None
    hr_delta_5m: float | None = None
    hr_delta_15m: float | None = None
    resting_hr_7d_avg: float | None = None
    resting_hr_7d_std_dev: float | None = None
    resting_hr_today: float | None = None
    resting_hr_deviation_from_7d: float | None = None
    hr_z_now: float | None = None
    hr_z_last_15m: float | None = None


@dataclass
class RestingHrTrendFeatures(FeatureGroup):
    resting_hr_7d_trend: float | None = None


def resting_hr_values(rhr_7d: Iterable[Any] | None) -> list[float]:
    """Daily resting HR values, oldest first."""
    return daily_values(rhr_7d, *RESTING_HR_KEYS)


def latest_hr(series: Iterable[Sample], now: datetime) -> float | None:
    """Most recent sample at or before the anchor on the local minute axis."""
    anchor_m = minutes_since_midnight(now)
    best_t: float | None = None
    best_v: float | None = None
    for sample in series:
        if not isinstance(sample, Mapping):
            continue
        t = normalize_minutes_for_window(parse_time_to_minutes(sample.get("time")), anchor_m)
        if t is None:
            continue
        v = sample_value(sample, HR_KEYS)
        if v is None:
            continue
        if best_t is None or t >= best_t:
            best_t, best_v = t, v
    return best_v


def _delta(last: float | None, prior: float | None) -> float | None:
    if last is None or prior is None:
        return None
    return last - prior


def resting_hr_7d_trend(rhr_7d: Iterable[Any] | None) -> float | None:
    """Today's resting HR minus the mean of the prior days.

    Positive means RHR is rising (worse recovery).  None with fewer than 2
    days of data.
    """
    values = resting_hr_values(rhr_7d)
    if len(values) < 2:
        return None
    return values[-1] - float(mean_or_none(values[:-1]))


def features_from_heart_intraday(
    heart_series: Iterable[Sample] | None,
    rhr_7d: Iterable[Any] | None,
    now: datetime,
) -> HeartRateFeatures:
    """Build acute HR features from intraday HR plus the resting-HR series.

    Args:
        heart_series: ``[{time, value}]`` 1-minute HR samples, or None.
        rhr_7d: Daily resting HR rows spanning the 7 days ending today.
        now: Localized anchor time.
    """
    notes: list[str] = []

    rhr_vals = resting_hr_values(rhr_7d)
    rhr_mean = mean_or_none(rhr_vals)
    rhr_std = sample_std(rhr_vals)
    rhr_today = rhr_vals[-1] if rhr_vals else None
    if not rhr_vals:
        notes.append("no_resting_hr_7d")

    result = HeartRateFeatures(
        resting_hr_7d_avg=rhr_mean,
        resting_hr_7d_std_dev=rhr_std,
        resting_hr_today=rhr_today,
        resting_hr_deviation_from_7d=(
            rhr_today - rhr_mean if rhr_today is not None and rhr_mean is not None else None
        ),
        notes=notes,
    )

    if heart_series is None:
        notes.append("no_heart_series")
        return result

    series = list(heart_series)

    def window(minutes: float, offset: float = 0.0):
        return select_window(series, now, minutes, offset=offset, value_keys=HR_KEYS)

    last5 = window(5)
    last15 = window(15)
    last30 = window(30)
    last60 = window(60)

    result.hr_now = latest_hr(series, now)
    result.hr_avg_last_5m = mean_points(last5)
    result.hr_avg_last_15m = mean_points(last15)
    result.hr_avg_last_60m = mean_points(last60)
    result.hr_min_last_15m = min_points(last15)
    result.hr_max_last_15m = max_points(last15, default=None)
    result.hr_std_dev_last_30m = std_points(last30)
    result.hr_std_dev_last_60m = std_points(last60)
    result.hr_slope_last_30m = slope_points(last30)
    result.hr_slope_last_60m = slope_points(last60)
    result.hr_delta_5m = _delta(result.hr_avg_last_5m, mean_points(window(5, offset=5)))
    result.hr_delta_15m = _delta(result.hr_avg_last_15m, mean_points(window(15, offset=15)))

    current = result.hr_now if result.hr_now is not None else result.hr_avg_last_5m
    result.hr_z_now = relative_elevation(current, rhr_mean)
    result.hr_z_last_15m = relative_elevation(result.hr_avg_last_15m, rhr_mean)
    return result
