"""Active Zone Minutes (AZM) intraday features.

Samples look like::

    {"time": "2025-11-19T14:05:00",
     "activeZoneMinutes": 1,
     "fatBurnActiveZoneMinutes": 1,
     "cardioActiveZoneMinutes": 0,
     "peakActiveZoneMinutes": 0}

A bare ``value`` is read as ``activeZoneMinutes``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from wearfeat.features.record import FeatureGroup
from wearfeat.features.windows import (
    Sample,
    count_points,
    is_positive,
    is_zero,
    longest_streak,
    select_window,
    slope_points,
    sum_points,
)

TOTAL_KEYS = ("activeZoneMinutes", "value")
FAT_BURN_KEYS = ("fatBurnActiveZoneMinutes",)
CARDIO_KEYS = ("cardioActiveZoneMinutes",)
PEAK_KEYS = ("peakActiveZoneMinutes",)


@dataclass
class AzmFeatures(FeatureGroup):
    """Windowed AZM totals, per-zone sums, streaks and trend."""

    azm_last_30m: float | None = None
    azm_last_60m: float | None = None
    azm_fat_burn_last_30m: float | None = None
    azm_cardio_last_30m: float | None = None
    azm_peak_last_30m: float | None = None
    azm_fat_burn_last_60m: float | None = None
    azm_cardio_last_60m: float | None = None
    azm_peak_last_60m: float | None = None
    azm_intensity_minutes_30m: int | None = None
    azm_intensity_minutes_60m: int | None = None
    azm_zero_streak_max_60m: int | None = None
    azm_slope_last_60m: float | None = None
    azm_spike_30m: int | None = None


def azm_spike_30m(series: Iterable[Sample], now: datetime) -> int:
    """Minutes with AZM > 0 in the last 30m minus those in the prior 30m."""
    last30 = select_window(series, now, 30, value_keys=TOTAL_KEYS, missing_as=0.0)
    prev30 = select_window(series, now, 30, offset=30, value_keys=TOTAL_KEYS, missing_as=0.0)
    return count_points(last30, is_positive) - count_points(prev30, is_positive)


def features_from_azm(series: Iterable[Sample] | None, now: datetime) -> AzmFeatures:
    """Compute AZM features for the windows ending at *now*."""
    if series is None:
        return AzmFeatures(notes=["no_azm_series"])

    series = list(series)

    def zone_sum(minutes: float, keys: tuple[str, ...]) -> float:
        return sum_points(select_window(series, now, minutes, value_keys=keys))

    # Total AZM per minute; a sample without a total counts as no AZM
    total30 = select_window(series, now, 30, value_keys=TOTAL_KEYS, missing_as=0.0)
    total60 = select_window(series, now, 60, value_keys=TOTAL_KEYS, missing_as=0.0)

    return AzmFeatures(
        azm_last_30m=sum_points(total30),
        azm_last_60m=sum_points(total60),
        azm_fat_burn_last_30m=zone_sum(30, FAT_BURN_KEYS),
        azm_cardio_last_30m=zone_sum(30, CARDIO_KEYS),
        azm_peak_last_30m=zone_sum(30, PEAK_KEYS),
        azm_fat_burn_last_60m=zone_sum(60, FAT_BURN_KEYS),
        azm_cardio_last_60m=zone_sum(60, CARDIO_KEYS),
        azm_peak_last_60m=zone_sum(60, PEAK_KEYS),
        azm_intensity_minutes_30m=count_points(total30, is_positive),
        azm_intensity_minutes_60m=count_points(total60, is_positive),
        azm_zero_streak_max_60m=longest_streak(total60, is_zero),
        azm_slope_last_60m=slope_points(total60),
        azm_spike_30m=azm_spike_30m(series, now),
    )
