"""Breathing-rate features (breaths/min per sleep stage) with a 7-day baseline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from wearfeat.features.record import FeatureGroup
from wearfeat.features.windows import baseline_deviation, finite


@dataclass
class BreathingFeatures(FeatureGroup):
    br_full_night: float | None = None
    br_deep_sleep: float | None = None
    br_rem_sleep: float | None = None
    br_light_sleep: float | None = None
    br_full_night_7d_avg: float | None = None
    br_full_night_deviation_from_7d: float | None = None


def features_from_breathing(
    daily: Mapping[str, Any] | None,
    history: Iterable[Any] | None = None,
) -> BreathingFeatures:
    daily = daily if isinstance(daily, Mapping) else {}
    full = finite(daily.get("brFull"))
    baseline, deviation = baseline_deviation(full, history, "brFull")

    return BreathingFeatures(
        br_full_night=full,
        br_deep_sleep=finite(daily.get("brDeep")),
        br_rem_sleep=finite(daily.get("brRem")),
        br_light_sleep=finite(daily.get("brLight")),
        br_full_night_7d_avg=baseline,
        br_full_night_deviation_from_7d=deviation,
    )
