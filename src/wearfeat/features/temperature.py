"""Nightly skin temperature relative to the wearer's own baseline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from wearfeat.features.record import FeatureGroup
from wearfeat.features.windows import baseline_deviation, finite

TEMP_KEY = "tempSkinNightlyRelative"


@dataclass
class SkinTempFeatures(FeatureGroup):
    temp_skin_nightly_relative: float | None = None
    temp_skin_nightly_relative_7d_avg: float | None = None
    temp_skin_nightly_relative_deviation_from_7d: float | None = None


def features_from_temp_skin(
    daily: Mapping[str, Any] | None,
    history: Iterable[Any] | None = None,
) -> SkinTempFeatures:
    current = finite(daily.get(TEMP_KEY)) if isinstance(daily, Mapping) else None
    baseline, deviation = baseline_deviation(current, history, TEMP_KEY)
    return SkinTempFeatures(
        temp_skin_nightly_relative=current,
        temp_skin_nightly_relative_7d_avg=baseline,
        temp_skin_nightly_relative_deviation_from_7d=deviation,
    )
