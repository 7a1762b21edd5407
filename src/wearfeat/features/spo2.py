"""Nightly SpO2 features with a 7-day baseline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from wearfeat.features.record import FeatureGroup
from wearfeat.features.windows import baseline_deviation, finite


@dataclass
class Spo2Features(FeatureGroup):
    spo2_avg: float | None = None
    spo2_min: float | None = None
    spo2_max: float | None = None
    spo2_range: float | None = None
    spo2_avg_7d_avg: float | None = None
    spo2_avg_deviation_from_7d: float | None = None


def features_from_spo2(
    daily: Mapping[str, Any] | None,
    history: Iterable[Any] | None = None,
) -> Spo2Features:
    """Build SpO2 features.

    Args:
        daily: ``{spo2Avg, spo2Min, spo2Max}`` for the current night.
        history: Rows of the same shape used for the baseline average.
    """
    daily = daily if isinstance(daily, Mapping) else {}
    avg = finite(daily.get("spo2Avg"))
    lo = finite(daily.get("spo2Min"))
    hi = finite(daily.get("spo2Max"))
    baseline, deviation = baseline_deviation(avg, history, "spo2Avg")

    return Spo2Features(
        spo2_avg=avg,
        spo2_min=lo,
        spo2_max=hi,
        spo2_range=hi - lo if hi is not None and lo is not None else None,
        spo2_avg_7d_avg=baseline,
        spo2_avg_deviation_from_7d=deviation,
    )
