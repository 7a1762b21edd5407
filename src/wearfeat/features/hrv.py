"""Heart-rate variability features.

Inputs:
  - daily: single-day HRV summary ``{"hrv": [{"dateTime": ..., "value":
    {"dailyRmssd": 28.5, "deepRmssd": 35.1}}]}``
  - history: the same shape spanning the 7 days ending today
  - intraday: ``[{time, rmssd, coverage, hf, lf}]`` samples for the night

The intraday aggregates cover the whole supplied series; there is no
anchor window because HRV is only recorded during sleep.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from wearfeat.features.record import FeatureGroup
from wearfeat.features.windows import finite, mean_or_none, population_std_or_none


@dataclass
class HrvFeatures(FeatureGroup):
    hrv_rmssd_daily: float | None = None
    hrv_deep_rmssd_daily: float | None = None
    hrv_rmssd_7d_avg: float | None = None
    hrv_rmssd_deviation_from_7d: float | None = None
    hrv_intraday_rmssd_mean: float | None = None
    hrv_intraday_rmssd_std_dev: float | None = None
    hrv_intraday_lf_mean: float | None = None
    hrv_intraday_hf_mean: float | None = None
    hrv_intraday_lf_hf_ratio_mean: float | None = None
    hrv_intraday_coverage_mean: float | None = None


def _hrv_entries(payload: Any) -> list[Mapping[str, Any]]:
    if isinstance(payload, Mapping):
        payload = payload.get("hrv")
    if not isinstance(payload, (list, tuple)):
        return []
    return [e for e in payload if isinstance(e, Mapping)]


def _entry_value(entry: Mapping[str, Any], key: str) -> float | None:
    value = entry.get("value")
    if isinstance(value, Mapping):
        return finite(value.get(key))
    return finite(entry.get(key))


def daily_rmssd(daily: Any) -> tuple[float | None, float | None]:
    """``(dailyRmssd, deepRmssd)`` from the first entry of a single-day summary."""
    entries = _hrv_entries(daily)
    if not entries:
        return None, None
    return _entry_value(entries[0], "dailyRmssd"), _entry_value(entries[0], "deepRmssd")


def rmssd_7d_avg(history: Any) -> float | None:
    values = [_entry_value(e, "dailyRmssd") for e in _hrv_entries(history)]
    return mean_or_none([v for v in values if v is not None])


def intraday_aggregates(intraday: Iterable[Any] | None) -> dict[str, float | None]:
    """Means over the intraday samples; LF/HF ratio only where HF > 0."""
    rmssd: list[float] = []
    lf_vals: list[float] = []
    hf_vals: list[float] = []
    coverage: list[float] = []
    ratios: list[float] = []

    for point in intraday or []:
        if not isinstance(point, Mapping):
            continue
        r = finite(point.get("rmssd"))
        lf = finite(point.get("lf"))
        hf = finite(point.get("hf"))
        cov = finite(point.get("coverage"))
        if r is not None:
            rmssd.append(r)
        if lf is not None:
            lf_vals.append(lf)
        if hf is not None:
            hf_vals.append(hf)
        if cov is not None:
            coverage.append(cov)
        if lf is not None and hf is not None and hf > 0:
            ratios.append(lf / hf)

    return {
        "rmssd_mean": mean_or_none(rmssd),
        "rmssd_std": population_std_or_none(rmssd),
        "lf_mean": mean_or_none(lf_vals),
        "hf_mean": mean_or_none(hf_vals),
        "ratio_mean": mean_or_none(ratios),
        "coverage_mean": mean_or_none(coverage),
    }


def features_from_hrv(
    daily: Any,
    history: Any = None,
    intraday: Iterable[Any] | None = None,
) -> HrvFeatures:
    """Daily RMSSD, its 7-day baseline and intraday spectral aggregates."""
    rmssd, deep = daily_rmssd(daily)
    baseline = rmssd_7d_avg(history)
    intra = intraday_aggregates(intraday)

    result = HrvFeatures(
        hrv_rmssd_daily=rmssd,
        hrv_deep_rmssd_daily=deep,
        hrv_rmssd_7d_avg=baseline,
        hrv_rmssd_deviation_from_7d=(
            rmssd - baseline if rmssd is not None and baseline is not None else None
        ),
        hrv_intraday_rmssd_mean=intra["rmssd_mean"],
        hrv_intraday_rmssd_std_dev=intra["rmssd_std"],
        hrv_intraday_lf_mean=intra["lf_mean"],
        hrv_intraday_hf_mean=intra["hf_mean"],
        hrv_intraday_lf_hf_ratio_mean=intra["ratio_mean"],
        hrv_intraday_coverage_mean=intra["coverage_mean"],
    )
    if rmssd is None:
        result.notes.append("no_hrv_daily")
    return result
