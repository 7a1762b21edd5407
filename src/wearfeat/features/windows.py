"""Sliding-window aggregation over irregular intraday series.

This is the shared foundation for the per-signal extractors.  It provides:
  - Half-open window selection ``(end - minutes, end]`` on the anchor's
    minute axis, with midnight-crossing normalization
  - Reductions: sum, max, min, mean, sample std dev, OLS slope, counts and
    longest streaks
  - Small numeric helpers used by the daily/baseline extractors
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Sequence

import numpy as np

from wearfeat.features.timeindex import (
    minutes_since_midnight,
    normalize_minutes_for_window,
    parse_time_to_minutes,
)


Sample = Mapping[str, Any]


# ---------------------------------------------------------------------------
# Numeric helpers
# ---------------------------------------------------------------------------


def finite(value: Any) -> float | None:
    """Return *value* as a float if it is a finite real number, else None.

    Booleans are not numbers here.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        f = float(value)
        return f if math.isfinite(f) else None
    return None


def finite_or_numeric_str(value: Any) -> float | None:
    """Like :func:`finite` but also accepts numeric strings (``"1234"``)."""
    f = finite(value)
    if f is not None:
        return f
    if isinstance(value, str):
        try:
            f = float(value.strip())
        except ValueError:
            return None
        return f if math.isfinite(f) else None
    return None


def mean_or_none(values: Sequence[float]) -> float | None:
    """Arithmetic mean, or None for an empty sequence."""
    if len(values) == 0:
        return None
    return float(np.mean(np.asarray(values, dtype=np.float64)))


def sample_std(values: Sequence[float]) -> float | None:
    """Sample standard deviation (n-1); 0 for a single value, None for none."""
    if len(values) == 0:
        return None
    if len(values) == 1:
        return 0.0
    return float(np.std(np.asarray(values, dtype=np.float64), ddof=1))


def population_std_or_none(values: Sequence[float]) -> float | None:
    """Population standard deviation; None if fewer than 2 values."""
    if len(values) < 2:
        return None
    return float(np.std(np.asarray(values, dtype=np.float64), ddof=0))


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def clamp01(x: float) -> float:
    return clamp(x, 0.0, 1.0)


def ols_slope(xs: Sequence[float], ys: Sequence[float]) -> float | None:
    """Ordinary least-squares slope of *ys* against *xs*.

    Returns None if fewer than 2 points or the x-axis has zero variance.
    """
    if len(xs) < 2:
        return None
    x = np.asarray(xs, dtype=np.float64)
    y = np.asarray(ys, dtype=np.float64)
    dx = x - x.mean()
    den = float(np.sum(dx * dx))
    if den == 0.0:
        return None
    return float(np.sum(dx * (y - y.mean())) / den)


def daily_values(rows: Iterable[Any] | None, *keys: str) -> list[float]:
    """Pull numeric values out of a daily summary series, oldest first.

    Each row may be a bare number or a mapping; the first of *keys* holding
    a number (or numeric string) wins.  A nested ``value`` mapping is
    searched too, matching the upstream ``{"value": {"restingHeartRate":
    58}}`` shape.  Rows without a usable value are dropped.

    A wrapped payload such as ``{"activities-steps": [...]}`` is unwrapped
    to its first list value.
    """
    if isinstance(rows, Mapping):
        rows = next((v for v in rows.values() if isinstance(v, (list, tuple))), None)

    out: list[float] = []
    for row in rows or []:
        if isinstance(row, Mapping):
            v = None
            for key in keys:
                v = finite_or_numeric_str(row.get(key))
                if v is None and isinstance(row.get("value"), Mapping):
                    v = finite_or_numeric_str(row["value"].get(key))
                if v is not None:
                    break
        else:
            v = finite_or_numeric_str(row)
        if v is not None:
            out.append(v)
    return out


def baseline_deviation(
    current: float | None,
    history: Iterable[Any] | None,
    key: str,
) -> tuple[float | None, float | None]:
    """``(baseline_mean, current - baseline_mean)`` for a nightly metric."""
    baseline = mean_or_none(daily_values(history, key))
    if current is None or baseline is None:
        return baseline, None
    return baseline, current - baseline


def relative_elevation(value: float | None, baseline: float | None) -> float | None:
    """``(value - baseline) / baseline``; None if either is missing or baseline <= 0."""
    if value is None or baseline is None or baseline <= 0:
        return None
    return (value - baseline) / baseline


# ---------------------------------------------------------------------------
# Window selection
# ---------------------------------------------------------------------------


def sample_value(sample: Sample, keys: Sequence[str]) -> float | None:
    """First finite value among *keys* in a sample mapping."""
    for key in keys:
        v = finite(sample.get(key))
        if v is not None:
            return v
    return None


def select_window(
    series: Iterable[Sample] | None,
    anchor: datetime,
    minutes: float,
    offset: float = 0.0,
    value_keys: Sequence[str] = ("value",),
    missing_as: float | None = None,
) -> list[tuple[float, float]]:
    """Return ``(minute, value)`` pairs inside ``(end - minutes, end]``.

    ``end`` is the anchor's minute offset minus *offset*.  Samples are kept
    in input order.  Samples with an unparseable time are skipped.  A sample
    without a usable value is skipped unless *missing_as* is given, in which
    case that value is substituted.
    """
    anchor_m = minutes_since_midnight(anchor)
    end_m = anchor_m - offset
    start_m = end_m - minutes

    out: list[tuple[float, float]] = []
    for sample in series or []:
        if not isinstance(sample, Mapping):
            continue
        t = normalize_minutes_for_window(parse_time_to_minutes(sample.get("time")), anchor_m)
        if t is None:
            continue
        if not (start_m < t <= end_m):
            continue
        v = sample_value(sample, value_keys)
        if v is None:
            if missing_as is None:
                continue
            v = missing_as
        out.append((t, v))
    return out


# ---------------------------------------------------------------------------
# Reductions
# ---------------------------------------------------------------------------


def _values(points: Sequence[tuple[float, float]]) -> np.ndarray:
    return np.asarray([v for _, v in points], dtype=np.float64)


def sum_points(points: Sequence[tuple[float, float]]) -> float:
    if not points:
        return 0.0
    return float(np.sum(_values(points)))


def max_points(points: Sequence[tuple[float, float]], default: float | None = 0.0) -> float | None:
    if not points:
        return default
    return float(np.max(_values(points)))


def min_points(points: Sequence[tuple[float, float]]) -> float | None:
    if not points:
        return None
    return float(np.min(_values(points)))


def mean_points(points: Sequence[tuple[float, float]]) -> float | None:
    if not points:
        return None
    return float(np.mean(_values(points)))


def std_points(points: Sequence[tuple[float, float]]) -> float | None:
    """Sample standard deviation of the window values."""
    return sample_std([v for _, v in points])


def slope_points(points: Sequence[tuple[float, float]]) -> float:
    """Per-minute OLS slope; 0 for <2 points or zero time variance."""
    slope = ols_slope([t for t, _ in points], [v for _, v in points])
    return 0.0 if slope is None else slope


def count_points(
    points: Sequence[tuple[float, float]],
    predicate: Callable[[float], bool],
) -> int:
    return sum(1 for _, v in points if predicate(v))


def longest_streak(
    points: Sequence[tuple[float, float]],
    predicate: Callable[[float], bool],
) -> int:
    """Longest run of consecutive in-window samples satisfying *predicate*."""
    run = 0
    best = 0
    for _, v in points:
        if predicate(v):
            run += 1
            best = max(best, run)
        else:
            run = 0
    return best


def is_zero(v: float) -> bool:
    return v == 0


def is_positive(v: float) -> bool:
    return v > 0
