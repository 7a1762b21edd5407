"""Daily activity summary and anchor time-of-day features."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping

from wearfeat.features.record import FeatureGroup, feature
from wearfeat.features.windows import Sample, finite, select_window, sum_points


@dataclass
class DailyFeatures(FeatureGroup):
    """Whole-day totals from the activity summary plus local clock features."""

    azm_today: float | None = None
    calories_out_today: float | None = None
    resting_hr: float | None = feature("restingHR")
    steps_today: float | None = None
    sedentary_minutes_today: float | None = None
    calories_out_last_3h: float | None = None
    hour_of_day: int | None = None
    day_of_week: int | None = None
    is_weekend: bool | None = None


def time_of_day(now: datetime) -> tuple[int, int, bool]:
    """``(hourOfDay, dayOfWeek, isWeekend)`` with dayOfWeek 0=Sunday."""
    day_of_week = (now.weekday() + 1) % 7
    return now.hour, day_of_week, day_of_week in (0, 6)


def azm_today_from_summary(summary: Mapping[str, Any]) -> float | None:
    """Total AZM for the day.

    Falls back to fairly + very active minutes when the summary has no AZM
    block.
    """
    azm = summary.get("activeZoneMinutes")
    if isinstance(azm, Mapping):
        total = finite(azm.get("totalMinutes"))
        if total is not None:
            return total

    fairly = finite(summary.get("fairlyActiveMinutes"))
    very = finite(summary.get("veryActiveMinutes"))
    if fairly is None and very is None:
        return None
    return (fairly or 0.0) + (very or 0.0)


def calories_out_last_3h(calories_series: Iterable[Sample] | None, now: datetime) -> float | None:
    """Sum of intraday calories burned over the last 180 minutes."""
    if calories_series is None:
        return None
    return sum_points(select_window(calories_series, now, 180))


def features_from_daily_summary(
    summary_json: Mapping[str, Any] | None,
    now: datetime,
    calories_series: Iterable[Sample] | None = None,
) -> DailyFeatures:
    """Compute daily-summary features.

    Args:
        summary_json: The day's activity summary, either the bare summary or
            wrapped as ``{"summary": {...}}``.
        now: Localized anchor time.
        calories_series: Optional ``[{time, value}]`` intraday calories.
    """
    hour, dow, weekend = time_of_day(now)
    result = DailyFeatures(
        hour_of_day=hour,
        day_of_week=dow,
        is_weekend=weekend,
        calories_out_last_3h=calories_out_last_3h(calories_series, now),
    )

    if not isinstance(summary_json, Mapping):
        result.notes.append("no_daily_summary")
        return result

    summary = summary_json.get("summary", summary_json)
    if not isinstance(summary, Mapping):
        result.notes.append("no_daily_summary")
        return result

    result.azm_today = azm_today_from_summary(summary)
    result.calories_out_today = finite(summary.get("caloriesOut"))
    result.resting_hr = finite(summary.get("restingHeartRate"))
    result.steps_today = finite(summary.get("steps"))
    result.sedentary_minutes_today = finite(summary.get("sedentaryMinutes"))
    return result
