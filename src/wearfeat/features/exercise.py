"""Most-recent exercise features.

The activity list is the upstream ``{"activities": [...]}`` payload (a bare
list is accepted too).  Only activities that started at or before the anchor
are considered, so a historical build never sees a workout from its future.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Any, Mapping

from wearfeat.features.record import FeatureGroup
from wearfeat.features.timeindex import local_naive, parse_local_timestamp
from wearfeat.features.windows import finite

DEFAULT_POST_EXERCISE_WINDOW_MIN = 90.0


@dataclass
class ExerciseSummary:
    """One activity, normalized."""

    activity_name: str | None
    start_time: str | None
    start: datetime | None
    duration_ms: float | None
    steps: float | None = None
    calories: float | None = None
    average_heart_rate: float | None = None
    azm_total: float | None = None
    azm_fat_burn: float | None = None
    azm_cardio: float | None = None
    azm_peak: float | None = None

    @property
    def end(self) -> datetime | None:
        if self.start is None:
            return None
        return self.start + timedelta(milliseconds=self.duration_ms or 0.0)


@dataclass
class ExerciseFeatures(FeatureGroup):
    last_exercise_type: str | None = None
    last_exercise_start_time: str | None = None
    last_exercise_duration_minutes: float | None = None
    last_exercise_steps: float | None = None
    last_exercise_calories: float | None = None
    last_exercise_avg_hr: float | None = None
    last_exercise_azm_total: float | None = None
    last_exercise_azm_fat_burn: float | None = None
    last_exercise_azm_cardio: float | None = None
    last_exercise_azm_peak: float | None = None
    time_since_last_exercise_min: int | None = None
    hours_since_last_exercise: float | None = None
    post_exercise_window_90m: bool | None = None


def _zone_minutes(azm: Mapping[str, Any]) -> tuple[float | None, float | None, float | None]:
    """Sum per-zone minutes, matching zone names by substring."""
    fat_burn = cardio = peak = None
    zones = azm.get("minutesInHeartRateZones")
    if not isinstance(zones, (list, tuple)):
        return None, None, None

    for zone in zones:
        if not isinstance(zone, Mapping):
            continue
        name = str(zone.get("name") or zone.get("zoneName") or "").lower()
        minutes = finite(zone.get("minutes"))
        if not minutes:
            continue
        if "fat" in name or "burn" in name:
            fat_burn = (fat_burn or 0.0) + minutes
        elif "cardio" in name:
            cardio = (cardio or 0.0) + minutes
        elif "peak" in name:
            peak = (peak or 0.0) + minutes
    return fat_burn, cardio, peak


def normalize_exercise(activity: Mapping[str, Any], tz: tzinfo | None = None) -> ExerciseSummary:
    azm = activity.get("activeZoneMinutes")
    azm = azm if isinstance(azm, Mapping) else {}
    fat_burn, cardio, peak = _zone_minutes(azm)

    duration = finite(activity.get("duration"))
    if duration is None:
        duration = finite(activity.get("activeDuration"))

    start_time = activity.get("startTime")
    return ExerciseSummary(
        activity_name=activity.get("activityName"),
        start_time=start_time if isinstance(start_time, str) else None,
        start=parse_local_timestamp(start_time, tz),
        duration_ms=duration,
        steps=finite(activity.get("steps")),
        calories=finite(activity.get("calories")),
        average_heart_rate=finite(activity.get("averageHeartRate")),
        azm_total=finite(azm.get("totalMinutes")),
        azm_fat_burn=fat_burn,
        azm_cardio=cardio,
        azm_peak=peak,
    )


def normalize_most_recent_exercise(exercise_list: Any, now: datetime) -> ExerciseSummary | None:
    """The latest activity whose start is at or before *now*."""
    if isinstance(exercise_list, Mapping):
        exercise_list = exercise_list.get("activities")
    if not isinstance(exercise_list, (list, tuple)):
        return None

    local_now = local_naive(now)
    latest: ExerciseSummary | None = None
    for activity in exercise_list:
        if not isinstance(activity, Mapping):
            continue
        summary = normalize_exercise(activity, now.tzinfo)
        if summary.start is None or summary.start > local_now:
            continue
        if latest is None or summary.start > latest.start:
            latest = summary
    return latest


def minutes_since_exercise(summary: ExerciseSummary, now: datetime) -> int | None:
    """Whole minutes from the end of the activity to *now*, floored at 0."""
    end = summary.end
    if end is None:
        return None
    minutes = (local_naive(now) - end).total_seconds() / 60.0
    return max(0, math.floor(minutes))


def build_exercise_feature_block(
    exercise_list: Any,
    now: datetime,
    window_min: float = DEFAULT_POST_EXERCISE_WINDOW_MIN,
) -> ExerciseFeatures:
    """Most-recent exercise details plus time-since and post-exercise window.

    Args:
        exercise_list: ``{"activities": [...]}`` or a list of activities.
        now: Localized anchor time.
        window_min: Post-exercise window length in minutes.
    """
    summary = normalize_most_recent_exercise(exercise_list, now)
    if summary is None:
        return ExerciseFeatures(notes=["no_recent_exercise"])

    since = minutes_since_exercise(summary, now)
    return ExerciseFeatures(
        last_exercise_type=summary.activity_name,
        last_exercise_start_time=summary.start_time,
        last_exercise_duration_minutes=(
            summary.duration_ms / 60000.0 if summary.duration_ms is not None else None
        ),
        last_exercise_steps=summary.steps,
        last_exercise_calories=summary.calories,
        last_exercise_avg_hr=summary.average_heart_rate,
        last_exercise_azm_total=summary.azm_total,
        last_exercise_azm_fat_burn=summary.azm_fat_burn,
        last_exercise_azm_cardio=summary.azm_cardio,
        last_exercise_azm_peak=summary.azm_peak,
        time_since_last_exercise_min=since,
        hours_since_last_exercise=since / 60.0 if since is not None else None,
        post_exercise_window_90m=since <= window_min if since is not None else None,
    )
