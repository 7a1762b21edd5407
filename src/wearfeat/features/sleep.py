"""Sleep features from a 7-day range of sleep logs.

Upstream logs can split one night into several "main sleep" segments (the
band lost contact, the wearer got up).  Segments sharing a ``dateOfSleep``
are aggregated into a single :class:`SleepNight` before anything else is
computed.

Bedtime variability needs care around midnight: a 23:45 bedtime and a
00:15 bedtime are 30 minutes apart, not 1410.  Start times before noon are
therefore moved to the next day's axis (``+1440``) before the standard
deviation is taken.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Any, Iterable, Mapping

import numpy as np

from wearfeat.features.record import FeatureGroup
from wearfeat.features.timeindex import (
    MINUTES_PER_DAY,
    local_fractional_hour,
    local_naive,
    parse_local_timestamp,
)
from wearfeat.features.windows import clamp01, finite

NOON_MINUTES = 720

# Number of most recent nights used for bedtime variability
BEDTIME_NIGHTS = 7


@dataclass
class SleepNight:
    """One night of main sleep, possibly merged from several segments."""

    date: str
    start: datetime | None = None
    end: datetime | None = None
    duration_ms: float | None = None
    minutes_asleep: float | None = None
    minutes_awake: float | None = None
    rem_minutes: float | None = None
    deep_minutes: float | None = None
    light_minutes: float | None = None
    efficiency: float | None = None  # as reported, used when awake minutes are unknown
    segments: int = 0

    @property
    def duration_hrs(self) -> float | None:
        if self.duration_ms is not None and self.duration_ms > 0:
            return self.duration_ms / 3_600_000.0
        window = (self.minutes_asleep or 0.0) + (self.minutes_awake or 0.0)
        if window > 0:
            return window / 60.0
        return None

    def __repr__(self) -> str:
        return (
            f"SleepNight({self.date}: asleep={self.minutes_asleep}, "
            f"awake={self.minutes_awake}, segments={self.segments})"
        )


@dataclass
class SleepFeatures(FeatureGroup):
    """Last-night sleep metrics and 7-night bedtime variability."""

    sleep_duration_last_night_hrs: float | None = None
    minutes_asleep_last_night: float | None = None
    sleep_efficiency: float | None = None
    waso_minutes: float | None = None
    rem_ratio: float | None = None
    deep_ratio: float | None = None
    light_ratio: float | None = None
    sleep_segments_last_night: int | None = None
    sleep_onset_local_hour: float | None = None
    wake_time_local_hour: float | None = None
    sleep_fragmentation_score: float | None = None
    time_since_wake_hours: float | None = None
    sleep_nights_7d: int | None = None
    bedtime_std_dev_7d: float | None = None
    bedtime_std_dev_7d_minutes: float | None = None


# ---------------------------------------------------------------------------
# Night aggregation
# ---------------------------------------------------------------------------


def _add(total: float | None, value: float | None) -> float | None:
    if value is None:
        return total
    return (total or 0.0) + value


def _stage_minutes(record: Mapping[str, Any], stage: str) -> float | None:
    levels = record.get("levels")
    if not isinstance(levels, Mapping):
        return None
    summary = levels.get("summary")
    if not isinstance(summary, Mapping):
        return None
    entry = summary.get(stage)
    if not isinstance(entry, Mapping):
        return None
    return finite(entry.get("minutes"))


def _sleep_records(sleep_logs: Any) -> list[Mapping[str, Any]]:
    if isinstance(sleep_logs, Mapping):
        sleep_logs = sleep_logs.get("sleep")
    if not isinstance(sleep_logs, (list, tuple)):
        return []
    return [r for r in sleep_logs if isinstance(r, Mapping)]


def is_main_sleep(record: Mapping[str, Any]) -> bool:
    """Records without an ``isMainSleep`` flag count as main sleep."""
    flag = record.get("isMainSleep")
    return flag if isinstance(flag, bool) else True


def aggregate_sleep_nights(sleep_logs: Any, tz: tzinfo | None = None) -> list[SleepNight]:
    """Merge main-sleep segments by sleep date.

    Args:
        sleep_logs: A list of sleep records or ``{"sleep": [...]}``.
        tz: Local zone used for timestamps that carry an offset.

    Returns:
        Nights ordered by end time (nights without an end time first).
    """
    nights: dict[str, SleepNight] = {}

    for record in _sleep_records(sleep_logs):
        if not is_main_sleep(record):
            continue

        start = parse_local_timestamp(record.get("startTime"), tz)
        end = parse_local_timestamp(record.get("endTime"), tz)
        date = record.get("dateOfSleep")
        if not isinstance(date, str) or not date:
            if end is None:
                continue
            date = end.date().isoformat()

        night = nights.setdefault(date, SleepNight(date=date))
        night.segments += 1

        if start is not None and (night.start is None or start < night.start):
            night.start = start
        if end is not None and (night.end is None or end > night.end):
            night.end = end

        night.duration_ms = _add(night.duration_ms, finite(record.get("duration")))

        rem = _stage_minutes(record, "rem")
        deep = _stage_minutes(record, "deep")
        light = _stage_minutes(record, "light")
        night.rem_minutes = _add(night.rem_minutes, rem)
        night.deep_minutes = _add(night.deep_minutes, deep)
        night.light_minutes = _add(night.light_minutes, light)

        asleep = finite(record.get("minutesAsleep"))
        if asleep is None and any(v is not None for v in (rem, deep, light)):
            asleep = (rem or 0.0) + (deep or 0.0) + (light or 0.0)
        night.minutes_asleep = _add(night.minutes_asleep, asleep)

        awake = finite(record.get("minutesAwake"))
        if awake is None:
            awake = _stage_minutes(record, "wake")
        night.minutes_awake = _add(night.minutes_awake, awake)

        if night.efficiency is None:
            night.efficiency = finite(record.get("efficiency"))

    return sorted(
        nights.values(),
        key=lambda n: (n.end is not None, n.end or datetime.min),
    )


def last_night_before(nights: Iterable[SleepNight], now: datetime) -> SleepNight | None:
    """The most recent night that ended at or before *now*."""
    local_now = local_naive(now)
    best: SleepNight | None = None
    for night in nights:
        if night.end is None or night.end > local_now:
            continue
        if best is None or night.end >= best.end:
            best = night
    return best


# ---------------------------------------------------------------------------
# Bedtime variability
# ---------------------------------------------------------------------------


def normalize_bedtime_minutes(minutes: float) -> float:
    """Place bedtimes on a noon-to-noon axis (00:15 -> 1455)."""
    return minutes + MINUTES_PER_DAY if minutes < NOON_MINUTES else minutes


def bedtime_std_dev_minutes(nights: Iterable[SleepNight]) -> float | None:
    """Population std dev of normalized bedtimes in minutes; None for <2 nights."""
    bedtimes = [
        normalize_bedtime_minutes(n.start.hour * 60 + n.start.minute)
        for n in nights
        if n.start is not None
    ]
    if len(bedtimes) < 2:
        return None
    return float(np.std(np.asarray(bedtimes, dtype=np.float64), ddof=0))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def features_from_sleep_range(
    sleep_logs: Any,
    now: datetime,
) -> SleepFeatures:
    """Extract "last night" sleep plus 7-night bedtime variability.

    Args:
        sleep_logs: Sleep records for the 7-day range ending at the anchor's
            date (list or ``{"sleep": [...]}``).
        now: Localized anchor time.
    """
    result = SleepFeatures()
    nights = aggregate_sleep_nights(sleep_logs, now.tzinfo)

    if not nights:
        result.notes.append("no_sleep_data_7d")
        result.notes.append("insufficient_sleep_nights_for_stddev")
        return result

    local_now = local_naive(now)
    past = [n for n in nights if n.start is not None and n.start <= local_now]
    recent = past[-BEDTIME_NIGHTS:]
    result.sleep_nights_7d = len(recent)

    std_minutes = bedtime_std_dev_minutes(recent)
    if std_minutes is None:
        result.notes.append("insufficient_sleep_nights_for_stddev")
    else:
        result.bedtime_std_dev_7d_minutes = std_minutes
        result.bedtime_std_dev_7d = std_minutes / 60.0

    last = last_night_before(nights, now)
    if last is None:
        result.notes.append("no_last_night_sleep")
        return result

    asleep = last.minutes_asleep
    awake = last.minutes_awake

    result.sleep_duration_last_night_hrs = last.duration_hrs
    result.minutes_asleep_last_night = asleep
    result.waso_minutes = awake
    result.sleep_segments_last_night = last.segments

    if asleep is not None and awake is not None and asleep + awake > 0:
        result.sleep_efficiency = asleep / (asleep + awake) * 100.0
        result.sleep_fragmentation_score = clamp01(awake / (asleep + awake))
    else:
        result.sleep_efficiency = last.efficiency

    total_stage = (last.rem_minutes or 0.0) + (last.deep_minutes or 0.0) + (last.light_minutes or 0.0)
    if total_stage > 0:
        if last.rem_minutes is not None:
            result.rem_ratio = last.rem_minutes / total_stage
        if last.deep_minutes is not None:
            result.deep_ratio = last.deep_minutes / total_stage
        if last.light_minutes is not None:
            result.light_ratio = last.light_minutes / total_stage

    if last.start is not None:
        result.sleep_onset_local_hour = local_fractional_hour(last.start)
    if last.end is not None:
        result.wake_time_local_hour = local_fractional_hour(last.end)
        result.time_since_wake_hours = max(
            0.0, (local_now - last.end).total_seconds() / 3600.0
        )

    return result
