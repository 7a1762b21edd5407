"""Shared fixtures and builders for the wearfeat test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest


# Wednesday 2025-11-19, 14:00 UTC
ANCHOR = datetime(2025, 11, 19, 14, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------------


def at(hour: int, minute: int = 0, day: int = 19, month: int = 11, year: int = 2025) -> datetime:
    """An aware UTC datetime; UTC stands in for the local zone in extractor tests."""
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def clock(dt: datetime) -> str:
    return dt.strftime("%H:%M:%S")


def local_stamp(dt: datetime) -> str:
    """Upstream-style naive local timestamp, e.g. ``2025-11-18T23:30:00.000``."""
    return dt.strftime("%Y-%m-%dT%H:%M:%S.000")


# ---------------------------------------------------------------------------
# Series builders
# ---------------------------------------------------------------------------


def minute_series(
    end: datetime,
    values: list[Any],
    key: str = "value",
) -> list[dict[str, Any]]:
    """One sample per minute, the last one stamped exactly at *end*."""
    start = end - timedelta(minutes=len(values) - 1)
    return [
        {"time": clock(start + timedelta(minutes=i)), key: v}
        for i, v in enumerate(values)
    ]


def daily_rows(values: list[Any], key: str = "value") -> list[dict[str, Any]]:
    """``[{dateTime, value}]`` rows ending on 2025-11-19, oldest first."""
    last = datetime(2025, 11, 19)
    first = last - timedelta(days=len(values) - 1)
    return [
        {"dateTime": (first + timedelta(days=i)).date().isoformat(), key: v}
        for i, v in enumerate(values)
    ]


def sleep_record(
    date: str,
    start: datetime,
    end: datetime,
    asleep: float | None = None,
    awake: float | None = None,
    stages: dict[str, float] | None = None,
    main: bool | None = True,
) -> dict[str, Any]:
    """A sleep log record in the upstream shape."""
    record: dict[str, Any] = {
        "dateOfSleep": date,
        "startTime": local_stamp(start),
        "endTime": local_stamp(end),
        "duration": (end - start).total_seconds() * 1000,
    }
    if main is not None:
        record["isMainSleep"] = main
    if asleep is not None:
        record["minutesAsleep"] = asleep
    if awake is not None:
        record["minutesAwake"] = awake
    if stages:
        record["levels"] = {
            "summary": {name: {"minutes": minutes} for name, minutes in stages.items()}
        }
    return record


def night(date: str, bed: datetime, hours: float = 8.0, **kwargs: Any) -> dict[str, Any]:
    """A single-segment night starting at *bed*."""
    return sleep_record(date, bed, bed + timedelta(hours=hours), **kwargs)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def anchor() -> datetime:
    return ANCHOR


@pytest.fixture
def raw_payload() -> dict[str, Any]:
    """A small but complete camelCase raw-input document."""
    steps = [0] * 40 + [80] * 20
    heart = [65] * 50 + [80] * 10
    return {
        "anchor": "2025-11-19T14:00:00Z",
        "stepsIntraday": minute_series(ANCHOR, steps),
        "heartIntraday": minute_series(ANCHOR, heart),
        "azmIntraday": minute_series(ANCHOR, [0] * 50 + [1] * 10, key="activeZoneMinutes"),
        "restingHr7d": daily_rows([60, 61, 59, 60, 62, 60, 65]),
        "steps7d": {"activities-steps": daily_rows(["8000", "9000", "7000", "8500", "9100", "7600", "12000"])},
        "dailySummary": {
            "summary": {
                "activeZoneMinutes": {"totalMinutes": 42},
                "caloriesOut": 2100,
                "restingHeartRate": 65,
                "steps": 12000,
                "sedentaryMinutes": 600,
            }
        },
        "sleepRange": {
            "sleep": [
                night("2025-11-17", datetime(2025, 11, 16, 23, 30), 7.5, asleep=420, awake=30),
                night("2025-11-18", datetime(2025, 11, 17, 23, 45), 7.0, asleep=390, awake=30),
                night("2025-11-19", datetime(2025, 11, 19, 0, 15), 6.5, asleep=360, awake=30),
            ]
        },
        "hrvDaily": {"hrv": [{"dateTime": "2025-11-19", "value": {"dailyRmssd": 30.0, "deepRmssd": 35.0}}]},
        "spo2Daily": {"spo2Avg": 96.0, "spo2Min": 92.0, "spo2Max": 99.0},
        "clientFeatures": {"moodSelfReport": 3, "lat": 1.0, "lon": 2.0, "anchorMs": 0},
    }
