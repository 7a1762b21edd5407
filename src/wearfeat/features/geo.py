"""Geo/time context features.

Given a latitude/longitude and the anchor this derives:
  - The IANA timezone (``timezonefinder``, falling back to UTC)
  - Local hour, day of week (0=Sunday) and weekend flag
  - Daylight state from sunrise/sunset for the local date (``astral``)
  - Location cluster key, one-hot cluster features and a commute flag
  - Pre-fetched weather features, passed through unchanged

Nothing here performs network I/O; weather is fetched beforehand by
:func:`wearfeat.weather.fetch_weather_and_aqi`.
"""

from __future__ import annotations

import functools
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, Mapping, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from astral import Observer
from astral.sun import sun
from timezonefinder import TimezoneFinder

from wearfeat.config import FeatureConfig
from wearfeat.features.clusters import assign_location_cluster, build_location_cluster_one_hot
from wearfeat.features.daily import time_of_day
from wearfeat.features.record import FeatureGroup, feature_map
from wearfeat.features.timeindex import localize_anchor
from wearfeat.features.windows import finite

logger = logging.getLogger(__name__)

FALLBACK_TIMEZONE = "UTC"

# Cluster keys containing these are never commute locations
STATIONARY_CLUSTER_MARKERS = ("home", "campus")


@dataclass
class GeoFeatures(FeatureGroup):
    timezone: str | None = None
    hour_of_day: int | None = None
    day_of_week: int | None = None
    is_weekend: bool | None = None
    daylight_now_flag: int | None = None
    daylight_mins_remaining: int | None = None
    location_cluster_key: str | None = None
    commute_flag: int | None = None
    location_cluster_one_hot: dict[str, int] = feature_map()
    weather: dict[str, Any] = feature_map()


# ---------------------------------------------------------------------------
# Timezone
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=1)
def _timezone_finder() -> TimezoneFinder:
    return TimezoneFinder()


def has_coordinates(lat: Any, lon: Any) -> bool:
    return finite(lat) is not None and finite(lon) is not None


def resolve_timezone(lat: float, lon: float) -> str:
    """IANA timezone name at a point, or ``"UTC"`` if the lookup fails."""
    try:
        name = _timezone_finder().timezone_at(lng=lon, lat=lat)
    except ValueError as exc:
        logger.warning("Timezone lookup failed for (%s, %s), using UTC: %s", lat, lon, exc)
        return FALLBACK_TIMEZONE
    if not name:
        logger.warning("No timezone found for (%s, %s), using UTC", lat, lon)
        return FALLBACK_TIMEZONE
    return name


def zone_for(name: str) -> tzinfo:
    """``ZoneInfo`` for *name*, UTC if the zone database lacks it."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, using UTC", name)
        return timezone.utc


# ---------------------------------------------------------------------------
# Daylight and commute
# ---------------------------------------------------------------------------


def daylight(lat: float, lon: float, local: datetime) -> tuple[int | None, int | None]:
    """``(daylightNowFlag, daylightMinsRemaining)`` at local time *local*.

    Returns ``(None, None)`` where the sun does not rise or set that day.
    """
    try:
        times = sun(Observer(latitude=lat, longitude=lon), date=local.date(), tzinfo=local.tzinfo)
    except ValueError:
        return None, None

    sunrise, sunset = times["sunrise"], times["sunset"]
    if sunrise < local < sunset:
        return 1, max(0, math.floor((sunset - local).total_seconds() / 60.0))
    return 0, 0


def commute_flag(
    cluster_key: str | None,
    local: datetime,
    bands: Sequence[tuple[int, int]],
) -> int:
    """1 on a weekday inside a commute band while away from home/campus.

    An unclustered point counts as away.
    """
    if local.weekday() >= 5:
        return 0
    if not any(lo <= local.hour <= hi for lo, hi in bands):
        return 0
    if cluster_key is not None:
        key = cluster_key.lower()
        if any(marker in key for marker in STATIONARY_CLUSTER_MARKERS):
            return 0
    return 1


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def geo_time_features(
    lat: Any,
    lon: Any,
    anchor: datetime,
    config: FeatureConfig | None = None,
    weather: Mapping[str, Any] | None = None,
    tz_name: str | None = None,
) -> GeoFeatures | None:
    """Build geo/time features, or None without finite coordinates.

    Args:
        lat: Latitude in degrees.
        lon: Longitude in degrees.
        anchor: Aware anchor time (any zone).
        config: Cluster list and commute bands.
        weather: Weather features from the weather lookup, if any.
        tz_name: Already-resolved timezone name; looked up when omitted.
    """
    if not has_coordinates(lat, lon):
        return None

    config = config or FeatureConfig()
    lat, lon = float(lat), float(lon)
    tz_name = tz_name or resolve_timezone(lat, lon)
    local = localize_anchor(anchor, zone_for(tz_name))

    hour, dow, weekend = time_of_day(local)
    daylight_flag, daylight_mins = daylight(lat, lon, local)

    clusters = config.location_clusters
    cluster_key = assign_location_cluster(lat, lon, clusters, config.default_cluster_radius_m)

    result = GeoFeatures(
        timezone=tz_name,
        hour_of_day=hour,
        day_of_week=dow,
        is_weekend=weekend,
        daylight_now_flag=daylight_flag,
        daylight_mins_remaining=daylight_mins,
        location_cluster_key=cluster_key,
        commute_flag=commute_flag(cluster_key, local, config.commute_bands),
        location_cluster_one_hot=build_location_cluster_one_hot(cluster_key, clusters),
        weather=dict(weather or {}),
    )
    if daylight_flag is None:
        result.notes.append("no_sun_times")
    if not weather:
        result.notes.append("no_weather")
    return result
