"""Explicit configuration for a feature build.

A :class:`FeatureConfig` is constructed once by the caller and passed into
the assembler.  Nothing here is read at import time.
"""

from __future__ import annotations

import json
import logging
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Sequence

from wearfeat.errors import ConfigError

logger = logging.getLogger(__name__)


DEFAULT_CLUSTER_RADIUS_M = 200.0

# Weekday commute bands, inclusive local hours
DEFAULT_COMMUTE_BANDS: tuple[tuple[int, int], ...] = ((6, 9), (16, 19))

OPEN_METEO_WEATHER_URL = "https://api.open-meteo.com/v1/forecast"
OPEN_METEO_AIR_QUALITY_URL = "https://air-quality-api.open-meteo.com/v1/air-quality"


@dataclass(frozen=True)
class LocationCluster:
    """A named geofence: center point plus bubble radius in meters."""

    key: str
    lat: float
    lon: float
    radius_meters: float | None = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "LocationCluster":
        """Build a cluster from ``{key, lat, lon, radiusMeters?}``."""
        try:
            key = raw["key"]
            lat = float(raw["lat"])
            lon = float(raw["lon"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigError(f"invalid location cluster {raw!r}: {exc}") from exc

        if not isinstance(key, str) or not key:
            raise ConfigError(f"location cluster key must be a non-empty string: {raw!r}")
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise ConfigError(f"location cluster {key!r} has non-finite coordinates")

        radius = raw.get("radiusMeters", raw.get("radius_meters"))
        if radius is not None:
            try:
                radius = float(radius)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"location cluster {key!r} has invalid radius") from exc
        return cls(key=key, lat=lat, lon=lon, radius_meters=radius)


@dataclass(frozen=True)
class FeatureConfig:
    """Tunable parameters shared by the extractors."""

    location_clusters: tuple[LocationCluster, ...] = ()
    commute_bands: tuple[tuple[int, int], ...] = DEFAULT_COMMUTE_BANDS
    default_cluster_radius_m: float = DEFAULT_CLUSTER_RADIUS_M
    sleep_target_hrs: float = 8.0
    post_exercise_window_min: float = 90.0
    weather_url: str = OPEN_METEO_WEATHER_URL
    air_quality_url: str = OPEN_METEO_AIR_QUALITY_URL
    http_timeout_s: float = 10.0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "FeatureConfig":
        """Build a config from environment variables.

        ``LOCATION_CLUSTERS`` holds a JSON array of cluster objects.  An
        unparseable value is logged and treated as "no clusters".
        """
        env = os.environ if environ is None else environ

        clusters: tuple[LocationCluster, ...] = ()
        raw_clusters = env.get("LOCATION_CLUSTERS")
        if raw_clusters:
            try:
                clusters = load_location_clusters(json.loads(raw_clusters))
            except (json.JSONDecodeError, ConfigError) as exc:
                logger.warning("Invalid LOCATION_CLUSTERS; using no clusters: %s", exc)

        kwargs: dict[str, Any] = {"location_clusters": clusters}
        if env.get("WEARFEAT_WEATHER_URL"):
            kwargs["weather_url"] = env["WEARFEAT_WEATHER_URL"]
        if env.get("WEARFEAT_AIR_QUALITY_URL"):
            kwargs["air_quality_url"] = env["WEARFEAT_AIR_QUALITY_URL"]
        if env.get("WEARFEAT_HTTP_TIMEOUT"):
            try:
                kwargs["http_timeout_s"] = float(env["WEARFEAT_HTTP_TIMEOUT"])
            except ValueError:
                logger.warning(
                    "Invalid WEARFEAT_HTTP_TIMEOUT %r; using default",
                    env["WEARFEAT_HTTP_TIMEOUT"],
                )
        return cls(**kwargs)


def load_location_clusters(
    source: str | Path | Sequence[Mapping[str, Any]] | None,
) -> tuple[LocationCluster, ...]:
    """Load clusters from a JSON file path or an already-parsed list.

    Raises:
        ConfigError: if the payload is not a list of valid cluster objects.
    """
    if source is None:
        return ()

    if isinstance(source, (str, Path)):
        try:
            with open(source) as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"cannot read location clusters from {source}: {exc}") from exc
    else:
        payload = source

    if not isinstance(payload, list):
        raise ConfigError("location clusters must be a JSON array")

    return tuple(LocationCluster.from_dict(c) for c in payload)
