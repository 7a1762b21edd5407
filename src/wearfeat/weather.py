"""Ambient weather and air quality from Open-Meteo.

This is the only networked piece of a feature build.  The two lookups
(current conditions, hourly US AQI) are blocking ``requests`` calls run
concurrently on worker threads.  A provider outage never fails the build:

  - weather request fails -> no weather keys at all
  - AQI request fails     -> weather keys with ``outdoorAQI = None``
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Protocol

import requests

from wearfeat.config import FeatureConfig
from wearfeat.features.record import FeatureGroup, feature
from wearfeat.features.windows import finite

logger = logging.getLogger(__name__)

CURRENT_FIELDS = "temperature_2m,relative_humidity_2m,precipitation,wind_speed_10m"

HEAT_INDEX_MIN_F = 80.0
HEAT_INDEX_MIN_HUMIDITY = 40.0
WIND_CHILL_MAX_F = 50.0
WIND_CHILL_MIN_MPH = 3.0

class WeatherProvider(Protocol):
    """Blocking source of raw weather and air-quality payloads."""

    def fetch_current(self, lat: float, lon: float) -> Mapping[str, Any]: ...

    def fetch_air_quality(self, lat: float, lon: float) -> Mapping[str, Any]: ...


@dataclass
class WeatherFeatures(FeatureGroup):
    weather_temp_f: float | None = None
    weather_feels_like_f: float | None = None
    weather_wind_mph: float | None = None
    weather_humidity_pct: float | None = None
    weather_precip_mm: float | None = None
    outdoor_aqi: float | None = feature("outdoorAQI")


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


class OpenMeteoClient:
    """Thin Open-Meteo client; one shared ``requests.Session``."""

    def __init__(
        self,
        config: FeatureConfig | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config or FeatureConfig()
        self.session = session or requests.Session()

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> OpenMeteoClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _get_json(self, url: str, params: dict[str, Any]) -> Mapping[str, Any]:
        response = self.session.get(url, params=params, timeout=self.config.http_timeout_s)
        response.raise_for_status()
        return response.json()

    def fetch_current(self, lat: float, lon: float) -> Mapping[str, Any]:
        return self._get_json(
            self.config.weather_url,
            {
                "latitude": lat,
                "longitude": lon,
                "current": CURRENT_FIELDS,
                "temperature_unit": "fahrenheit",
                "wind_speed_unit": "mph",
                "precipitation_unit": "mm",
                "timezone": "GMT",
            },
        )

    def fetch_air_quality(self, lat: float, lon: float) -> Mapping[str, Any]:
        # Hourly times come back in GMT so they compare directly with UTC now
        return self._get_json(
            self.config.air_quality_url,
            {
                "latitude": lat,
                "longitude": lon,
                "hourly": "us_aqi",
                "timezone": "GMT",
            },
        )


# ---------------------------------------------------------------------------
# Payload parsing
# ---------------------------------------------------------------------------


def feels_like_f(
    temp_f: float | None,
    wind_mph: float | None,
    humidity_pct: float | None,
) -> float | None:
    """Apparent temperature in °F.

    NWS heat index when hot and humid, wind chill when cold and windy,
    otherwise the air temperature.
    """
    if temp_f is None:
        return None

    t = temp_f
    if humidity_pct is not None and t >= HEAT_INDEX_MIN_F and humidity_pct >= HEAT_INDEX_MIN_HUMIDITY:
        rh = humidity_pct
        return (
            -42.379
            + 2.04901523 * t
            + 10.14333127 * rh
            - 0.22475541 * t * rh
            - 0.00683783 * t * t
            - 0.05481717 * rh * rh
            + 0.00122874 * t * t * rh
            + 0.00085282 * t * rh * rh
            - 0.00000199 * t * t * rh * rh
        )
    if wind_mph is not None and t <= WIND_CHILL_MAX_F and wind_mph >= WIND_CHILL_MIN_MPH:
        v16 = math.pow(wind_mph, 0.16)
        return 35.74 + 0.6215 * t - 35.75 * v16 + 0.4275 * t * v16
    return t


def weather_from_current(payload: Mapping[str, Any]) -> WeatherFeatures | None:
    """Parse the ``current`` block; None if the payload has none."""
    current = payload.get("current") if isinstance(payload, Mapping) else None
    if not isinstance(current, Mapping):
        return None

    temp = finite(current.get("temperature_2m"))
    wind = finite(current.get("wind_speed_10m"))
    humidity = finite(current.get("relative_humidity_2m"))
    return WeatherFeatures(
        weather_temp_f=temp,
        weather_feels_like_f=feels_like_f(temp, wind, humidity),
        weather_wind_mph=wind,
        weather_humidity_pct=humidity,
        weather_precip_mm=finite(current.get("precipitation")),
    )


def _parse_utc(raw: Any) -> datetime | None:
    if not isinstance(raw, str):
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def aqi_nearest(payload: Mapping[str, Any], now: datetime) -> float | None:
    """Hourly US AQI whose timestamp is closest to *now*."""
    hourly = payload.get("hourly") if isinstance(payload, Mapping) else None
    if not isinstance(hourly, Mapping):
        return None
    times = hourly.get("time")
    values = hourly.get("us_aqi")
    if not isinstance(times, list) or not isinstance(values, list):
        return None

    best_idx: int | None = None
    best_diff = math.inf
    for idx, raw in enumerate(times):
        t = _parse_utc(raw)
        if t is None:
            continue
        diff = abs((t - now).total_seconds())
        if diff < best_diff:
            best_diff = diff
            best_idx = idx

    if best_idx is None or best_idx >= len(values):
        return None
    return finite(values[best_idx])


# ---------------------------------------------------------------------------
# Concurrent fetch
# ---------------------------------------------------------------------------


async def fetch_weather_and_aqi(
    lat: float,
    lon: float,
    provider: WeatherProvider,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Fetch weather and AQI concurrently and return weather features.

    Args:
        lat: Latitude in degrees.
        lon: Longitude in degrees.
        provider: Blocking weather source, e.g. :class:`OpenMeteoClient`.
        now: Wall-clock time used to pick the AQI hour (default: UTC now).
            This is not the feature anchor.

    Returns:
        ``{}`` when the weather lookup fails, else the weather feature map.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    weather_res, air_res = await asyncio.gather(
        asyncio.to_thread(provider.fetch_current, lat, lon),
        asyncio.to_thread(provider.fetch_air_quality, lat, lon),
        return_exceptions=True,
    )

    # Provider errors degrade; KeyboardInterrupt and cancellation still propagate
    if isinstance(weather_res, Exception):
        logger.warning(
            "Weather lookup failed for (%.4f, %.4f): %s", lat, lon, weather_res, exc_info=weather_res
        )
        return {}
    if isinstance(weather_res, BaseException):
        raise weather_res

    weather = weather_from_current(weather_res)
    if weather is None:
        logger.warning("Weather payload has no current conditions")
        return {}

    if isinstance(air_res, Exception):
        logger.warning(
            "Air-quality lookup failed for (%.4f, %.4f): %s", lat, lon, air_res, exc_info=air_res
        )
    elif isinstance(air_res, BaseException):
        raise air_res
    else:
        weather.outdoor_aqi = aqi_nearest(air_res, now)

    logger.debug("Weather features: %s", weather)
    return weather.to_dict()
