"""Feature vector assembler.

:func:`build_all_features` runs every extractor against one shared,
localized anchor and merges their output into a single
:class:`~wearfeat.features.record.FeatureRecord`.  It performs no I/O: all
raw inputs, including weather, arrive already fetched on :class:`RawInputs`.

Layers are merged in a fixed order, later layers winning on collision:

    base (per-signal + personal baselines)
      -> composite (cross + composite scores)
      -> client (caller-supplied features)
      -> geo (geo/time/weather)

:func:`build_all_features_async` is the variant that fetches weather first.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from wearfeat.config import FeatureConfig
from wearfeat.features.azm import features_from_azm
from wearfeat.features.baseline import build_baseline_features
from wearfeat.features.composite import build_composite_psychophys_features
from wearfeat.features.cross import build_cross_features
from wearfeat.features.daily import features_from_daily_summary
from wearfeat.features.exercise import build_exercise_feature_block
from wearfeat.features.geo import (
    FALLBACK_TIMEZONE,
    geo_time_features,
    has_coordinates,
    resolve_timezone,
    zone_for,
)
from wearfeat.features.heart_rate import (
    RestingHrTrendFeatures,
    features_from_heart_intraday,
    resting_hr_7d_trend,
)
from wearfeat.features.hrv import features_from_hrv
from wearfeat.features.nutrition import build_nutrition_feature_block
from wearfeat.features.record import FeatureRecord, camel_case, merge_groups, merge_layers
from wearfeat.features.respiratory import features_from_breathing
from wearfeat.features.sleep import features_from_sleep_range
from wearfeat.features.spo2 import features_from_spo2
from wearfeat.features.steps import features_from_steps
from wearfeat.features.temperature import features_from_temp_skin
from wearfeat.features.timeindex import localize_anchor, resolve_anchor
from wearfeat.weather import OpenMeteoClient, WeatherProvider, fetch_weather_and_aqi

logger = logging.getLogger(__name__)

# Request metadata that callers sometimes leave in their client features
CLIENT_DROP_KEYS = frozenset({"lat", "lon", "anchorMs"})


@dataclass
class RawInputs:
    """Everything one feature build needs, already fetched.

    Any raw input may be None; the matching extractor degrades on its own.
    """

    anchor: datetime | str
    lat: float | None = None
    lon: float | None = None

    # Intraday series: [{time, value}, ...]
    steps_intraday: list[Any] | None = None
    heart_intraday: list[Any] | None = None
    azm_intraday: list[Any] | None = None
    calories_intraday: list[Any] | None = None

    # Daily summaries and 7-day ranges
    daily_summary: Mapping[str, Any] | None = None
    steps_7d: Any = None
    resting_hr_7d: Any = None
    sleep_range: Any = None

    hrv_daily: Any = None
    hrv_range: Any = None
    hrv_intraday: list[Any] | None = None

    spo2_daily: Mapping[str, Any] | None = None
    spo2_history: list[Any] | None = None
    breathing_daily: Mapping[str, Any] | None = None
    breathing_history: list[Any] | None = None
    temp_daily: Mapping[str, Any] | None = None
    temp_history: list[Any] | None = None

    nutrition_daily: Mapping[str, Any] | None = None
    water_daily: Mapping[str, Any] | None = None
    exercise_list: Any = None

    client_features: Mapping[str, Any] | None = None
    weather: Mapping[str, Any] | None = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "RawInputs":
        """Build from a JSON document with camelCase keys.

        Raises:
            KeyError: if ``anchor`` is missing.
        """
        by_key = {camel_case(f.name): f.name for f in dataclasses.fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in payload.items():
            name = by_key.get(key)
            if name is None:
                logger.debug("Ignoring unknown raw input %r", key)
                continue
            kwargs[name] = value
        if "anchor" not in kwargs:
            raise KeyError("anchor")
        return cls(**kwargs)


def client_layer(client_features: Mapping[str, Any] | None) -> dict[str, Any]:
    if not client_features:
        return {}
    return {k: v for k, v in client_features.items() if k not in CLIENT_DROP_KEYS}


def build_all_features(raw: RawInputs, config: FeatureConfig | None = None) -> FeatureRecord:
    """Compute the full Feature Record for one anchor.

    Raises:
        InvalidAnchorError: if ``raw.anchor`` is not a valid point in time.
    """
    config = config or FeatureConfig()
    anchor = resolve_anchor(raw.anchor)

    coords = has_coordinates(raw.lat, raw.lon)
    tz_name = resolve_timezone(float(raw.lat), float(raw.lon)) if coords else FALLBACK_TIMEZONE
    now = localize_anchor(anchor, zone_for(tz_name))

    trend = resting_hr_7d_trend(raw.resting_hr_7d)
    groups = [
        features_from_steps(raw.steps_intraday, now),
        features_from_heart_intraday(raw.heart_intraday, raw.resting_hr_7d, now),
        RestingHrTrendFeatures(resting_hr_7d_trend=trend),
        features_from_azm(raw.azm_intraday, now),
        features_from_daily_summary(raw.daily_summary, now, raw.calories_intraday),
        features_from_sleep_range(raw.sleep_range, now),
        features_from_hrv(raw.hrv_daily, raw.hrv_range, raw.hrv_intraday),
        features_from_spo2(raw.spo2_daily, raw.spo2_history),
        features_from_breathing(raw.breathing_daily, raw.breathing_history),
        features_from_temp_skin(raw.temp_daily, raw.temp_history),
        build_nutrition_feature_block(raw.nutrition_daily, raw.water_daily, now),
        build_exercise_feature_block(raw.exercise_list, now, config.post_exercise_window_min),
        build_baseline_features(
            raw.steps_7d, raw.sleep_range, trend, now, config.sleep_target_hrs
        ),
    ]
    base, notes = merge_groups(groups)

    cross = build_cross_features(base)
    composite = build_composite_psychophys_features({**base, **cross.to_dict()})
    composite_layer, composite_notes = merge_groups([cross, composite])
    notes.extend(composite_notes)

    geo = geo_time_features(raw.lat, raw.lon, anchor, config, raw.weather, tz_name if coords else None)
    if geo is None:
        notes.append("no_coordinates")
        geo_layer: dict[str, Any] = {}
    else:
        geo_layer = geo.to_dict()
        notes.extend(geo.notes)

    features = merge_layers(
        {
            "base": base,
            "composite": composite_layer,
            "client": client_layer(raw.client_features),
            "geo": geo_layer,
        }
    )
    return FeatureRecord(anchor=now, timezone=tz_name, features=features, notes=tuple(notes))


async def build_all_features_async(
    raw: RawInputs,
    config: FeatureConfig | None = None,
    provider: WeatherProvider | None = None,
) -> FeatureRecord:
    """Fetch weather for the point (unless supplied), then assemble.

    Weather failures degrade to missing weather features; they never raise.
    """
    config = config or FeatureConfig()
    resolve_anchor(raw.anchor)

    if raw.weather is None and has_coordinates(raw.lat, raw.lon):
        owned = OpenMeteoClient(config) if provider is None else None
        try:
            weather = await fetch_weather_and_aqi(float(raw.lat), float(raw.lon), provider or owned)
        finally:
            if owned is not None:
                owned.close()
        raw = dataclasses.replace(raw, weather=weather)

    return build_all_features(raw, config)
