"""Feature extractors for wearable time series.

Modules:
    timeindex   -- Minutes-since-midnight axis and anchor handling
    windows     -- Half-open window selection and reductions
    record      -- Feature groups, layered merge and the Feature Record
    steps       -- Intraday step windows, streaks and trend
    azm         -- Active Zone Minutes windows
    heart_rate  -- Intraday HR and the resting-HR baseline
    daily       -- Daily activity summary and time of day
    sleep       -- Night aggregation and bedtime variability
    hrv         -- RMSSD and intraday HRV aggregates
    spo2        -- Nightly SpO2
    respiratory -- Breathing rate per sleep stage
    temperature -- Nightly relative skin temperature
    nutrition   -- Intake totals and meal/snack split
    exercise    -- Most recent exercise
    baseline    -- Personal 7-day baselines
    cross       -- Cross-signal interaction scores
    composite   -- Composite psychophysiological flags and scores
    clusters    -- Location cluster assignment
    geo         -- Timezone, daylight, clusters, commute
    pipeline    -- The assembler (import from ``wearfeat``)
"""

from wearfeat.features.record import FeatureGroup, FeatureRecord, merge_layers, MERGE_ORDER
from wearfeat.features.timeindex import (
    parse_time_to_minutes,
    minutes_since_midnight,
    normalize_minutes_for_window,
)
from wearfeat.features.steps import features_from_steps, StepsFeatures
from wearfeat.features.azm import features_from_azm, AzmFeatures
from wearfeat.features.heart_rate import (
    features_from_heart_intraday,
    resting_hr_7d_trend,
    HeartRateFeatures,
)
from wearfeat.features.daily import features_from_daily_summary, DailyFeatures
from wearfeat.features.sleep import features_from_sleep_range, SleepFeatures
from wearfeat.features.hrv import features_from_hrv, HrvFeatures
from wearfeat.features.spo2 import features_from_spo2, Spo2Features
from wearfeat.features.respiratory import features_from_breathing, BreathingFeatures
from wearfeat.features.temperature import features_from_temp_skin, SkinTempFeatures
from wearfeat.features.nutrition import build_nutrition_feature_block, NutritionFeatures
from wearfeat.features.exercise import build_exercise_feature_block, ExerciseFeatures
from wearfeat.features.baseline import (
    steps_z_today_from_timeseries,
    activity_inertia_from_steps_7d,
    sleep_debt_hrs_from_sleep_range,
    recovery_index_from_signals,
    BaselineFeatures,
)
from wearfeat.features.cross import (
    recent_activity_x_time_of_day_feature,
    low_sleep_high_activity_flag_feature,
    compute_acute_arousal_index,
    CrossFeatures,
)
from wearfeat.features.composite import build_composite_psychophys_features, CompositeFeatures
from wearfeat.features.clusters import (
    distance_meters,
    assign_location_cluster,
    build_location_cluster_one_hot,
)
from wearfeat.features.geo import geo_time_features, GeoFeatures

__all__ = [
    # record
    "FeatureGroup",
    "FeatureRecord",
    "merge_layers",
    "MERGE_ORDER",
    # timeindex
    "parse_time_to_minutes",
    "minutes_since_midnight",
    "normalize_minutes_for_window",
    # per-signal
    "features_from_steps",
    "StepsFeatures",
    "features_from_azm",
    "AzmFeatures",
    "features_from_heart_intraday",
    "resting_hr_7d_trend",
    "HeartRateFeatures",
    "features_from_daily_summary",
    "DailyFeatures",
    "features_from_sleep_range",
    "SleepFeatures",
    "features_from_hrv",
    "HrvFeatures",
    "features_from_spo2",
    "Spo2Features",
    "features_from_breathing",
    "BreathingFeatures",
    "features_from_temp_skin",
    "SkinTempFeatures",
    "build_nutrition_feature_block",
    "NutritionFeatures",
    "build_exercise_feature_block",
    "ExerciseFeatures",
    # baselines
    "steps_z_today_from_timeseries",
    "activity_inertia_from_steps_7d",
    "sleep_debt_hrs_from_sleep_range",
    "recovery_index_from_signals",
    "BaselineFeatures",
    # cross / composite
    "recent_activity_x_time_of_day_feature",
    "low_sleep_high_activity_flag_feature",
    "compute_acute_arousal_index",
    "CrossFeatures",
    "build_composite_psychophys_features",
    "CompositeFeatures",
    # geo
    "distance_meters",
    "assign_location_cluster",
    "build_location_cluster_one_hot",
    "geo_time_features",
    "GeoFeatures",
]
