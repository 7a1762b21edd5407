"""Nutrition and water intake features.

Inputs are the normalized daily blobs::

    nutrition_daily = {"date": "2025-11-19",
                       "foods": [{"calories": 310, "mealTypeId": 1, ...}],
                       "nutritionSummary": {"calories": 1840, "carbs": 210, ...}}
    water_daily = {"date": "2025-11-19", "waterTotal": 1500}

Meal-type IDs 1, 3 and 5 (breakfast, lunch, dinner) are meals.  Every other
ID, including a missing one, is counted as a snack.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping

from wearfeat.features.record import FeatureGroup
from wearfeat.features.timeindex import local_naive, parse_local_timestamp
from wearfeat.features.windows import finite

MEAL_TYPE_IDS = frozenset({1, 3, 5})

# (feature field, nutritionSummary key)
SUMMARY_TOTALS = (
    ("total_calories_intake", "calories"),
    ("total_carbs_grams", "carbs"),
    ("total_fat_grams", "fat"),
    ("total_fiber_grams", "fiber"),
    ("total_protein_grams", "protein"),
    ("total_sodium_mg", "sodium"),
)


@dataclass
class NutritionFeatures(FeatureGroup):
    """Daily intake totals, meal counts and the meal/snack calorie split."""

    total_calories_intake: float | None = None
    total_carbs_grams: float | None = None
    total_fat_grams: float | None = None
    total_fiber_grams: float | None = None
    total_protein_grams: float | None = None
    total_sodium_mg: float | None = None
    total_water_ml: float | None = None
    meals_logged_count: int | None = None
    calories_per_meal_avg: float | None = None
    time_since_last_meal_hours: float | None = None
    meal_calories: float | None = None
    snack_calories: float | None = None
    snack_calories_fraction: float | None = None


def _foods(nutrition_daily: Mapping[str, Any] | None) -> list[Mapping[str, Any]]:
    if not isinstance(nutrition_daily, Mapping):
        return []
    foods = nutrition_daily.get("foods")
    if not isinstance(foods, (list, tuple)):
        return []
    return [f for f in foods if isinstance(f, Mapping)]


def _meal_type_id(food: Mapping[str, Any]) -> int | None:
    raw = food.get("mealTypeId")
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError, OverflowError):
        return None


def meals_logged_count(foods: list[Mapping[str, Any]]) -> int | None:
    """Distinct meal-type IDs, or the number of food logs if none carry one."""
    if not foods:
        return None
    ids = {_meal_type_id(f) for f in foods} - {None}
    return len(ids) if ids else len(foods)


def meal_snack_split(foods: list[Mapping[str, Any]]) -> tuple[float | None, float | None]:
    """``(mealCalories, snackCalories)`` summed over food logs with calories."""
    meal = 0.0
    snack = 0.0
    seen = False
    for food in foods:
        calories = finite(food.get("calories"))
        if calories is None:
            continue
        seen = True
        if _meal_type_id(food) in MEAL_TYPE_IDS:
            meal += calories
        else:
            snack += calories
    if not seen:
        return None, None
    return meal, snack


def time_since_last_meal_hours(
    foods: Iterable[Mapping[str, Any]],
    now: datetime,
) -> float | None:
    """Hours from the latest food log to *now*, floored at 0.

    ``logDateTime`` is used when present, else the bare ``logDate``.
    """
    stamps = []
    for food in foods:
        stamp = parse_local_timestamp(food.get("logDateTime") or food.get("logDate"), now.tzinfo)
        if stamp is not None:
            stamps.append(stamp)
    if not stamps:
        return None
    hours = (local_naive(now) - max(stamps)).total_seconds() / 3600.0
    return max(0.0, hours)


def build_nutrition_feature_block(
    nutrition_daily: Mapping[str, Any] | None,
    water_daily: Mapping[str, Any] | None,
    now: datetime,
) -> NutritionFeatures:
    """Build nutrition and water features for the anchor's day."""
    result = NutritionFeatures()

    summary = nutrition_daily.get("nutritionSummary") if isinstance(nutrition_daily, Mapping) else None
    if isinstance(summary, Mapping):
        for attr, key in SUMMARY_TOTALS:
            setattr(result, attr, finite(summary.get(key)))
    else:
        summary = {}
        result.notes.append("no_nutrition_summary")

    water_total = finite(water_daily.get("waterTotal")) if isinstance(water_daily, Mapping) else None
    result.total_water_ml = water_total if water_total is not None else finite(summary.get("water"))

    foods = _foods(nutrition_daily)
    result.meals_logged_count = meals_logged_count(foods)
    if result.meals_logged_count and result.total_calories_intake is not None:
        result.calories_per_meal_avg = result.total_calories_intake / result.meals_logged_count
    result.time_since_last_meal_hours = time_since_last_meal_hours(foods, now)

    meal, snack = meal_snack_split(foods)
    result.meal_calories = meal
    result.snack_calories = snack
    if meal is not None and snack is not None and meal + snack > 0:
        result.snack_calories_fraction = snack / (meal + snack)

    return result
