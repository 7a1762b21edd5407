"""Tests for wearfeat.features.nutrition and wearfeat.features.exercise."""

import pytest

from tests.conftest import ANCHOR
from wearfeat.features.exercise import (
    build_exercise_feature_block,
    normalize_exercise,
    normalize_most_recent_exercise,
)
from wearfeat.features.nutrition import (
    build_nutrition_feature_block,
    meal_snack_split,
    meals_logged_count,
    time_since_last_meal_hours,
)


# ===========================================================================
# Nutrition
# ===========================================================================


FOODS = [
    {"calories": 400, "mealTypeId": 1, "logDateTime": "2025-11-19T08:00:00"},
    {"calories": 600, "mealTypeId": 3, "logDateTime": "2025-11-19T12:30:00"},
    {"calories": 200, "mealTypeId": 4, "logDateTime": "2025-11-19T10:00:00"},
    {"calories": 150, "mealTypeId": 3, "logDateTime": "2025-11-19T12:35:00"},
]


class TestNutritionHelpers:
    def test_meals_logged_distinct_ids(self):
        assert meals_logged_count(FOODS) == 3

    def test_meals_logged_without_ids(self):
        assert meals_logged_count([{"calories": 10}, {"calories": 20}]) == 2
        assert meals_logged_count([]) is None

    def test_meal_snack_split(self):
        assert meal_snack_split(FOODS) == (1150.0, 200.0)
        assert meal_snack_split([{"mealTypeId": 1}]) == (None, None)

    def test_missing_meal_type_is_snack(self):
        assert meal_snack_split([{"calories": 90}]) == (0.0, 90.0)

    def test_string_meal_type_ids(self):
        foods = [
            {"calories": 400, "mealTypeId": "1"},
            {"calories": 200, "mealTypeId": "4"},
            {"calories": 50, "mealTypeId": "lunch"},
        ]
        assert meal_snack_split(foods) == (400.0, 250.0)
        assert meals_logged_count(foods + [{"mealTypeId": 1}]) == 2

    def test_time_since_last_meal(self):
        assert time_since_last_meal_hours(FOODS, ANCHOR) == pytest.approx(1 + 25 / 60)

    def test_time_since_last_meal_from_date(self):
        foods = [{"logDate": "2025-11-19"}]
        assert time_since_last_meal_hours(foods, ANCHOR) == pytest.approx(14.0)

    def test_future_meal_floored(self):
        foods = [{"logDateTime": "2025-11-19T18:00:00"}]
        assert time_since_last_meal_hours(foods, ANCHOR) == 0.0


class TestBuildNutritionFeatureBlock:
    def test_full(self):
        nutrition = {
            "foods": FOODS,
            "nutritionSummary": {
                "calories": 1350, "carbs": 150, "fat": 50,
                "fiber": 20, "protein": 80, "sodium": 2100, "water": 900,
            },
        }
        result = build_nutrition_feature_block(nutrition, {"waterTotal": 1500}, ANCHOR)
        data = result.to_dict()
        assert data["totalCaloriesIntake"] == 1350
        assert data["totalSodiumMg"] == 2100
        assert data["totalWaterMl"] == 1500
        assert data["mealsLoggedCount"] == 3
        assert data["caloriesPerMealAvg"] == pytest.approx(450.0)
        assert data["mealCalories"] == 1150
        assert data["snackCalories"] == 200
        assert data["snackCaloriesFraction"] == pytest.approx(200 / 1350)
        assert result.notes == []

    def test_water_from_summary(self):
        nutrition = {"nutritionSummary": {"water": 900}}
        assert build_nutrition_feature_block(nutrition, None, ANCHOR).total_water_ml == 900

    def test_missing(self):
        result = build_nutrition_feature_block(None, None, ANCHOR)
        assert result.total_calories_intake is None
        assert result.meals_logged_count is None
        assert result.notes == ["no_nutrition_summary"]


# ===========================================================================
# Exercise
# ===========================================================================


def _activity(start, minutes, name="Walk", **extra):
    return dict(
        {"activityName": name, "startTime": start, "duration": minutes * 60_000},
        **extra,
    )


class TestNormalizeExercise:
    def test_zone_minutes(self):
        activity = _activity(
            "2025-11-19T12:00:00.000", 30,
            activeZoneMinutes={
                "totalMinutes": 18,
                "minutesInHeartRateZones": [
                    {"zoneName": "Fat Burn", "minutes": 10},
                    {"zoneName": "CARDIO", "minutes": 6},
                    {"name": "Peak", "minutes": 2},
                    {"zoneName": "Out of Range", "minutes": 12},
                ],
            },
        )
        summary = normalize_exercise(activity)
        assert summary.azm_total == 18
        assert (summary.azm_fat_burn, summary.azm_cardio, summary.azm_peak) == (10, 6, 2)

    def test_active_duration_fallback(self):
        summary = normalize_exercise({"startTime": "2025-11-19T12:00:00", "activeDuration": 60_000})
        assert summary.duration_ms == 60_000

    def test_most_recent_before_anchor(self):
        payload = {"activities": [
            _activity("2025-11-19T07:00:00.000", 30, "Run"),
            _activity("2025-11-19T12:00:00.000", 45, "Bike"),
            _activity("2025-11-19T16:00:00.000", 30, "Swim"),
        ]}
        assert normalize_most_recent_exercise(payload, ANCHOR).activity_name == "Bike"

    def test_nothing(self):
        assert normalize_most_recent_exercise(None, ANCHOR) is None
        assert normalize_most_recent_exercise([{"activityName": "x"}], ANCHOR) is None


class TestBuildExerciseFeatureBlock:
    def test_inside_post_exercise_window(self):
        activities = [_activity("2025-11-19T12:45:00.000", 30, "Run", steps=4000, calories=350,
                                averageHeartRate=150)]
        result = build_exercise_feature_block(activities, ANCHOR)
        assert result.last_exercise_type == "Run"
        assert result.last_exercise_start_time == "2025-11-19T12:45:00.000"
        assert result.last_exercise_duration_minutes == pytest.approx(30.0)
        assert result.last_exercise_steps == 4000
        assert result.last_exercise_avg_hr == 150
        assert result.time_since_last_exercise_min == 45
        assert result.hours_since_last_exercise == pytest.approx(0.75)
        assert result.post_exercise_window_90m is True

    def test_outside_window(self):
        result = build_exercise_feature_block([_activity("2025-11-19T09:00:00", 60)], ANCHOR)
        assert result.time_since_last_exercise_min == 240
        assert result.post_exercise_window_90m is False

    def test_custom_window(self):
        result = build_exercise_feature_block([_activity("2025-11-19T09:00:00", 60)], ANCHOR, window_min=300)
        assert result.post_exercise_window_90m is True

    def test_still_running(self):
        result = build_exercise_feature_block([_activity("2025-11-19T13:30:00", 60)], ANCHOR)
        assert result.time_since_last_exercise_min == 0

    def test_none(self):
        result = build_exercise_feature_block({"activities": []}, ANCHOR)
        assert result.last_exercise_type is None
        assert result.notes == ["no_recent_exercise"]
