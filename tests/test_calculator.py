"""Tests for personalized nutrition calculations."""

from dataclasses import replace

import pytest

from macro_planner.domain.profile import UserProfile
from macro_planner.services.calculator import (
    adjust_calories_for_goal,
    calculate_bmr,
    calculate_macro_distribution,
    calculate_micronutrient_needs,
    calculate_personalized_nutrition,
    calculate_tdee,
    distribute_macros_across_meals,
    generate_meal_names,
    generate_recommendations,
    validate_user_profile,
)


def test_bmr_mifflin_st_jeor() -> None:
    assert calculate_bmr(75, 180, 25, "male") == pytest.approx(1755)
    assert calculate_bmr(60, 165, 30, "female") == pytest.approx(1320.25)


def test_bmr_katch_mcardle_with_body_fat() -> None:
    assert calculate_bmr(80, 180, 30, "male", body_fat_pct=12) == pytest.approx(
        1890.64
    )


def test_bmr_ignores_implausible_body_fat() -> None:
    assert calculate_bmr(75, 180, 25, "male", body_fat_pct=0) == pytest.approx(1755)
    assert calculate_bmr(75, 180, 25, "male", body_fat_pct=55) == pytest.approx(1755)


def test_tdee_multipliers() -> None:
    assert calculate_tdee(1800, "sedentary") == pytest.approx(2160)
    assert calculate_tdee(1800, "moderate") == pytest.approx(2790)
    assert calculate_tdee(1800, "very_active") == pytest.approx(3105)
    assert calculate_tdee(1800, "unknown") == pytest.approx(2790)


def test_goal_adjustment() -> None:
    assert adjust_calories_for_goal(2500, "cutting") == pytest.approx(2125)
    assert adjust_calories_for_goal(2500, "bulking") == pytest.approx(2875)
    assert adjust_calories_for_goal(2500, "maintenance") == pytest.approx(2500)
    assert adjust_calories_for_goal(2500, "something") == pytest.approx(2500)


def test_goal_ordering_for_same_tdee() -> None:
    cutting = adjust_calories_for_goal(2600, "cutting")
    maintenance = adjust_calories_for_goal(2600, "maintenance")
    bulking = adjust_calories_for_goal(2600, "bulking")
    assert cutting < maintenance < bulking
    assert adjust_calories_for_goal(2600, "aggressive_cutting") < cutting
    assert adjust_calories_for_goal(2600, "aggressive_bulking") > bulking


def test_macro_distribution_for_cutting() -> None:
    daily = calculate_macro_distribution(2000, 75, "cutting")

    assert daily.protein == round(75 * 2.2) == 165
    assert daily.calories == 2000
    assert daily.carbs == 155
    assert daily.fat == 80
    assert daily.fiber == 28
    assert daily.sugar == 46
    assert daily.saturated_fat == 24
    assert daily.sodium == 2300


def test_macro_distribution_fiber_floor() -> None:
    daily = calculate_macro_distribution(1500, 60, "maintenance")
    assert daily.fiber == 25


def test_meal_names_default_to_four_meals() -> None:
    assert generate_meal_names(3) == ("Breakfast", "Lunch", "Dinner")
    assert generate_meal_names(6)[-1] == "Evening"
    assert generate_meal_names(7) == generate_meal_names(4)
    assert "Post-Workout" in generate_meal_names(4)


@pytest.mark.parametrize("meals_per_day", [3, 4, 5, 6])
@pytest.mark.parametrize(
    "goal", ["cutting", "aggressive_cutting", "maintenance", "bulking"]
)
def test_meal_distribution_sums_to_daily_targets(
    complete_profile: UserProfile, meals_per_day: int, goal: str
) -> None:
    profile = replace(complete_profile, meals_per_day=meals_per_day, goal=goal)
    targets, errors = calculate_personalized_nutrition(profile)

    assert errors == []
    assert targets is not None
    meals = targets.meal_distribution
    assert len(meals) == meals_per_day
    assert abs(sum(meal.protein for meal in meals) - targets.daily.protein) < 5
    assert abs(sum(meal.carbs for meal in meals) - targets.daily.carbs) < 5
    assert abs(sum(meal.fat for meal in meals) - targets.daily.fat) < 5


def test_meal_distribution_fiber_and_sugar_limits() -> None:
    daily = calculate_macro_distribution(2000, 75, "cutting")
    meals = distribute_macros_across_meals(daily, 4)

    assert meals[0].fiber == 7
    assert meals[0].min_fiber == 6
    assert meals[0].max_sugar == 17


def test_unsupported_meal_count_splits_across_default_meals() -> None:
    daily = calculate_macro_distribution(2000, 75, "cutting")

    meals = distribute_macros_across_meals(daily, 7)

    assert meals == distribute_macros_across_meals(daily, 4)
    assert abs(sum(meal.calories for meal in meals) - daily.calories) < 4


def test_micronutrients_scale_except_sodium() -> None:
    female = calculate_micronutrient_needs("female", "moderate")
    male = calculate_micronutrient_needs("male", "sedentary")

    assert female["iron"] == 22
    assert female["sodium"] == 2300
    assert male["iron"] == 8
    assert male["sodium"] == 2300
    assert calculate_micronutrient_needs("male", "extremely_active")["calcium"] == 1400


def test_validation_reports_every_problem() -> None:
    profile = UserProfile(
        age=17,
        gender="other",
        weight_kg=35,
        height_cm=230,
        body_fat_pct=60,
        activity_level="couch",
        goal="shred",
        meals_per_day=7,
    )
    assert validate_user_profile(profile) == [
        "Age must be between 18-80 years",
        "Weight must be between 40-200 kg",
        "Height must be between 140-220 cm",
        "Body fat must be between 0-50%",
        "Gender must be male or female",
        "Invalid activity level",
        "Invalid goal",
        "Meals per day must be 3, 4, 5, or 6",
    ]


def test_invalid_profile_skips_calculation(complete_profile: UserProfile) -> None:
    targets, errors = calculate_personalized_nutrition(
        replace(complete_profile, age=90)
    )
    assert targets is None
    assert errors == ["Age must be between 18-80 years"]


def test_body_fat_is_optional(complete_profile: UserProfile) -> None:
    profile = replace(complete_profile, body_fat_pct=None)
    assert validate_user_profile(profile) == []


def test_scenario_cutting_very_active_male(complete_profile: UserProfile) -> None:
    targets, errors = calculate_personalized_nutrition(complete_profile)

    assert errors == []
    assert targets is not None
    assert targets.target_calories < targets.tdee
    assert targets.daily.protein > 150
    names = [meal.name for meal in targets.meal_distribution]
    assert len(names) == 5
    assert "Post-Workout" in names
    assert targets.bmr == pytest.approx(1786.96)


def test_recommendations_follow_goal_and_activity(
    complete_profile: UserProfile,
) -> None:
    lean = replace(complete_profile, body_fat_pct=12)
    advice = generate_recommendations(lean)

    assert any("diet breaks" in item for item in advice)
    assert any("meal frequency" in item for item in advice)
    assert advice[-1].startswith("Include a variety")

    bulking = generate_recommendations(
        replace(complete_profile, goal="bulking", activity_level="light")
    )
    assert any("post-workout carbs" in item for item in bulking)
    assert not any("meal frequency" in item for item in bulking)
