"""Tests for portion math and portion optimization."""

import pytest

from macro_planner.domain.meals import MealMacroTargets, SelectedFood
from macro_planner.domain.nutrients import FoodNutrition, NutrientVector
from macro_planner.services.portions import (
    calculate_dish_nutrition,
    calculate_fiber_progress,
    calculate_macro_progress,
    calculate_macros_for_portion,
    calculate_progress,
    calculate_sugar_progress,
    calculate_total_macros,
    convert_to_nutrition_per_100g,
    generate_initial_portions,
    optimize_portions,
    validate_macro_targets,
)


def test_portion_scales_per_100g(chicken: FoodNutrition) -> None:
    macros = calculate_macros_for_portion(chicken, 150)

    assert macros.calories == pytest.approx(247.5)
    assert macros.protein == pytest.approx(46.5)
    assert macros.fat == pytest.approx(5.4)


def test_supplement_portion_counts_pills(fish_oil: FoodNutrition) -> None:
    macros = calculate_macros_for_portion(fish_oil, 2)

    assert macros.calories == pytest.approx(20)
    assert macros.omega3 == pytest.approx(1.0)


def test_total_macros_skip_unknown_foods(
    chicken: FoodNutrition, rice: FoodNutrition
) -> None:
    foods = {"chicken": chicken, "rice": rice}
    total = calculate_total_macros(
        [
            SelectedFood("chicken", 100),
            SelectedFood("rice", 200),
            SelectedFood("mystery", 500),
        ],
        foods,
    )

    assert total.calories == pytest.approx(425)
    assert total.protein == pytest.approx(36.4)
    assert total.carbs == pytest.approx(56)


def test_range_progress_statuses() -> None:
    assert calculate_progress(100, 100).status == "met"
    assert calculate_progress(50, 100).percentage == 50
    assert calculate_progress(50, 100).status == "under"
    over = calculate_progress(130, 100)
    assert over.status == "over"
    assert over.percentage == 100
    assert calculate_progress(10, 0).status == "met"


def test_fiber_and_sugar_progress() -> None:
    assert calculate_fiber_progress(6, 5).status == "met"
    assert calculate_fiber_progress(2, 5).status == "under"
    assert calculate_fiber_progress(0, 0).percentage == 100
    assert calculate_sugar_progress(12, 10).status == "over"
    assert calculate_sugar_progress(12, 10).percentage == 120
    assert calculate_sugar_progress(5, 0).percentage == 0


def test_macro_progress_covers_all_targets(chicken: FoodNutrition) -> None:
    macros = calculate_macros_for_portion(chicken, 100)
    progress = calculate_macro_progress(
        macros, MealMacroTargets(31, 10, 4, min_fiber=5, max_sugar=10)
    )

    assert set(progress) == {"protein", "carbs", "fat", "fiber", "sugar"}
    assert progress["protein"].status == "met"
    assert progress["carbs"].status == "under"


def test_validate_macro_targets() -> None:
    assert validate_macro_targets(MealMacroTargets(30, 40, 10)) == []
    assert validate_macro_targets(MealMacroTargets(0, 40, 10, min_fiber=-1)) == [
        "Protein target must be greater than 0",
        "Minimum fiber cannot be negative",
    ]


def test_initial_portions_move_towards_targets(
    chicken: FoodNutrition, rice: FoodNutrition
) -> None:
    foods = {"chicken": chicken, "rice": rice}
    targets = MealMacroTargets(40, 45, 10)
    start = [SelectedFood("chicken", 100), SelectedFood("rice", 100)]

    portions = generate_initial_portions(["chicken", "rice"], foods, targets)

    def error(selections: list[SelectedFood]) -> float:
        total = calculate_total_macros(selections, foods)
        return (
            abs(targets.protein - total.protein)
            + abs(targets.carbs - total.carbs)
            + abs(targets.fat - total.fat)
        )

    assert error(portions) < error(start)
    assert all(selection.portion_grams >= 10 for selection in portions)


def test_optimize_keeps_adjusted_and_locked_foods(
    chicken: FoodNutrition, rice: FoodNutrition, fish_oil: FoodNutrition
) -> None:
    foods = {"chicken": chicken, "rice": rice, "fish-oil": fish_oil}
    selections = [
        SelectedFood("chicken", 100),
        SelectedFood("rice", 100),
        SelectedFood("fish-oil", 2),
    ]

    result = optimize_portions(
        selections,
        foods,
        MealMacroTargets(40, 45, 10),
        adjusted_food_id="chicken",
        new_portion=120,
        locked_food_ids=["fish-oil"],
    )

    by_id = {selection.food_id: selection.portion_grams for selection in result}
    assert by_id["chicken"] == 120
    assert by_id["fish-oil"] == 2
    order = [selection.food_id for selection in result]
    assert order == ["chicken", "rice", "fish-oil"]


def test_optimize_ignores_unknown_adjusted_food(chicken: FoodNutrition) -> None:
    selections = [SelectedFood("chicken", 100)]
    assert (
        optimize_portions(
            selections, {"chicken": chicken}, MealMacroTargets(30, 0, 5), "nope", 50
        )
        is selections
    )


def test_dish_nutrition_sums_known_ingredients(
    chicken: FoodNutrition, rice: FoodNutrition
) -> None:
    total = calculate_dish_nutrition(
        [
            SelectedFood("chicken", 200),
            SelectedFood("rice", 100),
            SelectedFood("mystery", 80),
        ],
        {"chicken": chicken, "rice": rice},
    )

    assert total.calories == pytest.approx(460)
    assert total.protein == pytest.approx(64.7)
    assert total.sodium == pytest.approx(148)


def test_dish_per_100g() -> None:
    total = NutrientVector(calories=460, protein=64.7, carbs=28, fat=7.2)

    per_100g = convert_to_nutrition_per_100g(total, 300)

    assert per_100g.calories == pytest.approx(153.3)
    assert per_100g.protein == pytest.approx(21.6)
    assert per_100g.carbs == pytest.approx(9.3)
    assert per_100g.fat == pytest.approx(2.4)
    assert convert_to_nutrition_per_100g(total, 0) is total
