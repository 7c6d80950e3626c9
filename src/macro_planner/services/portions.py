"""Portion-level nutrient math and portion optimization."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace

from macro_planner.domain.meals import MealMacroTargets, SelectedFood
from macro_planner.domain.nutrients import (
    FoodNutrition,
    NutrientVector,
    round_half_up,
)

MAX_OPTIMIZATION_ITERATIONS = 10
CONVERGED_ERROR = 1.0
PORTION_STEP_G = 5
PORTION_WINDOW_G = 20
MIN_PORTION_G = 10
MAX_PILLS = 10
PROGRESS_LOW = 95
PROGRESS_HIGH = 105


@dataclass(frozen=True)
class Progress:
    """Percentage of a target reached and whether it counts as met."""

    percentage: int
    status: str


def calculate_macros_for_portion(
    food: FoodNutrition, portion_grams: float
) -> NutrientVector:
    """Scale a food's nutrients to a portion, rounded to one decimal."""
    multiplier = portion_grams if food.is_supplement else portion_grams / 100
    return food.per_100g.scaled(multiplier).rounded(1)


def calculate_total_macros(
    selected_foods: Iterable[SelectedFood], foods: Mapping[str, FoodNutrition]
) -> NutrientVector:
    """Sum portions of known foods; unknown food ids contribute nothing."""
    total = NutrientVector()
    for selection in selected_foods:
        food = foods.get(selection.food_id)
        if food is None:
            continue
        total = total + calculate_macros_for_portion(food, selection.portion_grams)
    return total.rounded(1)


def calculate_progress(current: float, target: float) -> Progress:
    """Range progress: met between 95% and 105% of target."""
    if target == 0:
        return Progress(percentage=100, status="met")
    raw = current / target * 100
    status = "under"
    if PROGRESS_LOW <= raw <= PROGRESS_HIGH:
        status = "met"
    elif raw > PROGRESS_HIGH:
        status = "over"
    return Progress(percentage=int(round_half_up(min(100.0, raw))), status=status)


def calculate_fiber_progress(current: float, min_target: float) -> Progress:
    """Minimum progress: met once the minimum is reached."""
    if min_target == 0:
        return Progress(percentage=100, status="met")
    percentage = min(100.0, current / min_target * 100)
    status = "met" if percentage >= 100 else "under"
    return Progress(percentage=int(round_half_up(percentage)), status=status)


def calculate_sugar_progress(current: float, max_target: float) -> Progress:
    """Maximum progress: met while at or below the limit."""
    if max_target == 0:
        return Progress(percentage=0, status="met")
    percentage = current / max_target * 100
    status = "met" if percentage <= 100 else "over"
    return Progress(percentage=int(round_half_up(percentage)), status=status)


def calculate_macro_progress(
    current: NutrientVector, targets: MealMacroTargets
) -> dict[str, Progress]:
    """Return per-macro progress of a meal against its targets."""
    return {
        "protein": calculate_progress(current.protein, targets.protein),
        "carbs": calculate_progress(current.carbs, targets.carbs),
        "fat": calculate_progress(current.fat, targets.fat),
        "fiber": calculate_fiber_progress(current.fiber, targets.min_fiber),
        "sugar": calculate_sugar_progress(current.sugar, targets.max_sugar),
    }


def validate_macro_targets(targets: MealMacroTargets) -> list[str]:
    """Return problems with meal targets; empty means valid."""
    errors: list[str] = []
    if targets.protein <= 0:
        errors.append("Protein target must be greater than 0")
    if targets.carbs <= 0:
        errors.append("Carbs target must be greater than 0")
    if targets.fat <= 0:
        errors.append("Fat target must be greater than 0")
    if targets.min_fiber < 0:
        errors.append("Minimum fiber cannot be negative")
    if targets.max_sugar < 0:
        errors.append("Maximum sugar cannot be negative")
    return errors


def optimization_score(
    selections: Iterable[SelectedFood],
    foods: Mapping[str, FoodNutrition],
    targets: MealMacroTargets,
) -> float:
    """Macro error with small bonuses for healthy fats and fiber."""
    totals = calculate_total_macros(selections, foods)
    base = (
        abs(targets.protein - totals.protein)
        + abs(targets.carbs - totals.carbs)
        + abs(targets.fat - totals.fat)
    )
    health = 0.0
    health -= totals.monounsaturated_fat * 0.1
    health -= totals.omega3 * 0.2
    health -= totals.fiber * 0.1
    health += totals.trans_fat * 0.5
    health += totals.added_sugars * 0.05
    return base + health


def redistribute_portions(
    selections: list[SelectedFood],
    foods: Mapping[str, FoodNutrition],
    targets: MealMacroTargets,
) -> list[SelectedFood]:
    """Greedily move each portion towards the targets, food by food."""
    current = list(selections)
    for _ in range(MAX_OPTIMIZATION_ITERATIONS):
        totals = calculate_total_macros(current, foods)
        total_error = (
            abs(targets.protein - totals.protein)
            + abs(targets.carbs - totals.carbs)
            + abs(targets.fat - totals.fat)
        )
        if total_error < CONVERGED_ERROR:
            break
        for index, selection in enumerate(current):
            food = foods.get(selection.food_id)
            if food is None:
                continue
            current[index] = _best_portion(current, index, food, foods, targets)
    return current


def optimize_portions(  # noqa: PLR0913
    selections: list[SelectedFood],
    foods: Mapping[str, FoodNutrition],
    targets: MealMacroTargets,
    adjusted_food_id: str,
    new_portion: float,
    locked_food_ids: Iterable[str] = (),
) -> list[SelectedFood]:
    """Apply a manual portion change and rebalance the unlocked foods."""
    if adjusted_food_id not in foods:
        return selections
    locked = set(locked_food_ids) | {adjusted_food_id}
    updated = [
        replace(selection, portion_grams=new_portion)
        if selection.food_id == adjusted_food_id
        else selection
        for selection in selections
    ]
    locked_totals = calculate_total_macros(
        [selection for selection in updated if selection.food_id in locked], foods
    )
    remaining = MealMacroTargets(
        protein=max(0.0, targets.protein - locked_totals.protein),
        carbs=max(0.0, targets.carbs - locked_totals.carbs),
        fat=max(0.0, targets.fat - locked_totals.fat),
    )
    unlocked = [selection for selection in updated if selection.food_id not in locked]
    if not unlocked:
        return updated
    optimized = {
        selection.food_id: selection
        for selection in redistribute_portions(unlocked, foods, remaining)
    }
    return [
        selection
        if selection.food_id in locked
        else optimized.get(selection.food_id, selection)
        for selection in updated
    ]


def generate_initial_portions(
    food_ids: Iterable[str],
    foods: Mapping[str, FoodNutrition],
    targets: MealMacroTargets,
) -> list[SelectedFood]:
    """Start every food at 100 g and optimize towards the targets."""
    selections = [
        SelectedFood(food_id=food_id, portion_grams=100) for food_id in food_ids
    ]
    return redistribute_portions(selections, foods, targets)


def _best_portion(
    current: list[SelectedFood],
    index: int,
    food: FoodNutrition,
    foods: Mapping[str, FoodNutrition],
    targets: MealMacroTargets,
) -> SelectedFood:
    selection = current[index]
    portion = selection.portion_grams
    if food.is_supplement:
        step, low, high = 1, 1, MAX_PILLS
    else:
        step = PORTION_STEP_G
        low = max(MIN_PORTION_G, portion - PORTION_WINDOW_G)
        high = portion + PORTION_WINDOW_G

    best_portion = portion
    best_score = optimization_score(current, foods, targets)
    candidate = low
    while candidate <= high:
        trial = list(current)
        trial[index] = replace(selection, portion_grams=candidate)
        score = optimization_score(trial, foods, targets)
        if score < best_score:
            best_score = score
            best_portion = candidate
        candidate += step
    if food.is_supplement:
        best_portion = round_half_up(best_portion)
    return replace(selection, portion_grams=best_portion)


def calculate_dish_nutrition(
    ingredients: Iterable[SelectedFood], foods: Mapping[str, FoodNutrition]
) -> NutrientVector:
    """Sum ingredient portions without rounding the total."""
    total = NutrientVector()
    for ingredient in ingredients:
        food = foods.get(ingredient.food_id)
        if food is None:
            continue
        total = total + calculate_macros_for_portion(food, ingredient.portion_grams)
    return total


def convert_to_nutrition_per_100g(
    total: NutrientVector, total_grams: float
) -> NutrientVector:
    """Normalize a dish total to 100 g; a weightless dish is returned as is."""
    if total_grams == 0:
        return total
    return total.scaled(100 / total_grams).rounded(1)
