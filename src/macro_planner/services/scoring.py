"""Daily aggregation and consistency scoring."""

from collections.abc import Iterable, Mapping

from macro_planner.domain.meals import (
    ActualMacros,
    AssumedOptimalMacros,
    EffectiveMacros,
    MealDefinition,
    MealMacroTargets,
    MealPlanEntry,
)
from macro_planner.domain.nutrients import NutrientVector, round_half_up
from macro_planner.domain.profile import NutritionTargets
from macro_planner.domain.summaries import (
    DailySummary,
    DailyTargets,
    MealResult,
    TargetResult,
    TargetStatus,
)

HIT_LOW = 0.95
HIT_HIGH = 1.05
MACRO_POINTS = 20
NUTRIENT_POINTS = 8
TOP_FOODS_LIMIT = 3

SCORED_MACROS = ("protein", "carbs", "fat")
SCORED_NUTRIENTS = ("fiber", "omega3", "iron", "calcium", "vitamin_d")

# Sub-macro shares of a cheat meal's fat and sugar targets.
ASSUMED_FAT_SHARES = {
    "saturated_fat": 0.3,
    "monounsaturated_fat": 0.4,
    "polyunsaturated_fat": 0.2,
    "omega3": 0.05,
}
ASSUMED_ADDED_SUGAR_SHARE = 0.3
# Micronutrients a cheat meal is assumed to carry per 1000 kcal.
ASSUMED_MICROS_PER_1000_KCAL = {
    "iron": 7.0,
    "calcium": 500.0,
    "zinc": 5.5,
    "magnesium": 200.0,
    "sodium": 1000.0,
    "potassium": 1750.0,
    "vitamin_b6": 0.7,
    "vitamin_b12": 1.2,
    "vitamin_c": 45.0,
    "vitamin_d": 7.5,
}


def assumed_optimal_vector(targets: MealMacroTargets) -> NutrientVector:
    """Return the nutrients a cheat meal is scored with."""
    calories = targets.protein * 4 + targets.carbs * 4 + targets.fat * 9
    values: dict[str, float] = {
        "calories": calories,
        "protein": targets.protein,
        "carbs": targets.carbs,
        "fat": targets.fat,
        "fiber": targets.min_fiber,
        "sugar": targets.max_sugar,
        "added_sugars": targets.max_sugar * ASSUMED_ADDED_SUGAR_SHARE,
        "natural_sugars": targets.max_sugar * (1 - ASSUMED_ADDED_SUGAR_SHARE),
    }
    for name, share in ASSUMED_FAT_SHARES.items():
        values[name] = targets.fat * share
    for name, per_1000 in ASSUMED_MICROS_PER_1000_KCAL.items():
        values[name] = calories / 1000 * per_1000
    return NutrientVector(**values)


def resolve_effective_macros(
    entry: MealPlanEntry, definition: MealDefinition | None
) -> EffectiveMacros:
    """Return what an entry contributes to its day."""
    if not entry.is_cheat_meal:
        return ActualMacros(vector=entry.calculated_macros)
    if definition is None:
        return ActualMacros(vector=NutrientVector())
    return AssumedOptimalMacros(
        targets=definition.macro_targets,
        vector=assumed_optimal_vector(definition.macro_targets),
    )


def evaluate_range(actual: float, target: float) -> TargetResult:
    """Hit within 95-105% of target, under or over otherwise."""
    if target <= 0:
        return TargetResult(actual, target, 1.0, TargetStatus.HIT, achieved=True)
    ratio = actual / target
    if ratio < HIT_LOW:
        status = TargetStatus.UNDER
    elif ratio > HIT_HIGH:
        status = TargetStatus.OVER
    else:
        status = TargetStatus.HIT
    return TargetResult(
        actual, target, ratio, status, achieved=status == TargetStatus.HIT
    )


def evaluate_minimum(actual: float, target: float) -> TargetResult:
    """Hit once the actual amount reaches the target."""
    if target <= 0:
        return TargetResult(actual, target, 1.0, TargetStatus.HIT, achieved=True)
    ratio = actual / target
    achieved = actual >= target
    status = TargetStatus.HIT if achieved else TargetStatus.UNDER
    return TargetResult(actual, target, ratio, status, achieved=achieved)


def daily_targets_from(
    targets: NutritionTargets | None, definitions: Iterable[MealDefinition]
) -> DailyTargets:
    """Return personalized daily targets, or the sum of meal definitions."""
    if targets is not None:
        micros = targets.micronutrients
        defaults = DailyTargets(protein=0, carbs=0, fat=0)
        return DailyTargets(
            protein=targets.daily.protein,
            carbs=targets.daily.carbs,
            fat=targets.daily.fat,
            calories=targets.daily.calories,
            fiber=targets.daily.fiber,
            iron=micros.get("iron", defaults.iron),
            calcium=micros.get("calcium", defaults.calcium),
            vitamin_d=micros.get("vitamin_d", defaults.vitamin_d),
        )
    protein = carbs = fat = 0.0
    for definition in definitions:
        protein += definition.macro_targets.protein
        carbs += definition.macro_targets.carbs
        fat += definition.macro_targets.fat
    return DailyTargets(
        protein=protein,
        carbs=carbs,
        fat=fat,
        calories=protein * 4 + carbs * 4 + fat * 9,
    )


def top_foods(
    entries: Iterable[MealPlanEntry], limit: int = TOP_FOODS_LIMIT
) -> tuple[str, ...]:
    """Return the food ids with the most grams, first-seen order on ties."""
    grams: dict[str, float] = {}
    for entry in entries:
        for food in entry.selected_foods:
            grams[food.food_id] = grams.get(food.food_id, 0.0) + food.portion_grams
    ranked = sorted(grams.items(), key=lambda item: item[1], reverse=True)
    return tuple(food_id for food_id, _ in ranked[:limit])


def create_daily_summary(
    day: str,
    entries: Iterable[MealPlanEntry],
    definitions: Mapping[str, MealDefinition],
    targets: DailyTargets,
    *,
    is_cheat_day: bool = False,
) -> DailySummary:
    """Aggregate a day's entries and score them against the daily targets."""
    day_entries = list(entries)
    totals = NutrientVector()
    for entry in day_entries:
        effective = resolve_effective_macros(entry, definitions.get(entry.meal_id))
        totals = totals + effective.vector

    macro_results = {
        name: evaluate_range(getattr(totals, name), getattr(targets, name))
        for name in SCORED_MACROS
    }
    nutrient_results = {
        name: evaluate_minimum(getattr(totals, name), getattr(targets, name))
        for name in SCORED_NUTRIENTS
    }
    macro_score = MACRO_POINTS * sum(
        1 for result in macro_results.values() if result.achieved
    )
    nutrient_score = NUTRIENT_POINTS * sum(
        1 for result in nutrient_results.values() if result.achieved
    )
    targets_achieved = {
        name: round_half_up(result.ratio * 100, 1)
        for name, result in {**macro_results, **nutrient_results}.items()
    }
    return DailySummary(
        day=day,
        totals=totals.rounded(1),
        targets_achieved=targets_achieved,
        macro_score=macro_score,
        nutrient_score=nutrient_score,
        consistency_score=(macro_score + nutrient_score) / 100,
        macro_results=macro_results,
        nutrient_results=nutrient_results,
        top_foods=top_foods(day_entries),
        is_cheat_day=is_cheat_day,
        entry_count=len(day_entries),
        cheat_meal_count=sum(1 for entry in day_entries if entry.is_cheat_meal),
    )


def cheat_day_placeholder(day: str) -> DailySummary:
    """Summary stored when a day is marked as a cheat day without data."""
    return DailySummary(day=day, is_cheat_day=True)


def score_meal_entry(
    entry: MealPlanEntry, definition: MealDefinition | None
) -> MealResult | None:
    """Score one entry against its own meal definition."""
    if definition is None:
        return None
    vector = resolve_effective_macros(entry, definition).vector
    targets = definition.macro_targets
    return MealResult(
        entry_id=entry.id,
        meal_id=entry.meal_id,
        macro_results={
            name: evaluate_range(getattr(vector, name), getattr(targets, name))
            for name in SCORED_MACROS
        },
        is_cheat_meal=entry.is_cheat_meal,
    )
