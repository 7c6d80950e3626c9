"""Meal logging: resolve foods, compute macros, record ledger entries."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

import httpx

from macro_planner.domain.meals import MealPlanEntry, SelectedFood
from macro_planner.domain.nutrients import FoodNutrition, NutrientVector
from macro_planner.domain.presets import MealPreset
from macro_planner.services.ledger import MealLedger
from macro_planner.services.nutrition import FoodCatalog
from macro_planner.services.portions import (
    Progress,
    calculate_dish_nutrition,
    calculate_macro_progress,
    calculate_total_macros,
    convert_to_nutrition_per_100g,
    generate_initial_portions,
    optimize_portions,
)
from macro_planner.services.presets import PresetBook

DISH_CATEGORY = "dishes"

_logger = logging.getLogger(__name__)


@dataclass
class MealLogService:
    """Service that computes macros for selected foods and logs meals."""

    catalog: FoodCatalog
    ledger: MealLedger
    presets: PresetBook

    async def resolve_foods(
        self, selected_foods: Iterable[SelectedFood]
    ) -> dict[str, FoodNutrition]:
        """Look up each distinct food; unknown or failing foods are skipped."""
        foods: dict[str, FoodNutrition] = {}
        for selection in selected_foods:
            if selection.food_id in foods:
                continue
            try:
                food = await self.catalog.get_food(selection.food_id)
            except httpx.HTTPError:
                _logger.exception("Food lookup failed for %s", selection.food_id)
                continue
            if food is None:
                _logger.warning("Unknown food %s counted as zero", selection.food_id)
                continue
            foods[selection.food_id] = food
        return foods

    async def compute_macros(
        self, selected_foods: Iterable[SelectedFood]
    ) -> NutrientVector:
        """Compute the nutrients of a set of portions without logging them."""
        selections = tuple(selected_foods)
        foods = await self.resolve_foods(selections)
        return calculate_total_macros(selections, foods)

    async def log_meal(
        self,
        meal_id: str,
        selected_foods: Iterable[SelectedFood],
        *,
        is_cheat_meal: bool = False,
    ) -> MealPlanEntry:
        """Compute macros for the portions and record a ledger entry."""
        selections = tuple(selected_foods)
        macros = await self.compute_macros(selections)
        entry = self.ledger.create_entry(
            meal_id, selections, macros, is_cheat_meal=is_cheat_meal
        )
        _logger.info(
            "Logged meal %s with %s foods (%s kcal)",
            meal_id,
            len(selections),
            macros.calories,
        )
        return entry

    async def update_meal_foods(
        self, entry_id: str, selected_foods: Iterable[SelectedFood]
    ) -> MealPlanEntry | None:
        """Replace an entry's portions and recompute its macros."""
        if self.ledger.get_entry(entry_id) is None:
            return None
        selections = tuple(selected_foods)
        macros = await self.compute_macros(selections)
        return self.ledger.update_entry(
            entry_id, selected_foods=selections, calculated_macros=macros
        )

    async def meal_progress(
        self, meal_id: str, selected_foods: Iterable[SelectedFood]
    ) -> dict[str, Progress] | None:
        """Return per-macro progress of portions against a meal definition."""
        definition = self.ledger.get_meal_definition(meal_id)
        if definition is None:
            return None
        macros = await self.compute_macros(selected_foods)
        return calculate_macro_progress(macros, definition.macro_targets)

    async def suggest_portions(
        self, meal_id: str, food_ids: Iterable[str]
    ) -> list[SelectedFood] | None:
        """Propose portions of the chosen foods that fit a meal's targets."""
        definition = self.ledger.get_meal_definition(meal_id)
        if definition is None:
            return None
        unique_ids = list(dict.fromkeys(food_ids))
        foods = await self.resolve_foods(
            SelectedFood(food_id=food_id, portion_grams=0) for food_id in unique_ids
        )
        return generate_initial_portions(unique_ids, foods, definition.macro_targets)

    async def adjust_portion(  # noqa: PLR0913
        self,
        meal_id: str,
        selected_foods: Iterable[SelectedFood],
        food_id: str,
        new_portion: float,
        locked_food_ids: Iterable[str] = (),
    ) -> list[SelectedFood] | None:
        """Set one portion by hand and rebalance the unlocked foods."""
        definition = self.ledger.get_meal_definition(meal_id)
        if definition is None:
            return None
        selections = list(selected_foods)
        foods = await self.resolve_foods(selections)
        return optimize_portions(
            selections,
            foods,
            definition.macro_targets,
            food_id,
            new_portion,
            locked_food_ids,
        )

    async def build_dish(
        self, dish_id: str, name: str, ingredients: Iterable[SelectedFood]
    ) -> FoodNutrition:
        """Combine ingredients into a food with nutrition per 100 g."""
        if not name.strip():
            raise ValueError("Please enter a dish name")
        parts = tuple(ingredients)
        if not parts:
            raise ValueError("Please add at least one ingredient")
        foods = await self.resolve_foods(parts)
        total_grams = sum(part.portion_grams for part in parts)
        per_100g = convert_to_nutrition_per_100g(
            calculate_dish_nutrition(parts, foods), total_grams
        )
        _logger.info("Built dish %s from %s ingredients", dish_id, len(parts))
        return FoodNutrition(
            food_id=dish_id,
            name=name.strip(),
            per_100g=per_100g,
            category=DISH_CATEGORY,
        )

    async def create_preset(
        self, name: str, selected_foods: Iterable[SelectedFood]
    ) -> MealPreset:
        """Save portions as a preset with their current macros."""
        selections = tuple(selected_foods)
        macros = await self.compute_macros(selections)
        return self.presets.create_preset(name, selections, macros)

    async def log_preset(
        self, preset_id: str, meal_id: str, *, is_cheat_meal: bool = False
    ) -> MealPlanEntry | None:
        """Log a preset's portions into a meal and mark the preset used."""
        preset = self.presets.get_preset(preset_id)
        if preset is None:
            return None
        entry = await self.log_meal(meal_id, preset.foods, is_cheat_meal=is_cheat_meal)
        self.presets.mark_used(preset_id)
        return entry
