"""Saved meal presets."""

from dataclasses import dataclass
from datetime import datetime

from macro_planner.domain.meals import SelectedFood
from macro_planner.domain.nutrients import NutrientVector, round_half_up


@dataclass(frozen=True)
class MealPreset:
    """A named set of portions that can be logged again in one step.

    ``calculated_macros`` is a snapshot taken when the preset was saved.
    """

    id: str
    name: str
    foods: tuple[SelectedFood, ...]
    calculated_macros: NutrientVector
    created_at: datetime
    last_used: datetime

    @property
    def total_calories(self) -> int:
        return int(round_half_up(self.calculated_macros.calories))
