"""Domain models for meal definitions and logged meals."""

from dataclasses import dataclass, field
from datetime import datetime

from macro_planner.domain.nutrients import NutrientVector


@dataclass(frozen=True)
class MealMacroTargets:
    """Macro targets for a single meal."""

    protein: float
    carbs: float
    fat: float
    min_fiber: float = 0.0
    max_sugar: float = 0.0


@dataclass(frozen=True)
class MealDefinition:
    """A named meal slot with its macro targets."""

    id: str
    name: str
    macro_targets: MealMacroTargets
    created_at: datetime
    user_custom: bool = False
    personalized_generated: bool = False


@dataclass(frozen=True)
class SelectedFood:
    """A food and its portion inside a logged meal."""

    food_id: str
    portion_grams: float


@dataclass(frozen=True)
class MealPlanEntry:
    """A logged meal instance."""

    id: str
    meal_id: str
    created_at: datetime
    selected_foods: tuple[SelectedFood, ...] = ()
    calculated_macros: NutrientVector = field(default_factory=NutrientVector)
    is_cheat_meal: bool = False


@dataclass(frozen=True)
class ActualMacros:
    """Macros an entry contributes from what was actually logged."""

    vector: NutrientVector


@dataclass(frozen=True)
class AssumedOptimalMacros:
    """Macros a cheat meal contributes: its meal definition's targets."""

    targets: MealMacroTargets
    vector: NutrientVector


EffectiveMacros = ActualMacros | AssumedOptimalMacros


@dataclass(frozen=True)
class MealCompletion:
    """Whether a meal definition has been logged today."""

    definition: MealDefinition
    completed: bool
    entry: MealPlanEntry | None = None
