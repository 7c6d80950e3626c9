"""Domain models for daily summaries and adherence statistics."""

from dataclasses import dataclass, field
from enum import StrEnum

from macro_planner.domain.nutrients import (
    MACRO_FIELDS,
    MICRONUTRIENT_FIELDS,
    SUB_MACRO_FIELDS,
    NutrientVector,
)


class TargetStatus(StrEnum):
    """Outcome of comparing an actual amount with its target."""

    HIT = "hit"
    UNDER = "under"
    OVER = "over"


@dataclass(frozen=True)
class TargetResult:
    """Achievement detail for one macro or nutrient."""

    actual: float
    target: float
    ratio: float
    status: TargetStatus
    achieved: bool


@dataclass(frozen=True)
class DailyTargets:
    """Targets a day is scored against."""

    protein: float
    carbs: float
    fat: float
    calories: float = 0.0
    fiber: float = 25.0
    omega3: float = 2.0
    iron: float = 18.0
    calcium: float = 1000.0
    vitamin_d: float = 20.0


@dataclass(frozen=True)
class DailySummary:
    """Aggregated nutrition and adherence for one day bucket."""

    day: str
    totals: NutrientVector = field(default_factory=NutrientVector)
    targets_achieved: dict[str, float] = field(default_factory=dict)
    macro_score: int = 0
    nutrient_score: int = 0
    consistency_score: float = 0.0
    macro_results: dict[str, TargetResult] = field(default_factory=dict)
    nutrient_results: dict[str, TargetResult] = field(default_factory=dict)
    top_foods: tuple[str, ...] = ()
    is_cheat_day: bool = False
    entry_count: int = 0
    cheat_meal_count: int = 0

    @property
    def macros(self) -> dict[str, float]:
        """Return calorie and macro totals."""
        return {name: getattr(self.totals, name) for name in MACRO_FIELDS}

    @property
    def sub_macros(self) -> dict[str, float]:
        """Return sub-macro totals."""
        return {name: getattr(self.totals, name) for name in SUB_MACRO_FIELDS}

    @property
    def micronutrients(self) -> dict[str, float]:
        """Return micronutrient totals."""
        return {name: getattr(self.totals, name) for name in MICRONUTRIENT_FIELDS}


@dataclass(frozen=True)
class MealResult:
    """Score of a single logged meal against its meal definition."""

    entry_id: str
    meal_id: str
    macro_results: dict[str, TargetResult]
    is_cheat_meal: bool


@dataclass(frozen=True)
class ConsistencyStats:
    """Adherence statistics over a range of days."""

    total_days: int
    excellent_days: int
    good_days: int
    average_consistency: float


@dataclass(frozen=True)
class MacroAverages:
    """Average daily calories and macros over a period."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0


@dataclass(frozen=True)
class WeeklyComparison:
    """This week's average daily macros next to last week's."""

    this_week: MacroAverages
    last_week: MacroAverages


@dataclass(frozen=True)
class DailyProgress:
    """Today's consumption next to the daily targets."""

    targets: DailyTargets
    consumed: NutrientVector
    percentages: dict[str, float]
    sub_macro_targets: dict[str, float]
    sub_macro_percentages: dict[str, float]
    micronutrient_targets: dict[str, float]
    micronutrient_percentages: dict[str, float]
