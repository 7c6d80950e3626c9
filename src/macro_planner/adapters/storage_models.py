"""Pydantic schemas for blobs kept in the key-value store.

Keys are camelCase on disk. Each schema converts to and from the frozen
domain dataclasses.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from macro_planner.domain.meals import (
    MealDefinition,
    MealMacroTargets,
    MealPlanEntry,
    SelectedFood,
)
from macro_planner.domain.nutrients import FoodNutrition, NutrientVector
from macro_planner.domain.preferences import (
    CheatPeriod,
    LedgerPreferences,
    SettingsSnapshot,
)
from macro_planner.domain.presets import MealPreset
from macro_planner.domain.profile import (
    DailyMacroTargets,
    MealTarget,
    NutritionTargets,
    UserProfile,
)
from macro_planner.domain.summaries import DailySummary, TargetResult, TargetStatus
from macro_planner.domain.weight import WeightEntry, WeightSettings


class StoredModel(BaseModel):
    """Base schema: camelCase aliases, unknown keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


class StoredNutrients(StoredModel):
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fiber: float = 0.0
    sugar: float = 0.0
    fat: float = 0.0
    natural_sugars: float = 0.0
    added_sugars: float = 0.0
    saturated_fat: float = 0.0
    monounsaturated_fat: float = 0.0
    polyunsaturated_fat: float = 0.0
    trans_fat: float = 0.0
    omega3: float = 0.0
    iron: float = 0.0
    calcium: float = 0.0
    zinc: float = 0.0
    magnesium: float = 0.0
    sodium: float = 0.0
    potassium: float = 0.0
    vitamin_b6: float = 0.0
    vitamin_b12: float = 0.0
    vitamin_c: float = 0.0
    vitamin_d: float = 0.0

    @classmethod
    def from_domain(cls, vector: NutrientVector) -> "StoredNutrients":
        return cls(**vector.as_dict())

    def to_domain(self) -> NutrientVector:
        return NutrientVector(**self.model_dump())


class StoredMealTargets(StoredModel):
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    min_fiber: float = 0.0
    max_sugar: float = 0.0


class StoredMealDefinition(StoredModel):
    """A meal definition as persisted under ``meals``."""

    id: str
    name: str
    macro_targets: StoredMealTargets = Field(default_factory=StoredMealTargets)
    user_custom: bool = False
    personalized_generated: bool = False
    created_at: datetime

    @classmethod
    def from_domain(cls, definition: MealDefinition) -> "StoredMealDefinition":
        targets = definition.macro_targets
        return cls(
            id=definition.id,
            name=definition.name,
            macro_targets=StoredMealTargets(
                protein=targets.protein,
                carbs=targets.carbs,
                fat=targets.fat,
                min_fiber=targets.min_fiber,
                max_sugar=targets.max_sugar,
            ),
            user_custom=definition.user_custom,
            personalized_generated=definition.personalized_generated,
            created_at=definition.created_at,
        )

    def to_domain(self) -> MealDefinition:
        return MealDefinition(
            id=self.id,
            name=self.name,
            macro_targets=MealMacroTargets(**self.macro_targets.model_dump()),
            created_at=self.created_at,
            user_custom=self.user_custom,
            personalized_generated=self.personalized_generated,
        )


class StoredSelectedFood(StoredModel):
    food_id: str
    portion_grams: float = 0.0


class StoredMealPlanEntry(StoredModel):
    """A logged meal as persisted under ``mealPlans``."""

    id: str
    meal_id: str
    created_at: datetime
    is_cheat_meal: bool = False
    selected_foods: list[StoredSelectedFood] = Field(default_factory=list)
    calculated_macros: StoredNutrients | None = None

    @classmethod
    def from_domain(cls, entry: MealPlanEntry) -> "StoredMealPlanEntry":
        return cls(
            id=entry.id,
            meal_id=entry.meal_id,
            created_at=entry.created_at,
            is_cheat_meal=entry.is_cheat_meal,
            selected_foods=[
                StoredSelectedFood(
                    food_id=food.food_id, portion_grams=food.portion_grams
                )
                for food in entry.selected_foods
            ],
            calculated_macros=StoredNutrients.from_domain(entry.calculated_macros),
        )

    def to_domain(self) -> MealPlanEntry:
        return MealPlanEntry(
            id=self.id,
            meal_id=self.meal_id,
            created_at=self.created_at,
            selected_foods=tuple(
                SelectedFood(food_id=food.food_id, portion_grams=food.portion_grams)
                for food in self.selected_foods
            ),
            calculated_macros=(
                self.calculated_macros.to_domain()
                if self.calculated_macros is not None
                else NutrientVector()
            ),
            is_cheat_meal=self.is_cheat_meal,
        )


class StoredTargetResult(StoredModel):
    actual: float = 0.0
    target: float = 0.0
    ratio: float = 0.0
    status: TargetStatus = TargetStatus.UNDER
    achieved: bool = False


class StoredDailySummary(StoredModel):
    """A daily summary as persisted under ``dailySummaries``."""

    day: str
    totals: StoredNutrients = Field(default_factory=StoredNutrients)
    targets_achieved: dict[str, float] = Field(default_factory=dict)
    macro_score: int = Field(default=0, ge=0, le=60)
    nutrient_score: int = Field(default=0, ge=0, le=40)
    consistency_score: float = Field(default=0.0, ge=0.0, le=1.0)
    macro_results: dict[str, StoredTargetResult] = Field(default_factory=dict)
    nutrient_results: dict[str, StoredTargetResult] = Field(default_factory=dict)
    top_foods: list[str] = Field(default_factory=list, max_length=3)
    is_cheat_day: bool = False
    entry_count: int = 0
    cheat_meal_count: int = 0

    @classmethod
    def from_domain(cls, summary: DailySummary) -> "StoredDailySummary":
        return cls(
            day=summary.day,
            totals=StoredNutrients.from_domain(summary.totals),
            targets_achieved=dict(summary.targets_achieved),
            macro_score=summary.macro_score,
            nutrient_score=summary.nutrient_score,
            consistency_score=summary.consistency_score,
            macro_results=_results_to_stored(summary.macro_results),
            nutrient_results=_results_to_stored(summary.nutrient_results),
            top_foods=list(summary.top_foods),
            is_cheat_day=summary.is_cheat_day,
            entry_count=summary.entry_count,
            cheat_meal_count=summary.cheat_meal_count,
        )

    def to_domain(self) -> DailySummary:
        return DailySummary(
            day=self.day,
            totals=self.totals.to_domain(),
            targets_achieved=dict(self.targets_achieved),
            macro_score=self.macro_score,
            nutrient_score=self.nutrient_score,
            consistency_score=self.consistency_score,
            macro_results=_results_to_domain(self.macro_results),
            nutrient_results=_results_to_domain(self.nutrient_results),
            top_foods=tuple(self.top_foods),
            is_cheat_day=self.is_cheat_day,
            entry_count=self.entry_count,
            cheat_meal_count=self.cheat_meal_count,
        )


class StoredProfile(StoredModel):
    age: int | None = None
    gender: str | None = None
    weight_kg: float | None = Field(default=None, alias="weight")
    height_cm: float | None = Field(default=None, alias="height")
    body_fat_pct: float | None = Field(default=None, alias="bodyFat")
    activity_level: str | None = None
    goal: str | None = None
    meals_per_day: int | None = None


class StoredDailyTargets(StoredModel):
    calories: int
    protein: int
    carbs: int
    fat: int
    fiber: int
    sugar: int
    saturated_fat: int
    sodium: int = 2300


class StoredMealTarget(StoredModel):
    name: str
    calories: int
    protein: int
    carbs: int
    fat: int
    fiber: int
    min_fiber: int
    max_sugar: int


class StoredNutritionTargets(StoredModel):
    bmr: float
    tdee: float
    target_calories: float
    daily_targets: StoredDailyTargets
    micronutrients: dict[str, float] = Field(default_factory=dict)
    meal_distribution: list[StoredMealTarget] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, targets: NutritionTargets) -> "StoredNutritionTargets":
        return cls(
            bmr=targets.bmr,
            tdee=targets.tdee,
            target_calories=targets.target_calories,
            daily_targets=StoredDailyTargets(**vars(targets.daily)),
            micronutrients=dict(targets.micronutrients),
            meal_distribution=[
                StoredMealTarget(**vars(meal)) for meal in targets.meal_distribution
            ],
            recommendations=list(targets.recommendations),
        )

    def to_domain(self) -> NutritionTargets:
        return NutritionTargets(
            bmr=self.bmr,
            tdee=self.tdee,
            target_calories=self.target_calories,
            daily=DailyMacroTargets(**self.daily_targets.model_dump()),
            micronutrients=dict(self.micronutrients),
            meal_distribution=tuple(
                MealTarget(**meal.model_dump()) for meal in self.meal_distribution
            ),
            recommendations=tuple(self.recommendations),
        )


class StoredPreferences(StoredModel):
    day_reset_hour: int = Field(default=4, ge=0, le=23)
    cheat_meals_per_period: int = Field(default=2, ge=0)
    cheat_days_per_period: int = Field(default=1, ge=0)
    cheat_period_type: CheatPeriod = CheatPeriod.WEEKLY
    retention_days: int = Field(default=90, ge=1)


class StoredSettings(StoredModel):
    """The settings blob persisted under ``appSettings``."""

    user_profile: StoredProfile = Field(default_factory=StoredProfile)
    personalized_targets: StoredNutritionTargets | None = None
    preferences: StoredPreferences | None = None

    @classmethod
    def from_domain(cls, snapshot: SettingsSnapshot) -> "StoredSettings":
        return cls(
            user_profile=StoredProfile(**vars(snapshot.profile)),
            personalized_targets=(
                StoredNutritionTargets.from_domain(snapshot.targets)
                if snapshot.targets is not None
                else None
            ),
            preferences=StoredPreferences(**vars(snapshot.preferences)),
        )

    def to_domain(self, default_preferences: LedgerPreferences) -> SettingsSnapshot:
        return SettingsSnapshot(
            profile=UserProfile(**self.user_profile.model_dump()),
            targets=(
                self.personalized_targets.to_domain()
                if self.personalized_targets is not None
                else None
            ),
            preferences=(
                LedgerPreferences(**self.preferences.model_dump())
                if self.preferences is not None
                else default_preferences
            ),
        )


class StoredFood(StoredModel):
    """A food record as persisted under ``foods``."""

    id: str
    name: str
    category: str | None = None
    nutrition_per_100g: StoredNutrients = Field(
        default_factory=StoredNutrients, alias="nutritionPer100g"
    )

    def to_domain(self) -> FoodNutrition:
        return FoodNutrition(
            food_id=self.id,
            name=self.name,
            per_100g=self.nutrition_per_100g.to_domain(),
            category=self.category,
        )


class StoredWeightEntry(StoredModel):
    """A weigh-in as persisted under ``weightEntries``."""

    id: str
    weight_kg: float = Field(alias="weight", gt=0)
    day: date = Field(alias="date")
    created_at: datetime
    body_fat_pct: float | None = Field(default=None, alias="bodyFat")
    notes: str = ""
    source: str = "manual"
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, entry: WeightEntry) -> "StoredWeightEntry":
        return cls(**vars(entry))

    def to_domain(self) -> WeightEntry:
        return WeightEntry(**self.model_dump())


class StoredWeightSettings(StoredModel):
    tracking_enabled: bool = True
    goal_weight_kg: float | None = Field(default=None, alias="goalWeight")
    auto_adjust_macros: bool = True
    minimum_weeks_for_adjustment: int = Field(default=2, ge=1)

    @classmethod
    def from_domain(cls, settings: WeightSettings) -> "StoredWeightSettings":
        return cls(**vars(settings))

    def to_domain(self) -> WeightSettings:
        return WeightSettings(**self.model_dump())


class StoredMealPreset(StoredModel):
    """A meal preset as persisted under ``meal_presets``."""

    id: str
    name: str
    foods: list[StoredSelectedFood] = Field(default_factory=list)
    calculated_macros: StoredNutrients = Field(default_factory=StoredNutrients)
    created_at: datetime
    last_used: datetime

    @classmethod
    def from_domain(cls, preset: MealPreset) -> "StoredMealPreset":
        return cls(
            id=preset.id,
            name=preset.name,
            foods=[
                StoredSelectedFood(
                    food_id=food.food_id, portion_grams=food.portion_grams
                )
                for food in preset.foods
            ],
            calculated_macros=StoredNutrients.from_domain(preset.calculated_macros),
            created_at=preset.created_at,
            last_used=preset.last_used,
        )

    def to_domain(self) -> MealPreset:
        return MealPreset(
            id=self.id,
            name=self.name,
            foods=tuple(
                SelectedFood(food_id=food.food_id, portion_grams=food.portion_grams)
                for food in self.foods
            ),
            calculated_macros=self.calculated_macros.to_domain(),
            created_at=self.created_at,
            last_used=self.last_used,
        )


MEAL_DEFINITIONS = TypeAdapter(list[StoredMealDefinition])
MEAL_PLAN_ENTRIES = TypeAdapter(list[StoredMealPlanEntry])
DAILY_SUMMARIES = TypeAdapter(dict[str, StoredDailySummary])
FOODS = TypeAdapter(list[StoredFood])
WEIGHT_ENTRIES = TypeAdapter(list[StoredWeightEntry])
MEAL_PRESETS = TypeAdapter(list[StoredMealPreset])


def _results_to_stored(
    results: dict[str, TargetResult],
) -> dict[str, StoredTargetResult]:
    return {
        name: StoredTargetResult(**vars(result)) for name, result in results.items()
    }


def _results_to_domain(
    results: dict[str, StoredTargetResult],
) -> dict[str, TargetResult]:
    return {
        name: TargetResult(
            actual=result.actual,
            target=result.target,
            ratio=result.ratio,
            status=result.status,
            achieved=result.achieved,
        )
        for name, result in results.items()
    }
