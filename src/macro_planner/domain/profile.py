"""User profile and personalized target domain models."""

from dataclasses import dataclass, field
from enum import StrEnum


class Gender(StrEnum):
    """Biological sex used by the energy equations."""

    MALE = "male"
    FEMALE = "female"


class ActivityLevel(StrEnum):
    """Self-reported training and daily activity level."""

    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    VERY_ACTIVE = "very_active"
    EXTREMELY_ACTIVE = "extremely_active"


class Goal(StrEnum):
    """Body composition goal driving the calorie adjustment."""

    CUTTING = "cutting"
    AGGRESSIVE_CUTTING = "aggressive_cutting"
    BULKING = "bulking"
    AGGRESSIVE_BULKING = "aggressive_bulking"
    MAINTENANCE = "maintenance"


@dataclass(frozen=True)
class UserProfile:
    """Biometric profile; fields stay None until the user provides them."""

    age: int | None = None
    gender: str | None = None
    weight_kg: float | None = None
    height_cm: float | None = None
    body_fat_pct: float | None = None
    activity_level: str | None = None
    goal: str | None = None
    meals_per_day: int | None = None

    @property
    def is_complete(self) -> bool:
        """Return True when every required field has a value."""
        required = (
            self.age,
            self.gender,
            self.weight_kg,
            self.height_cm,
            self.activity_level,
            self.goal,
            self.meals_per_day,
        )
        return all(value is not None for value in required)


@dataclass(frozen=True)
class DailyMacroTargets:
    """Daily calorie, macro and sub-macro targets in grams (sodium in mg)."""

    calories: int
    protein: int
    carbs: int
    fat: int
    fiber: int
    sugar: int
    saturated_fat: int
    sodium: int = 2300


@dataclass(frozen=True)
class MealTarget:
    """Per-meal macro targets for one named slot of the day."""

    name: str
    calories: int
    protein: int
    carbs: int
    fat: int
    fiber: int
    min_fiber: int
    max_sugar: int


@dataclass(frozen=True)
class NutritionTargets:
    """Result of a full personalized calculation."""

    bmr: float
    tdee: float
    target_calories: float
    daily: DailyMacroTargets
    micronutrients: dict[str, float]
    meal_distribution: tuple[MealTarget, ...]
    recommendations: tuple[str, ...] = field(default_factory=tuple)
