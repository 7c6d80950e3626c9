"""Nutrient vector domain models."""

import math
from dataclasses import dataclass, field, fields

MACRO_FIELDS = ("calories", "protein", "carbs", "fat")
SUB_MACRO_FIELDS = (
    "fiber",
    "sugar",
    "natural_sugars",
    "added_sugars",
    "saturated_fat",
    "monounsaturated_fat",
    "polyunsaturated_fat",
    "trans_fat",
    "omega3",
)
MICRONUTRIENT_FIELDS = (
    "iron",
    "calcium",
    "zinc",
    "magnesium",
    "sodium",
    "potassium",
    "vitamin_b6",
    "vitamin_b12",
    "vitamin_c",
    "vitamin_d",
)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from the floor, the way the targets tables expect."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


@dataclass(frozen=True)
class NutrientVector:
    """Macros, sub-macros and micronutrients for a portion, meal or day."""

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

    def __add__(self, other: "NutrientVector") -> "NutrientVector":
        return NutrientVector(
            **{
                name: getattr(self, name) + getattr(other, name)
                for name in nutrient_names()
            }
        )

    def scaled(self, factor: float) -> "NutrientVector":
        """Return the vector multiplied by a factor."""
        return NutrientVector(
            **{name: getattr(self, name) * factor for name in nutrient_names()}
        )

    def rounded(self, digits: int = 1) -> "NutrientVector":
        """Return the vector rounded to the given decimals."""
        return NutrientVector(
            **{
                name: round_half_up(getattr(self, name), digits)
                for name in nutrient_names()
            }
        )

    def as_dict(self) -> dict[str, float]:
        """Return all nutrient values keyed by field name."""
        return {name: getattr(self, name) for name in nutrient_names()}

    @classmethod
    def from_mapping(cls, data: dict[str, object] | None) -> "NutrientVector":
        """Build a vector from a mapping, treating anything unusable as zero."""
        if not data:
            return cls()
        values: dict[str, float] = {}
        for name in nutrient_names():
            raw = data.get(name)
            values[name] = float(raw) if isinstance(raw, int | float) else 0.0
        return cls(**values)


def nutrient_names() -> tuple[str, ...]:
    """Return the nutrient field names in declaration order."""
    return tuple(item.name for item in fields(NutrientVector))


ZERO_NUTRIENTS = NutrientVector()


@dataclass(frozen=True)
class FoodNutrition:
    """Nutrition facts for one food, per 100 g or per pill for supplements."""

    food_id: str
    name: str
    per_100g: NutrientVector = field(default_factory=NutrientVector)
    category: str | None = None

    @property
    def is_supplement(self) -> bool:
        """Return True when portions are counted in pills."""
        return self.category == "supplements"
