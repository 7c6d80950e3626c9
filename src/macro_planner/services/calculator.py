"""Personalized calorie, macro and micronutrient calculations.

Pipeline: BMR -> TDEE -> goal adjustment -> macro split -> meal
distribution -> micronutrient scaling. Every function is pure.
"""

from dataclasses import dataclass

from macro_planner.domain.nutrients import round_half_up
from macro_planner.domain.profile import (
    ActivityLevel,
    DailyMacroTargets,
    Gender,
    Goal,
    MealTarget,
    NutritionTargets,
    UserProfile,
)

MIN_AGE, MAX_AGE = 18, 80
MIN_WEIGHT_KG, MAX_WEIGHT_KG = 40, 200
MIN_HEIGHT_CM, MAX_HEIGHT_CM = 140, 220
MAX_BODY_FAT_PCT = 50
ALLOWED_MEALS_PER_DAY = (3, 4, 5, 6)
SODIUM_LIMIT_MG = 2300
LOW_BODY_FAT_PCT = 15

ACTIVITY_MULTIPLIERS: dict[str, float] = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.VERY_ACTIVE: 1.725,
    ActivityLevel.EXTREMELY_ACTIVE: 1.9,
}
DEFAULT_ACTIVITY_MULTIPLIER = 1.55

GOAL_FACTORS: dict[str, float] = {
    Goal.CUTTING: 0.85,
    Goal.AGGRESSIVE_CUTTING: 0.75,
    Goal.BULKING: 1.15,
    Goal.AGGRESSIVE_BULKING: 1.25,
    Goal.MAINTENANCE: 1.0,
}

MICRONUTRIENT_MULTIPLIERS: dict[str, float] = {
    ActivityLevel.SEDENTARY: 1.0,
    ActivityLevel.LIGHT: 1.1,
    ActivityLevel.MODERATE: 1.2,
    ActivityLevel.VERY_ACTIVE: 1.3,
    ActivityLevel.EXTREMELY_ACTIVE: 1.4,
}
DEFAULT_MICRONUTRIENT_MULTIPLIER = 1.2

MEAL_NAMES: dict[int, tuple[str, ...]] = {
    3: ("Breakfast", "Lunch", "Dinner"),
    4: ("Breakfast", "Lunch", "Post-Workout", "Dinner"),
    5: ("Breakfast", "Mid-Morning", "Lunch", "Post-Workout", "Dinner"),
    6: ("Breakfast", "Mid-Morning", "Lunch", "Post-Workout", "Dinner", "Evening"),
}
DEFAULT_MEAL_COUNT = 4


@dataclass(frozen=True)
class MacroSplit:
    """Protein per kg and carb/fat shares of the non-protein calories."""

    protein_g_per_kg: float
    carb_percent: float
    fat_percent: float


_CUTTING_SPLIT = MacroSplit(protein_g_per_kg=2.2, carb_percent=30, fat_percent=35)
_BULKING_SPLIT = MacroSplit(protein_g_per_kg=1.8, carb_percent=45, fat_percent=30)
_MAINTENANCE_SPLIT = MacroSplit(protein_g_per_kg=1.8, carb_percent=40, fat_percent=30)

MACRO_SPLITS: dict[str, MacroSplit] = {
    Goal.CUTTING: _CUTTING_SPLIT,
    Goal.AGGRESSIVE_CUTTING: _CUTTING_SPLIT,
    Goal.BULKING: _BULKING_SPLIT,
    Goal.AGGRESSIVE_BULKING: _BULKING_SPLIT,
    Goal.MAINTENANCE: _MAINTENANCE_SPLIT,
}


def calculate_bmr(
    weight_kg: float,
    height_cm: float,
    age: int,
    gender: str,
    body_fat_pct: float | None = None,
) -> float:
    """Return basal metabolic rate in kcal/day.

    Katch-McArdle is used when a plausible body fat percentage is known,
    Mifflin-St Jeor otherwise.
    """
    if body_fat_pct is not None and 0 < body_fat_pct < MAX_BODY_FAT_PCT:
        lean_mass = weight_kg * (1 - body_fat_pct / 100)
        return 370 + 21.6 * lean_mass
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    return base + 5 if gender == Gender.MALE else base - 161


def calculate_tdee(bmr: float, activity_level: str | None) -> float:
    """Return total daily energy expenditure."""
    multiplier = ACTIVITY_MULTIPLIERS.get(
        activity_level or "", DEFAULT_ACTIVITY_MULTIPLIER
    )
    return bmr * multiplier


def adjust_calories_for_goal(tdee: float, goal: str | None) -> float:
    """Apply the goal's deficit or surplus; unknown goals maintain."""
    return tdee * GOAL_FACTORS.get(goal or "", 1.0)


def calculate_macro_distribution(
    target_calories: float, weight_kg: float, goal: str | None
) -> DailyMacroTargets:
    """Split target calories into daily macro and sub-macro grams."""
    split = MACRO_SPLITS.get(goal or "", _MAINTENANCE_SPLIT)
    protein_grams = weight_kg * split.protein_g_per_kg
    protein_calories = protein_grams * 4
    remaining = target_calories - protein_calories
    share_total = split.carb_percent + split.fat_percent
    carb_calories = remaining * split.carb_percent / share_total
    fat_calories = remaining * split.fat_percent / share_total
    return DailyMacroTargets(
        calories=int(round_half_up(target_calories)),
        protein=int(round_half_up(protein_grams)),
        carbs=int(round_half_up(carb_calories / 4)),
        fat=int(round_half_up(fat_calories / 9)),
        fiber=int(round_half_up(max(25, target_calories / 1000 * 14))),
        sugar=int(round_half_up(min(50, carb_calories / 4 * 0.3))),
        saturated_fat=int(round_half_up(fat_calories / 9 * 0.3)),
        sodium=SODIUM_LIMIT_MG,
    )


def generate_meal_names(meals_per_day: int | None) -> tuple[str, ...]:
    """Return the meal names for a meal count, defaulting to four meals."""
    return MEAL_NAMES.get(meals_per_day or 0, MEAL_NAMES[DEFAULT_MEAL_COUNT])


def distribute_macros_across_meals(
    daily: DailyMacroTargets, meals_per_day: int
) -> tuple[MealTarget, ...]:
    """Divide daily targets evenly across the named meals.

    Unsupported counts fall back to the four default meals and are divided
    by four, so the meals always add back up to the daily targets.
    """
    names = generate_meal_names(meals_per_day)
    count = len(names)
    return tuple(
        MealTarget(
            name=name,
            calories=int(round_half_up(daily.calories / count)),
            protein=int(round_half_up(daily.protein / count)),
            carbs=int(round_half_up(daily.carbs / count)),
            fat=int(round_half_up(daily.fat / count)),
            fiber=int(round_half_up(daily.fiber / count)),
            min_fiber=int(round_half_up(daily.fiber / count * 0.8)),
            max_sugar=int(round_half_up(daily.sugar / count * 1.5)),
        )
        for name in names
    )


def calculate_micronutrient_needs(
    gender: str | None, activity_level: str | None
) -> dict[str, float]:
    """Return RDA-based micronutrient targets scaled for activity."""
    male = gender == Gender.MALE
    base_rda: dict[str, float] = {
        "vitamin_d": 15,
        "iron": 8 if male else 18,
        "calcium": 1000,
        "magnesium": 400 if male else 310,
        "zinc": 11 if male else 8,
        "vitamin_b6": 1.3,
        "vitamin_b12": 2.4,
        "folate": 400,
        "vitamin_c": 90 if male else 75,
        "sodium": SODIUM_LIMIT_MG,
        "potassium": 3500,
    }
    multiplier = MICRONUTRIENT_MULTIPLIERS.get(
        activity_level or "", DEFAULT_MICRONUTRIENT_MULTIPLIER
    )
    adjusted: dict[str, float] = {}
    for nutrient, amount in base_rda.items():
        if nutrient == "sodium":
            # upper limit, not a need
            adjusted[nutrient] = amount
        else:
            adjusted[nutrient] = round_half_up(amount * multiplier)
    return adjusted


def generate_recommendations(profile: UserProfile) -> tuple[str, ...]:
    """Return goal- and activity-specific advice."""
    recommendations: list[str] = []
    goal = profile.goal or ""
    if goal == Goal.CUTTING:
        recommendations.append(
            "Focus on high-protein foods to preserve muscle mass during deficit"
        )
        recommendations.append(
            "Include fibrous vegetables to maintain satiety with fewer calories"
        )
        if profile.body_fat_pct and profile.body_fat_pct < LOW_BODY_FAT_PCT:
            recommendations.append(
                "Consider diet breaks every 4-6 weeks to support hormonal balance"
            )
    elif "bulking" in goal:
        recommendations.append(
            "Prioritize post-workout carbs for optimal recovery and growth"
        )
        recommendations.append(
            "Include healthy fats like nuts, avocados, and olive oil for calories"
        )

    if profile.activity_level in {
        ActivityLevel.VERY_ACTIVE,
        ActivityLevel.EXTREMELY_ACTIVE,
    }:
        recommendations.append(
            "Consider higher meal frequency (5-6 meals) for better nutrient timing"
        )
        recommendations.append(
            "Focus on nutrient timing around workouts for optimal performance"
        )

    recommendations.append("Drink at least 35ml water per kg bodyweight daily")
    recommendations.append(
        "Include a variety of colorful fruits and vegetables for micronutrients"
    )
    return tuple(recommendations)


def validate_user_profile(profile: UserProfile) -> list[str]:
    """Return human-readable problems with a profile; empty means valid."""
    errors: list[str] = []
    if not _in_range(profile.age, MIN_AGE, MAX_AGE):
        errors.append("Age must be between 18-80 years")
    if not _in_range(profile.weight_kg, MIN_WEIGHT_KG, MAX_WEIGHT_KG):
        errors.append("Weight must be between 40-200 kg")
    if not _in_range(profile.height_cm, MIN_HEIGHT_CM, MAX_HEIGHT_CM):
        errors.append("Height must be between 140-220 cm")
    if profile.body_fat_pct is not None and not _in_range(
        profile.body_fat_pct, 0, MAX_BODY_FAT_PCT
    ):
        errors.append("Body fat must be between 0-50%")
    if profile.gender not in {item.value for item in Gender}:
        errors.append("Gender must be male or female")
    if profile.activity_level not in {item.value for item in ActivityLevel}:
        errors.append("Invalid activity level")
    if profile.goal not in {item.value for item in Goal}:
        errors.append("Invalid goal")
    if profile.meals_per_day not in ALLOWED_MEALS_PER_DAY:
        errors.append("Meals per day must be 3, 4, 5, or 6")
    return errors


def calculate_personalized_nutrition(
    profile: UserProfile,
) -> tuple[NutritionTargets | None, list[str]]:
    """Run the full pipeline, or return the validation errors instead."""
    errors = validate_user_profile(profile)
    if errors:
        return None, errors
    # validated above; narrow the optional fields
    weight = float(profile.weight_kg or 0)
    height = float(profile.height_cm or 0)
    age = int(profile.age or 0)
    meals_per_day = int(profile.meals_per_day or DEFAULT_MEAL_COUNT)

    bmr = calculate_bmr(weight, height, age, str(profile.gender), profile.body_fat_pct)
    tdee = calculate_tdee(bmr, profile.activity_level)
    target_calories = adjust_calories_for_goal(tdee, profile.goal)
    daily = calculate_macro_distribution(target_calories, weight, profile.goal)
    targets = NutritionTargets(
        bmr=bmr,
        tdee=tdee,
        target_calories=target_calories,
        daily=daily,
        micronutrients=calculate_micronutrient_needs(
            profile.gender, profile.activity_level
        ),
        meal_distribution=distribute_macros_across_meals(daily, meals_per_day),
        recommendations=generate_recommendations(profile),
    )
    return targets, []


def _in_range(value: float | None, low: float, high: float) -> bool:
    if value is None or isinstance(value, bool):
        return False
    return low <= value <= high
