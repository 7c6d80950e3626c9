"""Adaptive macro adjustment driven by the weight trend."""

import math
from collections.abc import Sequence
from dataclasses import replace
from datetime import date, datetime, timedelta

from macro_planner.domain.nutrients import round_half_up
from macro_planner.domain.profile import DailyMacroTargets, Gender, UserProfile
from macro_planner.domain.weight import (
    AdjustmentExplanation,
    AdjustmentRecommendation,
    Eligibility,
    ImplementationPlan,
    ImplementationStep,
    MacroAdjustment,
    SafetyCheck,
    WeightEntry,
    WeightSettings,
)
from macro_planner.services.calculator import (
    DEFAULT_MEAL_COUNT,
    calculate_personalized_nutrition,
    distribute_macros_across_meals,
)
from macro_planner.services.weight_tracking import (
    MIN_ADJUSTMENT_DATA_POINTS,
    calculate_macro_adjustment_recommendation,
    calculate_progress_analytics,
    recommended_weekly_rate,
)

IMMEDIATE_CHANGE_LIMIT = 200
THREE_WEEK_CHANGE = 300
LARGE_CHANGE_WARNING = 500
MIN_SAFE_CALORIES = {Gender.MALE: 1500, Gender.FEMALE: 1200}
MAX_SAFE_CALORIES = {Gender.MALE: 4000, Gender.FEMALE: 3500}
MIN_PROTEIN_PER_KG = 1.2
MIN_FAT_PERCENT = 20
SIGNIFICANT_ADJUSTMENT = 200
MODERATE_ADJUSTMENT = 100

_BENEFITS: dict[tuple[str, bool], tuple[str, ...]] = {
    ("cutting", True): (
        "Prevent metabolic slowdown and maintain energy levels",
        "Preserve lean muscle mass during weight loss",
        "Improve workout performance and recovery",
    ),
    ("cutting", False): (
        "Accelerate fat loss progress toward your goal",
        "Overcome potential weight loss plateau",
        "Maintain motivation with visible progress",
    ),
    ("bulking", True): (
        "Support muscle protein synthesis for growth",
        "Provide adequate energy for intense training",
        "Optimize recovery between workouts",
    ),
    ("bulking", False): (
        "Minimize excess fat accumulation",
        "Maintain lean bulk with better body composition",
        "Support sustainable long-term progress",
    ),
}
_MAINTENANCE_BENEFITS = (
    "Return to your target maintenance weight",
    "Stabilize your metabolism and energy levels",
    "Maintain your achieved physique",
)
_LARGE_CHANGE_BENEFITS = (
    "Gradual implementation reduces adaptation stress",
    "Better adherence through manageable changes",
)


def analyze_progress_and_recommend_adjustment(
    entries: Sequence[WeightEntry],
    profile: UserProfile,
    current_targets: DailyMacroTargets,
    *,
    goal_weight: float | None,
    today: date,
) -> MacroAdjustment:
    """Recommend new daily and per-meal targets from the weight trend.

    The recalculated targets use the latest weigh-in as body weight and are
    scaled so their calories match the recommended calories. Sodium is not
    scaled.
    """
    analytics = calculate_progress_analytics(
        entries, goal=profile.goal, goal_weight=goal_weight, today=today
    )
    if analytics is None:
        return MacroAdjustment(
            AdjustmentRecommendation(
                should_adjust=False,
                reason="Insufficient weight tracking data for analysis",
            )
        )
    recommendation = calculate_macro_adjustment_recommendation(
        analytics, profile.goal, current_targets.calories
    )
    if not recommendation.should_adjust:
        return MacroAdjustment(recommendation, analytics)

    base, errors = calculate_personalized_nutrition(
        replace(profile, weight_kg=analytics.current_weight)
    )
    if base is None:
        return MacroAdjustment(
            replace(recommendation, should_adjust=False, reason=errors[0]), analytics
        )

    calories = int(recommendation.recommended_calories or current_targets.calories)
    ratio = calories / base.target_calories
    adjusted = _scaled(base.daily, ratio, calories=calories)
    return MacroAdjustment(
        recommendation=recommendation,
        analytics=analytics,
        adjusted_targets=adjusted,
        meal_distribution=distribute_macros_across_meals(
            adjusted, profile.meals_per_day or DEFAULT_MEAL_COUNT
        ),
        plan=generate_implementation_plan(current_targets, adjusted),
    )


def generate_implementation_plan(
    current: DailyMacroTargets, adjusted: DailyMacroTargets
) -> ImplementationPlan:
    """Apply small changes at once and spread larger ones over 2-3 weeks."""
    change = adjusted.calories - current.calories
    if abs(change) <= IMMEDIATE_CHANGE_LIMIT:
        return ImplementationPlan(
            kind="immediate",
            weeks=1,
            total_change=change,
            steps=(ImplementationStep(1, adjusted, "Implement new macro targets"),),
        )

    weeks = 3 if abs(change) > THREE_WEEK_CHANGE else 2
    steps = []
    for week in range(1, weeks + 1):
        calories = current.calories + change * week / weeks
        ratio = calories / current.calories
        description = (
            "Reach new target macros"
            if week == weeks
            else f"Gradual adjustment - Week {week} of {weeks}"
        )
        steps.append(
            ImplementationStep(
                week=week,
                targets=_scaled(current, ratio, calories=int(round_half_up(calories))),
                description=description,
            )
        )
    return ImplementationPlan(
        kind="gradual", weeks=weeks, total_change=change, steps=tuple(steps)
    )


def validate_adjustment_safety(
    current: DailyMacroTargets,
    adjusted: DailyMacroTargets,
    profile: UserProfile,
) -> SafetyCheck:
    """Flag unsafe calorie floors as errors and questionable targets as warnings."""
    errors: list[str] = []
    warnings: list[str] = []
    if abs(adjusted.calories - current.calories) > LARGE_CHANGE_WARNING:
        warnings.append(
            "Large calorie adjustment detected. Consider gradual implementation."
        )

    gender = Gender.MALE if profile.gender == Gender.MALE else Gender.FEMALE
    minimum = MIN_SAFE_CALORIES[gender]
    if adjusted.calories < minimum:
        errors.append(
            f"Adjusted calories ({adjusted.calories}) are below safe minimum "
            f"({minimum})."
        )
    if adjusted.calories > MAX_SAFE_CALORIES[gender]:
        warnings.append(
            f"Very high calorie target ({adjusted.calories}). Verify this is "
            "appropriate for your activity level."
        )

    if profile.weight_kg:
        per_kg = adjusted.protein / profile.weight_kg
        if per_kg < MIN_PROTEIN_PER_KG:
            warnings.append(
                f"Protein intake may be low ({per_kg:.1f}g/kg). Consider "
                "maintaining higher protein levels."
            )
    fat_percent = adjusted.fat * 9 / adjusted.calories * 100 if adjusted.calories else 0
    if fat_percent < MIN_FAT_PERCENT:
        warnings.append(
            "Fat intake may be too low for optimal hormone production. Consider "
            "maintaining at least 20% of calories from fat."
        )
    return SafetyCheck(errors=tuple(errors), warnings=tuple(warnings))


def is_eligible_for_adjustment(
    profile: UserProfile,
    entries: Sequence[WeightEntry],
    last_adjustment: datetime | None,
    settings: WeightSettings,
    now: datetime,
) -> Eligibility:
    """Check settings, onboarding, data volume and the adjustment interval."""
    if not settings.auto_adjust_macros:
        return Eligibility(False, "Auto-adjustment disabled in settings")
    if not profile.is_complete:
        return Eligibility(False, "Complete onboarding first")
    if len(entries) < MIN_ADJUSTMENT_DATA_POINTS:
        return Eligibility(False, "Need at least 6 weight entries (2+ weeks)")
    if last_adjustment is not None:
        interval = timedelta(weeks=settings.minimum_weeks_for_adjustment or 2)
        elapsed = now - last_adjustment
        if elapsed < interval:
            days = math.ceil((interval - elapsed) / timedelta(days=1))
            return Eligibility(False, f"Wait {days} more days between adjustments")
    return Eligibility(True)


def explain_adjustment(
    adjustment: MacroAdjustment, goal: str | None
) -> AdjustmentExplanation:
    recommendation = adjustment.recommendation
    family = _goal_family(goal)
    increase = recommendation.adjustment > 0
    magnitude = abs(recommendation.adjustment)
    if magnitude > SIGNIFICANT_ADJUSTMENT:
        size = "significant"
    elif magnitude > MODERATE_ADJUSTMENT:
        size = "moderate"
    else:
        size = "small"

    title = (
        f"Increase Daily Calories by {magnitude}"
        if increase
        else f"Decrease Daily Calories by {magnitude}"
    )
    details = [f"Confidence in recommendation: {recommendation.confidence}%"]
    analytics = adjustment.analytics
    if analytics is not None:
        direction = "gaining" if analytics.weekly_trend > 0 else "losing"
        details.insert(
            0,
            f"Your recent weight trend: {direction} "
            f"{abs(analytics.weekly_trend):.1f} kg/week",
        )
        details.insert(
            1,
            f"Target rate for {goal or 'maintenance'}: "
            f"{recommended_weekly_rate(goal)} kg/week",
        )
        details.append(
            f"Based on {analytics.data_points} weight entries over "
            f"{analytics.tracking_days} days"
        )

    benefits = _BENEFITS.get((family, increase), _MAINTENANCE_BENEFITS)
    if size == "significant":
        benefits = benefits + _LARGE_CHANGE_BENEFITS
    plan = adjustment.plan
    if plan is not None and plan.kind == "gradual":
        timeline = (
            f"This {size} adjustment will be implemented gradually over "
            f"{plan.weeks} weeks to optimize adherence and minimize metabolic "
            "adaptation."
        )
    else:
        timeline = (
            "This adjustment will be implemented immediately as it represents a "
            "small, manageable change."
        )
    return AdjustmentExplanation(
        title=title,
        summary=_summary(family, increase),
        details=tuple(details),
        benefits=benefits,
        timeline=timeline,
    )


def _goal_family(goal: str | None) -> str:
    if goal in {"cutting", "aggressive_cutting"}:
        return "cutting"
    if goal in {"bulking", "aggressive_bulking"}:
        return "bulking"
    return "maintenance"


def _summary(family: str, increase: bool) -> str:
    if family == "cutting":
        if increase:
            return (
                "Your weight loss is faster than target. Increasing calories will "
                "help maintain muscle mass and prevent metabolic slowdown."
            )
        return (
            "Your weight loss is slower than target. Reducing calories will help "
            "accelerate progress toward your goal."
        )
    if family == "bulking":
        if increase:
            return (
                "Your weight gain is slower than target. Increasing calories will "
                "help achieve your muscle-building goals."
            )
        return (
            "Your weight gain is faster than target. Reducing calories slightly "
            "will help minimize fat gain."
        )
    return (
        "Your weight has changed from your maintenance target. This adjustment "
        "will help you return to your goal weight."
    )


def _scaled(
    targets: DailyMacroTargets, ratio: float, *, calories: int
) -> DailyMacroTargets:
    def scale(value: float) -> int:
        return int(round_half_up(value * ratio))

    return DailyMacroTargets(
        calories=calories,
        protein=scale(targets.protein),
        carbs=scale(targets.carbs),
        fat=scale(targets.fat),
        fiber=scale(targets.fiber),
        sugar=scale(targets.sugar),
        saturated_fat=scale(targets.saturated_fat),
        sodium=targets.sodium,
    )
