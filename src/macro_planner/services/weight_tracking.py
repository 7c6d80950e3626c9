"""Weight trends, goal projections and calorie adjustment recommendations.

Every function is pure. Callers pass ``today`` so results follow the same
clock as the rest of the ledger.
"""

import calendar
import math
from collections.abc import Iterable
from dataclasses import replace
from datetime import date, timedelta
from statistics import StatisticsError, linear_regression

from macro_planner.domain.nutrients import round_half_up
from macro_planner.domain.profile import Goal
from macro_planner.domain.weight import (
    AdjustmentRecommendation,
    Insight,
    Priority,
    ProgressAnalytics,
    WeightEntry,
)

WEEKLY_TREND_WEEKS = 2
MONTHLY_TREND_MONTHS = 1
ON_TRACK_TOLERANCE = 0.3
MAINTENANCE_TOLERANCE_KG = 0.2
MAX_PROJECTION_WEEKS = 104
MIN_ADJUSTMENT_DATA_POINTS = 6
SIGNIFICANT_DEVIATION_PERCENT = 25
# 1 kg of body weight is roughly 7700 kcal, so 1 kg/week is ~1100 kcal/day.
KCAL_PER_KG_PER_WEEK = 1100
MAX_DAILY_ADJUSTMENT = 300
MIN_WEIGHT_KG = 30
MAX_WEIGHT_KG = 500

RECOMMENDED_WEEKLY_RATES: dict[str, float] = {
    Goal.CUTTING: -0.5,
    Goal.AGGRESSIVE_CUTTING: -0.75,
    Goal.BULKING: 0.25,
    Goal.AGGRESSIVE_BULKING: 0.5,
}
_CUTTING = frozenset({Goal.CUTTING, Goal.AGGRESSIVE_CUTTING})
_BULKING = frozenset({Goal.BULKING, Goal.AGGRESSIVE_BULKING})
_PRIORITY_ORDER = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


def recommended_weekly_rate(goal: str | None) -> float:
    """Target change in kg per week for a goal; zero for maintenance."""
    return RECOMMENDED_WEEKLY_RATES.get(goal or "", 0.0)


def newest_first(entries: Iterable[WeightEntry]) -> list[WeightEntry]:
    return sorted(entries, key=lambda entry: entry.day, reverse=True)


def calculate_weekly_trend(
    entries: Iterable[WeightEntry], today: date, weeks: int = WEEKLY_TREND_WEEKS
) -> float:
    """Average change per week over the last ``weeks`` weeks."""
    return _rate_since(newest_first(entries), today - timedelta(weeks=weeks), 7)


def calculate_monthly_trend(
    entries: Iterable[WeightEntry], today: date, months: int = MONTHLY_TREND_MONTHS
) -> float:
    """Average change per 30 days over the last ``months`` months."""
    return _rate_since(newest_first(entries), _months_before(today, months), 30)


def calculate_linear_trend(entries: Iterable[WeightEntry]) -> float:
    """Least-squares slope over every weigh-in, in kg per week."""
    ordered = sorted(entries, key=lambda entry: entry.day)
    if len(ordered) < 3:
        return 0.0
    first = ordered[0].day
    days = [float((entry.day - first).days) for entry in ordered]
    weights = [entry.weight_kg for entry in ordered]
    try:
        slope = linear_regression(days, weights).slope
    except StatisticsError:
        return 0.0
    return slope * 7


def calculate_tracking_days(entries: Iterable[WeightEntry]) -> int:
    days = [entry.day for entry in entries]
    if len(days) < 2:
        return 0
    return (max(days) - min(days)).days


def is_progress_on_track(weekly_trend: float, goal: str | None) -> bool:
    """Within 30% of the goal's weekly rate, or nearly flat for maintenance."""
    rate = recommended_weekly_rate(goal)
    if rate == 0:
        return abs(weekly_trend) <= MAINTENANCE_TOLERANCE_KG
    tolerance = abs(rate) * ON_TRACK_TOLERANCE
    return rate - tolerance <= weekly_trend <= rate + tolerance


def calculate_projected_goal_date(
    current_weight: float,
    goal_weight: float | None,
    weekly_trend: float,
    today: date,
) -> date | None:
    """Day the goal is reached at the current trend, if within two years."""
    if not goal_weight or weekly_trend == 0:
        return None
    difference = goal_weight - current_weight
    if difference * weekly_trend <= 0:
        return None
    weeks = abs(difference / weekly_trend)
    if weeks > MAX_PROJECTION_WEEKS:
        return None
    return today + timedelta(days=int(weeks * 7))


def calculate_progress_analytics(
    entries: Iterable[WeightEntry],
    *,
    goal: str | None,
    goal_weight: float | None,
    today: date,
) -> ProgressAnalytics | None:
    """Summarize the weigh-ins; None when there are none."""
    ordered = newest_first(entries)
    if not ordered:
        return None
    current = ordered[0].weight_kg
    starting = ordered[-1].weight_kg
    total_change = current - starting
    weekly = calculate_weekly_trend(ordered, today)
    analytics = ProgressAnalytics(
        current_weight=current,
        starting_weight=starting,
        total_change=total_change,
        total_change_percent=total_change / starting * 100,
        weekly_trend=weekly,
        monthly_trend=calculate_monthly_trend(ordered, today),
        linear_trend=calculate_linear_trend(ordered),
        data_points=len(ordered),
        tracking_days=calculate_tracking_days(ordered),
        recommended_weekly_rate=recommended_weekly_rate(goal),
        is_on_track=is_progress_on_track(weekly, goal),
    )
    if not goal_weight or goal_weight == current:
        return analytics

    journey = abs(goal_weight - starting)
    progress = abs(total_change) / journey * 100 if total_change and journey else 0.0
    return replace(
        analytics,
        goal_weight=goal_weight,
        remaining_change=goal_weight - current,
        progress_percentage=min(progress, 100.0),
        projected_goal_date=calculate_projected_goal_date(
            current, goal_weight, weekly, today
        ),
    )


def calculate_adjustment_confidence(analytics: ProgressAnalytics) -> int:
    """0-100 score from data volume, tracking span and trend agreement."""
    volume = min(analytics.data_points / 20 * 40, 40)
    span = min(analytics.tracking_days / 60 * 30, 30)
    linear, weekly = analytics.linear_trend, analytics.weekly_trend
    agreement = 1 - abs(linear - weekly) / max(abs(linear), abs(weekly), 1)
    return min(int(round_half_up(volume + span + agreement * 30)), 100)


def adjustment_reason(deviation: float, goal: str | None) -> str:
    if goal in _CUTTING:
        if deviation > 0:
            return "Weight loss is slower than target - recommend reducing calories"
        return (
            "Weight loss is faster than target - recommend increasing calories "
            "slightly"
        )
    if goal in _BULKING:
        if deviation < 0:
            return "Weight gain is slower than target - recommend increasing calories"
        return (
            "Weight gain is faster than target - recommend reducing calories "
            "slightly"
        )
    return "Weight change detected - adjusting calories to maintain goal"


def calculate_macro_adjustment_recommendation(
    analytics: ProgressAnalytics | None,
    goal: str | None,
    current_calories: int,
) -> AdjustmentRecommendation:
    """Suggest a capped daily calorie change when the trend is off target.

    A trend above the target rate lowers calories and a trend below it
    raises them, by 1100 kcal per kg/week of deviation, capped at 300.
    """
    if analytics is None or analytics.data_points < MIN_ADJUSTMENT_DATA_POINTS:
        return AdjustmentRecommendation(
            should_adjust=False,
            reason="Insufficient data - need at least 2 weeks of tracking",
        )
    if analytics.is_on_track:
        return AdjustmentRecommendation(
            should_adjust=False,
            reason="Progress is on track - no adjustment needed",
        )

    rate = analytics.recommended_weekly_rate
    deviation = analytics.weekly_trend - rate
    if rate == 0:
        significant = abs(deviation) > MAINTENANCE_TOLERANCE_KG
    else:
        significant = abs(deviation / rate) * 100 >= SIGNIFICANT_DEVIATION_PERCENT
    if not significant:
        return AdjustmentRecommendation(
            should_adjust=False, reason="Deviation is within acceptable range"
        )

    adjustment = -deviation * KCAL_PER_KG_PER_WEEK
    adjustment = max(-MAX_DAILY_ADJUSTMENT, min(MAX_DAILY_ADJUSTMENT, adjustment))
    return AdjustmentRecommendation(
        should_adjust=True,
        reason=adjustment_reason(deviation, goal),
        current_calories=current_calories,
        recommended_calories=int(round_half_up(current_calories + adjustment)),
        adjustment=int(round_half_up(adjustment)),
        deviation=round_half_up(deviation, 3),
        confidence=calculate_adjustment_confidence(analytics),
    )


def validate_weight_entry(weight_kg: float | None, day: date | None) -> dict[str, str]:
    """Return problems keyed by field; empty means valid."""
    errors: dict[str, str] = {}
    if (
        weight_kg is None
        or isinstance(weight_kg, bool)
        or math.isnan(weight_kg)
        or weight_kg <= 0
    ):
        errors["weight"] = "Weight must be a positive number"
    elif not MIN_WEIGHT_KG <= weight_kg <= MAX_WEIGHT_KG:
        errors["weight"] = "Weight must be between 30 and 500 kg"
    if day is None:
        errors["date"] = "Date is required"
    return errors


def generate_weight_insights(
    analytics: ProgressAnalytics | None, goal: str | None
) -> list[Insight]:
    """Short messages about data quality, goal progress and the trend."""
    if analytics is None:
        return []
    insights: list[Insight] = []
    if analytics.data_points < 4:
        insights.append(
            Insight(
                kind="info",
                title="Keep tracking!",
                message=(
                    "Log your weight consistently for more accurate progress "
                    "analysis."
                ),
                priority=Priority.MEDIUM,
            )
        )
    if analytics.is_on_track:
        insights.append(
            Insight(
                kind="success",
                title="Great progress!",
                message=(
                    f"You're on track with your {goal} goal. "
                    "Keep up the excellent work!"
                ),
                priority=Priority.HIGH,
            )
        )
    else:
        insights.append(
            Insight(
                kind="warning",
                title="Progress needs attention",
                message=(
                    "Your weight trend suggests adjustments to your nutrition "
                    "plan might help."
                ),
                priority=Priority.HIGH,
            )
        )

    progress = analytics.progress_percentage or 0.0
    if progress > 75:
        insights.append(
            Insight(
                kind="success",
                title="Almost there!",
                message=(
                    f"You've achieved {round_half_up(progress):.0f}% of your goal. "
                    "The finish line is in sight!"
                ),
                priority=Priority.HIGH,
            )
        )
    elif progress > 50:
        insights.append(
            Insight(
                kind="success",
                title="Halfway milestone!",
                message=(
                    f"You've completed {round_half_up(progress):.0f}% of your "
                    "journey. Keep pushing forward!"
                ),
                priority=Priority.MEDIUM,
            )
        )

    trend = analytics.weekly_trend
    if abs(trend) > 0.1:
        direction = "gaining" if trend > 0 else "losing"
        insights.append(
            Insight(
                kind="info",
                title=f"You're {direction} {abs(trend):.1f} kg/week",
                message="This trend is based on your recent weight entries.",
                priority=Priority.LOW,
            )
        )
    return sorted(insights, key=lambda insight: _PRIORITY_ORDER[insight.priority])


def _rate_since(
    entries_newest_first: list[WeightEntry], cutoff: date, per_days: int
) -> float:
    recent = [entry for entry in entries_newest_first if entry.day >= cutoff]
    if len(recent) < 2:
        return 0.0
    days = (recent[0].day - recent[-1].day).days
    if days == 0:
        return 0.0
    return (recent[0].weight_kg - recent[-1].weight_kg) / days * per_days


def _months_before(day: date, months: int) -> date:
    index = day.year * 12 + day.month - 1 - months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))
