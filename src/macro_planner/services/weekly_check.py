"""Weekly weigh-in reminder."""

from collections.abc import Iterable
from datetime import date

from macro_planner.domain.profile import UserProfile
from macro_planner.domain.weight import (
    Priority,
    WeeklyWeightCheck,
    WeightEntry,
    WeightSettings,
)

WEIGH_IN_INTERVAL_DAYS = 7
HIGH_PRIORITY_DAYS = 10
OVERDUE_DAYS = 14


def check_if_weekly_weight_due(
    entries: Iterable[WeightEntry],
    settings: WeightSettings,
    profile: UserProfile,
    today: date,
) -> WeeklyWeightCheck:
    """Return whether a weigh-in is due, with how overdue it is.

    The first weigh-in belongs to onboarding, so an empty log is never due.
    """
    if not settings.tracking_enabled or not profile.is_complete:
        return WeeklyWeightCheck(
            is_due=False,
            reason="Weight tracking not enabled or onboarding incomplete",
        )
    latest = max(entries, key=lambda entry: entry.day, default=None)
    if latest is None:
        return WeeklyWeightCheck(
            is_due=False,
            reason="First weight entry should be collected during onboarding",
        )

    days = (today - latest.day).days
    if days < WEIGH_IN_INTERVAL_DAYS:
        return WeeklyWeightCheck(
            is_due=False,
            reason=f"Last weight logged {days} days ago",
            days_since_last_entry=days,
            days_until_next=WEIGH_IN_INTERVAL_DAYS - days,
        )

    priority = Priority.MEDIUM
    action = "log_weekly_weight"
    if days >= OVERDUE_DAYS:
        priority = Priority.HIGH
        action = "log_overdue_weight"
    elif days >= HIGH_PRIORITY_DAYS:
        priority = Priority.HIGH
    return WeeklyWeightCheck(
        is_due=True,
        reason=f"It's been {days} days since your last weight entry",
        days_since_last_entry=days,
        priority=priority,
        recommended_action=action,
        is_overdue=days > WEIGH_IN_INTERVAL_DAYS,
        last_weight_kg=latest.weight_kg,
        last_day=latest.day,
    )
