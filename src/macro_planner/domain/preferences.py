"""User preferences and the persisted settings snapshot."""

from dataclasses import dataclass, field
from enum import StrEnum

from macro_planner.domain.profile import NutritionTargets, UserProfile


class CheatPeriod(StrEnum):
    """Window over which cheat quotas are counted."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class LedgerPreferences:
    """Day boundary, cheat quotas and retention for the ledger."""

    day_reset_hour: int = 4
    cheat_meals_per_period: int = 2
    cheat_days_per_period: int = 1
    cheat_period_type: CheatPeriod = CheatPeriod.WEEKLY
    retention_days: int = 90


@dataclass(frozen=True)
class SettingsSnapshot:
    """Profile, latest personalized targets and preferences."""

    profile: UserProfile = field(default_factory=UserProfile)
    targets: NutritionTargets | None = None
    preferences: LedgerPreferences = field(default_factory=LedgerPreferences)
