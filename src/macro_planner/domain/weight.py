"""Body weight tracking and macro adjustment domain models."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum

from macro_planner.domain.profile import DailyMacroTargets, MealTarget


class Priority(StrEnum):
    """How urgently a prompt or insight should be shown."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class WeightEntry:
    """One weigh-in; a calendar day holds at most one."""

    id: str
    weight_kg: float
    day: date
    created_at: datetime
    body_fat_pct: float | None = None
    notes: str = ""
    source: str = "manual"
    updated_at: datetime | None = None


@dataclass(frozen=True)
class WeightSettings:
    tracking_enabled: bool = True
    goal_weight_kg: float | None = None
    auto_adjust_macros: bool = True
    minimum_weeks_for_adjustment: int = 2


@dataclass(frozen=True)
class WeightSnapshot:
    """Everything the weight log persists."""

    entries: tuple[WeightEntry, ...] = ()
    settings: WeightSettings = field(default_factory=WeightSettings)
    last_adjustment: datetime | None = None


@dataclass(frozen=True)
class ProgressAnalytics:
    """Trends and goal progress derived from the weigh-ins.

    Trends are in kg per week, except ``monthly_trend`` which is kg per 30
    days. Goal fields stay None unless a goal weight different from the
    current weight is set.
    """

    current_weight: float
    starting_weight: float
    total_change: float
    total_change_percent: float
    weekly_trend: float
    monthly_trend: float
    linear_trend: float
    data_points: int
    tracking_days: int
    recommended_weekly_rate: float
    is_on_track: bool
    goal_weight: float | None = None
    remaining_change: float | None = None
    progress_percentage: float | None = None
    projected_goal_date: date | None = None


@dataclass(frozen=True)
class Insight:
    kind: str
    title: str
    message: str
    priority: Priority


@dataclass(frozen=True)
class AdjustmentRecommendation:
    """Whether calories should change, and by how much."""

    should_adjust: bool
    reason: str
    current_calories: int | None = None
    recommended_calories: int | None = None
    adjustment: int = 0
    deviation: float = 0.0
    confidence: int = 0


@dataclass(frozen=True)
class ImplementationStep:
    week: int
    targets: DailyMacroTargets
    description: str


@dataclass(frozen=True)
class ImplementationPlan:
    """Immediate or week-by-week path to new daily targets."""

    kind: str
    weeks: int
    total_change: int
    steps: tuple[ImplementationStep, ...]


@dataclass(frozen=True)
class MacroAdjustment:
    """A recommendation together with the targets it leads to."""

    recommendation: AdjustmentRecommendation
    analytics: ProgressAnalytics | None = None
    adjusted_targets: DailyMacroTargets | None = None
    meal_distribution: tuple[MealTarget, ...] = ()
    plan: ImplementationPlan | None = None

    @property
    def should_adjust(self) -> bool:
        return self.recommendation.should_adjust and self.adjusted_targets is not None


@dataclass(frozen=True)
class AdjustmentExplanation:
    """User-facing wording for a calorie adjustment."""

    title: str
    summary: str
    details: tuple[str, ...]
    benefits: tuple[str, ...]
    timeline: str


@dataclass(frozen=True)
class SafetyCheck:
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def recommendation(self) -> str:
        return "safe" if self.is_valid else "unsafe"


@dataclass(frozen=True)
class Eligibility:
    eligible: bool
    reason: str = ""


@dataclass(frozen=True)
class WeeklyWeightCheck:
    """Whether the weekly weigh-in prompt should be shown."""

    is_due: bool
    reason: str
    days_since_last_entry: int | None = None
    days_until_next: int | None = None
    priority: Priority | None = None
    recommended_action: str | None = None
    is_overdue: bool = False
    last_weight_kg: float | None = None
    last_day: date | None = None
