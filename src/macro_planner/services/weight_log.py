"""Weigh-in log with tracking settings and adjustment bookkeeping."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, fields, replace
from datetime import date
from typing import Protocol
from uuid import uuid4

from macro_planner.domain.profile import DailyMacroTargets, UserProfile
from macro_planner.domain.weight import (
    AdjustmentRecommendation,
    Eligibility,
    Insight,
    MacroAdjustment,
    ProgressAnalytics,
    WeeklyWeightCheck,
    WeightEntry,
    WeightSettings,
    WeightSnapshot,
)
from macro_planner.services.clock import Clock
from macro_planner.services.macro_adjustment import (
    analyze_progress_and_recommend_adjustment,
    is_eligible_for_adjustment,
)
from macro_planner.services.weekly_check import check_if_weekly_weight_due
from macro_planner.services.weight_tracking import (
    calculate_progress_analytics,
    generate_weight_insights,
    validate_weight_entry,
)

_SETTINGS_FIELDS = frozenset(item.name for item in fields(WeightSettings))
DUPLICATE_DAY_ERROR = (
    "Weight entry already exists for this date. Please update the existing "
    "entry or choose a different date."
)

_logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid4())


class WeightRepository(Protocol):
    """Persistence interface for weigh-ins and tracking settings."""

    def load(self, default: WeightSnapshot) -> WeightSnapshot:
        """Return the stored snapshot, filling gaps from ``default``."""

    def save(self, snapshot: WeightSnapshot) -> None:
        """Persist a snapshot."""


@dataclass
class WeightLog:
    """Owns the weigh-ins; analytics are derived on demand.

    Dates are calendar days of the injected clock, without the meal day
    reset hour.
    """

    clock: Clock
    repository: WeightRepository
    id_factory: Callable[[], str] = _new_id
    snapshot: WeightSnapshot = field(default_factory=WeightSnapshot)

    @property
    def entries(self) -> tuple[WeightEntry, ...]:
        """Weigh-ins, oldest first."""
        return tuple(sorted(self.snapshot.entries, key=lambda entry: entry.day))

    @property
    def settings(self) -> WeightSettings:
        return self.snapshot.settings

    def today(self) -> date:
        return self.clock.now().date()

    def load(self) -> WeightSnapshot:
        self.snapshot = self.repository.load(WeightSnapshot())
        _logger.info("Weight log loaded: %s entries", len(self.snapshot.entries))
        return self.snapshot

    def add_entry(
        self,
        weight_kg: float,
        day: date | None = None,
        *,
        body_fat_pct: float | None = None,
        notes: str = "",
    ) -> WeightEntry:
        """Record a weigh-in; invalid values or a taken day raise ``ValueError``."""
        day = day or self.today()
        _check_entry(weight_kg, day)
        if self._entry_on(day) is not None:
            raise ValueError(DUPLICATE_DAY_ERROR)
        entry = WeightEntry(
            id=self.id_factory(),
            weight_kg=float(weight_kg),
            day=day,
            created_at=self.clock.now(),
            body_fat_pct=body_fat_pct,
            notes=notes,
        )
        self._commit(replace(self.snapshot, entries=(*self.snapshot.entries, entry)))
        return entry

    def update_entry(
        self,
        entry_id: str,
        *,
        weight_kg: float | None = None,
        day: date | None = None,
        body_fat_pct: float | None = None,
        notes: str | None = None,
    ) -> WeightEntry | None:
        """Edit a weigh-in; returns None when it does not exist."""
        current = self._entry(entry_id)
        if current is None:
            return None
        updated = replace(
            current,
            weight_kg=current.weight_kg if weight_kg is None else float(weight_kg),
            day=day or current.day,
            body_fat_pct=(
                current.body_fat_pct if body_fat_pct is None else body_fat_pct
            ),
            notes=current.notes if notes is None else notes,
            updated_at=self.clock.now(),
        )
        _check_entry(updated.weight_kg, updated.day)
        clash = self._entry_on(updated.day)
        if clash is not None and clash.id != entry_id:
            raise ValueError(DUPLICATE_DAY_ERROR)
        self._commit(
            replace(
                self.snapshot,
                entries=tuple(
                    updated if entry.id == entry_id else entry
                    for entry in self.snapshot.entries
                ),
            )
        )
        return updated

    def delete_entry(self, entry_id: str) -> bool:
        if self._entry(entry_id) is None:
            return False
        self._commit(
            replace(
                self.snapshot,
                entries=tuple(
                    entry for entry in self.snapshot.entries if entry.id != entry_id
                ),
            )
        )
        return True

    def update_settings(self, **changes: object) -> WeightSettings:
        """Merge tracking settings; unknown names are ignored."""
        unknown = set(changes) - _SETTINGS_FIELDS
        if unknown:
            _logger.warning("Ignoring unknown weight settings: %s", sorted(unknown))
        known = {
            key: value for key, value in changes.items() if key in _SETTINGS_FIELDS
        }
        settings = replace(self.snapshot.settings, **known)
        if settings.minimum_weeks_for_adjustment < 1:
            raise ValueError("minimum_weeks_for_adjustment must be at least 1")
        self._commit(replace(self.snapshot, settings=settings))
        return settings

    def analytics(self, profile: UserProfile) -> ProgressAnalytics | None:
        return calculate_progress_analytics(
            self.snapshot.entries,
            goal=profile.goal,
            goal_weight=self.settings.goal_weight_kg,
            today=self.today(),
        )

    def insights(self, profile: UserProfile) -> list[Insight]:
        return generate_weight_insights(self.analytics(profile), profile.goal)

    def weekly_check(self, profile: UserProfile) -> WeeklyWeightCheck:
        return check_if_weekly_weight_due(
            self.snapshot.entries, self.settings, profile, self.today()
        )

    def eligibility(self, profile: UserProfile) -> Eligibility:
        return is_eligible_for_adjustment(
            profile,
            self.snapshot.entries,
            self.snapshot.last_adjustment,
            self.settings,
            self.clock.now(),
        )

    def recommend_adjustment(
        self, profile: UserProfile, current_targets: DailyMacroTargets
    ) -> MacroAdjustment:
        """Analyze the trend when an adjustment is currently allowed."""
        eligibility = self.eligibility(profile)
        if not eligibility.eligible:
            return MacroAdjustment(
                AdjustmentRecommendation(
                    should_adjust=False, reason=eligibility.reason
                )
            )
        return analyze_progress_and_recommend_adjustment(
            self.snapshot.entries,
            profile,
            current_targets,
            goal_weight=self.settings.goal_weight_kg,
            today=self.today(),
        )

    def record_adjustment(self) -> None:
        """Start the waiting period after an adjustment is applied or dismissed."""
        self._commit(replace(self.snapshot, last_adjustment=self.clock.now()))

    def _entry(self, entry_id: str) -> WeightEntry | None:
        for entry in self.snapshot.entries:
            if entry.id == entry_id:
                return entry
        return None

    def _entry_on(self, day: date) -> WeightEntry | None:
        for entry in self.snapshot.entries:
            if entry.day == day:
                return entry
        return None

    def _commit(self, snapshot: WeightSnapshot) -> None:
        self.snapshot = snapshot
        self.repository.save(snapshot)


def _check_entry(weight_kg: float | None, day: date | None) -> None:
    errors = validate_weight_entry(weight_kg, day)
    if errors:
        raise ValueError(next(iter(errors.values())))
