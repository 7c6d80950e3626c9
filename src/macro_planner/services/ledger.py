"""Meal ledger: definitions, logged meals, daily summaries and scoring."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import Protocol
from uuid import uuid4

from macro_planner.domain.meals import (
    MealCompletion,
    MealDefinition,
    MealMacroTargets,
    MealPlanEntry,
    SelectedFood,
)
from macro_planner.domain.nutrients import NutrientVector
from macro_planner.domain.preferences import LedgerPreferences
from macro_planner.domain.profile import NutritionTargets
from macro_planner.domain.summaries import (
    ConsistencyStats,
    DailyProgress,
    DailySummary,
    DailyTargets,
    MacroAverages,
    MealResult,
    WeeklyComparison,
)
from macro_planner.services import ledger_state
from macro_planner.services.clock import Clock, day_bucket, day_key, period_start
from macro_planner.services.ledger_state import LedgerState
from macro_planner.services.lifecycle import (
    ARCHIVE_AFTER_DAYS,
    CompactionReport,
    compact,
)
from macro_planner.services.portions import validate_macro_targets
from macro_planner.services.scoring import (
    create_daily_summary,
    daily_targets_from,
    resolve_effective_macros,
    score_meal_entry,
)

DEFAULT_SUB_MACRO_TARGETS: dict[str, float] = {
    "omega3": 2.0,
    "monounsaturated_fat": 25,
    "polyunsaturated_fat": 15,
    "saturated_fat": 20,
    "trans_fat": 0,
    "added_sugars": 25,
    "natural_sugars": 100,
    "fiber": 25,
}
DEFAULT_MICRONUTRIENT_TARGETS: dict[str, float] = {
    "iron": 18,
    "calcium": 1000,
    "zinc": 11,
    "magnesium": 400,
    "vitamin_b6": 1.3,
    "vitamin_b12": 2.4,
    "vitamin_c": 90,
    "vitamin_d": 20,
}
EXCELLENT_CONSISTENCY = 0.85
GOOD_CONSISTENCY = 0.7
WEEK_DAYS = 7

_logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid4())


class LedgerRepository(Protocol):
    """Persistence interface for the ledger snapshot."""

    def load(self, default: LedgerState) -> LedgerState:
        """Return the stored snapshot, filling gaps from ``default``."""

    def save(self, state: LedgerState) -> None:
        """Persist a committed snapshot."""


@dataclass
class MealLedger:
    """Single-writer owner of meal definitions, entries and summaries.

    Each mutation computes a new ``LedgerState`` from the current one,
    swaps it in and then persists it. Readers only ever get frozen objects
    or fresh containers.
    """

    clock: Clock
    repository: LedgerRepository
    preferences: LedgerPreferences = field(default_factory=LedgerPreferences)
    targets: NutritionTargets | None = None
    archive_after_days: int = ARCHIVE_AFTER_DAYS
    id_factory: Callable[[], str] = _new_id
    _state: LedgerState = field(init=False)

    def __post_init__(self) -> None:
        self._state = ledger_state.initial_state(self.clock.now())

    # Snapshot access

    @property
    def state(self) -> LedgerState:
        """Return the current immutable snapshot."""
        return self._state

    @property
    def meal_definitions(self) -> tuple[MealDefinition, ...]:
        return self._state.meal_definitions

    @property
    def entries(self) -> tuple[MealPlanEntry, ...]:
        return self._state.entries

    @property
    def summaries(self) -> dict[str, DailySummary]:
        return dict(self._state.summaries)

    def load(self) -> None:
        """Replace the in-memory snapshot with the stored one."""
        default = ledger_state.initial_state(self.clock.now())
        self._state = self.repository.load(default)
        _logger.info(
            "Ledger loaded: %s meals, %s entries, %s summaries",
            len(self._state.meal_definitions),
            len(self._state.entries),
            len(self._state.summaries),
        )

    def update_preferences(self, preferences: LedgerPreferences) -> None:
        """Use new day boundary, cheat quotas and retention."""
        self.preferences = preferences

    # Meal definitions

    def add_meal_definition(
        self, name: str, macro_targets: MealMacroTargets
    ) -> MealDefinition:
        """Create a user-defined meal; invalid targets raise ``ValueError``."""
        _check_targets(macro_targets)
        definition = MealDefinition(
            id=self.id_factory(),
            name=name,
            macro_targets=macro_targets,
            created_at=self.clock.now(),
            user_custom=True,
        )
        self._commit(ledger_state.add_meal_definition(self._state, definition))
        return definition

    def update_meal_definition(
        self,
        meal_id: str,
        *,
        name: str | None = None,
        macro_targets: MealMacroTargets | None = None,
    ) -> MealDefinition | None:
        """Edit a meal definition; returns None when it does not exist."""
        if self.get_meal_definition(meal_id) is None:
            return None
        if macro_targets is not None:
            _check_targets(macro_targets)
        self._commit(
            ledger_state.update_meal_definition(
                self._state, meal_id, name=name, macro_targets=macro_targets
            )
        )
        return self.get_meal_definition(meal_id)

    def delete_meal_definition(self, meal_id: str) -> bool:
        """Delete a meal definition."""
        if self.get_meal_definition(meal_id) is None:
            return False
        self._commit(ledger_state.delete_meal_definition(self._state, meal_id))
        return True

    def apply_personalized_targets(self, targets: NutritionTargets | None) -> None:
        """Attach new targets and regenerate meals from their distribution."""
        self.targets = targets
        if targets is None or not targets.meal_distribution:
            return
        self._commit(
            ledger_state.apply_meal_distribution(
                self._state, targets.meal_distribution, self.clock.now()
            )
        )
        _logger.info(
            "Generated %s personalized meals", len(targets.meal_distribution)
        )

    def reset_meal_definitions(self) -> None:
        """Return to the built-in meal definitions."""
        self._commit(
            ledger_state.reset_meal_definitions(self._state, self.clock.now())
        )

    def get_meal_definition(self, meal_id: str) -> MealDefinition | None:
        for definition in self._state.meal_definitions:
            if definition.id == meal_id:
                return definition
        return None

    # Entries

    def create_entry(
        self,
        meal_id: str,
        selected_foods: Iterable[SelectedFood] = (),
        calculated_macros: NutrientVector | None = None,
        *,
        is_cheat_meal: bool = False,
        created_at: datetime | None = None,
    ) -> MealPlanEntry:
        """Log a meal."""
        entry = MealPlanEntry(
            id=self.id_factory(),
            meal_id=meal_id,
            created_at=created_at or self.clock.now(),
            selected_foods=tuple(selected_foods),
            calculated_macros=calculated_macros or NutrientVector(),
            is_cheat_meal=is_cheat_meal,
        )
        self._commit(ledger_state.add_entry(self._state, entry))
        return entry

    def update_entry(
        self,
        entry_id: str,
        *,
        selected_foods: Iterable[SelectedFood] | None = None,
        calculated_macros: NutrientVector | None = None,
        is_cheat_meal: bool | None = None,
    ) -> MealPlanEntry | None:
        """Edit a logged meal; returns None when it does not exist."""
        current = self.get_entry(entry_id)
        if current is None:
            return None
        updated = replace(
            current,
            selected_foods=(
                tuple(selected_foods)
                if selected_foods is not None
                else current.selected_foods
            ),
            calculated_macros=calculated_macros or current.calculated_macros,
            is_cheat_meal=(
                is_cheat_meal if is_cheat_meal is not None else current.is_cheat_meal
            ),
        )
        self._commit(ledger_state.replace_entry(self._state, updated))
        return updated

    def delete_entry(self, entry_id: str) -> bool:
        """Delete a logged meal."""
        if self.get_entry(entry_id) is None:
            return False
        self._commit(ledger_state.delete_entry(self._state, entry_id))
        return True

    def toggle_cheat_meal(self, entry_id: str) -> MealPlanEntry | None:
        """Flip an entry's cheat flag."""
        current = self.get_entry(entry_id)
        if current is None:
            return None
        return self.update_entry(entry_id, is_cheat_meal=not current.is_cheat_meal)

    def get_entry(self, entry_id: str) -> MealPlanEntry | None:
        for entry in self._state.entries:
            if entry.id == entry_id:
                return entry
        return None

    def get_entries_for_meal(self, meal_id: str) -> list[MealPlanEntry]:
        return [entry for entry in self._state.entries if entry.meal_id == meal_id]

    def get_recent_entries(self, limit: int = 5) -> list[MealPlanEntry]:
        """Return the most recently logged meals first."""
        return sorted(
            self._state.entries, key=lambda entry: entry.created_at, reverse=True
        )[:limit]

    def get_entries_for_day(self, day: date) -> list[MealPlanEntry]:
        """Return the live entries bucketed into a day."""
        return [
            entry
            for entry in self._state.entries
            if self.bucket(entry.created_at) == day
        ]

    def get_todays_entries(self) -> list[MealPlanEntry]:
        return self.get_entries_for_day(self.today())

    # Day bucketing

    def bucket(self, moment: datetime) -> date:
        """Return the day bucket of a timestamp under the current reset hour."""
        return day_bucket(
            moment, self.preferences.day_reset_hour, self.clock.now().tzinfo
        )

    def today(self) -> date:
        return self.bucket(self.clock.now())

    # Targets, progress and scoring

    def get_daily_targets(self) -> DailyTargets:
        """Return the targets a day is scored against."""
        return daily_targets_from(self.targets, self._state.meal_definitions)

    def get_daily_progress(self) -> DailyProgress:
        """Return today's consumption and completion percentages."""
        targets = self.get_daily_targets()
        definitions = self._definitions_by_id()
        consumed = NutrientVector()
        for entry in self.get_todays_entries():
            effective = resolve_effective_macros(entry, definitions.get(entry.meal_id))
            consumed = consumed + effective.vector

        micronutrient_targets = dict(DEFAULT_MICRONUTRIENT_TARGETS)
        if self.targets is not None:
            for name in micronutrient_targets:
                micronutrient_targets[name] = self.targets.micronutrients.get(
                    name, micronutrient_targets[name]
                )
        sub_macro_targets = dict(DEFAULT_SUB_MACRO_TARGETS)
        sub_macro_targets["fiber"] = targets.fiber
        return DailyProgress(
            targets=targets,
            consumed=consumed,
            percentages={
                name: _percentage(getattr(consumed, name), getattr(targets, name))
                for name in ("protein", "carbs", "fat", "calories")
            },
            sub_macro_targets=sub_macro_targets,
            sub_macro_percentages={
                name: _percentage(getattr(consumed, name), target)
                for name, target in sub_macro_targets.items()
            },
            micronutrient_targets=micronutrient_targets,
            micronutrient_percentages={
                name: _percentage(getattr(consumed, name), target)
                for name, target in micronutrient_targets.items()
            },
        )

    def get_meals_completed_today(self) -> list[MealCompletion]:
        """Return each meal definition with today's entry, if logged."""
        todays = self.get_todays_entries()
        completions: list[MealCompletion] = []
        for definition in self._state.meal_definitions:
            entry = next(
                (item for item in todays if item.meal_id == definition.id), None
            )
            completions.append(
                MealCompletion(
                    definition=definition, completed=entry is not None, entry=entry
                )
            )
        return completions

    def score_entry(self, entry_id: str) -> MealResult | None:
        """Score one logged meal against its meal definition."""
        entry = self.get_entry(entry_id)
        if entry is None:
            return None
        return score_meal_entry(entry, self.get_meal_definition(entry.meal_id))

    def get_summary(self, day: date) -> DailySummary | None:
        """Return the stored summary for a day, or derive one from live entries."""
        key = day_key(day)
        stored = self._state.summaries.get(key)
        if stored is not None:
            return stored
        entries = self.get_entries_for_day(day)
        if not entries:
            return None
        return create_daily_summary(
            key, entries, self._definitions_by_id(), self.get_daily_targets()
        )

    def get_todays_summary(self) -> DailySummary:
        """Return today's summary, computed on demand and never persisted."""
        return self._summary_or_empty(self.today())

    def get_daily_summaries_for_period(
        self, days: int = WEEK_DAYS
    ) -> list[DailySummary]:
        """Return summaries for the last ``days`` day buckets, oldest first."""
        today = self.today()
        summaries: list[DailySummary] = []
        for offset in range(days - 1, -1, -1):
            summary = self.get_summary(today - timedelta(days=offset))
            if summary is not None:
                summaries.append(summary)
        return summaries

    def get_weekly_comparison(self) -> WeeklyComparison:
        """Compare average daily macros of the last 7 days with the 7 before."""
        recent = self.get_daily_summaries_for_period(WEEK_DAYS * 2)
        boundary = day_key(self.today() - timedelta(days=WEEK_DAYS - 1))
        this_week = [item for item in recent if item.day >= boundary]
        last_week = [item for item in recent if item.day < boundary]
        return WeeklyComparison(
            this_week=_macro_averages(this_week), last_week=_macro_averages(last_week)
        )

    def get_consistency_stats(
        self, days: int = 28, *, include_cheat_days: bool = False
    ) -> ConsistencyStats:
        """Summarize consistency over recent days."""
        summaries = [
            summary
            for summary in self.get_daily_summaries_for_period(days)
            if include_cheat_days or not summary.is_cheat_day
        ]
        total = len(summaries)
        return ConsistencyStats(
            total_days=total,
            excellent_days=sum(
                1
                for item in summaries
                if item.consistency_score >= EXCELLENT_CONSISTENCY
            ),
            good_days=sum(
                1
                for item in summaries
                if GOOD_CONSISTENCY <= item.consistency_score < EXCELLENT_CONSISTENCY
            ),
            average_consistency=(
                sum(item.consistency_score for item in summaries) / total
                if total
                else 0.0
            ),
        )

    # Cheat policy

    def toggle_cheat_day(self, day: date | None = None) -> DailySummary:
        """Flip the cheat flag of a day, today by default."""
        target = day or self.today()
        self._commit(ledger_state.toggle_cheat_day(self._state, day_key(target)))
        return self._summary_or_empty(target)

    def cheat_meal_usage(self) -> int:
        """Count cheat meals logged in the current period."""
        start = self._period_start()
        live = sum(
            1
            for entry in self._state.entries
            if entry.is_cheat_meal and self.bucket(entry.created_at) >= start
        )
        archived = sum(
            summary.cheat_meal_count
            for key, summary in self._state.summaries.items()
            if key >= day_key(start)
        )
        return live + archived

    def cheat_day_usage(self) -> int:
        """Count cheat days flagged in the current period."""
        start_key = day_key(self._period_start())
        return sum(
            1
            for key, summary in self._state.summaries.items()
            if summary.is_cheat_day and key >= start_key
        )

    def can_use_cheat_meal(self) -> bool:
        return self.cheat_meal_usage() < self.preferences.cheat_meals_per_period

    def can_use_cheat_day(self) -> bool:
        return self.cheat_day_usage() < self.preferences.cheat_days_per_period

    # Lifecycle

    def run_lifecycle(self) -> CompactionReport:
        """Archive entries older than a week and prune expired summaries."""
        new_state, report = compact(
            self._state,
            today=self.today(),
            reset_hour=self.preferences.day_reset_hour,
            targets=self.get_daily_targets(),
            tz=self.clock.now().tzinfo,
            archive_after_days=self.archive_after_days,
            retention_days=self.preferences.retention_days,
        )
        if report.changed:
            self._commit(new_state)
            _logger.info(
                "Lifecycle archived %s entries into %s days, pruned %s summaries",
                report.archived_entries,
                len(report.archived_days),
                len(report.pruned_summaries),
            )
        return report

    def _period_start(self) -> date:
        return period_start(self.today(), self.preferences.cheat_period_type)

    def _summary_or_empty(self, day: date) -> DailySummary:
        summary = self.get_summary(day)
        if summary is not None:
            return summary
        return create_daily_summary(
            day_key(day), [], self._definitions_by_id(), self.get_daily_targets()
        )

    def _definitions_by_id(self) -> dict[str, MealDefinition]:
        return {
            definition.id: definition for definition in self._state.meal_definitions
        }

    def _commit(self, state: LedgerState) -> None:
        self._state = state
        self.repository.save(state)


def _check_targets(targets: MealMacroTargets) -> None:
    errors = validate_macro_targets(targets)
    if errors:
        raise ValueError("; ".join(errors))


def _percentage(actual: float, target: float) -> float:
    if target <= 0:
        return 0.0
    return actual / target * 100


def _macro_averages(summaries: list[DailySummary]) -> MacroAverages:
    days = [summary for summary in summaries if not summary.is_cheat_day]
    if not days:
        return MacroAverages()
    count = len(days)
    return MacroAverages(
        calories=sum(item.totals.calories for item in days) / count,
        protein=sum(item.totals.protein for item in days) / count,
        carbs=sum(item.totals.carbs for item in days) / count,
        fat=sum(item.totals.fat for item in days) / count,
    )
