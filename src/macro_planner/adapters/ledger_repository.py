"""Key-value backed repository for the meal ledger snapshot."""

import logging
from dataclasses import dataclass, field

from pydantic import TypeAdapter, ValidationError

from macro_planner.adapters.key_value_store import KeyValueStore
from macro_planner.adapters.storage_models import (
    DAILY_SUMMARIES,
    MEAL_DEFINITIONS,
    MEAL_PLAN_ENTRIES,
    StoredDailySummary,
    StoredMealDefinition,
    StoredMealPlanEntry,
)
from macro_planner.services.clock import parse_day_key
from macro_planner.services.ledger import LedgerRepository
from macro_planner.services.ledger_state import LedgerState

MEALS_KEY = "meals"
MEAL_PLANS_KEY = "mealPlans"
DAILY_SUMMARIES_KEY = "dailySummaries"

_logger = logging.getLogger(__name__)


@dataclass
class KeyValueLedgerRepository(LedgerRepository):
    """Stores definitions, entries and summaries under separate keys.

    Each key falls back to its default on its own, so one corrupt blob does
    not discard the others. Saves only rewrite the parts of the snapshot
    that changed since the last load or save.
    """

    store: KeyValueStore
    _last: LedgerState | None = field(default=None, init=False, repr=False)

    def load(self, default: LedgerState) -> LedgerState:
        """Read the snapshot, using ``default`` for missing or bad keys."""
        definitions = self._read(MEALS_KEY, MEAL_DEFINITIONS)
        entries = self._read(MEAL_PLANS_KEY, MEAL_PLAN_ENTRIES)
        summaries = self._read(DAILY_SUMMARIES_KEY, DAILY_SUMMARIES)
        state = LedgerState(
            meal_definitions=(
                tuple(item.to_domain() for item in definitions)
                if definitions is not None
                else default.meal_definitions
            ),
            entries=(
                tuple(item.to_domain() for item in entries)
                if entries is not None
                else default.entries
            ),
            summaries=(
                _summaries_to_domain(summaries)
                if summaries is not None
                else dict(default.summaries)
            ),
        )
        self._last = state
        return state

    def save(self, state: LedgerState) -> None:
        """Write the parts of the snapshot that changed."""
        last = self._last
        if last is None or state.meal_definitions is not last.meal_definitions:
            self._write(
                MEALS_KEY,
                MEAL_DEFINITIONS,
                [
                    StoredMealDefinition.from_domain(item)
                    for item in state.meal_definitions
                ],
            )
        if last is None or state.entries is not last.entries:
            self._write(
                MEAL_PLANS_KEY,
                MEAL_PLAN_ENTRIES,
                [StoredMealPlanEntry.from_domain(item) for item in state.entries],
            )
        if last is None or state.summaries is not last.summaries:
            self._write(
                DAILY_SUMMARIES_KEY,
                DAILY_SUMMARIES,
                {
                    key: StoredDailySummary.from_domain(summary)
                    for key, summary in state.summaries.items()
                },
            )
        self._last = state

    def _read(self, key: str, adapter: TypeAdapter):
        try:
            raw = self.store.get(key)
        except OSError:
            _logger.exception("Failed to read %s, using defaults", key)
            return None
        if raw is None:
            return None
        try:
            return adapter.validate_json(raw)
        except ValidationError as exc:
            _logger.warning(
                "Malformed %s blob, using defaults (%s errors)", key, exc.error_count()
            )
            return None

    def _write(self, key: str, adapter: TypeAdapter, value: object) -> None:
        try:
            self.store.set(key, adapter.dump_json(value, by_alias=True).decode())
        except OSError:
            _logger.exception("Failed to persist %s", key)


def _summaries_to_domain(summaries: dict[str, StoredDailySummary]) -> dict:
    result = {}
    for key, stored in summaries.items():
        if parse_day_key(key) is None:
            continue
        result[key] = stored.to_domain()
    return result
