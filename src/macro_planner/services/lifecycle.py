"""Lifecycle compaction: archive aged entries, prune old summaries."""

import logging
from dataclasses import dataclass, replace
from datetime import date, timedelta, tzinfo

from macro_planner.domain.meals import MealPlanEntry
from macro_planner.domain.summaries import DailyTargets
from macro_planner.services.clock import day_bucket, day_key, parse_day_key
from macro_planner.services.ledger_state import LedgerState
from macro_planner.services.scoring import create_daily_summary

ARCHIVE_AFTER_DAYS = 7
RETENTION_DAYS = 90

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompactionReport:
    """What a compaction run changed."""

    archived_days: tuple[str, ...] = ()
    archived_entries: int = 0
    pruned_summaries: tuple[str, ...] = ()

    @property
    def changed(self) -> bool:
        """Return True when the run altered the ledger."""
        return bool(self.archived_entries or self.pruned_summaries)


def compact(  # noqa: PLR0913
    state: LedgerState,
    *,
    today: date,
    reset_hour: int,
    targets: DailyTargets,
    tz: tzinfo | None = None,
    archive_after_days: int = ARCHIVE_AFTER_DAYS,
    retention_days: int = RETENTION_DAYS,
) -> tuple[LedgerState, CompactionReport]:
    """Fold stale entries into summaries, then drop expired summaries.

    Existing summaries keep their macros and only gain the archived entry
    and cheat meal counts. Running twice without new entries changes
    nothing the second time.
    """
    archive_cutoff = today - timedelta(days=archive_after_days)
    retention_cutoff = today - timedelta(days=retention_days)
    definitions = {definition.id: definition for definition in state.meal_definitions}

    kept: list[MealPlanEntry] = []
    stale: dict[str, list[MealPlanEntry]] = {}
    for entry in state.entries:
        bucket = day_bucket(entry.created_at, reset_hour, tz)
        if bucket < archive_cutoff:
            stale.setdefault(day_key(bucket), []).append(entry)
        else:
            kept.append(entry)

    summaries = dict(state.summaries)
    archived_days: list[str] = []
    for key, day_entries in stale.items():
        existing = summaries.get(key)
        if existing is not None:
            _logger.info(
                "Summary for %s already exists; counting %s archived entries",
                key,
                len(day_entries),
            )
            summaries[key] = replace(
                existing,
                entry_count=existing.entry_count + len(day_entries),
                cheat_meal_count=existing.cheat_meal_count
                + sum(1 for entry in day_entries if entry.is_cheat_meal),
            )
            continue
        summaries[key] = create_daily_summary(key, day_entries, definitions, targets)
        archived_days.append(key)

    pruned: list[str] = []
    for key in sorted(summaries):
        parsed = parse_day_key(key)
        if parsed is not None and parsed < retention_cutoff:
            del summaries[key]
            pruned.append(key)

    report = CompactionReport(
        archived_days=tuple(archived_days),
        archived_entries=sum(len(day_entries) for day_entries in stale.values()),
        pruned_summaries=tuple(pruned),
    )
    if not report.changed:
        return state, report
    return replace(state, entries=tuple(kept), summaries=summaries), report
