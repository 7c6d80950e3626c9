"""Tests for archive and prune compaction."""

from datetime import UTC, date, datetime, timedelta

from macro_planner.domain.meals import MealPlanEntry
from macro_planner.domain.nutrients import NutrientVector
from macro_planner.domain.preferences import LedgerPreferences
from macro_planner.domain.summaries import DailySummary, DailyTargets
from macro_planner.services.ledger import MealLedger
from macro_planner.services.ledger_state import LedgerState, initial_state
from macro_planner.services.lifecycle import compact

from tests.conftest import FixedClock, InMemoryKeyValueStore

TODAY = date(2024, 5, 15)
NOON = datetime(2024, 5, 15, 12, tzinfo=UTC)
TARGETS = DailyTargets(protein=145, carbs=185, fat=75)


def _entry(entry_id: str, when: datetime, *, cheat: bool = False) -> MealPlanEntry:
    return MealPlanEntry(
        id=entry_id,
        meal_id="1",
        created_at=when,
        calculated_macros=NutrientVector(protein=30, carbs=45, fat=15),
        is_cheat_meal=cheat,
    )


def _state_with(*entries: MealPlanEntry, summaries=None) -> LedgerState:
    base = initial_state(datetime(2024, 1, 1, tzinfo=UTC))
    return LedgerState(
        meal_definitions=base.meal_definitions,
        entries=entries,
        summaries=dict(summaries or {}),
    )


def _run(state: LedgerState, **kwargs):
    return compact(state, today=TODAY, reset_hour=4, targets=TARGETS, **kwargs)


def test_recent_entries_are_kept() -> None:
    recent = [
        _entry(str(offset), NOON - timedelta(days=offset)) for offset in range(8)
    ]
    state = _state_with(*recent)

    new_state, report = _run(state)

    assert new_state is state
    assert not report.changed
    assert new_state.entries == tuple(recent)


def test_old_entries_are_archived_by_day() -> None:
    old_a = _entry("a", datetime(2024, 5, 1, 9, tzinfo=UTC), cheat=True)
    old_b = _entry("b", datetime(2024, 5, 1, 19, tzinfo=UTC))
    recent = _entry("c", datetime(2024, 5, 14, 9, tzinfo=UTC))

    new_state, report = _run(_state_with(old_a, old_b, recent))

    assert new_state.entries == (recent,)
    assert report.archived_days == ("2024-05-01",)
    assert report.archived_entries == 2
    summary = new_state.summaries["2024-05-01"]
    assert summary.entry_count == 2
    assert summary.cheat_meal_count == 1
    assert summary.totals.protein == 60


def test_entries_before_reset_hour_archive_into_previous_day() -> None:
    early = _entry("a", datetime(2024, 5, 2, 3, tzinfo=UTC))

    new_state, _ = _run(_state_with(early))

    assert list(new_state.summaries) == ["2024-05-01"]


def test_existing_summaries_keep_macros_and_gain_counts() -> None:
    existing = DailySummary(day="2024-05-01", macro_score=60, consistency_score=0.6)
    old = _entry("a", datetime(2024, 5, 1, 12, tzinfo=UTC))
    cheat = _entry("b", datetime(2024, 5, 1, 19, tzinfo=UTC), cheat=True)

    new_state, report = _run(
        _state_with(old, cheat, summaries={"2024-05-01": existing})
    )

    merged = new_state.summaries["2024-05-01"]
    assert merged.totals == existing.totals
    assert merged.macro_score == 60
    assert merged.consistency_score == 0.6
    assert merged.entry_count == 2
    assert merged.cheat_meal_count == 1
    assert new_state.entries == ()
    assert report.archived_days == ()
    assert report.archived_entries == 2

    again, second = _run(new_state)
    assert again is new_state
    assert not second.changed


def test_existing_summary_without_stale_entries_is_untouched() -> None:
    existing = DailySummary(day="2024-05-01", macro_score=60)
    old = _entry("a", datetime(2024, 5, 2, 12, tzinfo=UTC))

    new_state, report = _run(_state_with(old, summaries={"2024-05-01": existing}))

    assert new_state.summaries["2024-05-01"] is existing
    assert new_state.entries == ()
    assert report.archived_days == ("2024-05-02",)
    assert report.archived_entries == 1


def test_old_summaries_are_pruned_after_retention() -> None:
    summaries = {
        "2024-02-14": DailySummary(day="2024-02-14"),
        "2024-02-15": DailySummary(day="2024-02-15"),
        "2024-05-10": DailySummary(day="2024-05-10"),
    }

    new_state, report = _run(_state_with(summaries=summaries))

    assert report.pruned_summaries == ("2024-02-14",)
    assert sorted(new_state.summaries) == ["2024-02-15", "2024-05-10"]


def test_retention_is_configurable() -> None:
    summaries = {"2024-05-01": DailySummary(day="2024-05-01")}

    new_state, report = _run(_state_with(summaries=summaries), retention_days=7)

    assert report.pruned_summaries == ("2024-05-01",)
    assert new_state.summaries == {}


def test_archived_entries_past_retention_are_pruned_too() -> None:
    ancient = _entry("a", datetime(2023, 12, 1, 12, tzinfo=UTC))

    new_state, report = _run(_state_with(ancient))

    assert new_state.entries == ()
    assert new_state.summaries == {}
    assert report.archived_days == ("2023-12-01",)
    assert report.pruned_summaries == ("2023-12-01",)


def test_compaction_is_idempotent() -> None:
    state = _state_with(
        _entry("a", datetime(2024, 4, 20, 12, tzinfo=UTC)),
        _entry("b", datetime(2024, 5, 3, 12, tzinfo=UTC)),
        _entry("c", datetime(2024, 5, 12, 12, tzinfo=UTC)),
        summaries={"2024-01-01": DailySummary(day="2024-01-01")},
    )

    once, first = _run(state)
    twice, second = _run(once)

    assert first.changed
    assert not second.changed
    assert twice is once
    assert twice.entries == once.entries
    assert twice.summaries == once.summaries


def test_ledger_lifecycle_persists_changes(
    clock: FixedClock, store: InMemoryKeyValueStore, ledger: MealLedger
) -> None:
    ledger.create_entry("1", created_at=datetime(2024, 5, 1, 12, tzinfo=UTC))
    ledger.create_entry("1")
    store.writes.clear()

    report = ledger.run_lifecycle()

    assert report.archived_entries == 1
    assert len(ledger.entries) == 1
    assert "2024-05-01" in ledger.summaries
    assert sorted(store.writes) == ["dailySummaries", "mealPlans"]

    store.writes.clear()
    assert not ledger.run_lifecycle().changed
    assert store.writes == []


def test_ledger_lifecycle_uses_preference_retention(ledger: MealLedger) -> None:
    ledger.create_entry("1", created_at=datetime(2024, 4, 1, 12, tzinfo=UTC))
    ledger.update_preferences(LedgerPreferences(retention_days=30))

    report = ledger.run_lifecycle()

    assert report.pruned_summaries == ("2024-04-01",)
    assert ledger.summaries == {}
