"""Tests for the weight log service and its storage."""

import json
from datetime import date, timedelta

import pytest

from macro_planner.adapters.weight_repository import KeyValueWeightRepository
from macro_planner.domain.profile import DailyMacroTargets, UserProfile
from macro_planner.services.weight_log import DUPLICATE_DAY_ERROR, WeightLog

from tests.conftest import FixedClock, InMemoryKeyValueStore

CURRENT = DailyMacroTargets(
    calories=2400, protein=176, carbs=220, fat=70, fiber=34, sugar=50, saturated_fat=21
)


def log_slow_cut(weight_log: WeightLog) -> None:
    weights = {1: 85.0, 4: 85.0, 7: 84.9, 10: 84.9, 13: 84.8, 15: 84.8}
    for day, weight in weights.items():
        weight_log.add_entry(weight, date(2024, 5, day))


def test_add_entry_defaults_to_today(
    weight_log: WeightLog, store: InMemoryKeyValueStore, clock: FixedClock
) -> None:
    entry = weight_log.add_entry(82.5, body_fat_pct=17.5, notes="after run")

    assert entry.id == "weight-1"
    assert entry.day == date(2024, 5, 15)
    assert entry.created_at == clock.current
    assert entry.source == "manual"
    assert weight_log.entries == (entry,)
    stored = json.loads(store.data["weightEntries"])
    assert stored[0]["weight"] == 82.5
    assert stored[0]["date"] == "2024-05-15"
    assert stored[0]["bodyFat"] == 17.5


def test_one_entry_per_day(weight_log: WeightLog) -> None:
    weight_log.add_entry(82.5)

    with pytest.raises(ValueError, match="already exists for this date") as error:
        weight_log.add_entry(82.0)

    assert str(error.value) == DUPLICATE_DAY_ERROR
    assert len(weight_log.entries) == 1


@pytest.mark.parametrize(
    ("weight", "message"),
    [
        (0, "Weight must be a positive number"),
        (-3, "Weight must be a positive number"),
        (600, "Weight must be between 30 and 500 kg"),
    ],
)
def test_invalid_weights_are_rejected(
    weight_log: WeightLog, weight: float, message: str
) -> None:
    with pytest.raises(ValueError, match=message):
        weight_log.add_entry(weight)
    assert weight_log.entries == ()


def test_entries_are_sorted_by_day(weight_log: WeightLog) -> None:
    weight_log.add_entry(82.0, date(2024, 5, 15))
    weight_log.add_entry(83.0, date(2024, 5, 1))

    assert [entry.weight_kg for entry in weight_log.entries] == [83.0, 82.0]


def test_update_entry(weight_log: WeightLog, clock: FixedClock) -> None:
    first = weight_log.add_entry(82.0, date(2024, 5, 8))
    weight_log.add_entry(81.5)
    clock.advance(hours=2)

    updated = weight_log.update_entry(first.id, weight_kg=82.2, notes="fixed")

    assert updated is not None
    assert updated.weight_kg == 82.2
    assert updated.notes == "fixed"
    assert updated.day == date(2024, 5, 8)
    assert updated.updated_at == clock.current
    with pytest.raises(ValueError, match="already exists for this date"):
        weight_log.update_entry(first.id, day=date(2024, 5, 15))
    assert weight_log.entries[0] == updated
    assert weight_log.update_entry("missing", weight_kg=80) is None


def test_delete_entry(weight_log: WeightLog) -> None:
    entry = weight_log.add_entry(82.0)

    assert weight_log.delete_entry(entry.id)
    assert not weight_log.delete_entry(entry.id)
    assert weight_log.entries == ()


def test_update_settings(weight_log: WeightLog, caplog) -> None:
    settings = weight_log.update_settings(goal_weight_kg=78, colour="blue")

    assert settings.goal_weight_kg == 78
    assert settings.auto_adjust_macros
    assert "Ignoring unknown weight settings" in caplog.text
    with pytest.raises(ValueError, match="at least 1"):
        weight_log.update_settings(minimum_weeks_for_adjustment=0)
    assert weight_log.settings.minimum_weeks_for_adjustment == 2


def test_log_survives_a_reload(
    weight_log: WeightLog, store: InMemoryKeyValueStore, clock: FixedClock
) -> None:
    entry = weight_log.add_entry(82.0, date(2024, 5, 10))
    weight_log.update_settings(goal_weight_kg=78, auto_adjust_macros=False)
    weight_log.record_adjustment()

    reloaded = WeightLog(clock=clock, repository=KeyValueWeightRepository(store))
    snapshot = reloaded.load()

    assert snapshot.entries == (entry,)
    assert snapshot.settings.goal_weight_kg == 78
    assert not snapshot.settings.auto_adjust_macros
    assert snapshot.last_adjustment == clock.current
    assert json.loads(store.data["weightSettings"])["goalWeight"] == 78


def test_corrupt_blobs_fall_back_to_defaults(
    store: InMemoryKeyValueStore, clock: FixedClock, caplog
) -> None:
    store.data["weightEntries"] = '[{"id": "x", "weight": -4}]'
    store.data["weightSettings"] = "not json"
    store.data["lastMacroAdjustment"] = "yesterday"

    snapshot = WeightLog(
        clock=clock, repository=KeyValueWeightRepository(store)
    ).load()

    assert snapshot.entries == ()
    assert snapshot.settings.tracking_enabled
    assert snapshot.last_adjustment is None
    assert "Malformed weightEntries blob" in caplog.text


def test_failed_writes_keep_the_log_in_memory(
    weight_log: WeightLog, store: InMemoryKeyValueStore, caplog
) -> None:
    store.fail_writes = True

    entry = weight_log.add_entry(82.0)

    assert weight_log.entries == (entry,)
    assert "Failed to persist weightEntries" in caplog.text


def test_analytics_and_insights_follow_the_log(
    weight_log: WeightLog, complete_profile: UserProfile
) -> None:
    assert weight_log.analytics(complete_profile) is None
    assert weight_log.insights(complete_profile) == []

    log_slow_cut(weight_log)
    weight_log.update_settings(goal_weight_kg=80)
    analytics = weight_log.analytics(complete_profile)

    assert analytics is not None
    assert analytics.data_points == 6
    assert analytics.weekly_trend == pytest.approx(-0.1)
    assert analytics.goal_weight == 80
    assert not analytics.is_on_track
    assert weight_log.insights(complete_profile)[0].title == (
        "Progress needs attention"
    )


def test_weekly_check_uses_the_clock(
    weight_log: WeightLog, complete_profile: UserProfile, clock: FixedClock
) -> None:
    weight_log.add_entry(82.0)
    assert not weight_log.weekly_check(complete_profile).is_due

    clock.advance(days=8)
    check = weight_log.weekly_check(complete_profile)

    assert check.is_due
    assert check.days_since_last_entry == 8


def test_recommend_adjustment_respects_eligibility(
    weight_log: WeightLog, complete_profile: UserProfile, clock: FixedClock
) -> None:
    weight_log.add_entry(85.0, date(2024, 5, 1))
    early = weight_log.recommend_adjustment(complete_profile, CURRENT)
    assert not early.should_adjust
    assert early.recommendation.reason == "Need at least 6 weight entries (2+ weeks)"

    weight_log.delete_entry(weight_log.entries[0].id)
    log_slow_cut(weight_log)
    adjustment = weight_log.recommend_adjustment(complete_profile, CURRENT)
    assert adjustment.should_adjust
    assert adjustment.adjusted_targets.calories == 2100

    weight_log.record_adjustment()
    clock.advance(days=3)
    waiting = weight_log.recommend_adjustment(complete_profile, CURRENT)
    assert not waiting.should_adjust
    assert waiting.recommendation.reason == "Wait 11 more days between adjustments"

    clock.advance(days=11)
    assert weight_log.eligibility(complete_profile).eligible
    assert weight_log.today() == date(2024, 5, 15) + timedelta(days=14)
