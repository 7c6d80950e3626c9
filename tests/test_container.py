"""Tests for container wiring."""

import asyncio
from datetime import UTC, datetime

from macro_planner.adapters.key_value_store import JsonFileKeyValueStore
from macro_planner.adapters.local_food_catalog import LocalFoodCatalog
from macro_planner.containers import build_container
from macro_planner.domain.meals import SelectedFood
from macro_planner.domain.preferences import CheatPeriod
from macro_planner.services.nutrition import FoodLookupService

from tests.conftest import DictFoodCatalog, FixedClock, InMemoryKeyValueStore


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)

    assert isinstance(container.store, JsonFileKeyValueStore)
    assert isinstance(container.food_catalog, LocalFoodCatalog)
    assert len(container.ledger.meal_definitions) == 5
    assert container.lifecycle_runner.interval_seconds == 24 * 3600
    asyncio.run(container.close_resources())


def test_api_key_selects_fdc_lookup(settings) -> None:
    settings = settings.model_copy(update={"fdc_api_key": "test-key"})
    container = build_container(settings, store=InMemoryKeyValueStore())

    assert isinstance(container.food_catalog, FoodLookupService)
    asyncio.run(container.close_resources())


def test_settings_changes_reach_the_ledger(settings, complete_profile) -> None:
    settings = settings.model_copy(
        update={"day_reset_hour": 6, "cheat_period_type": CheatPeriod.MONTHLY}
    )
    container = build_container(
        settings,
        store=InMemoryKeyValueStore(),
        clock=FixedClock(datetime(2024, 5, 15, 12, tzinfo=UTC)),
    )
    assert container.ledger.preferences.day_reset_hour == 6
    assert container.ledger.preferences.cheat_period_type == CheatPeriod.MONTHLY

    container.settings_store.update_profile(**vars(complete_profile))
    container.settings_store.update_preferences(day_reset_hour=3)

    assert container.ledger.get_daily_targets().protein == 176
    assert container.ledger.preferences.day_reset_hour == 3


def test_state_survives_a_restart(settings, rice) -> None:
    store = InMemoryKeyValueStore()
    clock = FixedClock(datetime(2024, 5, 15, 12, tzinfo=UTC))
    catalog = DictFoodCatalog({"rice": rice})
    container = build_container(
        settings, store=store, clock=clock, food_catalog=catalog
    )
    entry = asyncio.run(
        container.meal_log_service.log_meal("1", [SelectedFood("rice", 100)])
    )

    restarted = build_container(
        settings, store=store, clock=clock, food_catalog=catalog
    )

    assert restarted.ledger.get_entry(entry.id) == entry


def test_weight_log_and_presets_are_loaded(settings, rice) -> None:
    store = InMemoryKeyValueStore()
    clock = FixedClock(datetime(2024, 5, 15, 12, tzinfo=UTC))
    catalog = DictFoodCatalog({"rice": rice})
    container = build_container(
        settings, store=store, clock=clock, food_catalog=catalog
    )
    entry = container.weight_log.add_entry(82.0)
    preset = asyncio.run(
        container.meal_log_service.create_preset("Rice", [SelectedFood("rice", 100)])
    )

    restarted = build_container(
        settings, store=store, clock=clock, food_catalog=catalog
    )

    assert restarted.weight_log.entries == (entry,)
    assert restarted.presets.presets == (preset,)
    assert restarted.meal_log_service.presets is restarted.presets
