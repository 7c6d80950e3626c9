"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from macro_planner.adapters.fdc_client import HttpxFdcClient
from macro_planner.adapters.key_value_store import JsonFileKeyValueStore, KeyValueStore
from macro_planner.adapters.ledger_repository import KeyValueLedgerRepository
from macro_planner.adapters.local_food_catalog import LocalFoodCatalog
from macro_planner.adapters.preset_repository import KeyValuePresetRepository
from macro_planner.adapters.settings_repository import KeyValueSettingsRepository
from macro_planner.adapters.weight_repository import KeyValueWeightRepository
from macro_planner.app_logging import configure_logging
from macro_planner.config import Settings, default_preferences
from macro_planner.services.cache import InMemoryCache
from macro_planner.services.clock import Clock, SystemClock
from macro_planner.services.ledger import MealLedger
from macro_planner.services.meals import MealLogService
from macro_planner.services.nutrition import FoodCatalog, FoodLookupService
from macro_planner.services.presets import PresetBook
from macro_planner.services.scheduler import LifecycleRunner
from macro_planner.services.settings_store import SettingsStore
from macro_planner.services.weight_log import WeightLog

_HOUR_SECONDS = 3600


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    store: KeyValueStore
    clock: Clock
    ledger: MealLedger
    settings_store: SettingsStore
    food_catalog: FoodCatalog
    weight_log: WeightLog
    presets: PresetBook
    meal_log_service: MealLogService
    lifecycle_runner: LifecycleRunner
    close_resources: Callable[[], Awaitable[None]]


def build_container(
    settings: Settings | None = None,
    *,
    store: KeyValueStore | None = None,
    clock: Clock | None = None,
    food_catalog: FoodCatalog | None = None,
) -> AppContainer:
    """Create the default dependency container and load persisted state."""
    resolved_settings = settings or Settings()
    configure_logging(logging.DEBUG if resolved_settings.debug else logging.INFO)
    resolved_store = store or JsonFileKeyValueStore(resolved_settings.data_dir)
    resolved_clock = clock or SystemClock(timezone_name=resolved_settings.timezone)
    preferences = default_preferences(resolved_settings)

    ledger = MealLedger(
        clock=resolved_clock,
        repository=KeyValueLedgerRepository(resolved_store),
        preferences=preferences,
        archive_after_days=resolved_settings.archive_after_days,
    )
    ledger.load()

    settings_store = SettingsStore(
        repository=KeyValueSettingsRepository(resolved_store),
        default_preferences=preferences,
    )
    settings_store.on_preferences_changed(ledger.update_preferences)
    settings_store.on_targets_changed(ledger.apply_personalized_targets)
    settings_store.load()
    ledger.targets = settings_store.targets

    fdc_client: HttpxFdcClient | None = None
    if food_catalog is None:
        if resolved_settings.fdc_api_key:
            fdc_client = HttpxFdcClient.create(
                api_key=resolved_settings.fdc_api_key,
                base_url=resolved_settings.fdc_base_url,
            )
            food_catalog = FoodLookupService(
                fdc_client=fdc_client,
                cache=InMemoryCache(),
                debug=resolved_settings.debug,
            )
        else:
            food_catalog = LocalFoodCatalog(resolved_store)

    weight_log = WeightLog(
        clock=resolved_clock, repository=KeyValueWeightRepository(resolved_store)
    )
    weight_log.load()
    presets = PresetBook(
        clock=resolved_clock, repository=KeyValuePresetRepository(resolved_store)
    )
    presets.load()

    meal_log_service = MealLogService(
        catalog=food_catalog, ledger=ledger, presets=presets
    )
    lifecycle_runner = LifecycleRunner(
        ledger=ledger,
        interval_seconds=resolved_settings.lifecycle_interval_hours * _HOUR_SECONDS,
    )

    async def close_resources() -> None:
        if fdc_client is not None:
            await fdc_client.close()

    return AppContainer(
        settings=resolved_settings,
        store=resolved_store,
        clock=resolved_clock,
        ledger=ledger,
        settings_store=settings_store,
        food_catalog=food_catalog,
        weight_log=weight_log,
        presets=presets,
        meal_log_service=meal_log_service,
        lifecycle_runner=lifecycle_runner,
        close_resources=close_resources,
    )
