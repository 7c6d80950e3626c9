"""Shared test fixtures."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from itertools import count

import httpx
import pytest

from macro_planner.adapters.fdc_client import FdcClient
from macro_planner.adapters.key_value_store import KeyValueStore
from macro_planner.adapters.ledger_repository import KeyValueLedgerRepository
from macro_planner.adapters.preset_repository import KeyValuePresetRepository
from macro_planner.adapters.weight_repository import KeyValueWeightRepository
from macro_planner.app_logging import LOGGER_NAME
from macro_planner.config import Settings
from macro_planner.domain.nutrients import FoodNutrition, NutrientVector
from macro_planner.domain.profile import UserProfile
from macro_planner.services.ledger import MealLedger
from macro_planner.services.nutrition import FoodCatalog
from macro_planner.services.presets import PresetBook
from macro_planner.services.weight_log import WeightLog


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """In-memory key-value store for tests."""

    data: dict[str, str] = field(default_factory=dict)
    writes: list[str] = field(default_factory=list)
    fail_reads: bool = False
    fail_writes: bool = False

    def get(self, key: str) -> str | None:
        if self.fail_reads:
            raise OSError("read failed")
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        self.writes.append(key)
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


@dataclass
class FixedClock:
    """Clock that only moves when told to."""

    current: datetime

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


@dataclass
class FakeFdcClient(FdcClient):
    """FDC client returning canned payloads and recording calls."""

    foods: dict[int, dict[str, object]] = field(default_factory=dict)
    calls: list[int] = field(default_factory=list)
    failures: list[int] = field(default_factory=list)

    async def get_food(self, fdc_id: int) -> dict[str, object]:
        self.calls.append(fdc_id)
        request = httpx.Request("GET", f"https://fdc.test/food/{fdc_id}")
        if self.failures:
            status = self.failures.pop(0)
            response = httpx.Response(status, request=request)
            raise httpx.HTTPStatusError("error", request=request, response=response)
        if fdc_id not in self.foods:
            response = httpx.Response(404, request=request)
            raise httpx.HTTPStatusError("not found", request=request, response=response)
        return self.foods[fdc_id]


@dataclass
class DictFoodCatalog(FoodCatalog):
    """Food catalog backed by a plain dict."""

    foods: dict[str, FoodNutrition] = field(default_factory=dict)

    async def get_food(self, food_id: str) -> FoodNutrition | None:
        return self.foods.get(food_id)


def sequential_ids(prefix: str = "id"):
    counter = count(1)
    return lambda: f"{prefix}-{next(counter)}"


@pytest.fixture(autouse=True)
def package_logger():
    """Give each test the package logger as it found it."""
    logger = logging.getLogger(LOGGER_NAME)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def clock() -> FixedClock:
    # Wednesday, midday UTC.
    return FixedClock(datetime(2024, 5, 15, 12, 0, tzinfo=UTC))


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def ledger(clock: FixedClock, store: InMemoryKeyValueStore) -> MealLedger:
    ledger = MealLedger(
        clock=clock,
        repository=KeyValueLedgerRepository(store),
        id_factory=sequential_ids("entry"),
    )
    ledger.load()
    return ledger


@pytest.fixture
def presets(clock: FixedClock, store: InMemoryKeyValueStore) -> PresetBook:
    book = PresetBook(
        clock=clock,
        repository=KeyValuePresetRepository(store),
        id_factory=sequential_ids("preset"),
    )
    book.load()
    return book


@pytest.fixture
def weight_log(clock: FixedClock, store: InMemoryKeyValueStore) -> WeightLog:
    log = WeightLog(
        clock=clock,
        repository=KeyValueWeightRepository(store),
        id_factory=sequential_ids("weight"),
    )
    log.load()
    return log


@pytest.fixture
def chicken() -> FoodNutrition:
    return FoodNutrition(
        food_id="chicken",
        name="Chicken breast",
        per_100g=NutrientVector(
            calories=165, protein=31, fat=3.6, saturated_fat=1, iron=1, sodium=74
        ),
    )


@pytest.fixture
def rice() -> FoodNutrition:
    return FoodNutrition(
        food_id="rice",
        name="White rice",
        per_100g=NutrientVector(calories=130, protein=2.7, carbs=28, fiber=0.4),
    )


@pytest.fixture
def fish_oil() -> FoodNutrition:
    return FoodNutrition(
        food_id="fish-oil",
        name="Fish oil",
        per_100g=NutrientVector(calories=10, fat=1, omega3=0.5),
        category="supplements",
    )


@pytest.fixture
def complete_profile() -> UserProfile:
    return UserProfile(
        age=28,
        gender="male",
        weight_kg=80,
        height_cm=185,
        body_fat_pct=18,
        activity_level="very_active",
        goal="cutting",
        meals_per_day=5,
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        data_dir=tmp_path / "data",
        timezone="UTC",
        fdc_api_key=None,
    )
