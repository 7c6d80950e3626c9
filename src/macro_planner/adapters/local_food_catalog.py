"""Food catalog read from the device-local ``foods`` blob."""

import logging
from dataclasses import dataclass, field

from pydantic import ValidationError

from macro_planner.adapters.key_value_store import KeyValueStore
from macro_planner.adapters.storage_models import FOODS
from macro_planner.domain.nutrients import FoodNutrition
from macro_planner.services.nutrition import FoodCatalog

FOODS_KEY = "foods"

_logger = logging.getLogger(__name__)


@dataclass
class LocalFoodCatalog(FoodCatalog):
    """Looks foods up in the stored food list, loaded once on first use."""

    store: KeyValueStore
    _foods: dict[str, FoodNutrition] | None = field(default=None, init=False)

    async def get_food(self, food_id: str) -> FoodNutrition | None:
        return self.foods().get(food_id)

    def foods(self) -> dict[str, FoodNutrition]:
        """Return all stored foods by id."""
        if self._foods is None:
            self._foods = self._load()
        return self._foods

    def reload(self) -> None:
        self._foods = None

    def _load(self) -> dict[str, FoodNutrition]:
        try:
            raw = self.store.get(FOODS_KEY)
        except OSError:
            _logger.exception("Failed to read the food list")
            return {}
        if raw is None:
            _logger.info("No stored food list")
            return {}
        try:
            stored = FOODS.validate_json(raw)
        except ValidationError as exc:
            _logger.warning("Malformed food list (%s errors)", exc.error_count())
            return {}
        return {item.id: item.to_domain() for item in stored}
