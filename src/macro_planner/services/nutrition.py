"""Food lookups backed by USDA FoodData Central."""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

import httpx

from macro_planner.adapters.fdc_client import FdcClient
from macro_planner.domain.nutrients import FoodNutrition, NutrientVector
from macro_planner.services.cache import Cache

# FDC nutrient numbers, per 100 g.
_NUTRIENT_IDS = {
    "calories": 1008,
    "protein": 1003,
    "fat": 1004,
    "carbs": 1005,
    "fiber": 1079,
    "sugar": 2000,
    "added_sugars": 1235,
    "saturated_fat": 1258,
    "monounsaturated_fat": 1292,
    "polyunsaturated_fat": 1293,
    "trans_fat": 1257,
    "iron": 1089,
    "calcium": 1087,
    "zinc": 1095,
    "magnesium": 1090,
    "sodium": 1093,
    "potassium": 1092,
    "vitamin_b6": 1175,
    "vitamin_b12": 1178,
    "vitamin_c": 1162,
    "vitamin_d": 1114,
}
# ALA, EPA and DHA.
_OMEGA3_IDS = (1404, 1278, 1272)
_NOT_FOUND = 404

_logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


class FoodCatalog(Protocol):
    """Source of per-100 g nutrition facts by food id."""

    async def get_food(self, food_id: str) -> FoodNutrition | None:
        """Return a food, or None when it is unknown."""


@dataclass
class FoodLookupService(FoodCatalog):
    """FDC-backed food catalog with caching and a short retry."""

    fdc_client: FdcClient
    cache: Cache
    food_ttl_seconds: int = 86400
    debug: bool = False
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def get_food(self, food_id: str) -> FoodNutrition | None:
        """Return nutrition facts for an FDC id.

        Non-numeric ids and ids FDC does not know return None. Other HTTP
        errors are raised after the retry.
        """
        if not food_id.isdigit():
            _logger.warning("Not an FDC id: %s", food_id)
            return None

        cache_key = f"fdc:food:{food_id}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, FoodNutrition):
            return cached

        try:
            payload = await self._call_with_retry(
                lambda: self.fdc_client.get_food(int(food_id)),
                action=f"get_food:{food_id}",
            )
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == _NOT_FOUND:
                _logger.info("FDC food %s not found", food_id)
                return None
            raise

        food = FoodNutrition(
            food_id=str(payload.get("fdcId", food_id)),
            name=str(payload.get("description", "")),
            per_100g=extract_nutrients(payload.get("foodNutrients", [])),
        )
        self.cache.set(cache_key, food, ttl_seconds=self.food_ttl_seconds)
        if self.debug:
            _logger.info("Nutrition food FDC: fdc_id=%s", food_id)
        return food

    async def _call_with_retry(
        self, func: "Callable[[], Awaitable[dict[str, object]]]", *, action: str
    ) -> dict[str, object]:
        attempt = 0
        while True:
            try:
                return await func()
            except httpx.HTTPError as exc:
                status_code = _status_code_from_exception(exc)
                if status_code == str(_NOT_FOUND):
                    raise
                attempt += 1
                if self.debug:
                    _logger.warning(
                        "Nutrition %s failed (attempt %s/%s, status=%s): %s",
                        action,
                        attempt,
                        self.retry_attempts + 1,
                        status_code,
                        exc,
                    )
                if attempt > self.retry_attempts:
                    raise
                await asyncio.sleep(self.retry_delay_seconds)


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"


def extract_nutrients(food_nutrients: list[dict[str, object]]) -> NutrientVector:
    """Map FDC ``foodNutrients`` rows onto a nutrient vector.

    Natural sugars are total sugars minus added sugars.
    """
    by_id: dict[int, float] = {}
    for nutrient in food_nutrients:
        nutrient_info = nutrient.get("nutrient") or {}
        nutrient_id = nutrient_info.get("id") or nutrient.get("nutrientId")
        amount = nutrient.get("amount")
        if amount is None:
            amount = nutrient.get("value")
        if isinstance(nutrient_id, int) and isinstance(amount, int | float):
            by_id[nutrient_id] = float(amount)

    values = {
        name: by_id.get(nutrient_id, 0.0) for name, nutrient_id in _NUTRIENT_IDS.items()
    }
    values["omega3"] = sum(by_id.get(nutrient_id, 0.0) for nutrient_id in _OMEGA3_IDS)
    values["natural_sugars"] = max(values["sugar"] - values["added_sugars"], 0.0)
    return NutrientVector(**values)
