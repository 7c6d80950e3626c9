"""Key-value backed repository for meal presets."""

import logging
from dataclasses import dataclass

from pydantic import ValidationError

from macro_planner.adapters.key_value_store import KeyValueStore
from macro_planner.adapters.storage_models import MEAL_PRESETS, StoredMealPreset
from macro_planner.domain.presets import MealPreset
from macro_planner.services.presets import PresetRepository

MEAL_PRESETS_KEY = "meal_presets"

_logger = logging.getLogger(__name__)


@dataclass
class KeyValuePresetRepository(PresetRepository):
    store: KeyValueStore

    def load(self) -> tuple[MealPreset, ...]:
        """Read presets; a missing or corrupt blob reads as none."""
        try:
            raw = self.store.get(MEAL_PRESETS_KEY)
        except OSError:
            _logger.exception("Failed to read meal presets")
            return ()
        if raw is None:
            return ()
        try:
            stored = MEAL_PRESETS.validate_json(raw)
        except ValidationError as exc:
            _logger.warning(
                "Malformed meal presets blob, ignoring it (%s errors)",
                exc.error_count(),
            )
            return ()
        return tuple(item.to_domain() for item in stored)

    def save(self, presets: tuple[MealPreset, ...]) -> None:
        payload = MEAL_PRESETS.dump_json(
            [StoredMealPreset.from_domain(preset) for preset in presets], by_alias=True
        ).decode()
        try:
            self.store.set(MEAL_PRESETS_KEY, payload)
        except OSError:
            _logger.exception("Failed to persist meal presets")
