"""Meal preset book: create, edit, search and track usage."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from typing import Protocol
from uuid import uuid4

from macro_planner.domain.meals import SelectedFood
from macro_planner.domain.nutrients import NutrientVector
from macro_planner.domain.presets import MealPreset
from macro_planner.services.clock import Clock

_logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid4())


class PresetRepository(Protocol):
    """Persistence interface for meal presets."""

    def load(self) -> tuple[MealPreset, ...]:
        """Return the stored presets, or none."""

    def save(self, presets: tuple[MealPreset, ...]) -> None:
        """Persist every preset."""


@dataclass
class PresetBook:
    """Holds the user's meal presets and writes every change through."""

    clock: Clock
    repository: PresetRepository
    id_factory: Callable[[], str] = _new_id
    presets: tuple[MealPreset, ...] = field(default=(), init=False)

    def load(self) -> None:
        self.presets = self.repository.load()
        _logger.info("Loaded %s meal presets", len(self.presets))

    def create_preset(
        self,
        name: str,
        foods: Iterable[SelectedFood],
        calculated_macros: NutrientVector,
    ) -> MealPreset:
        """Save portions under a name; blank names raise ``ValueError``."""
        cleaned = _clean_name(name)
        now = self.clock.now()
        preset = MealPreset(
            id=self.id_factory(),
            name=cleaned,
            foods=tuple(foods),
            calculated_macros=calculated_macros,
            created_at=now,
            last_used=now,
        )
        self._commit((*self.presets, preset))
        return preset

    def update_preset(
        self,
        preset_id: str,
        *,
        name: str | None = None,
        foods: Iterable[SelectedFood] | None = None,
        calculated_macros: NutrientVector | None = None,
    ) -> MealPreset | None:
        """Edit a preset and mark it used; None when it does not exist."""
        current = self.get_preset(preset_id)
        if current is None:
            return None
        updated = replace(
            current,
            name=current.name if name is None else _clean_name(name),
            foods=current.foods if foods is None else tuple(foods),
            calculated_macros=(
                current.calculated_macros
                if calculated_macros is None
                else calculated_macros
            ),
            last_used=self.clock.now(),
        )
        self._replace(updated)
        return updated

    def delete_preset(self, preset_id: str) -> bool:
        if self.get_preset(preset_id) is None:
            return False
        self._commit(tuple(item for item in self.presets if item.id != preset_id))
        return True

    def mark_used(self, preset_id: str) -> MealPreset | None:
        current = self.get_preset(preset_id)
        if current is None:
            return None
        updated = replace(current, last_used=self.clock.now())
        self._replace(updated)
        return updated

    def get_preset(self, preset_id: str) -> MealPreset | None:
        for preset in self.presets:
            if preset.id == preset_id:
                return preset
        return None

    def by_usage(self) -> list[MealPreset]:
        """Most recently used first."""
        return sorted(self.presets, key=lambda preset: preset.last_used, reverse=True)

    def by_name(self) -> list[MealPreset]:
        return sorted(self.presets, key=lambda preset: preset.name.casefold())

    def search(self, query: str) -> list[MealPreset]:
        """Case-insensitive name match; a blank query returns everything."""
        needle = query.strip().casefold()
        if not needle:
            return list(self.presets)
        return [preset for preset in self.presets if needle in preset.name.casefold()]

    def _replace(self, updated: MealPreset) -> None:
        self._commit(
            tuple(
                updated if preset.id == updated.id else preset
                for preset in self.presets
            )
        )

    def _commit(self, presets: tuple[MealPreset, ...]) -> None:
        self.presets = presets
        self.repository.save(presets)


def _clean_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        raise ValueError("Preset name cannot be empty")
    return cleaned
