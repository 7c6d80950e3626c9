"""Key-value backed repository for weigh-ins and weight settings."""

import logging
from dataclasses import dataclass
from datetime import datetime

from pydantic import ValidationError

from macro_planner.adapters.key_value_store import KeyValueStore
from macro_planner.adapters.storage_models import (
    WEIGHT_ENTRIES,
    StoredWeightEntry,
    StoredWeightSettings,
)
from macro_planner.domain.weight import WeightSnapshot
from macro_planner.services.weight_log import WeightRepository

WEIGHT_ENTRIES_KEY = "weightEntries"
WEIGHT_SETTINGS_KEY = "weightSettings"
LAST_ADJUSTMENT_KEY = "lastMacroAdjustment"

_logger = logging.getLogger(__name__)


@dataclass
class KeyValueWeightRepository(WeightRepository):
    """Stores entries, settings and the last adjustment time under own keys."""

    store: KeyValueStore

    def load(self, default: WeightSnapshot) -> WeightSnapshot:
        """Read the snapshot, using ``default`` for missing or bad keys."""
        entries = default.entries
        raw = self._get(WEIGHT_ENTRIES_KEY)
        if raw is not None:
            try:
                entries = tuple(
                    item.to_domain() for item in WEIGHT_ENTRIES.validate_json(raw)
                )
            except ValidationError as exc:
                self._malformed(WEIGHT_ENTRIES_KEY, exc)

        settings = default.settings
        raw = self._get(WEIGHT_SETTINGS_KEY)
        if raw is not None:
            try:
                settings = StoredWeightSettings.model_validate_json(raw).to_domain()
            except ValidationError as exc:
                self._malformed(WEIGHT_SETTINGS_KEY, exc)

        last_adjustment = default.last_adjustment
        raw = self._get(LAST_ADJUSTMENT_KEY)
        if raw is not None:
            try:
                last_adjustment = datetime.fromisoformat(raw.strip().strip('"'))
            except ValueError:
                _logger.warning("Malformed %s value, ignoring it", LAST_ADJUSTMENT_KEY)
        return WeightSnapshot(
            entries=entries, settings=settings, last_adjustment=last_adjustment
        )

    def save(self, snapshot: WeightSnapshot) -> None:
        """Write every key; failures are logged."""
        self._set(
            WEIGHT_ENTRIES_KEY,
            WEIGHT_ENTRIES.dump_json(
                [StoredWeightEntry.from_domain(entry) for entry in snapshot.entries],
                by_alias=True,
            ).decode(),
        )
        self._set(
            WEIGHT_SETTINGS_KEY,
            StoredWeightSettings.from_domain(snapshot.settings).model_dump_json(
                by_alias=True
            ),
        )
        if snapshot.last_adjustment is not None:
            self._set(LAST_ADJUSTMENT_KEY, snapshot.last_adjustment.isoformat())

    def _get(self, key: str) -> str | None:
        try:
            return self.store.get(key)
        except OSError:
            _logger.exception("Failed to read %s, using defaults", key)
            return None

    def _set(self, key: str, value: str) -> None:
        try:
            self.store.set(key, value)
        except OSError:
            _logger.exception("Failed to persist %s", key)

    def _malformed(self, key: str, exc: ValidationError) -> None:
        _logger.warning(
            "Malformed %s blob, using defaults (%s errors)", key, exc.error_count()
        )
