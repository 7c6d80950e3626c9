"""Key-value backed repository for user settings."""

import logging
from dataclasses import dataclass

from pydantic import ValidationError

from macro_planner.adapters.key_value_store import KeyValueStore
from macro_planner.adapters.storage_models import StoredSettings
from macro_planner.domain.preferences import SettingsSnapshot
from macro_planner.services.settings_store import SettingsRepository

APP_SETTINGS_KEY = "appSettings"

_logger = logging.getLogger(__name__)


@dataclass
class KeyValueSettingsRepository(SettingsRepository):
    """Stores the settings snapshot as one JSON blob."""

    store: KeyValueStore

    def load(self, default: SettingsSnapshot) -> SettingsSnapshot:
        """Read settings, falling back to ``default``."""
        try:
            raw = self.store.get(APP_SETTINGS_KEY)
        except OSError:
            _logger.exception("Failed to read settings, using defaults")
            return default
        if raw is None:
            return default
        try:
            stored = StoredSettings.model_validate_json(raw)
        except ValidationError as exc:
            _logger.warning(
                "Malformed settings blob, using defaults (%s errors)", exc.error_count()
            )
            return default
        return stored.to_domain(default.preferences)

    def save(self, snapshot: SettingsSnapshot) -> None:
        """Write settings; failures are logged."""
        payload = StoredSettings.from_domain(snapshot).model_dump_json(by_alias=True)
        try:
            self.store.set(APP_SETTINGS_KEY, payload)
        except OSError:
            _logger.exception("Failed to persist settings")
