"""Key-value storage for persisted JSON blobs."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

_logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Device-local storage of opaque JSON strings."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""

    def set(self, key: str, value: str) -> None:
        """Store a value under a key."""

    def remove(self, key: str) -> None:
        """Delete a key if present."""


@dataclass
class JsonFileKeyValueStore(KeyValueStore):
    """Stores each key as ``<root>/<key>.json``."""

    root: Path

    def get(self, key: str) -> str | None:
        """Read a blob from disk."""
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        """Write a blob atomically."""
        self.root.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def remove(self, key: str) -> None:
        """Delete a blob."""
        self._path(key).unlink(missing_ok=True)
        _logger.info("Removed stored key %s", key)

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"
