"""Small-value tier — synchronous string map backed by QSettings.

Holds the project registry index, the current-project pointer, and
(read-only) values left behind by older storage generations. Like the
bulk tier it never raises: failed reads are ``None``, failed writes
``False``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from PyQt6.QtCore import QSettings

from deductive_design.constants import SETTINGS_FILENAME

logger = logging.getLogger(__name__)


class SettingsStore:
    """String → string store in an INI file."""

    def __init__(self, path: Path | str | None = None):
        if path is None:
            path = Path.cwd() / SETTINGS_FILENAME
        self._path = Path(path)
        self._settings = QSettings(str(self._path), QSettings.Format.IniFormat)

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> str | None:
        """Return the stored string, or None if absent or not a string."""
        try:
            value = self._settings.value(key)
        except Exception:
            logger.warning("Failed to read setting %s", key, exc_info=True)
            return None
        if value is None:
            return None
        if not isinstance(value, str):
            logger.warning("Ignoring non-string setting %s (%s)", key, type(value).__name__)
            return None
        return value

    def set(self, key: str, value: str) -> bool:
        """Store a string value and sync to disk."""
        try:
            self._settings.setValue(key, value)
        except Exception:
            logger.warning("Failed to write setting %s", key, exc_info=True)
            return False
        return self.sync()

    def delete(self, key: str) -> bool:
        """Remove a key; absent keys are not an error."""
        try:
            self._settings.remove(key)
        except Exception:
            logger.warning("Failed to delete setting %s", key, exc_info=True)
            return False
        return self.sync()

    def contains(self, key: str) -> bool:
        try:
            return self._settings.contains(key)
        except Exception:
            logger.warning("Failed to query setting %s", key, exc_info=True)
            return False

    def keys(self) -> list[str]:
        try:
            return list(self._settings.allKeys())
        except Exception:
            logger.warning("Failed to list settings", exc_info=True)
            return []

    def get_json(self, key: str) -> Any | None:
        """Decode a JSON-valued setting. Corrupt JSON reads as None."""
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding corrupt JSON setting %s", key, exc_info=True)
            return None

    def set_json(self, key: str, value: Any) -> bool:
        try:
            raw = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError):
            logger.warning("Setting %s is not JSON-serializable", key, exc_info=True)
            return False
        return self.set(key, raw)

    def sync(self) -> bool:
        """Flush to disk. Returns False if QSettings reports an error."""
        try:
            self._settings.sync()
            status = self._settings.status()
        except Exception:
            logger.warning("Failed to sync settings %s", self._path, exc_info=True)
            return False
        if status != QSettings.Status.NoError:
            logger.warning("Settings %s not written: %s", self._path, status)
            return False
        return True
