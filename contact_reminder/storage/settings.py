"""
Lightweight key-value settings store.

Settings live in a small JSON object file (settings.json) in the config
directory, separate from the contact cache:

    {
        "groupOrder": ["contactGroups/family", "contactGroups/friends"]
    }

Writes replace the whole file atomically, so a reader never sees a partly
written document and concurrent writers resolve as last-writer-wins.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

from contact_reminder.errors import StorageFailure

logger = logging.getLogger(__name__)


class SettingsStore:
    """
    JSON-backed settings keyed by string.

    Usage:
        settings = SettingsStore("~/.contact-reminder/settings.json")
        settings.set("groupOrder", ["contactGroups/a", "contactGroups/b"])
        settings.get("groupOrder", [])
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

    def load(self) -> dict[str, Any]:
        """
        Read every setting.

        Returns an empty mapping if the file doesn't exist.

        Raises:
            StorageFailure: If the file exists but cannot be read or parsed
        """
        if not self.path.exists():
            logger.debug(f"Settings file not found: {self.path}, using defaults")
            return {}

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageFailure(
                f"Failed to parse settings JSON at {self.path}: {e}"
            ) from e
        except OSError as e:
            raise StorageFailure(f"Failed to read settings file: {e}") from e

        if not isinstance(data, dict):
            raise StorageFailure(
                f"Settings file must contain a JSON object, got {type(data).__name__}"
            )
        return data

    def get(self, key: str, default: Any = None) -> Any:
        """Read one setting, or default if it is not set."""
        return self.load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        """
        Write one setting, keeping the others.

        Raises:
            StorageFailure: If the file cannot be written
        """
        with self._lock:
            try:
                data = self.load()
            except StorageFailure as e:
                logger.warning(f"{e}; starting from empty settings")
                data = {}
            data[key] = value
            self._write(data)

    def _write(self, data: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, mode=0o700, exist_ok=True)

            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                    f.write("\n")
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise

        except (OSError, TypeError) as e:
            raise StorageFailure(f"Failed to write settings file: {e}") from e

        logger.debug(f"Saved settings to {self.path}")
