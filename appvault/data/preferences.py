"""Preference store — flat key/value settings persisted as a property list."""

from __future__ import annotations

import copy
import plistlib
import threading
from pathlib import Path
from typing import Any

from loguru import logger


class Preferences:
    """
    Key/value preference store backed by ``preferences.plist``.

    Values must be property-list types. Setting a key to ``None`` removes it.
    Changes are buffered until ``synchronize()``.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._values: dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            with open(self._path, "rb") as f:
                data = plistlib.load(f)
            if isinstance(data, dict):
                self._values = data
            else:
                logger.warning(f"Ignoring non-dictionary preferences file: {self._path}")
        except (plistlib.InvalidFileException, ValueError, OSError) as e:
            logger.warning(f"Failed to load preferences, starting empty: {e}")

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._values)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._values.get(key, default)

    def set_value(self, key: str, value: Any) -> None:
        with self._lock:
            if value is None:
                self._values.pop(key, None)
            else:
                self._values[key] = value

    def synchronize(self) -> None:
        """Persist buffered changes atomically."""
        with self._lock:
            data = dict(self._values)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        try:
            with open(tmp, "wb") as f:
                plistlib.dump(data, f, fmt=plistlib.FMT_XML)
            tmp.replace(self._path)
        except (OSError, TypeError, OverflowError) as e:
            logger.error(f"Failed to save preferences: {e}")
            tmp.unlink(missing_ok=True)
