"""Engine settings persisted as ``config.json`` in the data directory."""

from __future__ import annotations

import copy
import json
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from loguru import logger

from appvault.models.options import BackupOptions

CONFIG_FILE = "config.json"
DATA_DIR_ENV = "APPVAULT_HOME"

_DEFAULTS: dict[str, Any] = {
    "language": "en_US",
    "log_level": "INFO",
    "documents_dir": "",
    "backup_path": "",
    # seconds
    "restart_delay": 0.5,
    "backup_defaults": BackupOptions().to_dict(),
}

_instance: Config | None = None


def default_data_dir() -> Path:
    override = os.environ.get(DATA_DIR_ENV)
    return Path(override) if override else Path.home() / "Documents" / "AppVault"


def get_config() -> Config:
    """Process-wide Config, created on first use."""
    global _instance
    if _instance is None:
        _instance = Config()
    return _instance


def reset_config() -> None:
    """Forget the process-wide Config (tests)."""
    global _instance
    _instance = None


def _merged(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Copy of ``base`` with ``override`` applied; nested dicts merge key by key."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = _merged(result[key], value)
        else:
            result[key] = value
    return result


class Config:
    """
    Defaults overlaid with the user's ``config.json``.

    Every ``set`` is written through atomically unless it happens inside
    ``batch_update()``, which writes once on exit. Batches may nest.
    """

    def __init__(self, data_dir: Path | None = None) -> None:
        self._dir = Path(data_dir) if data_dir else default_data_dir()
        self._lock = threading.RLock()
        self._batch_depth = 0
        self._values = self._read()

    @property
    def path(self) -> Path:
        return self._dir / CONFIG_FILE

    def _read(self) -> dict[str, Any]:
        if not self.path.is_file():
            return copy.deepcopy(_DEFAULTS)
        try:
            with open(self.path, encoding="utf-8") as f:
                stored = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable {self.path.name}: {e}")
            return copy.deepcopy(_DEFAULTS)
        if not isinstance(stored, dict):
            logger.warning(f"Ignoring {self.path.name}: top level is not an object")
            return copy.deepcopy(_DEFAULTS)
        return _merged(_DEFAULTS, stored)

    def _write(self) -> None:
        with self._lock:
            if self._batch_depth:
                return
            tmp = self.path.with_name(f"{CONFIG_FILE}.tmp")
            try:
                self._dir.mkdir(parents=True, exist_ok=True)
                tmp.write_text(json.dumps(self._values, ensure_ascii=False, indent=2), encoding="utf-8")
                tmp.replace(self.path)
            except OSError as e:
                logger.error(f"Could not save {self.path}: {e}")
                tmp.unlink(missing_ok=True)

    def reload(self) -> None:
        with self._lock:
            self._values = self._read()

    @contextmanager
    def batch_update(self) -> Iterator[Config]:
        """Group several ``set`` calls into a single write."""
        with self._lock:
            self._batch_depth += 1
        try:
            yield self
        finally:
            with self._lock:
                self._batch_depth -= 1
            self._write()

    def get(self, key: str, default: Any = None) -> Any:
        """Value at a dotted path such as ``backup_defaults.include_sources``."""
        node: Any = self._values
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        *parents, leaf = key.split(".")
        with self._lock:
            node = self._values
            for part in parents:
                child = node.get(part)
                if not isinstance(child, dict):
                    child = node[part] = {}
                node = child
            node[leaf] = value
        self._write()

    # ── Typed accessors ──

    @property
    def data_dir(self) -> Path:
        return self._dir

    @property
    def documents_dir(self) -> Path:
        """Root of the live application state. Defaults to ``<data_dir>/Documents``."""
        raw = self.get("documents_dir")
        return Path(raw) if raw else self._dir / "Documents"

    @documents_dir.setter
    def documents_dir(self, value: Path | None) -> None:
        self.set("documents_dir", str(value) if value else "")

    @property
    def language(self) -> str:
        return self.get("language") or _DEFAULTS["language"]

    @language.setter
    def language(self, value: str) -> None:
        self.set("language", value)

    @property
    def log_level(self) -> str:
        return str(self.get("log_level") or "INFO").upper()

    @property
    def backup_path(self) -> Path | None:
        """Where new archives go; ``None`` means ``<data_dir>/backups``."""
        raw = self.get("backup_path")
        return Path(raw) if raw else None

    @backup_path.setter
    def backup_path(self, value: Path | None) -> None:
        self.set("backup_path", str(value) if value else "")

    @property
    def restart_delay(self) -> float:
        try:
            return max(0.0, float(self.get("restart_delay", _DEFAULTS["restart_delay"])))
        except (TypeError, ValueError):
            return _DEFAULTS["restart_delay"]

    @property
    def backup_defaults(self) -> BackupOptions:
        stored = self.get("backup_defaults")
        return BackupOptions.from_dict(stored if isinstance(stored, dict) else {})

    @backup_defaults.setter
    def backup_defaults(self, value: BackupOptions) -> None:
        self.set("backup_defaults", value.to_dict())
