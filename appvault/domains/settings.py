"""Settings domain — filtered snapshot of the preference store."""

from __future__ import annotations

import plistlib
from pathlib import Path
from typing import Any
from xml.parsers.expat import ExpatError

from appvault.core.errors import BackupIOError
from appvault.core.marker import SETTINGS_FILE
from appvault.data.protocols import PreferenceStore
from appvault.domains.base import Domain
from appvault.models.results import DomainReport

# Keys owned by the operating system and its frameworks
RESERVED_PREFIXES = ("NS", "AK", "Apple", "WebKit", "CPU", "metal")


def is_reserved_key(key: str) -> bool:
    return key.startswith(RESERVED_PREFIXES)


def filter_settings(values: dict[str, Any]) -> dict[str, Any]:
    """Drop platform-reserved keys and values a property list cannot hold."""
    return {
        key: value
        for key, value in values.items()
        if isinstance(key, str) and not is_reserved_key(key) and value is not None
    }


class SettingsDomain(Domain):
    def __init__(self, preferences: PreferenceStore) -> None:
        self._preferences = preferences

    @property
    def name(self) -> str:
        return "settings"

    def export(self, staging: Path) -> DomainReport:
        report = DomainReport(self.name)
        values = filter_settings(self._preferences.snapshot())
        try:
            with open(staging / SETTINGS_FILE, "wb") as f:
                plistlib.dump(values, f, fmt=plistlib.FMT_XML)
        except (OSError, TypeError, OverflowError) as e:
            raise BackupIOError(f"Could not write {SETTINGS_FILE}: {e}") from e

        for key in values:
            report.success(key)
        return report

    def restore(self, staging: Path) -> DomainReport:
        report = DomainReport(self.name)
        path = staging / SETTINGS_FILE
        if not path.is_file():
            return report

        try:
            with open(path, "rb") as f:
                values = plistlib.load(f)
        except (plistlib.InvalidFileException, ExpatError, ValueError, OSError) as e:
            report.failure(SETTINGS_FILE, f"unreadable settings snapshot: {e}")
            return report
        if not isinstance(values, dict):
            report.failure(SETTINGS_FILE, "settings snapshot is not a dictionary")
            return report

        for key, value in values.items():
            if is_reserved_key(key):
                report.failure(key, "platform-reserved key")
                continue
            try:
                self._preferences.set_value(key, value)
            except Exception as e:
                report.failure(key, str(e))
                continue
            report.success(key)

        self._preferences.synchronize()
        return report
