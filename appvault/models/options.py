"""Backup selection — which optional state domains go into an archive."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any


@dataclass(frozen=True)
class BackupOptions:
    """
    Per-backup domain selection.

    Extra files, the database and the settings snapshot are always
    included and have no toggle.
    """

    include_certificates: bool = True
    include_signed_apps: bool = True
    include_imported_apps: bool = True
    include_sources: bool = True
    include_default_frameworks: bool = True
    include_archives: bool = True

    @classmethod
    def all(cls) -> BackupOptions:
        return cls()

    @classmethod
    def none(cls) -> BackupOptions:
        return cls(**{f.name: False for f in fields(cls)})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BackupOptions:
        """Build options from a dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: bool(v) for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, bool]:
        return asdict(self)
