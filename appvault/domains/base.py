"""Domain base class — one exporter/importer pair per category of app state.

Certificates, sources, apps, pass-through folders, the database and the
settings snapshot each implement ``Domain``. A domain holds only a reference
to the store interface it needs and keeps no state between calls.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Sequence

from loguru import logger

from appvault.core.errors import BackupIOError
from appvault.core.staging import copy_file
from appvault.models.records import MetadataRecord, dump_records
from appvault.models.results import DomainReport


class Domain(ABC):
    """Abstract base for a backup domain."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable identifier used in reports and logs (e.g. 'certificates')."""
        ...

    @abstractmethod
    def export(self, staging: Path) -> DomainReport:
        """Copy this domain's entities and metadata into ``staging``."""
        ...

    @abstractmethod
    def restore(self, staging: Path) -> DomainReport:
        """Re-materialize entities found in ``staging`` into the live store."""
        ...

    # ── Helpers ──

    @staticmethod
    def make_subdir(staging: Path, name: str) -> Path:
        directory = staging / name
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Could not create staging folder '{name}': {e}")
        return directory

    @staticmethod
    def copy_artifact(src: Path, dest: Path) -> bool:
        """Copy one artifact; ``False`` when the source does not exist."""
        if not src.is_file():
            return False
        copy_file(src, dest)
        return True

    @staticmethod
    def write_metadata(path: Path, records: Sequence[MetadataRecord]) -> None:
        try:
            dump_records(path, records)
        except (OSError, TypeError, ValueError) as e:
            raise BackupIOError(f"Could not write {path.name}: {e}") from e

    def __repr__(self) -> str:
        return f"<{type(self).__name__} '{self.name}'>"
