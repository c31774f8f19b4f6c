"""Database domain — the SQLite store file and its WAL/SHM sidecars as one unit."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from appvault.core.errors import BackupIOError
from appvault.core.staging import copy_file
from appvault.data.protocols import DatabaseLocator
from appvault.domains.base import Domain
from appvault.i18n import t
from appvault.models.results import DomainReport

DATABASE_DIR = "database"
SIDECAR_SUFFIXES = ("-shm", "-wal")


def store_files(store_path: Path) -> list[str]:
    """Primary store file name followed by its sidecar names."""
    base = store_path.name
    return [base, *(f"{base}{suffix}" for suffix in SIDECAR_SUFFIXES)]


class DatabaseDomain(Domain):
    """
    Whole-file snapshot of the relational store.

    Restoring overwrites the live files, so no connection may be open on
    the store at that point and the host must relaunch afterwards.
    """

    def __init__(self, locator: DatabaseLocator) -> None:
        self._locator = locator

    @property
    def name(self) -> str:
        return "database"

    def _store_path(self) -> Path:
        path = self._locator.database_path
        if path is None:
            raise BackupIOError(t("backup.err_no_database"))
        return path

    def export(self, staging: Path) -> DomainReport:
        return self.export_to(self.make_subdir(staging, DATABASE_DIR))

    def export_to(self, target: Path) -> DomainReport:
        """Copy the store files into ``target`` (used for database-only exports)."""
        store_path = self._store_path()
        report = DomainReport(self.name)
        for file_name in store_files(store_path):
            try:
                if self.copy_artifact(store_path.parent / file_name, target / file_name):
                    report.success(file_name)
            except OSError as e:
                report.failure(file_name, str(e))
        return report

    def restore(self, staging: Path) -> DomainReport:
        report = DomainReport(self.name)
        source = staging / DATABASE_DIR
        if not source.is_dir():
            return report

        store_path = self._store_path()
        names = store_files(store_path)
        primary_restored = False
        for file_name in names:
            src = source / file_name
            if not src.is_file():
                continue
            try:
                copy_file(src, store_path.parent / file_name)
            except OSError as e:
                report.failure(file_name, str(e))
                continue
            report.success(file_name)
            primary_restored = primary_restored or file_name == names[0]

        # Sidecars left over from the replaced store would corrupt the new one
        if primary_restored:
            for file_name in names[1:]:
                if not (source / file_name).exists():
                    stale = store_path.parent / file_name
                    try:
                        stale.unlink(missing_ok=True)
                    except OSError as e:
                        logger.warning(f"Could not remove stale {file_name}: {e}")
        return report
