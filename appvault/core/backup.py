"""Backup manager — package selected app-state domains into a single ZIP archive."""

from __future__ import annotations

import sqlite3
import time
from pathlib import Path
from typing import TYPE_CHECKING
from uuid import uuid4

from loguru import logger

from appvault.core.errors import BackupError, BackupIOError
from appvault.core.marker import write_marker
from appvault.core.registry import log_report
from appvault.core.staging import compress_directory, staging_directory
from appvault.models.options import BackupOptions
from appvault.models.results import BackupResult, DomainReport

if TYPE_CHECKING:
    from appvault.config import Config
    from appvault.core.registry import DomainSet

BACKUP_PREFIX = "AppVaultBackup"
DATABASE_BACKUP_PREFIX = "AppVaultDatabaseBackup"


class BackupManager:
    """
    Archive packager.

    Archive layout (root-flattened)::

        PORTAL_BACKUP_MARKER.txt
        settings.plist
        certificates_metadata.json   certificates/{uuid}.p12|.mobileprovision
        sources.json
        signed_apps.json             signed_apps/{uuid}.ipa
        imported_apps.json           imported_apps/{uuid}.ipa
        default_frameworks/  archives/  extra_files/
        database/{store}, {store}-shm, {store}-wal

    Nothing outside the staging directory is written until the final
    archive; a missing artifact only clears its metadata flag.
    """

    def __init__(self, config: Config, domains: DomainSet) -> None:
        self._config = config
        self._domains = domains

    def _output_dir(self, output_dir: Path | None) -> Path:
        if output_dir is not None:
            return Path(output_dir)
        return self._config.backup_path or self._config.data_dir / "backups"

    def create_backup(
        self,
        options: BackupOptions | None = None,
        output_dir: Path | None = None,
    ) -> BackupResult:
        """Snapshot every selected domain (plus the always-included ones) into an archive."""
        options = options or self._config.backup_defaults
        zip_path = self._output_dir(output_dir) / f"{BACKUP_PREFIX}_{uuid4().hex}.zip"
        reports: list[DomainReport] = []

        try:
            with staging_directory("appvault_backup_") as staging:
                for domain in self._domains.for_backup(options):
                    report = domain.export(staging)
                    log_report(report)
                    reports.append(report)

                write_marker(staging)
                compress_directory(staging, zip_path)
        except BackupError as e:
            logger.error(f"Backup failed: {e}")
            raise
        except (OSError, sqlite3.Error) as e:
            logger.error(f"Backup failed: {e}")
            raise BackupIOError(str(e)) from e

        result = BackupResult(path=zip_path, reports=reports)
        logger.info(f"Created backup: {zip_path.name} ({result.size:,} bytes)")
        return result

    def export_database_only(self, output_dir: Path | None = None) -> Path:
        """Zip just the database files at the archive root, without a marker."""
        zip_path = self._output_dir(output_dir) / f"{DATABASE_BACKUP_PREFIX}_{int(time.time())}.zip"

        try:
            with staging_directory("appvault_db_") as staging:
                report = self._domains.database.export_to(staging)
                if report.failed:
                    failure = report.failed[0]
                    raise BackupIOError(f"Could not copy {failure.entity_id}: {failure.message}")
                compress_directory(staging, zip_path)
        except BackupError as e:
            logger.error(f"Database export failed: {e}")
            raise

        logger.info(f"Exported database: {zip_path.name}")
        return zip_path
