"""Restore manager — validate an archive, then replay every domain into the live store."""

from __future__ import annotations

import time
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from loguru import logger

from appvault.core.errors import BackupError, InvalidArchiveError
from appvault.core.marker import has_settings, has_valid_marker
from appvault.core.progress import RestoreProgress, RestoreStage
from appvault.core.registry import log_report
from appvault.core.staging import extract_archive, staging_directory
from appvault.core.verify import verify_backup
from appvault.i18n import t
from appvault.models.results import DomainReport, RestoreResult

if TYPE_CHECKING:
    from appvault.config import Config
    from appvault.core.registry import DomainSet
    from appvault.data.protocols import HostApplication


class RestoreManager:
    """
    Restore backups produced by ``BackupManager``.

    Extraction and validation happen in a disposable staging directory;
    validation is the only step that can abort the whole restore, and it
    runs before anything in the live store is written. Each later domain
    is best-effort per entity.
    """

    def __init__(
        self,
        config: Config,
        domains: DomainSet,
        progress: RestoreProgress | None = None,
        host: HostApplication | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._domains = domains
        self._progress = progress or RestoreProgress()
        self._host = host
        self._sleep = sleep

    @property
    def progress(self) -> RestoreProgress:
        return self._progress

    def verify_backup(self, archive: Path) -> bool:
        self._progress.set_verifying(True)
        try:
            return verify_backup(archive)
        finally:
            self._progress.set_verifying(False)

    def restore_backup(self, archive: Path, restart: bool = False) -> RestoreResult:
        """
        Restore ``archive`` into the live stores.

        Raises ``InvalidArchiveError`` when the marker or settings snapshot
        is missing and ``BackupIOError`` when the archive cannot be
        extracted. With ``restart`` the host is asked to relaunch once the
        restore has completed.
        """
        archive = Path(archive)
        result = RestoreResult()
        self._progress.begin()

        try:
            with staging_directory("appvault_restore_") as staging:
                self._progress.advance(RestoreStage.EXTRACTING)
                extract_archive(archive, staging)

                self._progress.advance(RestoreStage.VALIDATING)
                self._validate(staging)

                for stage, domain in self._domains.restore_plan():
                    self._progress.advance(stage)
                    try:
                        report = domain.restore(staging)
                    except BackupError:
                        raise
                    except Exception as e:
                        # a domain failure is recorded, never fatal
                        report = DomainReport(domain.name)
                        report.failure(domain.name, f"{type(e).__name__}: {e}")
                    log_report(report)
                    result.reports.append(report)

            self._progress.advance(RestoreStage.COMPLETE)
        except BackupError as e:
            logger.error(f"Restore failed: {e}")
            raise
        finally:
            self._progress.finish()

        restored = sum(r.succeeded for r in result.reports)
        logger.info(
            f"Restored {restored} entities from {archive.name}, "
            f"{len(result.warnings)} skipped"
        )

        if restart:
            result.restart_requested = self._request_restart()
        return result

    @staticmethod
    def _validate(staging: Path) -> None:
        if not has_valid_marker(staging):
            raise InvalidArchiveError(t("backup.err_missing_marker"))
        if not has_settings(staging):
            raise InvalidArchiveError(t("backup.err_missing_settings"))

    def _request_restart(self) -> bool:
        if self._host is None:
            logger.warning("Restart requested but no host application is attached")
            return False
        self._sleep(self._config.restart_delay)
        logger.info("Requesting host restart to reload restored state")
        self._host.request_restart()
        return True
