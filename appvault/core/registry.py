"""Domain registry — which domains run, and in what order, for each operation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from appvault.core.progress import RestoreStage
from appvault.domains.apps import AppsDomain
from appvault.domains.certificates import CertificatesDomain
from appvault.domains.database import DatabaseDomain
from appvault.domains.passthrough import (
    PassthroughDomain,
    archives_domain,
    extra_files_domain,
    frameworks_domain,
)
from appvault.domains.settings import SettingsDomain
from appvault.domains.sources import SourcesDomain
from appvault.models.entities import AppKind
from appvault.models.options import BackupOptions
from appvault.models.results import DomainReport

if TYPE_CHECKING:
    from appvault.data.protocols import PreferenceStore
    from appvault.data.storage import Storage
    from appvault.domains.base import Domain


@dataclass
class DomainSet:
    """All backup domains, wired to their live stores."""

    certificates: CertificatesDomain
    sources: SourcesDomain
    signed_apps: AppsDomain
    imported_apps: AppsDomain
    frameworks: PassthroughDomain
    archives: PassthroughDomain
    extra_files: PassthroughDomain
    database: DatabaseDomain
    settings: SettingsDomain

    @classmethod
    def from_storage(cls, storage: Storage, preferences: PreferenceStore) -> DomainSet:
        return cls(
            certificates=CertificatesDomain(storage),
            sources=SourcesDomain(storage),
            signed_apps=AppsDomain(storage, AppKind.SIGNED),
            imported_apps=AppsDomain(storage, AppKind.IMPORTED),
            frameworks=frameworks_domain(storage.frameworks_dir),
            archives=archives_domain(storage.archives_dir),
            extra_files=extra_files_domain(storage.documents_dir),
            database=DatabaseDomain(storage),
            settings=SettingsDomain(preferences),
        )

    def for_backup(self, options: BackupOptions) -> list[Domain]:
        """Selected domains followed by the always-included ones."""
        selected: list[tuple[bool, Domain]] = [
            (options.include_certificates, self.certificates),
            (options.include_sources, self.sources),
            (options.include_signed_apps, self.signed_apps),
            (options.include_imported_apps, self.imported_apps),
            (options.include_default_frameworks, self.frameworks),
            (options.include_archives, self.archives),
        ]
        domains = [domain for enabled, domain in selected if enabled]
        domains += [self.extra_files, self.database, self.settings]
        return domains

    def restore_plan(self) -> list[tuple[RestoreStage, Domain]]:
        """Fixed restore order; the database is replaced after every registration."""
        return [
            (RestoreStage.RESTORING_CERTIFICATES, self.certificates),
            (RestoreStage.RESTORING_SOURCES, self.sources),
            (RestoreStage.RESTORING_SIGNED_APPS, self.signed_apps),
            (RestoreStage.RESTORING_IMPORTED_APPS, self.imported_apps),
            (RestoreStage.RESTORING_FRAMEWORKS, self.frameworks),
            (RestoreStage.RESTORING_ARCHIVES, self.archives),
            (RestoreStage.RESTORING_EXTRA_FILES, self.extra_files),
            (RestoreStage.RESTORING_DATABASE, self.database),
            (RestoreStage.RESTORING_SETTINGS, self.settings),
        ]


def log_report(report: DomainReport) -> None:
    """Log failed entities; they are recorded, never raised."""
    for outcome in report.failed:
        logger.warning(f"[{report.domain}] skipped {outcome.entity_id}: {outcome.message}")
    logger.debug(
        f"[{report.domain}] {report.succeeded} ok, {len(report.failed)} skipped"
    )
