"""Application domains — signed and imported app bundles."""

from __future__ import annotations

from pathlib import Path

from appvault.data.protocols import AppStore
from appvault.domains.base import Domain
from appvault.models.entities import AppKind
from appvault.models.records import AppRecord, RecordError, load_records
from appvault.models.results import DomainReport

BUNDLE_EXT = "ipa"


class AppsDomain(Domain):
    """
    One library of application bundles.

    Archive layout for ``kind``::

        {kind}_apps.json
        {kind}_apps/{uuid}.ipa
    """

    def __init__(self, store: AppStore, kind: AppKind) -> None:
        self._store = store
        self._kind = kind

    @property
    def name(self) -> str:
        return f"{self._kind.value}_apps"

    @property
    def metadata_file(self) -> str:
        return f"{self.name}.json"

    def export(self, staging: Path) -> DomainReport:
        report = DomainReport(self.name)
        target = self.make_subdir(staging, self.name)
        records: list[AppRecord] = []

        for app in self._store.list_apps(self._kind):
            record = AppRecord(
                uuid=app.uuid,
                name=app.name,
                identifier=app.identifier,
                version=app.version,
            )
            try:
                record.has_ipa = self.copy_artifact(
                    self._store.app_bundle(self._kind, app.uuid),
                    target / f"{app.uuid}.{BUNDLE_EXT}",
                )
            except OSError as e:
                report.failure(app.uuid, f"bundle copy failed: {e}")
            else:
                report.success(app.uuid)
            records.append(record)

        self.write_metadata(staging / self.metadata_file, records)
        return report

    def restore(self, staging: Path) -> DomainReport:
        report = DomainReport(self.name)
        path = staging / self.metadata_file
        if not path.is_file():
            return report

        try:
            records = load_records(path, AppRecord)
        except (RecordError, OSError) as e:
            report.failure(self.metadata_file, str(e))
            return report

        source_dir = staging / self.name
        for record in records:
            bundle = source_dir / f"{record.uuid}.{BUNDLE_EXT}"
            if not record.has_ipa or not bundle.is_file():
                report.failure(record.uuid, "bundle not included in archive")
                continue

            try:
                self.copy_artifact(bundle, self._store.app_bundle(self._kind, record.uuid))
                # A bundle without a display name is copied but left unregistered
                if not record.name:
                    report.failure(record.uuid, "missing display name")
                    continue
                self._store.add_app(
                    self._kind,
                    record.uuid,
                    name=record.name,
                    identifier=record.identifier,
                    version=record.version,
                )
            except Exception as e:
                report.failure(record.uuid, str(e))
                continue
            report.success(record.uuid)
        return report
