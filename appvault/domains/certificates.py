"""Certificates domain — signing identities with their .p12 and provisioning profile."""

from __future__ import annotations

import time
from pathlib import Path

from loguru import logger

from appvault.data.protocols import CertificateStore
from appvault.domains.base import Domain
from appvault.models.records import CertificateRecord, RecordError, load_records
from appvault.models.results import DomainReport

CERTIFICATES_DIR = "certificates"
METADATA_FILE = "certificates_metadata.json"
P12_EXT = "p12"
PROVISION_EXT = "mobileprovision"

DEFAULT_NAME = "Restored Certificate"


class CertificatesDomain(Domain):
    def __init__(self, store: CertificateStore) -> None:
        self._store = store

    @property
    def name(self) -> str:
        return "certificates"

    def export(self, staging: Path) -> DomainReport:
        report = DomainReport(self.name)
        target = self.make_subdir(staging, CERTIFICATES_DIR)
        records: list[CertificateRecord] = []

        for cert in self._store.list_certificates():
            record = CertificateRecord(
                uuid=cert.uuid,
                name=cert.nickname,
                team_id=cert.team_id,
                team_name=cert.team_name,
                expiration=cert.expiration,
                ppq_check=cert.ppq_check,
                password=cert.password,
            )
            try:
                record.has_p12 = self.copy_artifact(
                    self._store.certificate_file(cert.uuid), target / f"{cert.uuid}.{P12_EXT}"
                )
                record.has_provision = self.copy_artifact(
                    self._store.provision_file(cert.uuid), target / f"{cert.uuid}.{PROVISION_EXT}"
                )
            except OSError as e:
                report.failure(cert.uuid, f"artifact copy failed: {e}")
            else:
                report.success(cert.uuid)
            records.append(record)

        self.write_metadata(staging / METADATA_FILE, records)
        return report

    def restore(self, staging: Path) -> DomainReport:
        report = DomainReport(self.name)
        metadata = staging / METADATA_FILE
        if not metadata.is_file():
            return report

        try:
            records = load_records(metadata, CertificateRecord)
        except (RecordError, OSError) as e:
            report.failure(METADATA_FILE, str(e))
            return report

        source_dir = staging / CERTIFICATES_DIR
        for record in records:
            p12 = source_dir / f"{record.uuid}.{P12_EXT}"
            provision = source_dir / f"{record.uuid}.{PROVISION_EXT}"
            if not (p12.is_file() and provision.is_file()):
                report.failure(record.uuid, "certificate or provisioning profile missing")
                continue

            try:
                self.copy_artifact(p12, self._store.certificate_file(record.uuid))
                self.copy_artifact(provision, self._store.provision_file(record.uuid))
                self._store.add_certificate(
                    record.uuid,
                    password=record.password,
                    nickname=record.name or DEFAULT_NAME,
                    ppq_check=record.ppq_check,
                    expiration=record.expiration if record.expiration is not None else time.time(),
                    team_id=record.team_id,
                    team_name=record.team_name,
                )
            except Exception as e:
                report.failure(record.uuid, str(e))
                continue
            report.success(record.uuid)

        logger.debug(f"Certificates restored: {report.succeeded}/{len(records)}")
        return report
