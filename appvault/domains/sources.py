"""Sources domain — remote repository subscriptions (metadata only)."""

from __future__ import annotations

from pathlib import Path

import httpx

from appvault.data.protocols import SourceStore
from appvault.domains.base import Domain
from appvault.models.records import RecordError, SourceRecord, load_records
from appvault.models.results import DomainReport

SOURCES_FILE = "sources.json"


def parse_locator(url: str) -> httpx.URL | None:
    """Return the parsed URL if it is an absolute http(s) locator."""
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError):
        return None
    if parsed.scheme not in ("http", "https") or not parsed.host:
        return None
    return parsed


class SourcesDomain(Domain):
    def __init__(self, store: SourceStore) -> None:
        self._store = store

    @property
    def name(self) -> str:
        return "sources"

    def export(self, staging: Path) -> DomainReport:
        report = DomainReport(self.name)
        records: list[SourceRecord] = []
        for source in self._store.list_sources():
            if not (source.url and source.name and source.identifier):
                report.failure(source.identifier or source.url or "?", "incomplete source")
                continue
            records.append(SourceRecord(url=source.url, name=source.name, identifier=source.identifier))
            report.success(source.identifier)

        self.write_metadata(staging / SOURCES_FILE, records)
        return report

    def restore(self, staging: Path) -> DomainReport:
        report = DomainReport(self.name)
        path = staging / SOURCES_FILE
        if not path.is_file():
            return report

        try:
            records = load_records(path, SourceRecord)
        except (RecordError, OSError) as e:
            report.failure(SOURCES_FILE, str(e))
            return report

        for record in records:
            if parse_locator(record.url) is None:
                report.failure(record.identifier, f"unparseable locator '{record.url}'")
                continue
            try:
                self._store.add_source(record.url, name=record.name, identifier=record.identifier)
            except Exception as e:
                report.failure(record.identifier, str(e))
                continue
            report.success(record.identifier)
        return report
