"""Operation results — per-entity outcomes aggregated per domain."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class EntityOutcome:
    """Result of exporting or restoring a single entity."""

    domain: str
    entity_id: str
    ok: bool = True
    message: str = ""


@dataclass
class DomainReport:
    """All entity outcomes of one domain within one operation."""

    domain: str
    outcomes: list[EntityOutcome] = field(default_factory=list)

    def success(self, entity_id: str, message: str = "") -> None:
        self.outcomes.append(EntityOutcome(self.domain, entity_id, True, message))

    def failure(self, entity_id: str, message: str) -> None:
        self.outcomes.append(EntityOutcome(self.domain, entity_id, False, message))

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed(self) -> list[EntityOutcome]:
        return [o for o in self.outcomes if not o.ok]


@dataclass
class BackupResult:
    """Result of a backup operation."""

    path: Path
    reports: list[DomainReport] = field(default_factory=list)

    @property
    def size(self) -> int:
        return self.path.stat().st_size if self.path.exists() else 0

    def report(self, domain: str) -> DomainReport | None:
        return next((r for r in self.reports if r.domain == domain), None)


@dataclass
class RestoreResult:
    """Result of a restore operation."""

    reports: list[DomainReport] = field(default_factory=list)
    restart_requested: bool = False

    def report(self, domain: str) -> DomainReport | None:
        return next((r for r in self.reports if r.domain == domain), None)

    @property
    def warnings(self) -> list[str]:
        return [
            f"{o.domain}/{o.entity_id}: {o.message}"
            for r in self.reports
            for o in r.failed
        ]
