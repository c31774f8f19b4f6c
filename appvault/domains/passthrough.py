"""Pass-through domains — folders copied verbatim (frameworks, archives, extra files)."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from appvault.core.staging import copy_directory_contents
from appvault.domains.base import Domain
from appvault.models.results import DomainReport

FRAMEWORKS_DIR = "default_frameworks"
ARCHIVES_DIR = "archives"
EXTRA_FILES_DIR = "extra_files"

# Device pairing and local TLS material kept at the documents root
EXTRA_FILES = ("pairingFile.plist", "server.pem", "server.crt", "commonName.txt")


class PassthroughDomain(Domain):
    """
    Opaque files mirrored between ``live_dir`` and ``staging/{subdir}``.

    With ``names`` set, only those entries move in either direction;
    otherwise every entry of the source folder does.
    """

    def __init__(self, name: str, subdir: str, live_dir: Path, names: tuple[str, ...] | None = None) -> None:
        self._name = name
        self._subdir = subdir
        self._live_dir = live_dir
        self._names = names

    @property
    def name(self) -> str:
        return self._name

    def export(self, staging: Path) -> DomainReport:
        target = self.make_subdir(staging, self._subdir)
        return self._copy(self._live_dir, target, self._names)

    def restore(self, staging: Path) -> DomainReport:
        source = staging / self._subdir
        if not source.is_dir():
            logger.debug(f"'{self._subdir}' not in archive, skipping")
            return DomainReport(self.name)
        return self._copy(source, self._live_dir, self._names)

    def _copy(self, src: Path, dest: Path, names: tuple[str, ...] | None) -> DomainReport:
        report = DomainReport(self.name)
        copied, failures = copy_directory_contents(src, dest, names)
        for entry in copied:
            report.success(entry)
        for entry, message in failures:
            report.failure(entry, message)
        return report


def frameworks_domain(live_dir: Path) -> PassthroughDomain:
    return PassthroughDomain("default_frameworks", FRAMEWORKS_DIR, live_dir)


def archives_domain(live_dir: Path) -> PassthroughDomain:
    return PassthroughDomain("archives", ARCHIVES_DIR, live_dir)


def extra_files_domain(documents_dir: Path) -> PassthroughDomain:
    return PassthroughDomain("extra_files", EXTRA_FILES_DIR, documents_dir, EXTRA_FILES)
