"""Collaborator interfaces consumed by the backup engine.

The engine never touches a global store; each domain receives the narrow
interface it needs, so tests can substitute in-memory fakes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

from appvault.models.entities import App, AppKind, Certificate, Source


class CertificateStore(Protocol):
    """Enumerate, locate and register signing identities."""

    @property
    def certificates_dir(self) -> Path: ...

    def list_certificates(self) -> list[Certificate]: ...

    def certificate_file(self, uuid: str) -> Path: ...

    def provision_file(self, uuid: str) -> Path: ...

    def add_certificate(
        self,
        uuid: str,
        *,
        password: str | None,
        nickname: str,
        ppq_check: bool,
        expiration: float,
        team_id: str | None = None,
        team_name: str | None = None,
    ) -> None: ...


class SourceStore(Protocol):
    def list_sources(self) -> list[Source]: ...

    def add_source(self, url: str, *, name: str, identifier: str) -> None: ...


class AppStore(Protocol):
    def apps_dir(self, kind: AppKind) -> Path: ...

    def list_apps(self, kind: AppKind) -> list[App]: ...

    def app_bundle(self, kind: AppKind, uuid: str) -> Path: ...

    def add_app(
        self,
        kind: AppKind,
        uuid: str,
        *,
        name: str,
        identifier: str | None = None,
        version: str | None = None,
    ) -> None: ...


class DatabaseLocator(Protocol):
    @property
    def database_path(self) -> Path | None:
        """Primary store file; sidecars are ``<name>-shm`` and ``<name>-wal``."""
        ...


class PreferenceStore(Protocol):
    def snapshot(self) -> dict[str, Any]: ...

    def set_value(self, key: str, value: Any) -> None: ...

    def synchronize(self) -> None: ...


class HostApplication(Protocol):
    def request_restart(self) -> None:
        """Terminate and relaunch so no subsystem keeps stale store handles."""
        ...
