"""Live-store entity models as seen by the backup engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class AppKind(StrEnum):
    """Which application library a bundle belongs to."""

    SIGNED = "signed"
    IMPORTED = "imported"


@dataclass
class Certificate:
    """Signing identity registered in the certificate store."""

    uuid: str
    nickname: str | None = None
    team_id: str | None = None
    team_name: str | None = None
    expiration: float | None = None  # seconds since epoch
    ppq_check: bool = False
    password: str | None = None


@dataclass
class Source:
    """Remote app-repository subscription."""

    url: str | None
    name: str | None
    identifier: str | None


@dataclass
class App:
    """Signed or imported application."""

    uuid: str
    kind: AppKind
    name: str | None = None
    identifier: str | None = None  # bundle identifier
    version: str | None = None
