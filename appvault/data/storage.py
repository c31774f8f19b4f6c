"""Application storage — SQLite entity index plus the on-disk artifact layout."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from loguru import logger

from appvault.models.entities import App, AppKind, Certificate, Source

DATABASE_FILE = "appvault.sqlite"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS certificates (
    uuid TEXT PRIMARY KEY,
    nickname TEXT,
    team_id TEXT,
    team_name TEXT,
    expiration REAL,
    ppq_check INTEGER NOT NULL DEFAULT 0,
    password TEXT,
    date_added TEXT
);
CREATE TABLE IF NOT EXISTS sources (
    identifier TEXT PRIMARY KEY,
    url TEXT,
    name TEXT,
    date_added TEXT
);
CREATE TABLE IF NOT EXISTS apps (
    uuid TEXT PRIMARY KEY,
    kind TEXT NOT NULL,
    name TEXT,
    identifier TEXT,
    version TEXT,
    date_added TEXT
);
"""


def _now() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


class Storage:
    """
    Live application state.

    Layout under ``documents_dir``::

        certificates/{uuid}.p12, {uuid}.mobileprovision
        signed/{uuid}.ipa
        imported/{uuid}.ipa
        DefaultFrameworks/
        Archives/

    Entities are indexed in a WAL-mode SQLite database. A connection is
    opened per call and closed afterwards, so the database files can be
    replaced between calls. Implements every store protocol in
    ``appvault.data.protocols``.
    """

    def __init__(self, documents_dir: Path, database_path: Path | None = None) -> None:
        self._documents = documents_dir
        self._db_path = database_path or documents_dir / DATABASE_FILE
        self._documents.mkdir(parents=True, exist_ok=True)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self._db_path)
        try:
            conn.row_factory = sqlite3.Row
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(_SCHEMA)

    # ── Paths ──

    @property
    def documents_dir(self) -> Path:
        return self._documents

    @property
    def database_path(self) -> Path | None:
        return self._db_path

    @property
    def certificates_dir(self) -> Path:
        return self._documents / "certificates"

    @property
    def frameworks_dir(self) -> Path:
        return self._documents / "DefaultFrameworks"

    @property
    def archives_dir(self) -> Path:
        return self._documents / "Archives"

    def certificate_file(self, uuid: str) -> Path:
        return self.certificates_dir / f"{uuid}.p12"

    def provision_file(self, uuid: str) -> Path:
        return self.certificates_dir / f"{uuid}.mobileprovision"

    def apps_dir(self, kind: AppKind) -> Path:
        return self._documents / kind.value

    def app_bundle(self, kind: AppKind, uuid: str) -> Path:
        return self.apps_dir(kind) / f"{uuid}.ipa"

    # ── Certificates ──

    def list_certificates(self) -> list[Certificate]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM certificates ORDER BY rowid").fetchall()
        return [
            Certificate(
                uuid=row["uuid"],
                nickname=row["nickname"],
                team_id=row["team_id"],
                team_name=row["team_name"],
                expiration=row["expiration"],
                ppq_check=bool(row["ppq_check"]),
                password=row["password"],
            )
            for row in rows
        ]

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
    ) -> None:
        """Register (or replace) a certificate whose files are already in place."""
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO certificates
                    (uuid, nickname, team_id, team_name, expiration, ppq_check, password, date_added)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(uuid) DO UPDATE SET
                    nickname = excluded.nickname,
                    team_id = excluded.team_id,
                    team_name = excluded.team_name,
                    expiration = excluded.expiration,
                    ppq_check = excluded.ppq_check,
                    password = excluded.password
                """,
                (uuid, nickname, team_id, team_name, expiration, int(ppq_check), password, _now()),
            )
        logger.debug(f"Registered certificate {uuid} ({nickname})")

    # ── Sources ──

    def list_sources(self) -> list[Source]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM sources ORDER BY rowid").fetchall()
        return [Source(url=row["url"], name=row["name"], identifier=row["identifier"]) for row in rows]

    def add_source(self, url: str, *, name: str, identifier: str) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO sources (identifier, url, name, date_added) VALUES (?, ?, ?, ?)
                ON CONFLICT(identifier) DO UPDATE SET url = excluded.url, name = excluded.name
                """,
                (identifier, url, name, _now()),
            )
        logger.debug(f"Registered source {identifier}")

    # ── Apps ──

    def list_apps(self, kind: AppKind) -> list[App]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM apps WHERE kind = ? ORDER BY rowid", (kind.value,)
            ).fetchall()
        return [
            App(
                uuid=row["uuid"],
                kind=kind,
                name=row["name"],
                identifier=row["identifier"],
                version=row["version"],
            )
            for row in rows
        ]

    def add_app(
        self,
        kind: AppKind,
        uuid: str,
        *,
        name: str,
        identifier: str | None = None,
        version: str | None = None,
    ) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO apps (uuid, kind, name, identifier, version, date_added)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(uuid) DO UPDATE SET
                    kind = excluded.kind,
                    name = excluded.name,
                    identifier = excluded.identifier,
                    version = excluded.version
                """,
                (uuid, kind.value, name, identifier, version, _now()),
            )
        logger.debug(f"Registered {kind} app {uuid} ({name})")
