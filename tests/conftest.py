"""Shared fixtures — a live store on disk plus the managers wired to it."""

from __future__ import annotations

import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from appvault.config import Config, reset_config
from appvault.core.backup import BackupManager
from appvault.core.marker import MARKER_FILE, SETTINGS_FILE
from appvault.core.registry import DomainSet
from appvault.core.restore import RestoreManager
from appvault.data.preferences import Preferences
from appvault.data.storage import Storage
from appvault.models.entities import AppKind

CERT_UUID = "C0FFEE00-0000-4000-8000-000000000001"
SIGNED_UUID = "5161ED00-0000-4000-8000-000000000002"
IMPORTED_UUID = "1A9011ED-0000-4000-8000-000000000003"
SOURCE_URL = "https://repo.example.com/apps.json"


@dataclass
class Env:
    """One isolated installation: live stores, config and managers."""

    root: Path
    config: Config
    storage: Storage
    preferences: Preferences
    domains: DomainSet
    backup: BackupManager
    restore: RestoreManager
    host: MagicMock
    sleeps: list[float] = field(default_factory=list)


def build_env(root: Path) -> Env:
    config = Config(data_dir=root / "config")
    storage = Storage(root / "Documents", root / "Library" / "appvault.sqlite")
    preferences = Preferences(root / "Library" / "preferences.plist")
    domains = DomainSet.from_storage(storage, preferences)
    host = MagicMock()
    sleeps: list[float] = []
    return Env(
        root=root,
        config=config,
        storage=storage,
        preferences=preferences,
        domains=domains,
        backup=BackupManager(config, domains),
        restore=RestoreManager(config, domains, host=host, sleep=sleeps.append),
        host=host,
        sleeps=sleeps,
    )


def populate(env: Env) -> None:
    """Seed one entity per domain."""
    storage = env.storage
    storage.certificates_dir.mkdir(parents=True, exist_ok=True)
    storage.certificate_file(CERT_UUID).write_bytes(b"p12-identity")
    storage.provision_file(CERT_UUID).write_bytes(b"provisioning-profile")
    storage.add_certificate(
        CERT_UUID,
        password="hunter2",
        nickname="Dev Certificate",
        ppq_check=True,
        expiration=1893456000.0,
        team_id="TEAM123456",
        team_name="Example Team",
    )

    storage.add_source(SOURCE_URL, name="Example Repo", identifier="com.example.repo")

    for kind, uuid, name in (
        (AppKind.SIGNED, SIGNED_UUID, "Signed App"),
        (AppKind.IMPORTED, IMPORTED_UUID, "Imported App"),
    ):
        bundle = storage.app_bundle(kind, uuid)
        bundle.parent.mkdir(parents=True, exist_ok=True)
        bundle.write_bytes(f"{name} bundle".encode())
        storage.add_app(kind, uuid, name=name, identifier=f"com.example.{kind}", version="1.2.3")

    storage.frameworks_dir.mkdir(parents=True, exist_ok=True)
    (storage.frameworks_dir / "Tweak.dylib").write_bytes(b"dylib")
    storage.archives_dir.mkdir(parents=True, exist_ok=True)
    (storage.archives_dir / "Old.ipa").write_bytes(b"archived bundle")
    (storage.documents_dir / "server.pem").write_text("-----BEGIN CERTIFICATE-----\n")
    (storage.documents_dir / "pairingFile.plist").write_text("<plist/>")

    env.preferences.set_value("theme", "dark")
    env.preferences.set_value("autoRefresh", True)
    env.preferences.set_value("NSWindowFrame", "0 0 100 100")
    env.preferences.set_value("AppleLanguages", ["en"])
    env.preferences.synchronize()


def make_archive(
    path: Path, files: dict[str, bytes | str], compression: int = zipfile.ZIP_STORED
) -> Path:
    """Write a hand-crafted archive for validation tests."""
    with zipfile.ZipFile(path, "w", compression) as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return path


def flag_encrypted(archive: Path) -> None:
    """Set the encryption bit on every member without encrypting anything."""
    data = bytearray(archive.read_bytes())
    for signature, flags_offset in ((b"PK\x03\x04", 6), (b"PK\x01\x02", 8)):
        start = data.find(signature)
        while start != -1:
            data[start + flags_offset] |= 0x01
            start = data.find(signature, start + 4)
    archive.write_bytes(bytes(data))


def corrupt_member(archive: Path, name: str) -> None:
    """Flip bytes in the middle of one member's compressed data."""
    with zipfile.ZipFile(archive) as zf:
        info = zf.getinfo(name)
    data = bytearray(archive.read_bytes())
    start = info.header_offset + 30 + len(info.filename.encode()) + len(info.extra)
    middle = start + info.compress_size // 2
    data[middle : middle + 8] = bytes(b ^ 0xFF for b in data[middle : middle + 8])
    archive.write_bytes(bytes(data))


SETTINGS_PLIST = (
    b'<?xml version="1.0" encoding="UTF-8"?>\n'
    b'<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" '
    b'"http://www.apple.com/DTDs/PropertyList-1.0.dtd">\n'
    b'<plist version="1.0"><dict><key>theme</key><string>light</string></dict></plist>\n'
)

VALID_ARCHIVE_FILES: dict[str, bytes | str] = {
    MARKER_FILE: "PORTAL_BACKUP_v1.0_1700000000.0",
    SETTINGS_FILE: SETTINGS_PLIST,
}

# Large enough that the deflated stream can be damaged in the middle
BULKY_SOURCES = "[" + ",".join(
    f'{{"url": "https://repo{i}.example.com", "name": "Repo {i * 7919}", "identifier": "r{i}"}}'
    for i in range(200)
) + "]"


@pytest.fixture(autouse=True)
def _clean_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def env(tmp_path: Path) -> Env:
    return build_env(tmp_path / "source")


@pytest.fixture
def populated_env(env: Env) -> Env:
    populate(env)
    return env


@pytest.fixture
def fresh_env(tmp_path: Path) -> Env:
    return build_env(tmp_path / "target")
