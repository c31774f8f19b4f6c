"""Tests for the individual backup domains."""

from __future__ import annotations

import json
import plistlib
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from appvault.core.errors import BackupIOError
from appvault.domains.apps import AppsDomain
from appvault.domains.certificates import DEFAULT_NAME, METADATA_FILE, CertificatesDomain
from appvault.domains.database import DatabaseDomain
from appvault.domains.passthrough import extra_files_domain, frameworks_domain
from appvault.domains.settings import SettingsDomain, filter_settings
from appvault.domains.sources import SOURCES_FILE, SourcesDomain, parse_locator
from appvault.models.entities import AppKind

from conftest import CERT_UUID, SIGNED_UUID, Env


@pytest.fixture
def staging(tmp_path: Path) -> Path:
    path = tmp_path / "staging"
    path.mkdir()
    return path


class TestCertificatesDomain:
    def test_export_flags_missing_provision(self, populated_env: Env, staging: Path) -> None:
        populated_env.storage.provision_file(CERT_UUID).unlink()
        CertificatesDomain(populated_env.storage).export(staging)

        [record] = json.loads((staging / METADATA_FILE).read_text(encoding="utf-8"))
        assert record["hasP12"] is True
        assert "hasProvision" not in record
        assert record["password"] == "hunter2"
        assert not (staging / "certificates" / f"{CERT_UUID}.mobileprovision").exists()

    def test_restore_uses_default_name(self, fresh_env: Env, staging: Path) -> None:
        (staging / "certificates").mkdir()
        (staging / "certificates" / "c1.p12").write_bytes(b"p12")
        (staging / "certificates" / "c1.mobileprovision").write_bytes(b"mp")
        (staging / METADATA_FILE).write_text(json.dumps([{"uuid": "c1"}]), encoding="utf-8")

        report = CertificatesDomain(fresh_env.storage).restore(staging)
        assert report.succeeded == 1
        [cert] = fresh_env.storage.list_certificates()
        assert cert.nickname == DEFAULT_NAME
        assert cert.expiration is not None

    def test_store_error_does_not_stop_next_entity(self, staging: Path, tmp_path: Path) -> None:
        (staging / "certificates").mkdir()
        for uuid in ("c1", "c2"):
            (staging / "certificates" / f"{uuid}.p12").write_bytes(b"p12")
            (staging / "certificates" / f"{uuid}.mobileprovision").write_bytes(b"mp")
        (staging / METADATA_FILE).write_text(json.dumps([{"uuid": "c1"}, {"uuid": "c2"}]), encoding="utf-8")

        store = MagicMock()
        store.certificate_file.side_effect = lambda uuid: tmp_path / "live" / f"{uuid}.p12"
        store.provision_file.side_effect = lambda uuid: tmp_path / "live" / f"{uuid}.mobileprovision"
        store.add_certificate.side_effect = [RuntimeError("database locked"), None]

        report = CertificatesDomain(store).restore(staging)
        assert [o.entity_id for o in report.failed] == ["c1"]
        assert report.succeeded == 1
        assert store.add_certificate.call_count == 2


class TestSourcesDomain:
    def test_locator_parsing(self) -> None:
        assert parse_locator("https://repo.example.com/apps.json") is not None
        assert parse_locator("ftp://repo.example.com") is None
        assert parse_locator("not a url") is None

    def test_undecodable_metadata_reported(self, fresh_env: Env, staging: Path) -> None:
        (staging / SOURCES_FILE).write_bytes(b"[\xff\xfe]")
        report = SourcesDomain(fresh_env.storage).restore(staging)
        assert [o.entity_id for o in report.failed] == [SOURCES_FILE]

    def test_unparseable_locator_skipped(self, fresh_env: Env, staging: Path) -> None:
        (staging / SOURCES_FILE).write_text(
            json.dumps(
                [
                    {"url": "https://good.example.com", "name": "Good", "identifier": "good"},
                    {"url": "nonsense", "name": "Bad", "identifier": "bad"},
                ]
            ),
            encoding="utf-8",
        )
        report = SourcesDomain(fresh_env.storage).restore(staging)
        assert [o.entity_id for o in report.failed] == ["bad"]
        assert [s.identifier for s in fresh_env.storage.list_sources()] == ["good"]


class TestAppsDomain:
    def _write_metadata(self, staging: Path, records: list[dict]) -> None:
        (staging / "signed_apps").mkdir(exist_ok=True)
        (staging / "signed_apps.json").write_text(json.dumps(records), encoding="utf-8")

    def test_export_layout(self, populated_env: Env, staging: Path) -> None:
        AppsDomain(populated_env.storage, AppKind.SIGNED).export(staging)
        [record] = json.loads((staging / "signed_apps.json").read_text(encoding="utf-8"))
        assert record["hasIPA"] == "true"
        assert (staging / "signed_apps" / f"{SIGNED_UUID}.ipa").is_file()

    def test_bundle_not_flagged_is_skipped(self, fresh_env: Env, staging: Path) -> None:
        self._write_metadata(staging, [{"uuid": "a1", "name": "App"}])
        (staging / "signed_apps" / "a1.ipa").write_bytes(b"ipa")

        report = AppsDomain(fresh_env.storage, AppKind.SIGNED).restore(staging)
        assert len(report.failed) == 1
        assert fresh_env.storage.list_apps(AppKind.SIGNED) == []

    def test_missing_name_copies_but_does_not_register(self, fresh_env: Env, staging: Path) -> None:
        self._write_metadata(staging, [{"uuid": "a1", "hasIPA": "true"}])
        (staging / "signed_apps" / "a1.ipa").write_bytes(b"ipa")

        report = AppsDomain(fresh_env.storage, AppKind.SIGNED).restore(staging)
        assert report.succeeded == 0
        assert fresh_env.storage.app_bundle(AppKind.SIGNED, "a1").read_bytes() == b"ipa"
        assert fresh_env.storage.list_apps(AppKind.SIGNED) == []


class TestPassthroughDomains:
    def test_absent_folder_is_skipped(self, tmp_path: Path, staging: Path) -> None:
        live = tmp_path / "live"
        report = frameworks_domain(live).restore(staging)
        assert report.outcomes == []
        assert not live.exists()

    def test_extra_files_restricted_to_known_names(self, tmp_path: Path, staging: Path) -> None:
        documents = tmp_path / "Documents"
        documents.mkdir()
        (documents / "server.crt").write_text("old")
        extra = staging / "extra_files"
        extra.mkdir()
        (extra / "server.crt").write_text("new")
        (extra / "appvault.sqlite").write_text("not allowed")

        report = extra_files_domain(documents).restore(staging)
        assert [o.entity_id for o in report.outcomes] == ["server.crt"]
        assert (documents / "server.crt").read_text() == "new"
        assert not (documents / "appvault.sqlite").exists()


class TestDatabaseDomain:
    def test_no_store_location(self, staging: Path) -> None:
        locator = MagicMock(database_path=None)
        with pytest.raises(BackupIOError):
            DatabaseDomain(locator).export(staging)

    def test_restore_removes_stale_sidecars(self, tmp_path: Path, staging: Path) -> None:
        live = tmp_path / "live"
        live.mkdir()
        (live / "store.sqlite").write_bytes(b"old")
        (live / "store.sqlite-wal").write_bytes(b"stale wal")
        (staging / "database").mkdir()
        (staging / "database" / "store.sqlite").write_bytes(b"new")
        (staging / "database" / "store.sqlite-shm").write_bytes(b"shm")

        report = DatabaseDomain(MagicMock(database_path=live / "store.sqlite")).restore(staging)
        assert report.succeeded == 2
        assert (live / "store.sqlite").read_bytes() == b"new"
        assert (live / "store.sqlite-shm").read_bytes() == b"shm"
        assert not (live / "store.sqlite-wal").exists()


class TestSettingsDomain:
    def test_filter(self) -> None:
        values = {"theme": "dark", "NSWindow": 1, "AKLastIDMSEnvironment": 0, "metalDevice": "x", "gone": None}
        assert filter_settings(values) == {"theme": "dark"}

    def test_export_filters_reserved_keys(self, populated_env: Env, staging: Path) -> None:
        SettingsDomain(populated_env.preferences).export(staging)
        with open(staging / "settings.plist", "rb") as f:
            assert plistlib.load(f) == {"theme": "dark", "autoRefresh": True}

    def test_restore_rejects_reserved_keys(self, fresh_env: Env, staging: Path) -> None:
        with open(staging / "settings.plist", "wb") as f:
            plistlib.dump({"theme": "light", "NSForeign": "x", "WebKitCache": 1}, f)

        report = SettingsDomain(fresh_env.preferences).restore(staging)
        assert report.succeeded == 1
        assert sorted(o.entity_id for o in report.failed) == ["NSForeign", "WebKitCache"]
        assert fresh_env.preferences.snapshot() == {"theme": "light"}

    def test_unreadable_snapshot_reported(self, fresh_env: Env, staging: Path) -> None:
        (staging / "settings.plist").write_bytes(b"garbage")
        report = SettingsDomain(fresh_env.preferences).restore(staging)
        assert len(report.failed) == 1

    def test_malformed_xml_snapshot_reported(self, fresh_env: Env, staging: Path) -> None:
        (staging / "settings.plist").write_bytes(b"<?xml version='1.0'?><plist><dict><key>a</key>")
        report = SettingsDomain(fresh_env.preferences).restore(staging)
        [failure] = report.failed
        assert failure.entity_id == "settings.plist"
        assert fresh_env.preferences.snapshot() == {}
