"""Tests for the Config system."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from appvault.config import Config, get_config, reset_config
from appvault.models.options import BackupOptions


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(data_dir=tmp_path)


class TestConfig:
    def test_default_values(self, config: Config) -> None:
        assert config.language == "en_US"
        assert config.restart_delay == 0.5
        assert config.backup_path is None
        assert config.backup_defaults == BackupOptions.all()

    def test_documents_dir_defaults_under_data_dir(self, config: Config, tmp_path: Path) -> None:
        assert config.documents_dir == tmp_path / "Documents"

    def test_set_and_get(self, config: Config) -> None:
        with config.batch_update():
            config.set("backup_path", "/some/path")
        assert config.backup_path == Path("/some/path")

    def test_dotted_keys(self, config: Config) -> None:
        config.set("backup_defaults.include_archives", False)
        assert config.get("backup_defaults.include_archives") is False
        assert config.backup_defaults.include_archives is False
        assert config.get("missing.key", "fallback") == "fallback"

    def test_batch_update_writes_once(self, config: Config, tmp_path: Path) -> None:
        with config.batch_update():
            config.set("restart_delay", 2)
            config.set("language", "zh_CN")
            assert not (tmp_path / "config.json").exists()
        data = json.loads((tmp_path / "config.json").read_text(encoding="utf-8"))
        assert data["restart_delay"] == 2
        assert data["language"] == "zh_CN"

    def test_persisted_values_reload(self, config: Config, tmp_path: Path) -> None:
        config.backup_defaults = BackupOptions(include_sources=False)
        reloaded = Config(data_dir=tmp_path)
        assert reloaded.backup_defaults.include_sources is False
        assert reloaded.backup_defaults.include_certificates is True

    def test_corrupt_file_falls_back_to_defaults(self, tmp_path: Path) -> None:
        (tmp_path / "config.json").write_text("{not json", encoding="utf-8")
        assert Config(data_dir=tmp_path).language == "en_US"

    def test_negative_restart_delay_clamped(self, config: Config) -> None:
        config.set("restart_delay", -3)
        assert config.restart_delay == 0.0

    def test_global_instance(self) -> None:
        reset_config()
        assert get_config() is get_config()


class TestBackupOptions:
    def test_unknown_keys_ignored(self) -> None:
        options = BackupOptions.from_dict({"include_sources": False, "include_widgets": True})
        assert options.include_sources is False
        assert options.include_certificates is True

    def test_none_disables_everything(self) -> None:
        assert not any(BackupOptions.none().to_dict().values())


class TestConfigLocation:
    def test_env_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APPVAULT_HOME", str(tmp_path / "home"))
        assert Config().data_dir == tmp_path / "home"

    def test_nested_batches_write_on_outer_exit(self, config: Config) -> None:
        with config.batch_update():
            with config.batch_update():
                config.set("language", "zh_CN")
            assert not config.path.exists()
        assert config.path.exists()
        config.set("language", "en_US")
        config.reload()
        assert config.language == "en_US"
