"""Tests for settings storage and validation."""

from pathlib import Path

import pytest
import yaml

from emergent_ai.settings import ConfigValidator, Settings, SettingsStorage


class TestSettingsStorage:
    """Tests for SettingsStorage."""

    def test_defaults_without_file(self, tmp_path: Path):
        settings = SettingsStorage(tmp_path, env={}).load()
        assert settings == Settings()
        assert settings.backup_dir == ".emergent-backups"
        assert settings.protected_dirs == ["/etc", "/sys", "/proc", "/root"]

    def test_save_and_load(self, tmp_path: Path):
        storage = SettingsStorage(tmp_path, env={})
        storage.save(Settings(command_timeout=5.0, ignore_patterns=["vendor"]))

        assert storage.config_file == tmp_path / ".emergent" / "config.yaml"
        loaded = storage.load()
        assert loaded.command_timeout == 5.0
        assert loaded.ignore_patterns == ["vendor"]

    def test_partial_file_keeps_defaults(self, tmp_path: Path):
        (tmp_path / ".emergent").mkdir()
        (tmp_path / ".emergent" / "config.yaml").write_text("command_timeout: 12\nunknown_key: 1\n")

        settings = SettingsStorage(tmp_path, env={}).load()
        assert settings.command_timeout == 12.0
        assert isinstance(settings.command_timeout, float)
        assert settings.max_file_size == Settings().max_file_size

    def test_wrong_type_rejected(self, tmp_path: Path):
        (tmp_path / ".emergent").mkdir()
        (tmp_path / ".emergent" / "config.yaml").write_text("max_file_size: lots\n")
        with pytest.raises(ValueError):
            SettingsStorage(tmp_path, env={}).load()

    def test_non_mapping_rejected(self, tmp_path: Path):
        (tmp_path / ".emergent").mkdir()
        (tmp_path / ".emergent" / "config.yaml").write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            SettingsStorage(tmp_path, env={}).load()

    def test_env_overrides(self, tmp_path: Path):
        env = {
            "BACKUP_DIR": "legacy-backups",
            "EMERGENT_MAX_FILE_SIZE": "2048",
            "MAX_FILE_SIZE": "1",
            "EMERGENT_COMMAND_TIMEOUT": "7.5",
        }
        settings = SettingsStorage(tmp_path, env=env).load()
        assert settings.backup_dir == "legacy-backups"
        assert settings.max_file_size == 2048
        assert settings.command_timeout == 7.5

    def test_set_value(self, tmp_path: Path):
        storage = SettingsStorage(tmp_path, env={})
        storage.set_value("max_output_bytes", "4096")
        storage.set_value("ignore_patterns", "node_modules, .venv")

        data = yaml.safe_load(storage.config_file.read_text())
        assert data["max_output_bytes"] == 4096
        assert data["ignore_patterns"] == ["node_modules", ".venv"]

    def test_set_unknown_key(self, tmp_path: Path):
        with pytest.raises(KeyError):
            SettingsStorage(tmp_path, env={}).set_value("api_key", "x")

    def test_set_invalid_value(self, tmp_path: Path):
        with pytest.raises(ValueError):
            SettingsStorage(tmp_path, env={}).set_value("max_file_size", "big")

    def test_reset(self, tmp_path: Path):
        storage = SettingsStorage(tmp_path, env={})
        storage.set_value("log_level", "DEBUG")
        assert storage.reset() == Settings()
        assert storage.load().log_level == "INFO"


class TestConfigValidator:
    """Tests for ConfigValidator."""

    def test_defaults_are_valid(self, tmp_path: Path):
        result = ConfigValidator().validate(Settings(), tmp_path)
        assert result.valid
        assert result.errors == []

    def test_non_positive_limits(self):
        result = ConfigValidator().validate(Settings(max_file_size=0, command_timeout=-1))
        assert not result.valid
        assert any("max_file_size" in e for e in result.errors)
        assert any("command_timeout" in e for e in result.errors)

    def test_relative_protected_dir(self):
        result = ConfigValidator().validate(Settings(protected_dirs=["etc"]))
        assert not result.valid

    def test_history_file_must_be_plain_name(self):
        result = ConfigValidator().validate(Settings(history_file="logs/history.json"))
        assert not result.valid

    def test_unknown_log_level(self):
        result = ConfigValidator().validate(Settings(log_level="LOUD"))
        assert not result.valid

    def test_warnings(self, tmp_path: Path):
        settings = Settings(test_timeout=5.0, command_timeout=30.0, protected_dirs=[str(tmp_path)])
        result = ConfigValidator().validate(settings, tmp_path)
        assert result.valid
        assert len(result.warnings) == 2
