"""
Settings storage management for Emergent AI.

This module provides YAML-based configuration file persistence with:
- Automatic directory creation
- Dataclass to dict conversion for serialization
- Default Settings when no configuration exists
- Environment variable overrides
"""

import logging
import os
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any

import yaml

from .models import Settings

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".emergent"
CONFIG_FILE_NAME = "config.yaml"

# Setting -> environment variables, first match wins.
ENV_OVERRIDES = {
    "backup_dir": ["EMERGENT_BACKUP_DIR", "BACKUP_DIR"],
    "max_file_size": ["EMERGENT_MAX_FILE_SIZE", "MAX_FILE_SIZE"],
    "max_context_size": ["EMERGENT_MAX_CONTEXT_SIZE", "MAX_CONTEXT_SIZE"],
    "command_timeout": ["EMERGENT_COMMAND_TIMEOUT"],
    "test_timeout": ["EMERGENT_TEST_TIMEOUT"],
    "log_level": ["EMERGENT_LOG_LEVEL"],
}


class SettingsStorage:
    """
    Settings storage manager.

    Handles loading and saving Settings objects to a YAML file stored at
    <project>/.emergent/config.yaml.

    Attributes:
        project_root: Project the settings belong to.
        config_dir: Directory path for configuration files.
        config_file: Path to the main configuration file.
    """

    def __init__(self, project_root: Path | None = None, env: dict[str, str] | None = None) -> None:
        """
        Initialize the settings storage.

        Args:
            project_root: Project directory (defaults to cwd)
            env: Environment used for overrides (defaults to os.environ)
        """
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self.config_dir = self.project_root / CONFIG_DIR_NAME
        self.config_file = self.config_dir / CONFIG_FILE_NAME
        self.env = os.environ if env is None else env

    def load(self) -> Settings:
        """
        Load settings: defaults, then the config file, then environment overrides.

        Raises:
            ValueError: If the config file is not a YAML mapping or a value has the wrong type
        """
        data: dict[str, Any] = {}
        if self.config_file.exists():
            with open(self.config_file, encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
            if not isinstance(loaded, dict):
                raise ValueError(f"Configuration file {self.config_file} must contain a mapping")
            data = loaded

        settings = self._dict_to_settings(data)
        self._apply_env_overrides(settings)
        return settings

    def save(self, settings: Settings) -> None:
        """
        Save settings to the configuration file.

        Creates the configuration directory if it does not exist.
        """
        self.config_dir.mkdir(parents=True, exist_ok=True)

        with open(self.config_file, "w", encoding="utf-8") as f:
            yaml.dump(asdict(settings), f, default_flow_style=False, allow_unicode=True, sort_keys=False)

        logger.debug(f"Settings saved to {self.config_file}")

    def reset(self) -> Settings:
        """Overwrite the configuration file with defaults."""
        settings = Settings()
        self.save(settings)
        return settings

    def set_value(self, key: str, raw_value: str) -> Settings:
        """
        Update one setting from its string form and save.

        Args:
            key: Setting name (e.g. "command_timeout")
            raw_value: Value as typed on the command line; lists are comma-separated

        Raises:
            KeyError: If the setting does not exist
            ValueError: If the value cannot be converted
        """
        settings = self._dict_to_settings(self._read_file_data())
        if key not in {f.name for f in fields(Settings)}:
            raise KeyError(f"Unknown setting: {key}")

        setattr(settings, key, _coerce(getattr(Settings(), key), raw_value))
        self.save(settings)
        return settings

    def _read_file_data(self) -> dict[str, Any]:
        if not self.config_file.exists():
            return {}
        with open(self.config_file, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return data if isinstance(data, dict) else {}

    def _dict_to_settings(self, data: dict[str, Any]) -> Settings:
        """
        Convert a dictionary to a Settings object.

        Unknown keys are logged and ignored; missing keys keep their defaults.
        """
        defaults = Settings()
        known = {f.name for f in fields(Settings)}
        values = {}

        for key, value in data.items():
            if key not in known:
                logger.warning(f"Ignoring unknown setting '{key}' in {self.config_file}")
                continue
            values[key] = _check_type(key, getattr(defaults, key), value)

        return Settings(**values)

    def _apply_env_overrides(self, settings: Settings) -> None:
        for key, names in ENV_OVERRIDES.items():
            for name in names:
                raw = self.env.get(name)
                if raw:
                    setattr(settings, key, _coerce(getattr(settings, key), raw))
                    logger.debug(f"Setting '{key}' overridden by ${name}")
                    break


def _coerce(default: Any, raw: str) -> Any:
    """Convert a string to the type of the default value."""
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    if isinstance(default, list):
        return [item.strip() for item in raw.split(",") if item.strip()]
    return raw


def _check_type(key: str, default: Any, value: Any) -> Any:
    if isinstance(default, float) and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    if isinstance(default, list):
        if not isinstance(value, list):
            raise ValueError(f"Setting '{key}' must be a list")
        return [str(item) for item in value]
    if not isinstance(value, type(default)) or isinstance(value, bool) != isinstance(default, bool):
        raise ValueError(f"Setting '{key}' must be of type {type(default).__name__}")
    return value
