"""Configuration parsing for closelog.

Parses an optional ~/.closelog/config.yaml file for log and settings paths.
Every key is optional; a missing file yields the defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "CLOSELOG_CONFIG"

# Default paths
DEFAULT_CONFIG_FILE = Path.home() / ".closelog" / "config.yaml"
DEFAULT_SETTINGS_FILE = Path.home() / ".closelog" / "settings.json"
DEFAULT_LOGS_DIR = Path.home() / "Documents" / "ProjectCloseLogger" / "Logs"

# Path fragments that mark a document synced by a cloud desktop connector
DEFAULT_DESKTOP_CONNECTOR_MARKERS = ("accdocs", "autodesk docs", "bim 360")


class ConfigError(ValueError):
    """Raised when a config file exists but is invalid."""


@dataclass
class Config:
    """Main configuration container."""

    logs_dir: Path = DEFAULT_LOGS_DIR
    settings_file: Path = DEFAULT_SETTINGS_FILE
    file_prefix: str = "logs"
    default_extension: str = ".rvt"
    desktop_connector_markers: tuple[str, ...] = DEFAULT_DESKTOP_CONNECTOR_MARKERS
    config_path: Path | None = field(default=None, compare=False)

    @classmethod
    def load(cls, path: Path | None = None) -> Config:
        """Load configuration from a file.

        Args:
            path: Path to config file. If None, uses $CLOSELOG_CONFIG or
                  ~/.closelog/config.yaml.

        Returns:
            Loaded configuration.

        Raises:
            FileNotFoundError: If no config file found.
            ConfigError: If config file is invalid.
        """
        if path is None:
            path = cls._find_config()

        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(
                f"{path.name}: expected a YAML mapping, got {type(data).__name__}"
            )

        logger.debug("Loaded config from %s", path)
        return cls._from_dict(data, path)

    @classmethod
    def load_or_default(cls, path: Path | None = None) -> Config:
        """Load configuration or return default if not found."""
        try:
            return cls.load(path)
        except FileNotFoundError:
            return cls()

    @classmethod
    def _find_config(cls) -> Path:
        """Resolve the config path from the environment or the user profile."""
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            return Path(env_path).expanduser()
        return DEFAULT_CONFIG_FILE

    @classmethod
    def _from_dict(cls, data: dict[str, Any], path: Path) -> Config:
        """Create a Config from a dictionary."""
        defaults = cls()

        markers = data.get("desktop_connector_markers", defaults.desktop_connector_markers)
        if not isinstance(markers, (list, tuple)) or not all(
            isinstance(m, str) and m for m in markers
        ):
            raise ConfigError(
                f"{path.name}: 'desktop_connector_markers' must be a list of non-empty strings"
            )

        extension = _get_str(data, "default_extension", defaults.default_extension, path)
        if extension and not extension.startswith("."):
            extension = f".{extension}"

        return cls(
            logs_dir=_get_path(data, "logs_dir", defaults.logs_dir, path),
            settings_file=_get_path(data, "settings_file", defaults.settings_file, path),
            file_prefix=_get_str(data, "file_prefix", defaults.file_prefix, path),
            default_extension=extension,
            desktop_connector_markers=tuple(m.lower() for m in markers),
            config_path=path,
        )


def _get_str(data: dict[str, Any], key: str, default: str, path: Path) -> str:
    value = data.get(key, default)
    if not isinstance(value, str):
        raise ConfigError(f"{path.name}: '{key}' must be a string")
    return value


def _get_path(data: dict[str, Any], key: str, default: Path, path: Path) -> Path:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{path.name}: '{key}' must be a non-empty path string")
    return Path(value).expanduser()
