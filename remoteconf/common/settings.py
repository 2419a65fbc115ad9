"""
Settings Dataclasses

Type-safe settings for wiring a MissionControl instance.
Loaded from a YAML file, with environment variable overrides.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .logging_setup import get_service_logger

logger = get_service_logger("settings")

DEFAULT_TIMEOUT_S = 30.0


@dataclass
class RemoteSettings:
    """Remote config endpoint"""
    url: str | None = None
    timeout_s: float = DEFAULT_TIMEOUT_S


@dataclass
class CacheSettings:
    """Durable cache location"""
    state_dir: str | None = None  # None = FileStateStore default


@dataclass
class LoggingSettings:
    """Log output configuration"""
    level: str = "INFO"
    format: str = "json"  # json, text


@dataclass
class MissionControlSettings:
    """Complete settings for one MissionControl instance"""
    remote: RemoteSettings = field(default_factory=RemoteSettings)
    cache: CacheSettings = field(default_factory=CacheSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    # Local default config values (flat scalar map)
    local_defaults: dict[str, Any] = field(default_factory=dict)


def find_settings_path() -> Path | None:
    """Find settings file, first existing candidate wins"""
    possible_paths = [
        os.environ.get("REMOTECONF_CONFIG"),
        Path.cwd() / "remoteconf.yaml",
        Path.home() / ".config" / "remoteconf" / "config.yaml",
    ]

    for path in possible_paths:
        if path and Path(path).exists():
            return Path(path)

    return None


def _parse_timeout(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring invalid remote.timeout_s: {value!r}")
        return DEFAULT_TIMEOUT_S


def _parse_local_defaults(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        logger.error(f"local_defaults must be a mapping, got {type(value).__name__}")
        return {}
    return dict(value)


def load_settings_dict(data: dict) -> MissionControlSettings:
    """Load MissionControlSettings from dictionary (e.g., parsed YAML)"""
    remote_data = data.get("remote") or {}
    cache_data = data.get("cache") or {}
    logging_data = data.get("logging") or {}

    return MissionControlSettings(
        remote=RemoteSettings(
            url=remote_data.get("url") or None,
            timeout_s=_parse_timeout(remote_data.get("timeout_s", DEFAULT_TIMEOUT_S)),
        ),
        cache=CacheSettings(
            state_dir=cache_data.get("state_dir"),
        ),
        logging=LoggingSettings(
            level=logging_data.get("level", "INFO"),
            format=logging_data.get("format", "json"),
        ),
        local_defaults=_parse_local_defaults(data.get("local_defaults")),
    )


def _apply_env_overrides(settings: MissionControlSettings) -> None:
    """Environment variables win over file values"""
    if os.environ.get("REMOTECONF_REMOTE_URL"):
        settings.remote.url = os.environ["REMOTECONF_REMOTE_URL"]

    timeout = os.environ.get("REMOTECONF_TIMEOUT_S")
    if timeout:
        try:
            settings.remote.timeout_s = float(timeout)
        except ValueError:
            logger.warning(f"Ignoring invalid REMOTECONF_TIMEOUT_S: {timeout}")

    if os.environ.get("REMOTECONF_STATE_DIR"):
        settings.cache.state_dir = os.environ["REMOTECONF_STATE_DIR"]
    if os.environ.get("REMOTECONF_LOG_LEVEL"):
        settings.logging.level = os.environ["REMOTECONF_LOG_LEVEL"]
    if os.environ.get("REMOTECONF_LOG_FORMAT"):
        settings.logging.format = os.environ["REMOTECONF_LOG_FORMAT"]


def load_settings(path: str | Path | None = None) -> MissionControlSettings:
    """
    Load settings from YAML file.

    A missing or malformed file falls back to defaults; environment
    overrides are applied either way.

    Args:
        path: Settings file path; searched for when omitted

    Returns:
        Loaded settings
    """
    settings_path = Path(path) if path else find_settings_path()
    data: dict = {}

    if settings_path is None:
        logger.info("No settings file found, using defaults")
    else:
        try:
            with open(settings_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                logger.error(f"Settings file is not a mapping: {settings_path}")
                data = {}
        except FileNotFoundError:
            logger.warning(f"Settings file not found: {settings_path}")
        except yaml.YAMLError as e:
            logger.error(f"Error parsing settings: {e}")
            data = {}

    settings = load_settings_dict(data)
    _apply_env_overrides(settings)
    return settings
