"""
Common Utilities

Shared modules used across remoteconf:
- state.py - Durable key-value state storage
- settings.py - Settings dataclasses and YAML loading
- exceptions.py - Custom exception classes
- logging_setup.py - Structured logging setup
"""

from .state import StateStore, FileStateStore, MemoryStateStore
from .settings import (
    MissionControlSettings,
    RemoteSettings,
    CacheSettings,
    LoggingSettings,
    load_settings,
    load_settings_dict,
)
from .exceptions import (
    RemoteConfError,
    ConfigError,
    LocalConfigLockedError,
    RefreshError,
    RefreshErrorKind,
    NoRemoteSourceError,
    BadResponseStatusError,
    InvalidPayloadError,
    CacheWriteError,
)
from .logging_setup import (
    setup_logging,
    get_service_logger,
    configure_logging,
)

__all__ = [
    # State
    "StateStore",
    "FileStateStore",
    "MemoryStateStore",
    # Settings
    "MissionControlSettings",
    "RemoteSettings",
    "CacheSettings",
    "LoggingSettings",
    "load_settings",
    "load_settings_dict",
    # Exceptions
    "RemoteConfError",
    "ConfigError",
    "LocalConfigLockedError",
    "RefreshError",
    "RefreshErrorKind",
    "NoRemoteSourceError",
    "BadResponseStatusError",
    "InvalidPayloadError",
    "CacheWriteError",
    # Logging
    "setup_logging",
    "get_service_logger",
    "configure_logging",
]
