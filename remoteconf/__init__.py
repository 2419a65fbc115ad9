"""
remoteconf - layered application config with asynchronous remote refresh.
"""

from .common.exceptions import (
    BadResponseStatusError,
    ConfigError,
    CacheWriteError,
    InvalidPayloadError,
    LocalConfigLockedError,
    NoRemoteSourceError,
    RefreshError,
    RefreshErrorKind,
    RemoteConfError,
)
from .common.settings import MissionControlSettings, load_settings
from .common.state import FileStateStore, MemoryStateStore, StateStore
from .config import (
    ConfigRefreshedEvent,
    ConfigRefreshFailedEvent,
    ConfigSnapshot,
    ConfigSource,
    ConfigValue,
    MissionControl,
    MissionControlDelegate,
    Resolution,
    ValueKind,
)
from .defaults import get_default, reset_default, set_default

__version__ = "1.0.0"

__all__ = [
    "MissionControl",
    "MissionControlDelegate",
    "MissionControlSettings",
    "load_settings",
    "get_default",
    "set_default",
    "reset_default",
    "ConfigSnapshot",
    "ConfigSource",
    "ConfigValue",
    "Resolution",
    "ValueKind",
    "ConfigRefreshedEvent",
    "ConfigRefreshFailedEvent",
    "StateStore",
    "FileStateStore",
    "MemoryStateStore",
    "RemoteConfError",
    "ConfigError",
    "LocalConfigLockedError",
    "RefreshError",
    "RefreshErrorKind",
    "NoRemoteSourceError",
    "BadResponseStatusError",
    "InvalidPayloadError",
    "CacheWriteError",
]
