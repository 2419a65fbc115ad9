"""
Config - Layered Configuration with Remote Refresh

Responsibilities:
- Resolve settings through remote, cached, local and fallback layers
- Fetch remote configuration over HTTP and classify failures
- Maintain a durable cache for offline start
- Notify a delegate and observers of refresh outcomes
"""

from .cache import PersistentCache
from .coordinator import RefreshAttempt, RefreshCoordinator, RefreshState
from .notifications import (
    ConfigRefreshedEvent,
    ConfigRefreshFailedEvent,
    MissionControlDelegate,
    NotificationFanout,
    Subscription,
)
from .service import MissionControl
from .store import ConfigStore
from .sync import ConfigFetcher, ConfigSync, FetchResponse
from .validator import ConfigValidator
from .values import ConfigSnapshot, ConfigSource, ConfigValue, Resolution, ValueKind

__all__ = [
    "MissionControl",
    "ConfigStore",
    "PersistentCache",
    "RefreshCoordinator",
    "RefreshAttempt",
    "RefreshState",
    "NotificationFanout",
    "MissionControlDelegate",
    "Subscription",
    "ConfigRefreshedEvent",
    "ConfigRefreshFailedEvent",
    "ConfigSync",
    "ConfigFetcher",
    "FetchResponse",
    "ConfigValidator",
    "ConfigSnapshot",
    "ConfigSource",
    "ConfigValue",
    "Resolution",
    "ValueKind",
]
