"""
Mission Control - Config Facade

Composition root for layered remote configuration:
- Local defaults provided on launch
- Durable cache of the last successful remote fetch
- Live remote config refreshed over HTTP
- Refresh notifications to a delegate and observers
"""

import asyncio
import concurrent.futures
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from remoteconf.common.exceptions import RefreshError
from remoteconf.common.logging_setup import configure_logging, get_service_logger
from remoteconf.common.settings import MissionControlSettings, load_settings
from remoteconf.common.state import FileStateStore, MemoryStateStore, StateStore

from .cache import PersistentCache
from .coordinator import RefreshCompletion, RefreshCoordinator
from .notifications import (
    ConfigRefreshedEvent,
    ConfigRefreshFailedEvent,
    MissionControlDelegate,
    NotificationFanout,
    Subscription,
)
from .store import ConfigStore
from .sync import ConfigFetcher, ConfigSync
from .validator import ConfigValidator
from .values import ConfigSnapshot, Resolution, ValueKind

logger = get_service_logger("config")

ScheduledRefresh = asyncio.Task | concurrent.futures.Future


class MissionControl:
    """
    Layered config with asynchronous remote refresh.

    Accessors read only in-memory layers and never block or raise.
    The force_* accessors refresh first, then resolve.
    """

    def __init__(
        self,
        state: StateStore | None = None,
        fetcher: ConfigFetcher | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self.fanout = NotificationFanout()
        self.cache = PersistentCache(state if state is not None else MemoryStateStore())
        self.store = ConfigStore(self.cache, fanout=self.fanout)
        self.coordinator = RefreshCoordinator(
            store=self.store,
            fanout=self.fanout,
            fetcher=fetcher or ConfigSync(),
            validator=ConfigValidator(),
            loop=loop,
        )
        self._settings_local: Mapping[str, Any] | None = None
        self._settings_url: str | None = None

    @classmethod
    def from_settings(cls, settings: MissionControlSettings | None = None) -> "MissionControl":
        """
        Build an instance from settings (loaded from file when omitted).

        Call launch() afterwards; settings-provided local defaults and
        remote URL are used when launch() is given none.
        """
        settings = settings or load_settings()
        configure_logging(settings.logging.level, settings.logging.format)

        instance = cls(
            state=FileStateStore(settings.cache.state_dir),
            fetcher=ConfigSync(timeout_s=settings.remote.timeout_s),
        )
        instance._settings_local = settings.local_defaults or None
        instance._settings_url = settings.remote.url
        return instance

    # Properties

    @property
    def delegate(self) -> MissionControlDelegate | None:
        return self.fanout.delegate

    @delegate.setter
    def delegate(self, delegate: MissionControlDelegate | None) -> None:
        self.fanout.delegate = delegate

    @property
    def config(self) -> ConfigSnapshot:
        """The latest whole config layer, directly accessible if needed"""
        return self.store.current_config()

    @property
    def refresh_date(self) -> datetime | None:
        """Date of last successful refresh from remote"""
        return self.store.refresh_date

    @property
    def cache_date(self) -> datetime | None:
        """Date of last cached remote config"""
        return self.store.cache_date

    @property
    def remote_config_url(self) -> str | None:
        return self.store.remote_source

    # Lifecycle

    def launch(
        self,
        local_config: Mapping[str, Any] | None = None,
        remote_config_url: str | None = None,
    ) -> ScheduledRefresh | None:
        """
        Initialize local defaults and the remote source.

        If a remote URL is given, a refresh is scheduled and returned; this
        needs a running event loop (or one passed to the constructor).

        Args:
            local_config: Defaults used until remote config is fetched
            remote_config_url: Remote config endpoint

        Raises:
            LocalConfigLockedError: local config was already set
            TypeError: local_config holds a non-scalar value
        """
        local_config = local_config if local_config is not None else self._settings_local
        remote_config_url = remote_config_url or self._settings_url

        if local_config is not None:
            self.store.set_local(ConfigSnapshot.from_dict(local_config))

        logger.info(
            "Mission control launched",
            extra={
                "local_keys": len(local_config or {}),
                "remote_config_url": remote_config_url,
            },
        )

        if remote_config_url:
            return self.set_remote_config_url(remote_config_url)
        return None

    def set_remote_config_url(self, url: str | None) -> ScheduledRefresh | None:
        """Set remote source; a new non-empty URL schedules a refresh"""
        return self.coordinator.set_remote_source(url)

    async def refresh(self, completion: RefreshCompletion | None = None) -> None:
        """
        Refresh from remote.

        `completion` receives a thunk: calling it returns the new snapshot
        or raises the RefreshError (NoRemoteSourceError when no URL is set).
        """
        await self.coordinator.refresh(completion)

    def reset(self) -> None:
        """Tear down to initial state: layers, cache, dates, URL, listeners"""
        self.store.reset()
        self.coordinator.reset()
        self._settings_local = None
        self._settings_url = None

    def reset_remote(self) -> None:
        """Drop in-memory remote config, as after a process restart"""
        self.store.reset_remote()

    async def close(self) -> None:
        await self.coordinator.close()

    # Listeners

    def subscribe(
        self,
        event_type: type[ConfigRefreshedEvent] | type[ConfigRefreshFailedEvent],
        handler: Callable[[Any], Any],
    ) -> Subscription:
        return self.fanout.subscribe(event_type, handler)

    # Accessors

    def resolve(self, key: str, fallback: Any, kind: ValueKind | None = None) -> Resolution:
        return self.store.resolve(key, fallback, kind)

    def get_bool(self, key: str, fallback: bool = False) -> bool:
        return self.store.resolve(key, fallback, ValueKind.BOOL).value

    def get_int(self, key: str, fallback: int = 0) -> int:
        return self.store.resolve(key, fallback, ValueKind.INT).value

    def get_float(self, key: str, fallback: float = 0.0) -> float:
        return self.store.resolve(key, fallback, ValueKind.FLOAT).value

    def get_string(self, key: str, fallback: str = "") -> str:
        return self.store.resolve(key, fallback, ValueKind.STRING).value

    async def force(self, key: str, fallback: Any, kind: ValueKind | None = None) -> Any:
        """
        Refresh, then resolve.

        Returns the resolved value if refresh succeeded, otherwise `fallback`.
        """
        refreshed = False

        def completion(result) -> None:
            nonlocal refreshed
            try:
                result()
                refreshed = True
            except RefreshError as e:
                logger.debug(f"Forced read of '{key}' falls back: {e}")

        await self.coordinator.refresh(completion)
        if not refreshed:
            return fallback
        return self.store.resolve(key, fallback, kind).value

    async def force_bool(self, key: str, fallback: bool) -> bool:
        return await self.force(key, fallback, ValueKind.BOOL)

    async def force_int(self, key: str, fallback: int) -> int:
        return await self.force(key, fallback, ValueKind.INT)

    async def force_float(self, key: str, fallback: float) -> float:
        return await self.force(key, fallback, ValueKind.FLOAT)

    async def force_string(self, key: str, fallback: str) -> str:
        return await self.force(key, fallback, ValueKind.STRING)
