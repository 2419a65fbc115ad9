"""
Config Store

Holds the in-memory config layers and resolves keys against them.

Resolution order, per key:
1. Remote setting from memory (received in the last refresh)
2. Remote setting from disk cache (if not refreshed in this process yet)
3. Local default (provided on launch)
4. Caller fallback

A value of the wrong kind counts as absent at its layer, so resolution
moves on to the next layer.
"""

import threading
from datetime import datetime
from typing import Any

from remoteconf.common.exceptions import LocalConfigLockedError
from remoteconf.common.logging_setup import get_service_logger

from .cache import PersistentCache
from .notifications import NotificationFanout
from .values import ConfigSnapshot, ConfigSource, Resolution, ValueKind

logger = get_service_logger("config.store")


class ConfigStore:
    """
    Single source of truth for current config and refresh timestamp.

    Snapshots are immutable and swapped whole under a lock, so resolve()
    can be called from any thread without blocking on network activity.
    """

    def __init__(
        self,
        cache: PersistentCache,
        fanout: NotificationFanout | None = None,
    ):
        self.cache = cache
        self.fanout = fanout
        # Guards layer references only; never held across I/O
        self._lock = threading.Lock()
        # Serializes commits and cache writes
        self._commit_lock = threading.Lock()

        self._local: ConfigSnapshot | None = None
        self._remote: ConfigSnapshot | None = None
        self._refresh_date: datetime | None = None
        self._remote_source: str | None = None

        # Cached layer comes from disk (offline start)
        self._cached, self._cache_date = cache.load()
        if self._cached is not None:
            logger.info(
                f"Loaded config from cache ({len(self._cached)} keys)",
                extra={"cache_date": self._cache_date.isoformat() if self._cache_date else None},
            )

    # Layers

    @property
    def local(self) -> ConfigSnapshot | None:
        return self._local

    @property
    def cached(self) -> ConfigSnapshot | None:
        return self._cached

    @property
    def remote(self) -> ConfigSnapshot | None:
        return self._remote

    @property
    def refresh_date(self) -> datetime | None:
        """Time of the last successful refresh in this process"""
        return self._refresh_date

    @property
    def cache_date(self) -> datetime | None:
        """Time of the durably cached remote config"""
        return self._cache_date

    @property
    def remote_source(self) -> str | None:
        return self._remote_source

    def set_remote_source(self, url: str | None) -> bool:
        """
        Set or clear the remote source. Does not touch any config layer.

        Returns:
            True if the source changed to a new non-empty value
        """
        url = url or None
        with self._lock:
            changed = url is not None and url != self._remote_source
            self._remote_source = url
        return changed

    def set_local(self, snapshot: ConfigSnapshot) -> None:
        """
        Set local defaults, once.

        Raises:
            LocalConfigLockedError: local defaults are already set
        """
        with self._lock:
            if self._local is not None:
                raise LocalConfigLockedError()
            self._local = snapshot
        logger.debug(f"Local config set ({len(snapshot)} keys)")

    # Resolution

    def resolve(self, key: str, fallback: Any, kind: ValueKind | None = None) -> Resolution:
        """
        Resolve a key through the layers.

        Args:
            key: Setting key
            fallback: Returned when no layer has a value of the wanted kind
            kind: Wanted kind; inferred from fallback when omitted. If it
                cannot be inferred (e.g. fallback is None) any kind matches.

        Returns:
            Resolution(value, source)
        """
        if kind is None:
            kind = ValueKind.of(fallback)

        # One consistent view of all layers
        with self._lock:
            layers = (
                (self._remote, ConfigSource.REMOTE),
                (self._cached, ConfigSource.CACHED),
                (self._local, ConfigSource.LOCAL),
            )

        for snapshot, source in layers:
            if snapshot is None:
                continue
            value = snapshot.lookup(key, kind)
            if value is not None:
                return Resolution(value, source)

        return Resolution(fallback, ConfigSource.FALLBACK)

    def current_config(self) -> ConfigSnapshot:
        """Whole highest-priority layer present: remote, cached, local, or empty"""
        with self._lock:
            for snapshot in (self._remote, self._cached, self._local):
                if snapshot is not None:
                    return snapshot
        return ConfigSnapshot.empty()

    # Mutation

    def commit_remote(self, snapshot: ConfigSnapshot, timestamp: datetime) -> ConfigSnapshot | None:
        """
        Commit a freshly fetched snapshot as both remote and cached layer.

        Commits are serialized; the last one to run wins. The cache is
        written first; readers keep seeing the previous layers until it
        has been persisted.

        Returns:
            The previous remote snapshot (None on first refresh)

        Raises:
            CacheWriteError: the cache write failed; nothing was committed
        """
        snapshot = ConfigSnapshot(snapshot, fetched_at=timestamp)
        with self._commit_lock:
            self.cache.store(snapshot, timestamp)
            with self._lock:
                old_remote = self._remote
                self._remote = snapshot
                self._cached = snapshot
                self._refresh_date = timestamp
                self._cache_date = timestamp
        return old_remote

    def reset_remote(self) -> None:
        """Forget the in-memory remote layer; the durable cache is kept"""
        with self._lock:
            self._remote = None
            self._refresh_date = None

    def reset(self) -> None:
        """Return to post-construction state with an empty cache"""
        with self._commit_lock:
            with self._lock:
                self._local = None
                self._remote = None
                self._cached = None
                self._refresh_date = None
                self._cache_date = None
                self._remote_source = None
            self.cache.clear()

        if self.fanout is not None:
            self.fanout.clear()

        logger.info("Config store reset")
