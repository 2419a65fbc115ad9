"""
Configuration Cache

Durable copy of the last successfully fetched remote config and the
time it was fetched. Survives process restarts.
"""

import threading
from datetime import datetime

from remoteconf.common.exceptions import CacheWriteError
from remoteconf.common.logging_setup import get_service_logger
from remoteconf.common.state import StateStore

from .values import ConfigSnapshot

logger = get_service_logger("config.cache")

CACHED_CONFIG_KEY = "cached-config"
CACHE_TIMESTAMP_KEY = "cache-timestamp"
_CACHE_KEYS = (CACHED_CONFIG_KEY, CACHE_TIMESTAMP_KEY)


class PersistentCache:
    """
    Durable remote-config cache on top of a StateStore.

    Stores:
    - `cached-config`: the raw scalar map
    - `cache-timestamp`: ISO timestamp of the fetch

    Both keys are read and written under one lock so a load never pairs
    a snapshot with another write's timestamp.
    """

    def __init__(self, state: StateStore):
        self.state = state
        self._lock = threading.Lock()

    def load(self) -> tuple[ConfigSnapshot | None, datetime | None]:
        """
        Load the cached snapshot.

        Returns:
            (snapshot, timestamp); either may be None if never stored
        """
        with self._lock:
            raw_config = self.state.get(CACHED_CONFIG_KEY)
            raw_timestamp = self.state.get(CACHE_TIMESTAMP_KEY)

        timestamp = None
        if raw_timestamp:
            try:
                timestamp = datetime.fromisoformat(raw_timestamp)
            except (TypeError, ValueError) as e:
                logger.error(f"Error loading cache timestamp: {e}")

        if raw_config is None:
            return None, timestamp

        try:
            snapshot = ConfigSnapshot.from_dict(raw_config, fetched_at=timestamp)
        except (TypeError, AttributeError) as e:
            logger.error(f"Error loading cached config: {e}")
            return None, timestamp

        return snapshot, timestamp

    def store(self, snapshot: ConfigSnapshot, timestamp: datetime) -> None:
        """
        Persist snapshot and timestamp together.

        If either write fails, both keys are restored to their previous
        values so a later load never pairs a snapshot with another
        write's timestamp.

        Raises:
            CacheWriteError: the pair could not be written
        """
        with self._lock:
            previous = {key: self.state.get(key) for key in _CACHE_KEYS}
            try:
                self.state.set(CACHED_CONFIG_KEY, snapshot.to_dict())
                self.state.set(CACHE_TIMESTAMP_KEY, timestamp.isoformat())
            except (OSError, TypeError, ValueError) as e:
                logger.error(f"Error saving config to cache: {e}")
                self._restore(previous)
                raise CacheWriteError(str(e)) from e

        logger.info(
            f"Config saved to cache ({len(snapshot)} keys)",
            extra={"cache_timestamp": timestamp.isoformat()},
        )

    def _restore(self, previous: dict) -> None:
        for key, value in previous.items():
            try:
                if value is None:
                    self.state.delete(key)
                else:
                    self.state.set(key, value)
            except OSError as e:
                logger.error(f"Error restoring cache key '{key}': {e}")

    def clear(self) -> None:
        """Remove cached config and timestamp"""
        with self._lock:
            self.state.delete(CACHED_CONFIG_KEY)
            self.state.delete(CACHE_TIMESTAMP_KEY)
        logger.info("Config cache cleared")
