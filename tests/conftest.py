import httpx
import pytest
import pytest_asyncio

from remoteconf.common.state import MemoryStateStore
from remoteconf.config.cache import PersistentCache
from remoteconf.config.notifications import (
    ConfigRefreshedEvent,
    ConfigRefreshFailedEvent,
    NotificationFanout,
)
from remoteconf.config.service import MissionControl
from remoteconf.config.store import ConfigStore
from remoteconf.config.sync import ConfigSync

from tests.fixtures import RecordingHandler


@pytest.fixture
def state_store() -> MemoryStateStore:
    return MemoryStateStore()


@pytest.fixture
def cache(state_store) -> PersistentCache:
    return PersistentCache(state_store)


@pytest.fixture
def store(cache) -> ConfigStore:
    return ConfigStore(cache, fanout=NotificationFanout())


@pytest.fixture
def http_handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def config_sync(http_handler) -> ConfigSync:
    return ConfigSync(transport=httpx.MockTransport(http_handler))


@pytest_asyncio.fixture()
async def mission_control(state_store, config_sync):
    """MissionControl wired to in-memory state and the fake endpoints."""
    instance = MissionControl(state=state_store, fetcher=config_sync)
    yield instance
    await instance.close()
    instance.reset()


@pytest.fixture
def events(mission_control):
    """Collects every refreshed/failed event broadcast by mission_control."""

    class EventLog:
        def __init__(self) -> None:
            self.refreshed: list[ConfigRefreshedEvent] = []
            self.failed: list[ConfigRefreshFailedEvent] = []

    log = EventLog()
    mission_control.subscribe(ConfigRefreshedEvent, log.refreshed.append)
    mission_control.subscribe(ConfigRefreshFailedEvent, log.failed.append)
    return log
