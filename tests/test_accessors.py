import pytest
import pytest_asyncio

from remoteconf import accessors
from remoteconf.common.settings import CacheSettings, MissionControlSettings
from remoteconf.config.service import MissionControl
from remoteconf.defaults import get_default, reset_default, set_default

from tests.fixtures import BAD_RESPONSE_URL, LOCAL_TEST_CONFIG, REMOTE_URL


@pytest_asyncio.fixture()
async def default_instance(state_store, config_sync):
    instance = MissionControl(state=state_store, fetcher=config_sync)
    set_default(instance)
    yield instance
    await instance.close()
    reset_default()


@pytest.mark.asyncio
async def test_accessors_read_the_default_instance(default_instance):
    assert get_default() is default_instance
    default_instance.launch(local_config=LOCAL_TEST_CONFIG)

    assert accessors.config_bool("TestBool", True) is False
    assert accessors.config_int("TestInt") == 21
    assert accessors.config_float("TestDouble") == 0.8
    assert accessors.config_string("TestString") == "Local"
    assert accessors.config_int("Missing", 1984) == 1984


@pytest.mark.asyncio
async def test_force_accessors_refresh_first(default_instance):
    await default_instance.launch(local_config=LOCAL_TEST_CONFIG, remote_config_url=REMOTE_URL)

    assert await accessors.config_bool_force("TestBool", False) is True
    assert await accessors.config_int_force("TestInt", 0) == 8
    assert await accessors.config_float_force("TestDouble", 0.0) == 2.1
    assert await accessors.config_string_force("TestString", "") == "Remote"


@pytest.mark.asyncio
async def test_force_accessors_fall_back_on_failure(default_instance):
    await default_instance.launch(local_config=LOCAL_TEST_CONFIG, remote_config_url=BAD_RESPONSE_URL)

    assert await accessors.config_int_force("TestInt", 1984) == 1984
    assert await accessors.config_string_force("TestString", "Hello") == "Hello"


@pytest.mark.asyncio
async def test_force_accessor_without_remote_url_returns_fallback(default_instance):
    assert await accessors.config_int_force("TestInt", 7) == 7


def test_reset_default_drops_and_resets_instance(tmp_path, monkeypatch):
    for name in ("REMOTECONF_REMOTE_URL", "REMOTECONF_STATE_DIR"):
        monkeypatch.delenv(name, raising=False)
    settings = MissionControlSettings(
        cache=CacheSettings(state_dir=str(tmp_path / "state")),
        local_defaults={"TestInt": 21},
    )

    first = get_default(settings)
    assert get_default() is first
    first.launch()
    assert accessors.config_int("TestInt") == 21

    reset_default()

    assert first.remote_config_url is None
    assert first.get_int("TestInt", 3) == 3
    second = get_default(settings)
    assert second is not first
    reset_default()
