from datetime import datetime, timezone

import pytest

from remoteconf.common.exceptions import CacheWriteError, RefreshErrorKind
from remoteconf.common.state import FileStateStore, MemoryStateStore
from remoteconf.config.cache import CACHE_TIMESTAMP_KEY, CACHED_CONFIG_KEY, PersistentCache
from remoteconf.config.values import ConfigSnapshot

from tests.fixtures import FailingStateStore


def test_load_before_any_store_is_absent(cache):
    assert cache.load() == (None, None)


def test_store_writes_both_keys(state_store, cache):
    timestamp = datetime(2024, 5, 13, 12, 0, tzinfo=timezone.utc)
    cache.store(ConfigSnapshot.from_dict({"TestInt": 8}), timestamp)

    assert state_store.get(CACHED_CONFIG_KEY) == {"TestInt": 8}
    assert state_store.get(CACHE_TIMESTAMP_KEY) == "2024-05-13T12:00:00+00:00"

    snapshot, loaded_at = cache.load()
    assert snapshot.to_dict() == {"TestInt": 8}
    assert snapshot.fetched_at == timestamp
    assert loaded_at == timestamp


def test_clear_removes_both_keys(state_store, cache):
    cache.store(ConfigSnapshot.from_dict({"A": "a"}), datetime.now(timezone.utc))
    cache.clear()

    assert state_store.get(CACHED_CONFIG_KEY) is None
    assert state_store.get(CACHE_TIMESTAMP_KEY) is None
    assert cache.load() == (None, None)


def test_corrupt_cached_config_is_treated_as_absent():
    state = MemoryStateStore()
    state.set(CACHED_CONFIG_KEY, {"nested": {"not": "scalar"}})
    state.set(CACHE_TIMESTAMP_KEY, "not a timestamp")

    assert PersistentCache(state).load() == (None, None)


def test_file_cache_survives_new_instances(tmp_path):
    timestamp = datetime.now(timezone.utc)
    PersistentCache(FileStateStore(tmp_path)).store(
        ConfigSnapshot.from_dict({"TestBool": True, "TestDouble": 2.1}),
        timestamp,
    )

    snapshot, loaded_at = PersistentCache(FileStateStore(tmp_path)).load()

    assert snapshot.to_dict() == {"TestBool": True, "TestDouble": 2.1}
    assert loaded_at == timestamp


def test_file_state_store_leaves_no_temp_files(tmp_path):
    state = FileStateStore(tmp_path / "state")
    state.set(CACHED_CONFIG_KEY, {"A": 1})
    state.set(CACHED_CONFIG_KEY, {"A": 2})

    assert state.get(CACHED_CONFIG_KEY) == {"A": 2}
    assert sorted(p.name for p in (tmp_path / "state").iterdir()) == [f"{CACHED_CONFIG_KEY}.json"]
    assert not list((tmp_path / "state").glob("*.tmp"))


def test_file_state_store_unreadable_file_reads_as_absent(tmp_path):
    state = FileStateStore(tmp_path)
    (tmp_path / f"{CACHED_CONFIG_KEY}.json").write_text("{ truncated", encoding="utf-8")

    assert state.get(CACHED_CONFIG_KEY) is None
    assert state.delete(CACHED_CONFIG_KEY) is True
    assert state.delete(CACHED_CONFIG_KEY) is False


def test_failed_timestamp_write_restores_previous_pair():
    state = FailingStateStore()
    cache = PersistentCache(state)
    before = datetime(2024, 1, 1, tzinfo=timezone.utc)
    cache.store(ConfigSnapshot.from_dict({"A": 0}), before)

    state.fail_on = {CACHE_TIMESTAMP_KEY}
    with pytest.raises(CacheWriteError) as exc_info:
        cache.store(ConfigSnapshot.from_dict({"A": 1}), datetime.now(timezone.utc))

    assert exc_info.value.kind is RefreshErrorKind.INVALID_PAYLOAD
    snapshot, loaded_at = PersistentCache(state).load()
    assert snapshot.to_dict() == {"A": 0}
    assert loaded_at == before


def test_failed_first_write_leaves_cache_empty():
    state = FailingStateStore(fail_on={CACHE_TIMESTAMP_KEY})

    with pytest.raises(CacheWriteError):
        PersistentCache(state).store(ConfigSnapshot.from_dict({"A": 1}), datetime.now(timezone.utc))

    assert state.get(CACHED_CONFIG_KEY) is None
    assert PersistentCache(state).load() == (None, None)
