"""Shared test data and fake HTTP endpoints."""

import threading
import time

import httpx

from remoteconf.common.state import MemoryStateStore

REMOTE_URL = "https://config.test/acconfig/test-config"
BAD_RESPONSE_URL = "https://config.test/not-existing-config.json"
EMPTY_DATA_URL = "https://config.test/acconfig/empty-config"
INVALID_DATA_URL = "https://config.test/acconfig/invalid-config"
NOT_A_MAP_URL = "https://config.test/acconfig/list-config"
SERVER_ERROR_URL = "https://config.test/acconfig/server-error"
UNREACHABLE_URL = "https://unreachable.test/config.json"

LOCAL_TEST_CONFIG = {
    "TestBool": False,
    "TestInt": 21,
    "TestDouble": 0.8,
    "TestString": "Local",
}

REMOTE_TEST_CONFIG = {
    "TestBool": True,
    "TestInt": 8,
    "TestDouble": 2.1,
    "TestString": "Remote",
}


class RecordingHandler:
    """httpx.MockTransport handler serving the fake config endpoints"""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)

        if url == REMOTE_URL:
            return httpx.Response(200, json=REMOTE_TEST_CONFIG)
        if url == EMPTY_DATA_URL:
            return httpx.Response(200, content=b"")
        if url == INVALID_DATA_URL:
            return httpx.Response(200, content=b"<html>definitely not json</html>")
        if url == NOT_A_MAP_URL:
            return httpx.Response(200, json=[1, 2, 3])
        if url == SERVER_ERROR_URL:
            return httpx.Response(503, json={"error": "maintenance"})
        if url == UNREACHABLE_URL:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(404, content=b"not found")

    @property
    def urls(self) -> list[str]:
        return [str(r.url) for r in self.requests]


class RecordingDelegate:
    """Delegate that records every callback"""

    def __init__(self) -> None:
        self.refreshed: list[tuple] = []
        self.failed: list = []

    def mission_control_did_refresh_config(self, old, new) -> None:
        self.refreshed.append((old, new))

    def mission_control_did_fail_refreshing_config(self, error) -> None:
        self.failed.append(error)


class FailingStateStore(MemoryStateStore):
    """Memory store whose writes to the keys in `fail_on` raise OSError"""

    def __init__(self, fail_on=()) -> None:
        super().__init__()
        self.fail_on = set(fail_on)

    def set(self, key, value) -> None:
        if key in self.fail_on:
            raise OSError(f"disk full writing {key}")
        super().set(key, value)


class SlowStateStore(MemoryStateStore):
    """Memory store whose writes take `delay` seconds; `writing` is set on entry"""

    def __init__(self, delay: float) -> None:
        super().__init__()
        self.delay = delay
        self.writing = threading.Event()

    def set(self, key, value) -> None:
        self.writing.set()
        time.sleep(self.delay)
        super().set(key, value)
