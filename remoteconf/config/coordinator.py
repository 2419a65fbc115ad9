"""
Refresh Coordinator

Drives remote fetches, classifies their outcome, commits successes into
the ConfigStore and fans out notifications.

Per attempt:
    IDLE -> FETCHING -> SUCCEEDED -> IDLE
    IDLE -> FETCHING -> FAILED    -> IDLE

Concurrent attempts are not fenced: each one commits and notifies in
completion order, so the last to complete wins.
"""

import asyncio
import concurrent.futures
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

import httpx

from remoteconf.common.exceptions import (
    BadResponseStatusError,
    InvalidPayloadError,
    NoRemoteSourceError,
    RefreshError,
)
from remoteconf.common.logging_setup import get_service_logger, log_refresh_outcome

from .notifications import NotificationFanout
from .store import ConfigStore
from .sync import ConfigFetcher
from .validator import ConfigValidator
from .values import ConfigSnapshot

logger = get_service_logger("config.coordinator")

# Completion receives a thunk that returns the new snapshot or raises RefreshError
RefreshResult = Callable[[], ConfigSnapshot]
RefreshCompletion = Callable[[RefreshResult], Awaitable[None] | None]


class RefreshState(str, Enum):
    """Refresh attempt states"""
    IDLE = "idle"
    FETCHING = "fetching"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(eq=False)
class RefreshAttempt:
    """Transient record of one refresh attempt"""
    url: str | None
    state: RefreshState = RefreshState.IDLE
    started_at: datetime | None = None
    finished_at: datetime | None = None
    error: RefreshError | None = None
    snapshot: ConfigSnapshot | None = field(default=None, repr=False)

    def start(self) -> None:
        self.state = RefreshState.FETCHING
        self.started_at = datetime.now(timezone.utc)

    def succeed(self, snapshot: ConfigSnapshot) -> None:
        self.state = RefreshState.SUCCEEDED
        self.snapshot = snapshot
        self.finished_at = datetime.now(timezone.utc)

    def fail(self, error: RefreshError) -> None:
        self.state = RefreshState.FAILED
        self.error = error
        self.finished_at = datetime.now(timezone.utc)


def _success_result(snapshot: ConfigSnapshot) -> RefreshResult:
    def result() -> ConfigSnapshot:
        return snapshot
    return result


def _failure_result(error: RefreshError) -> RefreshResult:
    def result() -> ConfigSnapshot:
        raise error
    return result


class RefreshCoordinator:
    """
    Refreshes the remote config layer.

    All attempts run on one event loop (bound on first schedule, or
    passed in), so completions and events are always delivered there.
    """

    def __init__(
        self,
        store: ConfigStore,
        fanout: NotificationFanout,
        fetcher: ConfigFetcher,
        validator: ConfigValidator | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self.store = store
        self.fanout = fanout
        self.fetcher = fetcher
        self.validator = validator or ConfigValidator()
        self._loop = loop

        self._in_flight: set[RefreshAttempt] = set()
        self._last_attempt: RefreshAttempt | None = None
        self._tasks: set[asyncio.Task] = set()
        self._futures: set[concurrent.futures.Future] = set()

    @property
    def state(self) -> RefreshState:
        return RefreshState.FETCHING if self._in_flight else RefreshState.IDLE

    @property
    def last_attempt(self) -> RefreshAttempt | None:
        """Most recently finished attempt"""
        return self._last_attempt

    # Triggers

    def set_remote_source(self, url: str | None) -> asyncio.Task | concurrent.futures.Future | None:
        """
        Set the remote source; a change to a new non-empty value
        schedules an automatic refresh.

        Returns:
            The scheduled refresh, or None if nothing was scheduled
        """
        if not self.store.set_remote_source(url):
            if not url:
                logger.info("Remote source cleared, auto-refresh disabled")
            return None

        logger.info(f"Remote source set to {url}, scheduling refresh", extra={"url": url})
        return self.schedule_refresh(self._log_auto_refresh_result)

    def schedule_refresh(
        self,
        completion: RefreshCompletion | None = None,
    ) -> asyncio.Task | concurrent.futures.Future:
        """
        Run refresh() in the background on the coordinator's loop.

        Returns:
            asyncio.Task when called from the loop's thread, otherwise a
            concurrent.futures.Future

        Raises:
            RuntimeError: no loop is bound and none is running
        """
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if self._loop is None or self._loop.is_closed():
            if running is None:
                raise RuntimeError("No event loop available to schedule a refresh")
            self._loop = running

        if running is self._loop:
            task = self._loop.create_task(self.refresh(completion))
            # Keep a strong reference until the task finishes
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            return task

        future = asyncio.run_coroutine_threadsafe(self.refresh(completion), self._loop)
        self._futures.add(future)
        future.add_done_callback(self._futures.discard)
        return future

    async def wait_idle(self) -> None:
        """Wait for every scheduled background refresh, from any thread, to finish"""
        while self._tasks or self._futures:
            pending = [*self._tasks, *(asyncio.wrap_future(f) for f in list(self._futures))]
            await asyncio.gather(*pending, return_exceptions=True)

    # Refresh

    async def refresh(self, completion: RefreshCompletion | None = None) -> None:
        """
        Refresh once and report the outcome through `completion`.

        Without a completion, a failure is only logged.
        """
        try:
            snapshot = await self.fetch_and_commit()
        except RefreshError as e:
            result = _failure_result(e)
            if completion is None:
                logger.debug(f"Refresh failed without completion handler: {e}")
                return
        else:
            result = _success_result(snapshot)
            if completion is None:
                return

        outcome = completion(result)
        if inspect.isawaitable(outcome):
            await outcome

    async def fetch_and_commit(self) -> ConfigSnapshot:
        """
        Run one refresh attempt.

        Returns:
            The committed snapshot

        Raises:
            RefreshError: classified failure; the store is left untouched
        """
        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        url = self.store.remote_source
        attempt = RefreshAttempt(url=url)
        attempt.start()
        self._in_flight.add(attempt)

        try:
            snapshot = await self._fetch(url)
            old_remote, committed = await self._commit(snapshot)
        except RefreshError as e:
            attempt.fail(e)
            self._finish(attempt)
            log_refresh_outcome(logger, url, success=False, error=e)
            self.fanout.on_failed(e)
            raise
        except BaseException:
            self._in_flight.discard(attempt)
            raise

        attempt.succeed(committed)
        self._finish(attempt)
        log_refresh_outcome(logger, url, success=True, key_count=len(committed))

        # Listeners only ever hear about state that is already committed
        self.fanout.on_refreshed(old_remote, committed)
        return committed

    async def _commit(
        self, snapshot: ConfigSnapshot
    ) -> tuple[ConfigSnapshot | None, ConfigSnapshot]:
        """Commit off the event loop; the cache write may hit disk"""
        timestamp = snapshot.fetched_at or datetime.now(timezone.utc)
        committed = ConfigSnapshot(snapshot, fetched_at=timestamp)
        loop = asyncio.get_running_loop()
        old_remote = await loop.run_in_executor(None, self.store.commit_remote, committed, timestamp)
        return old_remote, committed

    def _finish(self, attempt: RefreshAttempt) -> None:
        self._in_flight.discard(attempt)
        self._last_attempt = attempt
        logger.debug(
            f"Refresh attempt {attempt.state.value}",
            extra={"url": attempt.url, "state": attempt.state.value},
        )

    async def _fetch(self, url: str | None) -> ConfigSnapshot:
        """Fetch and decode, mapping every failure onto the taxonomy"""
        if not url:
            raise NoRemoteSourceError()

        try:
            response = await self.fetcher.fetch(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # No response means no bytes to decode
            raise InvalidPayloadError(f"transport failure: {e}") from e
        except Exception as e:
            logger.error(f"Fetcher failed unexpectedly for {url}: {e}", exc_info=True)
            raise InvalidPayloadError(f"fetch failed: {e}") from e

        if not response.is_success:
            raise BadResponseStatusError(response.status_code)

        return self.validator.decode(response.body, fetched_at=datetime.now(timezone.utc))

    def _log_auto_refresh_result(self, result: RefreshResult) -> None:
        """Completion for auto-triggered refreshes: there is no caller to tell"""
        try:
            result()
        except RefreshError as e:
            logger.error(f"Automatic refresh failed: {e}", extra={"error_kind": e.kind.value})

    def reset(self) -> None:
        """Forget attempt history and the bound loop"""
        self._last_attempt = None
        self._loop = None

    async def close(self) -> None:
        """Cancel background refreshes and close the fetcher"""
        for future in list(self._futures):
            future.cancel()
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()

        if hasattr(self.fetcher, "close"):
            await self.fetcher.close()
