"""
Refresh Notifications

Delivers refresh outcomes to one weakly-held delegate and to any number
of subscribed observers. Delivery is synchronous, in subscription order.
"""

import threading
import weakref
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from remoteconf.common.exceptions import RefreshError, RefreshErrorKind
from remoteconf.common.logging_setup import get_service_logger

from .values import ConfigSnapshot

logger = get_service_logger("config.notifications")


class MissionControlDelegate(Protocol):
    """Receives every refresh outcome"""

    def mission_control_did_refresh_config(
        self, old: ConfigSnapshot | None, new: ConfigSnapshot
    ) -> None: ...

    def mission_control_did_fail_refreshing_config(self, error: RefreshError) -> None: ...


@dataclass(frozen=True)
class ConfigRefreshedEvent:
    """Sent each time config is refreshed from remote"""
    old_config: ConfigSnapshot | None
    new_config: ConfigSnapshot

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"new_config": self.new_config.to_dict()}
        # First-ever refresh has no previous config to report
        if self.old_config is not None:
            payload["old_config"] = self.old_config.to_dict()
        return payload


@dataclass(frozen=True)
class ConfigRefreshFailedEvent:
    """Sent when refreshing config from remote fails"""
    error_kind: RefreshErrorKind
    error_message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_kind": self.error_kind.value,
            "error_message": self.error_message,
        }


RefreshEvent = ConfigRefreshedEvent | ConfigRefreshFailedEvent
E = TypeVar("E", ConfigRefreshedEvent, ConfigRefreshFailedEvent)


class Subscription:
    """Handle returned by subscribe(); unsubscribe() is idempotent"""

    def __init__(self, fanout: "NotificationFanout", event_type: type, handler: Callable):
        self._fanout = fanout
        self.event_type = event_type
        self.handler = handler
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._fanout._remove(self)
            self.active = False


class NotificationFanout:
    """Delegate slot plus publish/subscribe observer list"""

    def __init__(self) -> None:
        self._delegate_ref: weakref.ref | None = None
        self._subscriptions: list[Subscription] = []
        self._lock = threading.Lock()

    @property
    def delegate(self) -> MissionControlDelegate | None:
        return self._delegate_ref() if self._delegate_ref is not None else None

    @delegate.setter
    def delegate(self, delegate: MissionControlDelegate | None) -> None:
        # Weak: the fanout never keeps a delegate alive
        self._delegate_ref = weakref.ref(delegate) if delegate is not None else None

    def subscribe(self, event_type: type[E], handler: Callable[[E], Any]) -> Subscription:
        """
        Register an observer for one event type.

        Args:
            event_type: ConfigRefreshedEvent or ConfigRefreshFailedEvent
            handler: Called with the event instance

        Returns:
            Subscription handle
        """
        if event_type not in (ConfigRefreshedEvent, ConfigRefreshFailedEvent):
            raise TypeError(f"Unknown event type: {event_type!r}")

        subscription = Subscription(self, event_type, handler)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    @property
    def observer_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def clear(self) -> None:
        """Drop delegate and all observers"""
        with self._lock:
            for subscription in self._subscriptions:
                subscription.active = False
            self._subscriptions.clear()
        self._delegate_ref = None

    def on_refreshed(self, old: ConfigSnapshot | None, new: ConfigSnapshot) -> ConfigRefreshedEvent:
        """Fan out a successful refresh"""
        delegate = self.delegate
        if delegate is not None:
            try:
                delegate.mission_control_did_refresh_config(old, new)
            except Exception as e:
                logger.error(f"Delegate failed handling refresh: {e}", exc_info=True)

        event = ConfigRefreshedEvent(old_config=old, new_config=new)
        self._broadcast(event)
        return event

    def on_failed(self, error: RefreshError) -> ConfigRefreshFailedEvent:
        """Fan out a failed refresh"""
        delegate = self.delegate
        if delegate is not None:
            try:
                delegate.mission_control_did_fail_refreshing_config(error)
            except Exception as e:
                logger.error(f"Delegate failed handling refresh error: {e}", exc_info=True)

        event = ConfigRefreshFailedEvent(error_kind=error.kind, error_message=str(error))
        self._broadcast(event)
        return event

    def _broadcast(self, event: RefreshEvent) -> None:
        with self._lock:
            targets = [s for s in self._subscriptions if s.event_type is type(event)]

        for subscription in targets:
            try:
                subscription.handler(event)
            except Exception as e:
                logger.error(
                    f"Observer failed handling {type(event).__name__}: {e}",
                    exc_info=True,
                )
