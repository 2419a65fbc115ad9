"""
Process-wide default MissionControl instance.

Applications that prefer a shared instance use get_default(); the
instance is built lazily from settings and can be replaced or torn
down explicitly.
"""

import threading

from remoteconf.common.settings import MissionControlSettings
from remoteconf.config.service import MissionControl

_default: MissionControl | None = None
_lock = threading.Lock()


def get_default(settings: MissionControlSettings | None = None) -> MissionControl:
    """Return the shared instance, building it from settings on first use"""
    global _default
    with _lock:
        if _default is None:
            _default = MissionControl.from_settings(settings)
        return _default


def set_default(instance: MissionControl | None) -> None:
    """Install an explicitly constructed instance as the shared one"""
    global _default
    with _lock:
        _default = instance


def reset_default() -> None:
    """Reset the shared instance's state and drop it"""
    global _default
    with _lock:
        instance, _default = _default, None
    if instance is not None:
        instance.reset()
