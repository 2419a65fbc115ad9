"""
Custom Exception Classes for remoteconf

Hierarchical exception structure. Refresh failures form a closed,
flat taxonomy (see RefreshErrorKind); all of them are recoverable.
"""

from enum import Enum


class RefreshErrorKind(str, Enum):
    """Classified reasons a refresh can fail, checked in declaration order"""
    NO_REMOTE_SOURCE = "no_remote_source"
    BAD_RESPONSE_STATUS = "bad_response_status"
    INVALID_PAYLOAD = "invalid_payload"


class RemoteConfError(Exception):
    """Base exception for all remoteconf errors"""

    def __init__(self, message: str, recoverable: bool = True):
        self.message = message
        self.recoverable = recoverable
        super().__init__(message)


class ConfigError(RemoteConfError):
    """Caller misuse of the configuration layers"""

    def __init__(self, message: str, recoverable: bool = True):
        super().__init__(f"Config Error: {message}", recoverable)


class LocalConfigLockedError(ConfigError):
    """Local defaults were already set; reset() is required to change them"""

    def __init__(self):
        super().__init__("local config is already set; call reset() before launching again")


class RefreshError(RemoteConfError):
    """Refreshing the remote layer failed"""

    kind: RefreshErrorKind

    def __init__(self, kind: RefreshErrorKind, message: str):
        self.kind = kind
        super().__init__(f"Refresh Error [{kind.value}]: {message}", recoverable=True)


class NoRemoteSourceError(RefreshError):
    """No remote source is configured"""

    def __init__(self):
        super().__init__(RefreshErrorKind.NO_REMOTE_SOURCE, "no remote source configured")


class BadResponseStatusError(RefreshError):
    """Server answered with a non-2xx status"""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(
            RefreshErrorKind.BAD_RESPONSE_STATUS,
            f"server responded with status {status_code}",
        )


class InvalidPayloadError(RefreshError):
    """Response body is empty, unreadable, or not a flat scalar map"""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(RefreshErrorKind.INVALID_PAYLOAD, reason)


class CacheWriteError(RefreshError):
    """Fetched config could not be persisted, so nothing was committed"""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(RefreshErrorKind.INVALID_PAYLOAD, f"cache write failed: {reason}")
