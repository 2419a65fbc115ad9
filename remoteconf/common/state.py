"""
Persistent Key-Value State

File-based state storage using one JSON file per key.
Writes go to a temp file and are atomically renamed into place, so a
reader never observes a half-written value.
"""

import json
import os
import threading
from pathlib import Path
from typing import Any

# Default state directory - overridable via environment or settings
DEFAULT_STATE_DIR = Path(
    os.environ.get("REMOTECONF_STATE_DIR", Path.home() / ".remoteconf" / "state")
)


class StateStore:
    """Durable key-value facility: JSON-serializable values by string key."""

    def get(self, key: str) -> Any | None:
        raise NotImplementedError("StateStore.get must be implemented")

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError("StateStore.set must be implemented")

    def delete(self, key: str) -> bool:
        raise NotImplementedError("StateStore.delete must be implemented")


class FileStateStore(StateStore):
    """
    Simple file-based state store.

    Each key maps to `<state_dir>/<key>.json`. Values survive process
    restarts. Single-process use only: the lock serializes writers within
    this process, not across processes.
    """

    def __init__(self, state_dir: Path | str | None = None):
        self.state_dir = Path(state_dir) if state_dir else DEFAULT_STATE_DIR
        self._lock = threading.Lock()

    def _ensure_dir(self) -> None:
        """Ensure state directory exists"""
        self.state_dir.mkdir(parents=True, exist_ok=True)

    def _get_path(self, key: str) -> Path:
        """Get file path for state key"""
        return self.state_dir / f"{key}.json"

    def get(self, key: str) -> Any | None:
        """
        Read a value.

        Returns:
            Deserialized value, or None if missing or unreadable
        """
        path = self._get_path(key)
        with self._lock:
            if not path.exists():
                return None
            try:
                with open(path, "r", encoding="utf-8") as f:
                    return json.load(f)
            except (json.JSONDecodeError, OSError):
                return None

    def set(self, key: str, value: Any) -> None:
        """
        Write a value: temp file, fsync, then atomic rename.

        Args:
            key: State key (becomes filename without .json)
            value: JSON-serializable value
        """
        self._ensure_dir()
        path = self._get_path(key)
        temp_path = path.with_suffix(".tmp")

        with self._lock:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, path)

    def delete(self, key: str) -> bool:
        """
        Delete a value.

        Returns:
            True if deleted, False if not found
        """
        path = self._get_path(key)
        with self._lock:
            if path.exists():
                path.unlink()
                return True
            return False


class MemoryStateStore(StateStore):
    """In-process state store; values do not survive the process"""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            raw = self._store.get(key)
        # Stored serialized so callers never share mutable state with the store
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        raw = json.dumps(value)
        with self._lock:
            self._store[key] = raw

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._store.pop(key, None) is not None
