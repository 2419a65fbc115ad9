"""
Config Value Types

Tagged scalar values, immutable snapshots, and the layer tags used
when resolving a key.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, NamedTuple


class ValueKind(str, Enum):
    """Supported scalar kinds"""
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"

    @classmethod
    def of(cls, raw: Any) -> "ValueKind | None":
        """Classify a raw Python value, or None if unsupported"""
        # bool is a subclass of int, so it must be checked first
        if isinstance(raw, bool):
            return cls.BOOL
        if isinstance(raw, int):
            return cls.INT
        if isinstance(raw, float):
            return cls.FLOAT
        if isinstance(raw, str):
            return cls.STRING
        return None


class ConfigSource(str, Enum):
    """Which layer satisfied a resolve call"""
    REMOTE = "remote"
    CACHED = "cached"
    LOCAL = "local"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ConfigValue:
    """
    A single tagged config value.

    Extraction never raises: asking for the wrong kind returns None,
    which callers treat as "absent at this layer".
    """
    kind: ValueKind
    value: bool | int | float | str

    @classmethod
    def of(cls, raw: Any) -> "ConfigValue":
        kind = ValueKind.of(raw)
        if kind is None:
            raise TypeError(f"Unsupported config value type: {type(raw).__name__}")
        return cls(kind, raw)

    def as_bool(self) -> bool | None:
        return self.value if self.kind is ValueKind.BOOL else None

    def as_int(self) -> int | None:
        return self.value if self.kind is ValueKind.INT else None

    def as_float(self) -> float | None:
        # INT widens to FLOAT; nothing else converts
        if self.kind is ValueKind.FLOAT:
            return self.value
        if self.kind is ValueKind.INT:
            return float(self.value)
        return None

    def as_string(self) -> str | None:
        return self.value if self.kind is ValueKind.STRING else None

    def extract(self, kind: ValueKind | None) -> Any | None:
        """Extract as `kind`; None kind accepts any value as-is"""
        if kind is None:
            return self.value
        return _EXTRACTORS[kind](self)


_EXTRACTORS = {
    ValueKind.BOOL: ConfigValue.as_bool,
    ValueKind.INT: ConfigValue.as_int,
    ValueKind.FLOAT: ConfigValue.as_float,
    ValueKind.STRING: ConfigValue.as_string,
}


class ConfigSnapshot(Mapping):
    """
    Immutable point-in-time map of setting key -> ConfigValue.

    Equality compares contents only, not `fetched_at`.
    """

    __slots__ = ("_values", "fetched_at")

    def __init__(
        self,
        values: Mapping[str, ConfigValue] | None = None,
        fetched_at: datetime | None = None,
    ):
        self._values: dict[str, ConfigValue] = dict(values or {})
        self.fetched_at = fetched_at

    @classmethod
    def from_dict(
        cls,
        raw: Mapping[str, Any],
        fetched_at: datetime | None = None,
    ) -> "ConfigSnapshot":
        """
        Build a snapshot from raw scalars.

        Raises:
            TypeError: if a key is not a string or a value is not a scalar
        """
        values = {}
        for key, value in raw.items():
            if not isinstance(key, str):
                raise TypeError(f"Config key must be a string, got {type(key).__name__}")
            values[key] = value if isinstance(value, ConfigValue) else ConfigValue.of(value)
        return cls(values, fetched_at)

    @classmethod
    def empty(cls) -> "ConfigSnapshot":
        return cls()

    def __getitem__(self, key: str) -> ConfigValue:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ConfigSnapshot({self.to_dict()!r}, fetched_at={self.fetched_at!r})"

    def lookup(self, key: str, kind: ValueKind | None) -> Any | None:
        """Typed lookup: None when the key is missing or of another kind"""
        value = self._values.get(key)
        if value is None:
            return None
        return value.extract(kind)

    def to_dict(self) -> dict[str, Any]:
        """Raw scalar view, e.g. for JSON or event payloads"""
        return {key: value.value for key, value in self._values.items()}


class Resolution(NamedTuple):
    """Result of resolving one key"""
    value: Any
    source: ConfigSource
