"""
Module-level accessors bound to the process-wide default instance.

Each getter resolves with this priority:
1. Remote setting from memory (received in the last refresh)
2. Remote setting from disk cache
3. Local setting (defaults provided on launch)
4. Provided fallback value

The *_force variants refresh first and return the fallback if the
refresh fails.
"""

from .defaults import get_default


def config_bool(key: str, fallback: bool = False) -> bool:
    return get_default().get_bool(key, fallback)


def config_int(key: str, fallback: int = 0) -> int:
    return get_default().get_int(key, fallback)


def config_float(key: str, fallback: float = 0.0) -> float:
    return get_default().get_float(key, fallback)


def config_string(key: str, fallback: str = "") -> str:
    return get_default().get_string(key, fallback)


async def config_bool_force(key: str, fallback: bool) -> bool:
    return await get_default().force_bool(key, fallback)


async def config_int_force(key: str, fallback: int) -> int:
    return await get_default().force_int(key, fallback)


async def config_float_force(key: str, fallback: float) -> float:
    return await get_default().force_float(key, fallback)


async def config_string_force(key: str, fallback: str) -> str:
    return await get_default().force_string(key, fallback)
