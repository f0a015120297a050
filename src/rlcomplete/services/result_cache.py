"""Result cache — remembers the last completion answer per context (single slot)."""

from __future__ import annotations

from typing import Any, NamedTuple


class CacheKey(NamedTuple):
    """Everything a completion answer depends on, including which session produced it."""

    session_id: str
    text: str
    input_offset: int
    point_offset: int


MISS: Any = object()


class ResultCache:
    """Single-slot memo: storing a new key evicts the previous entry."""

    def __init__(self) -> None:
        self._key: CacheKey | None = None
        self._value: Any = None

    def lookup(self, key: CacheKey) -> Any:
        """Return the stored value for key, or MISS."""
        if self._key is not None and self._key == key:
            return self._value
        return MISS

    def store(self, key: CacheKey, value: Any) -> None:
        self._key = key
        self._value = value

    def clear(self) -> None:
        self._key = None
        self._value = None

    @property
    def has_entry(self) -> bool:
        return self._key is not None
