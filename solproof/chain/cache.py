"""
In-memory TTL cache for RPC responses, keyed by request parameters.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Hashable


class TTLCache:
    """Read-through cache; entries expire ttl_sec after insertion. ttl_sec <= 0 disables it."""

    def __init__(self, ttl_sec: float, *, clock: Callable[[], float] = time.monotonic, max_entries: int = 4096) -> None:
        self._ttl = ttl_sec
        self._clock = clock
        self._max_entries = max_entries
        self._entries: dict[Hashable, tuple[float, Any]] = {}

    def get(self, key: Hashable) -> tuple[bool, Any]:
        """Return (hit, value)."""
        if self._ttl <= 0:
            return False, None
        entry = self._entries.get(key)
        if entry is None:
            return False, None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return False, None
        return True, value

    def set(self, key: Hashable, value: Any) -> None:
        if self._ttl <= 0:
            return
        if len(self._entries) >= self._max_entries:
            # Drop oldest insertion
            self._entries.pop(next(iter(self._entries)))
        self._entries[key] = (self._clock() + self._ttl, value)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
