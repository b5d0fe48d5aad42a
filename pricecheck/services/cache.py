"""
Time-boxed, size-bounded in-memory cache.

Used twice: for lookup results (short TTL) and for secondary provider group
tables (long TTL).

INVARIANTS:
- An entry older than the TTL is never returned; it is removed when read
- After put() returns, len(cache) <= max_entries
- Eviction removes the oldest-inserted entry (FIFO, not LRU)
- Only put() marks the cache dirty; load() does not
"""

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

V = TypeVar("V")


@dataclass(slots=True)
class CacheEntry(Generic[V]):
    """A cached value and the wall-clock time it was stored."""

    value: V
    timestamp: float


class TTLCache(Generic[V]):
    """
    Insertion-ordered cache with TTL expiry and a maximum size.

    Timestamps are wall-clock seconds so they stay meaningful after the
    entries are persisted and reloaded by another process.
    """

    def __init__(
        self,
        ttl: float,
        max_entries: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry[V]] = {}
        self.dirty = False

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def _expired(self, entry: CacheEntry[V], now: float) -> bool:
        return now - entry.timestamp >= self.ttl

    def get(self, key: str) -> V | None:
        """Return the cached value, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expired(entry, self._clock()):
            del self._entries[key]
            return None
        return entry.value

    def put(self, key: str, value: V) -> None:
        """Store a value, evicting the oldest entries beyond max_entries."""
        # Re-inserting moves the key to the newest position
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(value=value, timestamp=self._clock())
        self.dirty = True

        while len(self._entries) > self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]

    def clear(self) -> None:
        self._entries.clear()
        self.dirty = True

    def snapshot(self, encode: Callable[[V], Any]) -> list[list[Any]]:
        """
        Serialize entries in insertion order.

        Args:
            encode: Converts a value to a JSON-compatible object

        Returns:
            List of [key, {"value": ..., "timestamp": ...}] pairs
        """
        return [
            [key, {"value": encode(entry.value), "timestamp": entry.timestamp}]
            for key, entry in self._entries.items()
        ]

    def load(self, entries: Iterable[Any], decode: Callable[[Any], V]) -> int:
        """
        Restore entries produced by snapshot(), dropping expired ones.

        Malformed entries are skipped.

        Returns:
            Number of entries loaded
        """
        now = self._clock()
        restored: list[tuple[str, CacheEntry[V]]] = []

        for item in entries:
            try:
                key, raw = item
                entry = CacheEntry(value=decode(raw["value"]), timestamp=float(raw["timestamp"]))
            except (TypeError, ValueError, KeyError):
                continue
            if not self._expired(entry, now):
                restored.append((str(key), entry))

        restored.sort(key=lambda pair: pair[1].timestamp)
        kept = restored[-self.max_entries :] if self.max_entries > 0 else []
        for key, entry in kept:
            self._entries.pop(key, None)
            self._entries[key] = entry

        while len(self._entries) > self.max_entries:
            del self._entries[next(iter(self._entries))]

        return len(kept)

    def mark_clean(self) -> None:
        self.dirty = False
