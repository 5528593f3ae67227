"""
In-memory TTL cache table

Backs both the orbit set cache and the position cache. Entries are replaced
wholesale by a single dict assignment, so concurrent readers see either the
old or the new entry and never a partial one. There is no single-flight
de-duplication: concurrent misses may both compute, and the last store wins.
"""

import time
from typing import Any, Callable, Dict, Hashable, NamedTuple, Optional


class CacheEntry(NamedTuple):
    value: Any
    expires_at: float


class TTLCache:
    """
    Dict of CacheEntry with a fixed time-to-live.

    Args:
        ttl: Lifetime of a stored value in seconds
        clock: Monotonic clock in seconds (injectable for tests)
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._entries: Dict[Hashable, CacheEntry] = {}

    def lookup(self, key: Hashable) -> Optional[Any]:
        """Return the unexpired value for ``key``, or None"""
        entry = self._entries.get(key)
        if entry is not None and entry.expires_at > self.clock():
            return entry.value
        return None

    def store(self, key: Hashable, value: Any, now: Optional[float] = None) -> CacheEntry:
        """
        Store ``value`` under ``key`` with expiry = now + ttl.

        ``now`` lets callers stamp the entry with the instant they observed
        the miss, before doing the slow work.
        """
        if now is None:
            now = self.clock()

        self._purge_expired(now)
        entry = CacheEntry(value=value, expires_at=now + self.ttl)
        self._entries[key] = entry
        return entry

    def _purge_expired(self, now: float) -> None:
        # Keys such as "<group>:<limit>" are client-controlled; drop dead entries
        for key, entry in list(self._entries.items()):
            if entry.expires_at <= now and self._entries.get(key) is entry:
                self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.lookup(key) is not None
