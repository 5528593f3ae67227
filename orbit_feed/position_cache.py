"""
Position Snapshot Cache

Short-lived cache of computed PositionSnapshots keyed by group and limit.
A miss pulls the group's OrbitSet (which may itself fetch) and propagates it
to the current instant.

The two caches expire independently, so snapshots for different limits of
the same group can briefly be backed by different OrbitSets and report
different ``total_orbits``. This is accepted eventual consistency.
"""

import time
from datetime import datetime
from typing import Callable, Optional

from orbit_feed.config import config
from orbit_feed.logging_config import get_logger
from orbit_feed.models import PositionSnapshot
from orbit_feed.orbit_cache import OrbitSetCache, utc_now
from orbit_feed.positions import PositionComputer
from orbit_feed.ttl_cache import TTLCache

logger = get_logger(__name__)

ALL_SATELLITES = "all"


def position_cache_key(group: str, limit: Optional[int]) -> str:
    return f"{group}:{ALL_SATELLITES if limit is None else limit}"


class PositionCache:
    """TTL cache of PositionSnapshot keyed by (group, limit)"""

    def __init__(self, orbit_sets: Optional[OrbitSetCache] = None,
                 computer: Optional[PositionComputer] = None,
                 ttl: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic,
                 now: Callable[[], datetime] = utc_now):
        self.orbit_sets = orbit_sets if orbit_sets is not None else OrbitSetCache()
        self.computer = computer if computer is not None else PositionComputer()
        self.now = now
        self._cache = TTLCache(config.POSITION_CACHE_TTL if ttl is None else ttl, clock)

    def get(self, group: str, limit: Optional[int] = None) -> PositionSnapshot:
        key = position_cache_key(group, limit)
        cached = self._cache.lookup(key)
        if cached is not None:
            return cached

        miss_at = self._cache.clock()
        orbit_set = self.orbit_sets.get(group)
        computed_at = self.now()
        satellites = self.computer.compute(orbit_set.records, computed_at, limit)

        snapshot = PositionSnapshot(
            computed_at=computed_at,
            group=group,
            fetched_at=orbit_set.fetched_at,
            source=orbit_set.source,
            total_orbits=len(orbit_set.records),
            count=len(satellites),
            satellites=tuple(satellites),
        )
        self._cache.store(key, snapshot, now=miss_at)

        logger.debug("Computed position snapshot", key=key,
                     count=snapshot.count, total_orbits=snapshot.total_orbits)
        return snapshot

    def __len__(self) -> int:
        return len(self._cache)
