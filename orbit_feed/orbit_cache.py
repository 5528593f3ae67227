"""
Orbit Set Cache

Keeps the parsed element sets of each satellite group for ORBIT_CACHE_TTL.
On a miss the group feed is fetched, every record is normalized, and the
survivors replace the previous OrbitSet for that group in one assignment.
Fetch failures propagate to the caller; a stale OrbitSet is never served.
"""

from collections import Counter
from datetime import datetime, timezone
import time
from typing import Callable, Optional

from orbit_feed.config import config
from orbit_feed.fetcher import OrbitFeedFetcher
from orbit_feed.logging_config import get_logger
from orbit_feed.models import OrbitSet
from orbit_feed.normalizer import Discarded, normalize_record
from orbit_feed.propagation import Sgp4Propagator
from orbit_feed.ttl_cache import TTLCache

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OrbitSetCache:
    """
    TTL cache of OrbitSet keyed by group name.

    Created once at process start and shared by all request threads.
    """

    def __init__(self, fetcher: Optional[OrbitFeedFetcher] = None,
                 propagator: Optional[Sgp4Propagator] = None,
                 ttl: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic,
                 now: Callable[[], datetime] = utc_now):
        self.fetcher = fetcher if fetcher is not None else OrbitFeedFetcher()
        self.propagator = propagator if propagator is not None else Sgp4Propagator()
        self.now = now
        self._cache = TTLCache(config.ORBIT_CACHE_TTL if ttl is None else ttl, clock)

    def get(self, group: str) -> OrbitSet:
        """
        Return the OrbitSet for ``group``, fetching it on a miss.

        Raises:
            FeedError: upstream fetch failed or returned a malformed payload
        """
        cached = self._cache.lookup(group)
        if cached is not None:
            return cached

        miss_at = self._cache.clock()
        source = self.fetcher.group_url(group)
        payload = self.fetcher.fetch(source)

        records = []
        discarded = Counter()
        for raw in payload:
            outcome = normalize_record(raw, self.propagator.build)
            if isinstance(outcome, Discarded):
                discarded[outcome.reason] += 1
                logger.debug("Discarded orbit record", group=group,
                             reason=outcome.reason, norad_id=outcome.norad_id)
                continue
            records.append(outcome)

        orbit_set = OrbitSet(
            group=group,
            fetched_at=self.now(),
            source=source,
            records=tuple(records),
            discarded=sum(discarded.values()),
        )
        self._cache.store(group, orbit_set, now=miss_at)

        logger.info(
            f"Fetched {len(records)} orbit records for {group}",
            discarded=dict(discarded),
            source=source,
        )
        return orbit_set

    def __len__(self) -> int:
        return len(self._cache)
