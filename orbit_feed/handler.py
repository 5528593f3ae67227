"""
Satellite Feed Request Handler

Framework-independent boundary of the position endpoint: validates query
parameters, serves from the PositionCache and maps every failure to a 502
error envelope. A response is either a complete snapshot or an error,
never a partial snapshot.
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, NamedTuple, Optional, Sequence

from orbit_feed.config import ALLOWED_GROUPS, config
from orbit_feed.logging_config import get_logger
from orbit_feed.position_cache import PositionCache

logger = get_logger(__name__)

SERVICE_FAILURE_STATUS = 502
UNKNOWN_FAILURE = "Unknown failure while computing satellite positions"


class FeedResponse(NamedTuple):
    status: int
    body: Dict[str, Any]


class SatelliteFeedHandler:
    """Serves position snapshots for validated (group, limit) requests"""

    def __init__(self, position_cache: Optional[PositionCache] = None,
                 allowed_groups: Sequence[str] = ALLOWED_GROUPS,
                 default_group: Optional[str] = None):
        self.position_cache = position_cache if position_cache is not None else PositionCache()
        self.allowed_groups = frozenset(allowed_groups)
        self.default_group = default_group or config.DEFAULT_GROUP

    def resolve_group(self, group_param: Optional[str]) -> str:
        """Allow-listed group, or the default group for anything else"""
        requested = (group_param or self.default_group).strip().lower()
        return requested if requested in self.allowed_groups else self.default_group

    @staticmethod
    def parse_limit(limit_param: Optional[str]) -> Optional[int]:
        """Positive integer limit, or None meaning "no limit" """
        if not limit_param:
            return None

        try:
            value = float(limit_param)
        except (TypeError, ValueError):
            return None

        if not math.isfinite(value) or value <= 0:
            return None

        limit = math.floor(value)
        return limit if limit >= 1 else None

    def handle(self, group_param: Optional[str] = None,
               limit_param: Optional[str] = None) -> FeedResponse:
        group = self.resolve_group(group_param)
        limit = self.parse_limit(limit_param)

        try:
            snapshot = self.position_cache.get(group, limit)
        except Exception as e:
            logger.exception(f"Failed to serve positions for {group}", limit=limit)
            cause = str(e) or UNKNOWN_FAILURE
            return FeedResponse(SERVICE_FAILURE_STATUS, {
                "error": f"Unable to fetch live satellite positions: {cause}",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            })

        return FeedResponse(200, snapshot.to_json())
