"""
Position Computation

Propagates a batch of OrbitRecords to one instant and converts the results
to rounded geodetic positions. One sidereal time is shared by the whole
batch so every object is placed in the same Earth-fixed frame. Objects whose
propagation fails or yields non-finite output are skipped; the rest of the
batch is unaffected.
"""

import math
from datetime import datetime
from typing import List, Optional, Sequence

import numpy as np

from orbit_feed.logging_config import get_logger
from orbit_feed.models import OrbitRecord, SatellitePosition
from orbit_feed.propagation import Sgp4Propagator

logger = get_logger(__name__)

ALTITUDE_DECIMALS = 2
LAT_LON_DECIMALS = 5
SPEED_DECIMALS = 3


def normalize_longitude(lon: float) -> float:
    """
    Wrap a longitude in [-540, 540] degrees into [-180, 180].

    Adds or subtracts 360 at most once; non-finite input is returned as is.
    """
    if not math.isfinite(lon):
        return lon

    if lon > 180:
        return lon - 360

    if lon < -180:
        return lon + 360

    return lon


class PositionComputer:
    """Computes SatellitePositions for OrbitRecords at a given instant"""

    def __init__(self, propagator: Optional[Sgp4Propagator] = None):
        self.propagator = propagator if propagator is not None else Sgp4Propagator()

    def compute(self, records: Sequence[OrbitRecord], at_time: datetime,
                limit: Optional[int] = None) -> List[SatellitePosition]:
        """
        Compute positions of the first ``limit`` records (all when None).

        Args:
            records: OrbitRecords in snapshot order
            at_time: Propagation instant (timezone-aware UTC)
            limit: Maximum number of records to consider

        Returns:
            Positions in record order, minus skipped objects
        """
        gmst = self.propagator.gmst(at_time)
        candidates = records if limit is None else records[:limit]
        satellites = []
        skipped = 0

        for record in candidates:
            state = self.propagator.propagate(record.satrec, at_time)
            if state is None:
                skipped += 1
                continue

            position, velocity = state
            if not (np.all(np.isfinite(position)) and np.all(np.isfinite(velocity))):
                skipped += 1
                continue

            latitude, longitude, height = self.propagator.to_geodetic(position, gmst)
            lat = math.degrees(latitude)
            lon = normalize_longitude(math.degrees(longitude))

            if not (math.isfinite(lat) and math.isfinite(lon) and math.isfinite(height)):
                skipped += 1
                continue

            speed_kps = float(np.linalg.norm(velocity))

            satellites.append(SatellitePosition(
                norad_id=record.norad_id,
                lat=round(lat, LAT_LON_DECIMALS),
                lon=round(lon, LAT_LON_DECIMALS),
                altitude_km=round(height, ALTITUDE_DECIMALS),
                speed_kps=round(speed_kps, SPEED_DECIMALS),
                object_name=record.object_name,
                object_type=record.object_type,
                country_code=record.country_code,
                inclination=record.inclination,
                launch_date=record.launch_date,
            ))

        if skipped:
            logger.debug(f"Skipped {skipped} of {len(candidates)} objects during propagation")

        return satellites
