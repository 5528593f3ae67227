"""
SGP4 Propagation Collaborator

Thin wrapper around the sgp4 library used by the position pipeline:

- Build a Satrec from a CelesTrak OMM JSON record
- Propagate to an arbitrary UTC instant (TEME position/velocity)
- Greenwich mean sidereal time for a given instant
- TEME to geodetic conversion on the WGS84 ellipsoid

Propagation failures are reported as ``None`` rather than raised, so callers
can drop a single object and carry on with the rest of the batch.
"""

import math
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence, Tuple

import numpy as np
from sgp4 import omm
from sgp4.api import Satrec, jday
from sgp4.propagation import gstime

from orbit_feed.logging_config import get_logger

logger = get_logger(__name__)


# SGP4 error code meanings
SGP4_ERROR_CODES = {
    0: "No error",
    1: "Mean eccentricity < 0.0 or > 1.0",
    2: "Mean motion < 0.0",
    3: "Perturbed eccentricity < 0.0 or > 1.0",
    4: "Semi-latus rectum < 0.0",
    5: "Satellite has decayed",
    6: "Satellite has decayed (low altitude)",
}

# WGS84 ellipsoid (km)
WGS84_A = 6378.137
WGS84_B = 6356.7523142
WGS84_F = (WGS84_A - WGS84_B) / WGS84_A
WGS84_E2 = 2 * WGS84_F - WGS84_F * WGS84_F

GEODETIC_ITERATIONS = 20

StateVector = Tuple[np.ndarray, np.ndarray]


def datetime_to_jd_fr(dt: datetime) -> Tuple[float, float]:
    """
    Convert datetime to Julian date and fraction.

    Naive datetimes are taken to be UTC.

    Args:
        dt: Datetime object

    Returns:
        Tuple of (julian_day, fraction)
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)

    return jday(
        dt.year, dt.month, dt.day,
        dt.hour, dt.minute, dt.second + dt.microsecond / 1e6,
    )


class Sgp4Propagator:
    """
    Propagation collaborator backed by sgp4.

    The position pipeline only relies on the four methods below, so tests
    can substitute any object with the same interface.
    """

    def build(self, raw_record: Mapping[str, Any]) -> Satrec:
        """
        Build a Satrec from an OMM JSON record.

        Raises:
            KeyError, ValueError, TypeError: malformed element set
        """
        satellite = Satrec()
        omm.initialize(satellite, raw_record)

        error = getattr(satellite, "error", 0)
        if error != 0:
            raise ValueError(
                f"SGP4 initialization error {error}: "
                f"{SGP4_ERROR_CODES.get(error, 'Unknown error')}"
            )

        return satellite

    def propagate(self, satellite: Satrec, at_time: datetime) -> Optional[StateVector]:
        """
        Propagate to ``at_time``.

        Returns:
            (position_km, velocity_kms) in TEME, or None when SGP4 reports an error
        """
        jd, fr = datetime_to_jd_fr(at_time)
        error, position, velocity = satellite.sgp4(jd, fr)

        if error != 0:
            logger.debug(
                "SGP4 propagation failed",
                satnum=getattr(satellite, "satnum", None),
                error_code=error,
                error_message=SGP4_ERROR_CODES.get(error, f"Unknown error code {error}"),
            )
            return None

        return np.asarray(position, dtype=float), np.asarray(velocity, dtype=float)

    def gmst(self, at_time: datetime) -> float:
        """Greenwich mean sidereal time (radians) for ``at_time``"""
        jd, fr = datetime_to_jd_fr(at_time)
        return gstime(jd + fr)

    def to_geodetic(self, position: Sequence[float], gmst: float) -> Tuple[float, float, float]:
        """
        Convert a TEME position to geodetic coordinates.

        The longitude is the raw ``atan2(y, x) - gmst`` and therefore lies in
        [-3*pi, pi]; callers normalize it to [-180, 180] degrees.

        Args:
            position: TEME position [x, y, z] in km
            gmst: Greenwich mean sidereal time in radians

        Returns:
            Tuple of (latitude_rad, longitude_rad, height_km)
        """
        x, y, z = (float(component) for component in position)

        r = math.sqrt(x * x + y * y)
        longitude = math.atan2(y, x) - gmst

        # Iterative latitude on the WGS84 ellipsoid
        latitude = math.atan2(z, r)
        c = 1.0
        for _ in range(GEODETIC_ITERATIONS):
            sin_lat = math.sin(latitude)
            c = 1.0 / math.sqrt(1.0 - WGS84_E2 * sin_lat * sin_lat)
            latitude = math.atan2(z + WGS84_A * c * WGS84_E2 * sin_lat, r)

        height = r / math.cos(latitude) - WGS84_A * c

        return latitude, longitude, height
