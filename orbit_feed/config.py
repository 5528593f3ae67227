"""
Orbit Feed Configuration and Constants

Runtime settings are read from environment variables once at import time;
everything else in this module is a fixed constant shared by the server and
the display client.

Cache lifetimes:
    Element sets change on the order of hours, so parsed orbit sets live for
    30 minutes. Positions must look live, so computed snapshots live for
    5 seconds.

Sources:
    CelesTrak GP data (public access), JSON/OMM format:
    https://celestrak.org/NORAD/elements/gp.php?GROUP=<group>&FORMAT=json
"""

import os
from typing import Dict, Tuple


class OrbitFeedConfig:
    CELESTRAK_BASE = os.getenv('CELESTRAK_API_BASE', 'https://celestrak.org')
    REQUEST_TIMEOUT = float(os.getenv('ORBIT_FEED_REQUEST_TIMEOUT', '25'))  # seconds
    ORBIT_CACHE_TTL = float(os.getenv('ORBIT_CACHE_TTL', '1800'))  # 30 minutes
    POSITION_CACHE_TTL = float(os.getenv('POSITION_CACHE_TTL', '5'))
    DEFAULT_GROUP = os.getenv('ORBIT_FEED_DEFAULT_GROUP', 'active').lower()
    HOST = os.getenv('ORBIT_FEED_HOST', '0.0.0.0')
    PORT = int(os.getenv('ORBIT_FEED_PORT', '5000'))
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

    # Display client
    SERVER_URL = os.getenv('ORBIT_FEED_URL', 'http://localhost:5000')
    REFRESH_INTERVAL = float(os.getenv('ORBIT_FEED_REFRESH_INTERVAL', '10'))
    MOTION_DURATION = float(os.getenv('ORBIT_FEED_MOTION_DURATION', '8.5'))
    FRAME_INTERVAL = 1.0 / 60.0


config = OrbitFeedConfig()

ALLOWED_GROUPS: Tuple[str, ...] = ("active", "stations", "starlink")

GROUP_LABELS: Dict[str, str] = {
    "active": "All Active",
    "starlink": "Starlink",
    "stations": "Stations",
}

NO_CACHE_HEADERS: Dict[str, str] = {
    "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
}

# Mean Earth radius used to scale altitudes for display (km)
DISPLAY_EARTH_RADIUS_KM: float = 6371.0
MIN_POINT_ALTITUDE: float = 0.0015

PAYLOAD_COLOR = "#fde047"
DEBRIS_COLOR = "#fb7185"
ROCKET_COLOR = "#a78bfa"
OTHER_COLOR = "#cbd5e1"
