"""
Position Transition Engine

Reconciles each new position snapshot with what is currently displayed and
animates points to their new location instead of snapping:

- The first snapshot populates the display immediately.
- Later snapshots start a transition from the currently rendered points,
  which may themselves be mid-animation, so motion never jumps.
- Objects new to the feed appear at their target; objects gone from the feed
  vanish at once.
- Longitude moves along the shortest arc, crossing the antimeridian rather
  than sweeping back across the globe.

Time comes from a monotonic clock, never wall time.
"""

import time
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional

from orbit_feed.config import (
    DEBRIS_COLOR,
    DISPLAY_EARTH_RADIUS_KM,
    MIN_POINT_ALTITUDE,
    OTHER_COLOR,
    PAYLOAD_COLOR,
    ROCKET_COLOR,
    config,
)
from orbit_feed.models import SatellitePosition
from orbit_feed.positions import normalize_longitude

IDLE = "idle"
ANIMATING = "animating"

PAYLOAD_BUCKET = "payload"
DEBRIS_BUCKET = "debris"
ROCKET_BUCKET = "rocket-body"
OTHER_BUCKET = "other"

BUCKET_ORDER = (PAYLOAD_BUCKET, DEBRIS_BUCKET, ROCKET_BUCKET, OTHER_BUCKET)

BUCKET_COLORS = {
    PAYLOAD_BUCKET: PAYLOAD_COLOR,
    DEBRIS_BUCKET: DEBRIS_COLOR,
    ROCKET_BUCKET: ROCKET_COLOR,
    OTHER_BUCKET: OTHER_COLOR,
}


class DisplayPoint(SatellitePosition):
    """SatellitePosition decorated for rendering"""
    bucket: str
    color: str
    lng: float
    point_altitude: float


class Transition(NamedTuple):
    start: float
    duration: float
    origin: Dict[int, DisplayPoint]
    target: Dict[int, DisplayPoint]


def ease_in_out_cubic(value: float) -> float:
    if value < 0.5:
        return 4 * value * value * value

    return 1 - pow(-2 * value + 2, 3) / 2


def longitude_delta(origin: float, target: float) -> float:
    """Signed shortest-arc difference target - origin, in [-180, 180)"""
    return ((target - origin + 540) % 360) - 180


def point_altitude(altitude_km: float) -> float:
    """Altitude as a fraction of the Earth radius, floored for visibility"""
    return max(MIN_POINT_ALTITUDE, altitude_km / DISPLAY_EARTH_RADIUS_KM)


def get_satellite_bucket(object_type: Optional[str]) -> str:
    if not object_type:
        return OTHER_BUCKET

    upper_type = object_type.upper()

    if upper_type in ("PAYLOAD", "PAY"):
        return PAYLOAD_BUCKET

    if "DEBRIS" in upper_type or upper_type == "DEB":
        return DEBRIS_BUCKET

    if "ROCKET" in upper_type or "R/B" in upper_type or upper_type == "RB":
        return ROCKET_BUCKET

    return OTHER_BUCKET


def make_display_point(satellite: SatellitePosition) -> DisplayPoint:
    bucket = get_satellite_bucket(satellite.object_type)

    return DisplayPoint(
        **satellite.model_dump(),
        bucket=bucket,
        color=BUCKET_COLORS[bucket],
        lng=normalize_longitude(satellite.lon),
        point_altitude=point_altitude(satellite.altitude_km),
    )


def group_points_by_bucket(points: Iterable[DisplayPoint]) -> List[List[DisplayPoint]]:
    """Non-empty point lists in payload, debris, rocket-body, other order"""
    groups: Dict[str, List[DisplayPoint]] = {bucket: [] for bucket in BUCKET_ORDER}
    for point in points:
        groups[point.bucket].append(point)

    return [groups[bucket] for bucket in BUCKET_ORDER if groups[bucket]]


def _format_optional(value: Optional[float], fmt: str) -> str:
    return "Unknown" if value is None else format(value, fmt)


def describe_point(point: DisplayPoint) -> str:
    """Multi-line focus label for one displayed object"""
    return "\n".join([
        point.object_name,
        f"NORAD ID: {point.norad_id}",
        f"Type: {point.object_type or 'Unknown'}",
        f"Altitude: {point.altitude_km:.2f} km",
        f"Speed: {point.speed_kps:.3f} km/s",
        f"Position: {point.lat:.2f} lat, {point.lng:.2f} lon",
        f"Inclination: {_format_optional(point.inclination, '.2f')} deg",
        f"Launch Date: {point.launch_date or 'Unknown'}",
        f"Country: {point.country_code or 'Unknown'}",
    ])


class TransitionEngine:
    """
    Interpolates the rendered map between successive snapshots.

    Not thread-safe; DisplaySession serializes access.

    Args:
        duration: Transition length in seconds
        clock: Monotonic clock in seconds
    """

    def __init__(self, duration: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.duration = config.MOTION_DURATION if duration is None else duration
        self.clock = clock
        self.rendered: Dict[int, DisplayPoint] = {}
        self.transition: Optional[Transition] = None

    @property
    def state(self) -> str:
        return IDLE if self.transition is None else ANIMATING

    @property
    def is_animating(self) -> bool:
        return self.transition is not None

    def points(self) -> List[DisplayPoint]:
        return list(self.rendered.values())

    def apply_snapshot(self, satellites: Iterable[SatellitePosition]) -> None:
        """Start moving the display toward ``satellites``"""
        target = {
            satellite.norad_id: make_display_point(satellite)
            for satellite in satellites
        }

        if not self.rendered:
            self.rendered = target
            self.transition = None
            return

        origin = {
            norad_id: self.rendered.get(norad_id, point)
            for norad_id, point in target.items()
        }

        self.rendered = dict(origin)
        self.transition = Transition(
            start=self.clock(),
            duration=self.duration,
            origin=origin,
            target=target,
        )

    def progress(self, now: Optional[float] = None) -> float:
        """Linear progress of the active transition in [0, 1]"""
        if self.transition is None:
            return 1.0

        if now is None:
            now = self.clock()

        if self.transition.duration <= 0:
            return 1.0

        elapsed = (now - self.transition.start) / self.transition.duration
        return min(1.0, max(0.0, elapsed))

    def step(self, now: Optional[float] = None) -> bool:
        """
        Render one animation frame.

        Returns:
            True while the transition is still in flight
        """
        transition = self.transition
        if transition is None:
            return False

        progress = self.progress(now)
        eased = ease_in_out_cubic(progress)
        frame = {}

        for norad_id, target in transition.target.items():
            origin = transition.origin.get(norad_id, target)
            altitude_km = origin.altitude_km + (target.altitude_km - origin.altitude_km) * eased

            frame[norad_id] = target.model_copy(update={
                "altitude_km": altitude_km,
                "lat": origin.lat + (target.lat - origin.lat) * eased,
                "lng": normalize_longitude(
                    origin.lng + longitude_delta(origin.lng, target.lng) * eased
                ),
                "point_altitude": point_altitude(altitude_km),
            })

        self.rendered = frame

        if progress < 1:
            return True

        self.transition = None
        return False
