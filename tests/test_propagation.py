"""
Unit Tests for the SGP4 Propagation Collaborator

Uses the real sgp4 library with the ISS element set, propagated at its own
epoch so the results do not depend on the current date.

Run with:
    python -m pytest tests/test_propagation.py -v
"""

import math
import unittest
from datetime import datetime, timezone

import numpy as np
from sgp4.propagation import gstime

from orbit_feed.positions import PositionComputer
from orbit_feed.normalizer import normalize_record
from orbit_feed.propagation import WGS84_A, Sgp4Propagator, datetime_to_jd_fr
from tests.fakes import ISS_EPOCH, iss_omm


class DecayedSatrec:
    """Stand-in Satrec whose propagation always reports decay"""
    satnum = 99999

    def sgp4(self, jd, fr):
        nan = float("nan")
        return 6, (nan, nan, nan), (nan, nan, nan)


class TestSgp4Propagator(unittest.TestCase):

    def setUp(self):
        self.propagator = Sgp4Propagator()
        self.satellite = self.propagator.build(iss_omm())

    def test_build_from_omm(self):
        self.assertEqual(self.satellite.satnum, 25544)
        self.assertAlmostEqual(math.degrees(self.satellite.inclo), 51.6416, places=4)
        self.assertAlmostEqual(self.satellite.ecco, 0.0004263, places=7)

    def test_build_accepts_string_fields(self):
        satellite = self.propagator.build(iss_omm(NORAD_CAT_ID="25544", MEAN_MOTION="15.49541986"))
        self.assertEqual(satellite.satnum, 25544)

    def test_build_rejects_malformed_records(self):
        broken = iss_omm()
        del broken["MEAN_MOTION"]
        with self.assertRaises(Exception):
            self.propagator.build(broken)

        with self.assertRaises(Exception):
            self.propagator.build(iss_omm(EPOCH="not a date"))

    def test_propagate_at_epoch(self):
        state = self.propagator.propagate(self.satellite, ISS_EPOCH)
        self.assertIsNotNone(state)

        position, velocity = state
        radius = np.linalg.norm(position)
        speed = np.linalg.norm(velocity)

        # ISS is at ~400 km altitude (~6778 km from Earth center), ~7.66 km/s
        self.assertGreater(radius, 6700)
        self.assertLess(radius, 6900)
        self.assertGreater(speed, 7.4)
        self.assertLess(speed, 7.9)

    def test_propagate_reports_failure_as_none(self):
        self.assertIsNone(self.propagator.propagate(DecayedSatrec(), ISS_EPOCH))

    def test_gmst_matches_sgp4(self):
        jd, fr = datetime_to_jd_fr(ISS_EPOCH)
        gmst = self.propagator.gmst(ISS_EPOCH)

        self.assertAlmostEqual(gmst, gstime(jd + fr), places=12)
        self.assertGreaterEqual(gmst, 0.0)
        self.assertLess(gmst, 2 * math.pi)


class TestTimeConversion(unittest.TestCase):

    def test_j2000(self):
        jd, fr = datetime_to_jd_fr(datetime(2000, 1, 1, 12, tzinfo=timezone.utc))
        self.assertAlmostEqual(jd + fr, 2451545.0, places=9)

    def test_naive_datetime_is_utc(self):
        aware = datetime_to_jd_fr(datetime(2024, 3, 1, 6, 30, tzinfo=timezone.utc))
        naive = datetime_to_jd_fr(datetime(2024, 3, 1, 6, 30))
        self.assertAlmostEqual(sum(aware), sum(naive), places=9)

    def test_microseconds_are_kept(self):
        base = sum(datetime_to_jd_fr(datetime(2024, 3, 1, tzinfo=timezone.utc)))
        later = sum(datetime_to_jd_fr(datetime(2024, 3, 1, 0, 0, 0, 500000, tzinfo=timezone.utc)))
        self.assertAlmostEqual((later - base) * 86400.0, 0.5, places=3)


class TestGeodeticConversion(unittest.TestCase):

    def setUp(self):
        self.propagator = Sgp4Propagator()

    def test_equatorial_point(self):
        lat, lon, height = self.propagator.to_geodetic([WGS84_A + 400.0, 0.0, 0.0], 0.0)
        self.assertAlmostEqual(lat, 0.0, places=9)
        self.assertAlmostEqual(lon, 0.0, places=9)
        self.assertAlmostEqual(height, 400.0, places=6)

    def test_sidereal_rotation_shifts_longitude(self):
        _, lon, _ = self.propagator.to_geodetic([0.0, 7000.0, 0.0], math.pi / 2)
        self.assertAlmostEqual(lon, 0.0, places=9)

        _, lon, _ = self.propagator.to_geodetic([7000.0, 0.0, 0.0], math.pi / 2)
        self.assertAlmostEqual(math.degrees(lon), -90.0, places=9)

    def test_longitude_is_left_unwrapped(self):
        _, lon, _ = self.propagator.to_geodetic([-7000.0, -1e-9, 0.0], math.pi)
        self.assertAlmostEqual(math.degrees(lon), -360.0, places=6)

    def test_northern_latitude(self):
        lat, _, height = self.propagator.to_geodetic([4000.0, 0.0, 4000.0], 0.0)
        # Geodetic latitude is slightly poleward of the 45 deg geocentric angle
        self.assertGreater(math.degrees(lat), 45.0)
        self.assertLess(math.degrees(lat), 45.3)
        self.assertGreater(height, -760.0)
        self.assertLess(height, -660.0)


class TestLivePositionPipeline(unittest.TestCase):
    """Normalizer and PositionComputer on top of the real sgp4 library."""

    def test_iss_position_at_epoch(self):
        propagator = Sgp4Propagator()
        record = normalize_record(iss_omm(), propagator.build)

        positions = PositionComputer(propagator).compute([record], ISS_EPOCH)
        self.assertEqual(len(positions), 1)

        iss = positions[0]
        self.assertEqual(iss.norad_id, 25544)
        self.assertEqual(iss.object_name, "ISS (ZARYA)")
        self.assertEqual(iss.object_type, "PAYLOAD")
        self.assertGreater(iss.altitude_km, 350)
        self.assertLess(iss.altitude_km, 450)
        self.assertLessEqual(abs(iss.lat), 52.5)
        self.assertGreaterEqual(iss.lon, -180)
        self.assertLessEqual(iss.lon, 180)
        self.assertGreater(iss.speed_kps, 7.4)
        self.assertLess(iss.speed_kps, 7.9)
        self.assertEqual(iss.lat, round(iss.lat, 5))
        self.assertEqual(iss.altitude_km, round(iss.altitude_km, 2))


if __name__ == "__main__":
    unittest.main()
