"""
Tests for the Position Snapshot Cache

Run with:
    python -m pytest tests/test_position_cache.py -v
"""

import unittest

from pydantic import ValidationError

from orbit_feed.fetcher import FetchTimeoutError
from orbit_feed.orbit_cache import OrbitSetCache
from orbit_feed.position_cache import PositionCache, position_cache_key
from orbit_feed.positions import PositionComputer
from tests.fakes import (
    ISS_EPOCH,
    FakeClock,
    FakeFetcher,
    FakePropagator,
    fake_record,
    make_position,
    make_snapshot,
)


class CountingComputer(PositionComputer):
    def __init__(self, propagator):
        super().__init__(propagator)
        self.calls = []

    def compute(self, records, at_time, limit=None):
        self.calls.append(limit)
        return super().compute(records, at_time, limit)


class TestPositionCacheKey(unittest.TestCase):

    def test_keys(self):
        self.assertEqual(position_cache_key("active", None), "active:all")
        self.assertEqual(position_cache_key("active", 50), "active:50")
        self.assertNotEqual(position_cache_key("active", 5), position_cache_key("starlink", 5))


class TestPositionCache(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.fetcher = FakeFetcher([
            fake_record(1),
            fake_record(2, position=None),
            fake_record(3),
            fake_record(4),
        ])
        propagator = FakePropagator()
        self.orbit_sets = OrbitSetCache(fetcher=self.fetcher, propagator=propagator,
                                        ttl=1800.0, clock=self.clock, now=lambda: ISS_EPOCH)
        self.computer = CountingComputer(propagator)
        self.cache = PositionCache(orbit_sets=self.orbit_sets, computer=self.computer,
                                   ttl=5.0, clock=self.clock, now=lambda: ISS_EPOCH)

    def test_snapshot_envelope(self):
        snapshot = self.cache.get("stations")

        self.assertEqual(snapshot.group, "stations")
        self.assertEqual(snapshot.computed_at, ISS_EPOCH)
        self.assertEqual(snapshot.fetched_at, ISS_EPOCH)
        self.assertEqual(snapshot.source, self.fetcher.group_url("stations"))
        self.assertEqual(snapshot.total_orbits, 4)
        self.assertEqual(snapshot.count, 3)
        self.assertEqual([s.norad_id for s in snapshot.satellites], [1, 3, 4])

    def test_limited_snapshot_reports_full_total(self):
        snapshot = self.cache.get("stations", limit=2)

        self.assertEqual(snapshot.total_orbits, 4)
        self.assertEqual(snapshot.count, 1)
        self.assertEqual([s.norad_id for s in snapshot.satellites], [1])

    def test_hit_returns_same_snapshot(self):
        first = self.cache.get("stations")
        self.clock.advance(4.9)
        second = self.cache.get("stations")

        self.assertIs(first, second)
        self.assertEqual(len(self.computer.calls), 1)

    def test_expiry_recomputes_without_refetch(self):
        first = self.cache.get("stations")
        self.clock.advance(5.0)
        second = self.cache.get("stations")

        self.assertIsNot(first, second)
        self.assertEqual(len(self.computer.calls), 2)
        self.assertEqual(len(self.fetcher.calls), 1)

    def test_limits_are_cached_separately(self):
        self.cache.get("stations")
        self.cache.get("stations", limit=2)
        self.cache.get("stations", limit=2)

        self.assertEqual(self.computer.calls, [None, 2])
        self.assertEqual(len(self.cache), 2)
        self.assertEqual(len(self.fetcher.calls), 1)

    def test_orbit_failure_propagates_and_is_not_cached(self):
        self.fetcher.error = FetchTimeoutError("timeout")
        with self.assertRaises(FetchTimeoutError):
            self.cache.get("stations")
        self.assertEqual(len(self.cache), 0)

        self.fetcher.error = None
        self.assertEqual(self.cache.get("stations").count, 3)


class TestInjectedCollaborators(unittest.TestCase):
    """Empty caches are falsy; they must still be used when passed in."""

    def test_empty_orbit_set_cache_is_kept(self):
        fetcher = FakeFetcher([fake_record(1)])
        propagator = FakePropagator()
        orbit_sets = OrbitSetCache(fetcher=fetcher, propagator=propagator)
        computer = PositionComputer(propagator)
        self.assertEqual(len(orbit_sets), 0)

        cache = PositionCache(orbit_sets=orbit_sets, computer=computer, now=lambda: ISS_EPOCH)

        self.assertIs(cache.orbit_sets, orbit_sets)
        self.assertIs(cache.computer, computer)
        self.assertIs(orbit_sets.fetcher, fetcher)
        self.assertIs(orbit_sets.propagator, propagator)

        self.assertEqual(cache.get("stations").count, 1)
        self.assertEqual(fetcher.calls, [fetcher.group_url("stations")])


class TestPositionSnapshotModel(unittest.TestCase):

    def test_count_must_match_satellites(self):
        snapshot = make_snapshot([make_position(1)])
        with self.assertRaises(ValidationError):
            snapshot.model_validate({**snapshot.to_json(), "count": 2})

    def test_json_uses_camel_case(self):
        body = make_snapshot([make_position(25544, object_type=None)]).to_json()

        self.assertEqual(
            set(body),
            {"computedAt", "group", "fetchedAt", "source", "totalOrbits", "count", "satellites"},
        )
        satellite = body["satellites"][0]
        self.assertEqual(satellite["noradId"], 25544)
        self.assertIn("altitudeKm", satellite)
        self.assertIn("speedKps", satellite)
        self.assertIsNone(satellite["objectType"])
        self.assertTrue(body["computedAt"].startswith("2023-09-16T13:49:09.120"))

    def test_round_trip_through_aliases(self):
        snapshot = make_snapshot([make_position(1), make_position(2)])
        self.assertEqual(type(snapshot).model_validate(snapshot.to_json()), snapshot)


if __name__ == "__main__":
    unittest.main()
