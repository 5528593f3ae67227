"""
Live Orbit Feed Package

Serves near-real-time geodetic positions of tracked satellites from CelesTrak
element sets propagated with the sgp4 library, and provides a client that
animates successive position snapshots.

Modules:
    normalizer: OMM record sanitization into OrbitRecord entities
    propagation: sgp4 wrapper (Satrec construction, propagation, geodetic conversion)
    orbit_cache: TTL cache of parsed element sets per group
    positions: geodetic position computation for a batch of records
    position_cache: TTL cache of computed position snapshots
    handler: request validation and failure mapping
    app: Flask application
    client: feed client, transition engine and display session
"""

__version__ = "1.0.0"
