"""
Orbit Feed Command Line

Usage:
    orbit-feed serve [--host HOST] [--port PORT] [--verbose]
    orbit-feed watch [--url URL] [--group GROUP] [--seconds N] [--verbose]

Commands:
    serve: Run the position endpoint with the threaded Flask server
    watch: Follow a running server and log what a display would render
"""

import argparse
import logging
import time
from typing import List, Optional

from orbit_feed.client.feed_client import FeedClient
from orbit_feed.client.session import DisplaySession
from orbit_feed.client.transition import DisplayPoint, group_points_by_bucket
from orbit_feed.config import ALLOWED_GROUPS, GROUP_LABELS, config
from orbit_feed.logging_config import configure_logging, get_logger

logger = get_logger(__name__)


def serve(host: str, port: int) -> None:
    from orbit_feed.app import create_app

    logger.info("Starting Orbit Feed Microservice", host=host, port=port)
    create_app().run(host=host, port=port, debug=False, threaded=True)


def watch(url: str, group: str, seconds: float) -> None:
    """Run a DisplaySession for ``seconds`` and log each refresh"""
    frames = 0

    def on_frame(points: List[DisplayPoint]) -> None:
        nonlocal frames
        frames += 1

    session = DisplaySession(client=FeedClient(base_url=url), group=group, on_frame=on_frame)
    deadline = time.monotonic() + seconds
    session.start()

    try:
        while time.monotonic() < deadline:
            time.sleep(config.REFRESH_INTERVAL)
            buckets = {
                points[0].bucket: len(points)
                for points in group_points_by_bucket(session.points())
            }
            logger.info(
                f"{GROUP_LABELS.get(group, group)}: {sum(buckets.values())} visible",
                status=session.status,
                total_orbits=session.total_orbits,
                last_computed_at=(
                    session.last_computed_at.isoformat() if session.last_computed_at else None
                ),
                buckets=buckets,
                frames=frames,
            )
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        session.close()


def main(argv: Optional[List[str]] = None) -> None:
    """Command line entry point."""
    parser = argparse.ArgumentParser(description="Live satellite position feed")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the position endpoint")
    serve_parser.add_argument("--host", default=config.HOST)
    serve_parser.add_argument("--port", type=int, default=config.PORT)

    watch_parser = subparsers.add_parser("watch", help="Follow a running server")
    watch_parser.add_argument("--url", default=config.SERVER_URL)
    watch_parser.add_argument("--group", choices=ALLOWED_GROUPS, default=config.DEFAULT_GROUP)
    watch_parser.add_argument("--seconds", type=float, default=60.0,
                              help="How long to watch before exiting")

    args = parser.parse_args(argv)

    configure_logging(level=logging.DEBUG if args.verbose else getattr(logging, config.LOG_LEVEL, logging.INFO))

    if args.command == "serve":
        serve(args.host, args.port)
    else:
        watch(args.url, args.group, args.seconds)


if __name__ == "__main__":
    main()
