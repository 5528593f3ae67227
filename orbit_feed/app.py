"""
Orbit Feed Microservice - Live satellite positions over HTTP

Endpoints:
    GET /api/satellites?group=<active|stations|starlink>&limit=<n>
    GET /health
"""

import traceback
from datetime import datetime, timezone
from typing import Optional

from flask import Flask, current_app, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from orbit_feed import __version__
from orbit_feed.config import NO_CACHE_HEADERS
from orbit_feed.handler import SatelliteFeedHandler
from orbit_feed.logging_config import get_logger

logger = get_logger(__name__)

HANDLER_EXTENSION = "orbit_feed"


def _handler() -> SatelliteFeedHandler:
    return current_app.extensions[HANDLER_EXTENSION]


def create_app(handler: Optional[SatelliteFeedHandler] = None) -> Flask:
    """
    Build the Flask application.

    Args:
        handler: Request handler wired to the process-wide caches; a default
            one (live CelesTrak fetcher, sgp4 propagator) is built when omitted
    """
    app = Flask(__name__)
    CORS(app)
    app.extensions[HANDLER_EXTENSION] = handler if handler is not None else SatelliteFeedHandler()

    @app.route('/api/satellites', methods=['GET'])
    def get_satellite_positions():
        """Current positions of a satellite group"""
        response = _handler().handle(
            request.args.get('group'),
            request.args.get('limit'),
        )
        return jsonify(response.body), response.status, NO_CACHE_HEADERS

    @app.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint"""
        handler = _handler()
        position_cache = handler.position_cache

        status = {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
            "sgp4_engine": "direct",
            "services": {
                "orbit_sets_cached": len(position_cache.orbit_sets),
                "position_snapshots_cached": len(position_cache),
            },
            "configuration": {
                "default_group": handler.default_group,
                "allowed_groups": sorted(handler.allowed_groups),
            },
        }

        return jsonify(status), 200, NO_CACHE_HEADERS

    @app.errorhandler(Exception)
    def handle_error(error):
        """Global error handler"""
        if isinstance(error, HTTPException):
            return error
        logger.error(f"Unhandled error: {error}\n{traceback.format_exc()}")
        return jsonify({
            "error": "Internal server error",
            "timestamp": datetime.now(timezone.utc).isoformat()
        }), 500

    return app
