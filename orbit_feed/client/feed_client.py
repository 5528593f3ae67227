"""
Position feed client

Fetches position snapshots from a running orbit feed server.
"""

from typing import Optional

import requests
from pydantic import ValidationError

from orbit_feed.config import config
from orbit_feed.fetcher import FeedError
from orbit_feed.models import PositionSnapshot


class FeedUnavailableError(FeedError):
    """The position endpoint failed or returned an unusable body"""


class FeedClient:
    """HTTP client for ``GET /api/satellites``"""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url or config.SERVER_URL).rstrip('/')
        self.timeout = config.REQUEST_TIMEOUT if timeout is None else timeout
        self.session = session if session is not None else requests.Session()

    def fetch_snapshot(self, group: str, limit: Optional[int] = None) -> PositionSnapshot:
        """
        Fetch the current position snapshot of ``group``.

        Raises:
            FeedUnavailableError: transport failure, non-success status or
                malformed envelope
        """
        params = {"group": group}
        if limit is not None:
            params["limit"] = str(limit)

        try:
            response = self.session.get(
                f"{self.base_url}/api/satellites",
                params=params,
                timeout=self.timeout,
                headers={"Cache-Control": "no-store"},
            )
        except requests.RequestException as e:
            raise FeedUnavailableError(f"Satellite feed request failed: {e}") from e

        try:
            if not response.ok:
                raise FeedUnavailableError(
                    f"Satellite feed request failed ({response.status_code})"
                )
            return PositionSnapshot.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise FeedUnavailableError(f"Satellite feed returned an invalid body: {e}") from e
        finally:
            response.close()
