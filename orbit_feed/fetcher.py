"""
CelesTrak GP Feed Fetcher

Fetches OMM JSON element sets for a satellite group. The requests timeout
bounds connecting and each socket read; the body is streamed against an
overall deadline of the same length, so a slow upstream cannot stretch one
fetch past REQUEST_TIMEOUT. Failures are raised, never retried.
"""

import json
import time
from typing import Any, Callable, List, Optional

import requests

from orbit_feed.config import config
from orbit_feed.logging_config import get_logger

logger = get_logger(__name__)

CHUNK_SIZE = 64 * 1024


class FeedError(RuntimeError):
    """Base class for upstream feed failures"""


class FetchError(FeedError):
    """Transport-level failure talking to the upstream feed"""


class FetchTimeoutError(FetchError):
    """Upstream did not answer within the request timeout"""


class UpstreamHTTPError(FetchError):
    """Upstream answered with a non-success status"""

    def __init__(self, status_code: int, url: str):
        super().__init__(f"CelesTrak orbit request failed ({status_code})")
        self.status_code = status_code
        self.url = url


class PayloadError(FeedError):
    """Upstream body is not a JSON array of records"""


def build_group_feed_url(base_url: str, group: str) -> str:
    return f"{base_url.rstrip('/')}/NORAD/elements/gp.php?GROUP={group}&FORMAT=json"


class OrbitFeedFetcher:
    """HTTP client for the CelesTrak GP endpoint"""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.base_url = base_url or config.CELESTRAK_BASE
        self.timeout = config.REQUEST_TIMEOUT if timeout is None else timeout
        self.session = session if session is not None else requests.Session()
        self.clock = clock

    def group_url(self, group: str) -> str:
        return build_group_feed_url(self.base_url, group)

    def fetch(self, url: str) -> List[Any]:
        """
        Fetch and decode one GP JSON payload.

        Args:
            url: Feed URL (see ``group_url``)

        Returns:
            List of raw OMM records

        Raises:
            FetchTimeoutError: request exceeded the timeout
            UpstreamHTTPError: non-success HTTP status
            FetchError: any other transport failure
            PayloadError: body is not a JSON array
        """
        deadline = self.clock() + self.timeout

        try:
            response = self.session.get(
                url,
                timeout=self.timeout,
                headers={"Accept": "application/json"},
                stream=True,
            )
        except requests.Timeout as e:
            raise self._timed_out(url) from e
        except requests.RequestException as e:
            logger.error(f"Orbit feed request failed: {e}")
            raise FetchError(f"CelesTrak orbit request failed: {e}") from e

        try:
            if not response.ok:
                logger.error(f"Orbit feed returned HTTP {response.status_code}: {url}")
                raise UpstreamHTTPError(response.status_code, url)

            body = self._read_body(response, deadline, url)
        finally:
            response.close()

        try:
            payload = json.loads(body)
        except ValueError as e:
            raise PayloadError(f"CelesTrak returned invalid JSON: {e}") from e

        if not isinstance(payload, list):
            raise PayloadError(
                f"CelesTrak returned {type(payload).__name__}, expected a list of records"
            )

        return payload

    def _read_body(self, response: requests.Response, deadline: float, url: str) -> bytes:
        chunks = []
        try:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if self.clock() > deadline:
                    raise self._timed_out(url)
                chunks.append(chunk)
        except requests.Timeout as e:
            raise self._timed_out(url) from e
        except requests.RequestException as e:
            logger.error(f"Orbit feed transfer failed: {e}")
            raise FetchError(f"CelesTrak orbit request failed: {e}") from e

        return b"".join(chunks)

    def _timed_out(self, url: str) -> FetchTimeoutError:
        logger.error(f"Orbit feed request timed out after {self.timeout}s: {url}")
        return FetchTimeoutError(f"CelesTrak orbit request timed out after {self.timeout:g}s")
