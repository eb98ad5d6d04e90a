from __future__ import annotations

"""
HTTP client for the wheretheiss.at position API.

Usage:
    client = ISSClient()
    pos = client.fetch_position()   # Position(lat, lon); raises ISSFetchError
"""

import logging
from typing import Optional

import requests

from common.types import Position


log = logging.getLogger(__name__)

ISS_NORAD_ID = 25544
DEFAULT_URL = f"https://api.wheretheiss.at/v1/satellites/{ISS_NORAD_ID}"


class ISSFetchError(RuntimeError):
    """Raised when the position API cannot produce a usable fix."""


class ISSClient:
    def __init__(
        self,
        url: str = DEFAULT_URL,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ):
        """
        Params:
            url: satellite endpoint (defaults to the ISS, NORAD 25544)
            session: optional requests.Session for connection reuse
            timeout: per-request timeout in seconds
        """
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch_position(self) -> Position:
        """
        GET the current sub-satellite point.

        Raises:
            ISSFetchError on HTTP 429, any other non-2xx status, or a body
            without numeric latitude/longitude. Network errors from requests
            propagate unchanged.
        """
        r = self.session.get(self.url, timeout=self.timeout)

        if r.status_code == 429:
            raise ISSFetchError("Rate limit exceeded")

        # X-Rl carries the remaining request budget for the window
        remaining = r.headers.get("X-Rl")
        if remaining is not None and remaining.strip().isdigit() and int(remaining) == 0:
            log.warning("ISS API Throttled")

        if not r.ok:
            raise ISSFetchError(f"ISS API failed: {r.status_code}")

        data = r.json()
        try:
            return Position(lat=data["latitude"], lon=data["longitude"])
        except (KeyError, TypeError, ValueError) as e:
            raise ISSFetchError(f"ISS API returned an unusable body: {e}") from e
