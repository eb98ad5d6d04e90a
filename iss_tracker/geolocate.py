from __future__ import annotations

"""
Visitor geolocation with an ordered fallback chain.

Order:
  1) cached position (1 h TTL)
  2) ipwho.is
  3) ipapi.co
  4) device prompt (interactive terminal only; the counterpart of a
     browser permission prompt)

The first source that yields a Position wins and is cached. Exhausting the
chain returns None; callers show "distance unavailable".
"""

import logging
import sys
from typing import Callable, Dict, Iterable, List, Optional

import requests

from common.kv_cache import KVCache
from common.types import Position


log = logging.getLogger(__name__)


class LocationError(RuntimeError):
    """A single location source could not produce a fix."""


class LocationSource:
    name = "base"

    def locate(self) -> Position:
        raise NotImplementedError


class IpWhoSource(LocationSource):
    """Primary IP geolocation: https://ipwho.is/ (HTTPS, no key)."""

    name = "ipwho"

    def __init__(self, url: str = "https://ipwho.is/", session: Optional[requests.Session] = None, timeout: float = 10.0):
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout

    def locate(self) -> Position:
        r = self.session.get(self.url, timeout=self.timeout)
        if not r.ok:
            raise LocationError(f"ipwho.is returned {r.status_code}")
        data = r.json()
        if not data.get("success"):
            # ipwho.is answers 200 with success:false when rate limited
            raise LocationError(f"ipwho.is failed: {data.get('message')}")
        return Position(lat=data["latitude"], lon=data["longitude"])


class IpApiSource(LocationSource):
    """Secondary IP geolocation: https://ipapi.co/json/ (1000 req/day)."""

    name = "ipapi"

    def __init__(self, url: str = "https://ipapi.co/json/", session: Optional[requests.Session] = None, timeout: float = 10.0):
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout

    def locate(self) -> Position:
        r = self.session.get(self.url, timeout=self.timeout)
        if not r.ok:
            raise LocationError(f"ipapi.co returned {r.status_code}")
        data = r.json()
        lat, lon = data.get("latitude"), data.get("longitude")
        if lat is None or lon is None:
            raise LocationError(f"ipapi.co gave no coordinates: {data.get('reason') or data.get('error')}")
        return Position(lat=lat, lon=lon)


def parse_lat_lon(text: str) -> Position:
    """Parse "lat,lon" (whitespace tolerant). Raises ValueError."""
    parts = [p.strip() for p in text.replace(";", ",").split(",")]
    if len(parts) != 2:
        raise ValueError("expected 'lat,lon'")
    return Position(lat=float(parts[0]), lon=float(parts[1]))


class PromptSource(LocationSource):
    """
    Ask the person at the terminal. An empty answer counts as "denied".
    Only asks when stdin is a TTY; otherwise behaves like a denied prompt.
    """

    name = "prompt"

    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        is_interactive: Callable[[], bool] = lambda: sys.stdin.isatty(),
    ):
        self.input_fn = input_fn
        self.is_interactive = is_interactive

    def locate(self) -> Position:
        if not self.is_interactive():
            raise LocationError("no interactive terminal")
        answer = self.input_fn("Share your location as 'lat,lon' (blank to decline): ").strip()
        if not answer:
            raise LocationError("location prompt declined")
        try:
            return parse_lat_lon(answer)
        except ValueError as e:
            raise LocationError(f"could not parse location: {e}") from e


class LocationResolver:
    def __init__(
        self,
        cache: KVCache,
        sources: Iterable[LocationSource],
        cache_key: str = "user_geo_cache_v1",
        ttl_s: float = 3600.0,
    ):
        self.cache = cache
        self.sources: List[LocationSource] = list(sources)
        self.cache_key = cache_key
        self.ttl_s = ttl_s

    def resolve(self) -> Optional[Position]:
        """
        Walk the chain; return the first Position found, or None.
        """
        cached = self.cache.get_cached(self.cache_key, self.ttl_s)
        if cached is not None:
            try:
                pos = Position.from_dict(cached)
                log.info("User location from cache", extra={"extra": pos.to_dict()})
                return pos
            except (KeyError, TypeError, ValueError) as e:
                log.warning("Ignoring malformed cached location", extra={"extra": {"error": str(e)}})

        for src in self.sources:
            try:
                pos = src.locate()
            except Exception as e:
                log.warning(
                    "Location source failed, trying next",
                    extra={"extra": {"source": src.name, "error": str(e)}},
                )
                continue
            self.cache.set_cached(self.cache_key, pos.to_dict())
            log.info("User location resolved", extra={"extra": {"source": src.name, **pos.to_dict()}})
            return pos

        log.warning("All location sources failed; distance will be unavailable")
        return None


def build_sources(
    loc_cfg: Dict,
    session: Optional[requests.Session] = None,
    timeout: float = 10.0,
) -> List[LocationSource]:
    """
    Instantiate sources in the order named by config `location.providers`.
    The prompt source is dropped when `location.prompt` is false.
    """
    session = session or requests.Session()
    out: List[LocationSource] = []
    for name in loc_cfg.get("providers", ["ipwho", "ipapi", "prompt"]):
        if name == "ipwho":
            out.append(IpWhoSource(loc_cfg.get("ipwho_url", "https://ipwho.is/"), session=session, timeout=timeout))
        elif name == "ipapi":
            out.append(IpApiSource(loc_cfg.get("ipapi_url", "https://ipapi.co/json/"), session=session, timeout=timeout))
        elif name == "prompt":
            if loc_cfg.get("prompt", True):
                out.append(PromptSource())
        else:
            raise ValueError(f"unknown location provider: {name}")
    return out
