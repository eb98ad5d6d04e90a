from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from common.geo import haversine_km
from common.kv_cache import KVCache
from common.types import (
    IssReadout,
    Position,
    STATUS_CACHED,
    STATUS_LIVE,
    STATUS_LOST,
    STATUS_WEAK,
)
from iss_tracker.client import ISSClient


log = logging.getLogger(__name__)

WEAK_SIGNAL_TEXT = "Connection Weak..."
LOST_HEADLINE = "Signal Lost"
LOST_DETAIL = "Unable to contact station."
NO_USER_DETAIL = "Distance unavailable (User location unknown)."

STATUS_TEXT = {
    STATUS_LIVE: "Live",
    STATUS_CACHED: "Live (cached)",
    STATUS_WEAK: WEAK_SIGNAL_TEXT,
    STATUS_LOST: LOST_HEADLINE,
}

Listener = Callable[[Optional[Position], Optional[Position]], None]


@dataclass
class TrackerState:
    """Latest positions shared between the poller and the orbit view."""
    iss: Position
    user: Optional[Position] = None


def render_readout(iss: Position, user: Optional[Position], status: str) -> IssReadout:
    """
    Build the widget text for an ISS position.

    With a user position: "12,345 km away" / "ISS at Lat: .., Lon: ..".
    Without: the coordinates become the headline.
    """
    coord_text = f"ISS at Lat: {iss.lat:.2f}, Lon: {iss.lon:.2f}"
    if user is not None:
        d = haversine_km(user.lat, user.lon, iss.lat, iss.lon)
        # halves round up
        headline = f"{math.floor(d + 0.5):,} km away"
        detail = coord_text
    else:
        headline = f"Lat: {iss.lat:.2f}, Lon: {iss.lon:.2f}"
        detail = NO_USER_DETAIL
    return IssReadout(headline=headline, detail=detail, status=status, iss=iss, user=user)


class ISSTracker:
    """
    Rate-limited, cached poller for the ISS position.

    Each update():
      - returns None at once if a request is already in flight;
      - serves the cache while it is younger than the rate-limit window;
      - otherwise fetches; on failure falls back to a cache entry younger
        than stale_ttl_s ("weak"), or reports "Signal Lost".
    """

    def __init__(
        self,
        client: ISSClient,
        cache: KVCache,
        user: Optional[Position] = None,
        *,
        cache_key: str = "iss_pos_cache_v1",
        rate_limit_window_s: float = 2.0,
        stale_ttl_s: float = 60.0,
        poll_interval_s: float = 5.0,
    ):
        self.client = client
        self.cache = cache
        self.cache_key = cache_key
        self.rate_limit_window_s = rate_limit_window_s
        self.stale_ttl_s = stale_ttl_s
        self.poll_interval_s = poll_interval_s

        self.state = TrackerState(iss=Position(0.0, 0.0), user=user)
        self.last_readout: Optional[IssReadout] = None
        self._in_flight = threading.Lock()
        self._listeners: List[Listener] = []
        self._readout_listeners: List[Callable[[IssReadout], None]] = []

    # ----------------------------
    # Public API
    # ----------------------------
    def add_listener(self, fn: Listener) -> None:
        self._listeners.append(fn)

    def add_readout_listener(self, fn: Callable[[IssReadout], None]) -> None:
        """Called with every readout, including the lost state."""
        self._readout_listeners.append(fn)

    def set_user(self, user: Optional[Position]) -> None:
        """Swap the visitor position; the next readout measures from it."""
        self.state.user = user

    def update(self) -> Optional[IssReadout]:
        """One poll tick. Returns the readout, or None if skipped."""
        if not self._in_flight.acquire(blocking=False):
            log.debug("ISS request already pending; skipping tick")
            return None
        try:
            readout = self._tick()
        finally:
            self._in_flight.release()
        for fn in self._readout_listeners:
            try:
                fn(readout)
            except Exception:
                log.exception("ISS readout listener failed")
        return readout

    def run(self, stop_event: threading.Event) -> None:
        """Poll at a fixed interval until stop_event is set."""
        log.info("ISS tracker started", extra={"extra": {"interval_s": self.poll_interval_s}})
        while not stop_event.is_set():
            self.update()
            stop_event.wait(self.poll_interval_s)
        log.info("ISS tracker stopped")

    # ----------------------------
    # internals
    # ----------------------------
    def _cached_position(self, ttl_s: float) -> Optional[Position]:
        payload = self.cache.get_cached(self.cache_key, ttl_s)
        if payload is None:
            return None
        try:
            return Position.from_dict(payload)
        except (KeyError, TypeError, ValueError):
            log.warning("Ignoring malformed ISS cache entry")
            return None

    def _tick(self) -> IssReadout:
        fresh = self._cached_position(self.rate_limit_window_s)
        if fresh is not None:
            return self._publish(fresh, STATUS_CACHED)

        try:
            pos = self.client.fetch_position()
        except Exception as e:
            log.error("ISS Update Error", exc_info=True, extra={"extra": {"error": str(e)}})
            stale = self._cached_position(self.stale_ttl_s)
            if stale is not None:
                return self._publish(stale, STATUS_WEAK)
            readout = IssReadout(headline=LOST_HEADLINE, detail=LOST_DETAIL, status=STATUS_LOST, user=self.state.user)
            self.last_readout = readout
            return readout

        self.cache.set_cached(self.cache_key, pos.to_dict())
        return self._publish(pos, STATUS_LIVE)

    def _publish(self, iss: Position, status: str) -> IssReadout:
        self.state.iss = iss
        readout = render_readout(iss, self.state.user, status)
        self.last_readout = readout
        for fn in self._listeners:
            try:
                fn(iss, self.state.user)
            except Exception:
                log.exception("ISS listener failed")
        return readout
