from __future__ import annotations

"""
ISS tracker service: resolve the visitor's location, poll the ISS, draw the orbit.

Examples:
  # Window + polling loop (press q to quit)
  python -m iss_tracker.service

  # Headless, 60 s, fixed location, snapshot at the end
  python -m iss_tracker.service --no-window --duration 60 --lat 51.5 --lon -0.12 \
      --snapshot runtime/orbit.png

  # One tick, print the readout and exit
  python -m iss_tracker.service --once
"""

import argparse
import json
import logging
import sys
import threading
import time
from typing import Dict, Optional

import requests

from common.config import load_config
from common.kv_cache import KVCache
from common.logging_setup import setup_logging
from common.types import IssReadout, Position
from iss_tracker.client import ISSClient
from iss_tracker.geolocate import LocationResolver, build_sources
from iss_tracker.orbit_view import OrbitView
from iss_tracker.tracker import ISSTracker, STATUS_TEXT


log = logging.getLogger("iss_tracker")


def resolve_user(P: Dict, cache: KVCache, session: requests.Session, lat: Optional[float], lon: Optional[float]) -> Optional[Position]:
    if lat is not None and lon is not None:
        return Position(lat=lat, lon=lon)
    loc = P["location"]
    resolver = LocationResolver(
        cache,
        build_sources(loc, session=session, timeout=float(P["http"]["timeout_s"])),
        cache_key=loc["cache_key"],
        ttl_s=float(loc["ttl_s"]),
    )
    return resolver.resolve()


def build_tracker(P: Dict, cache: KVCache, session: requests.Session, user: Optional[Position]) -> ISSTracker:
    iss = P["iss"]
    client = ISSClient(iss["url"], session=session, timeout=float(P["http"]["timeout_s"]))
    return ISSTracker(
        client,
        cache,
        user,
        cache_key=iss["cache_key"],
        rate_limit_window_s=float(iss["rate_limit_window_s"]),
        stale_ttl_s=float(iss["stale_ttl_s"]),
        poll_interval_s=float(iss["poll_interval_s"]),
    )


def print_readout(readout: IssReadout) -> None:
    print(f"[{STATUS_TEXT.get(readout.status, readout.status)}] {readout.headline} | {readout.detail}", flush=True)


def main() -> None:
    ap = argparse.ArgumentParser(description="ISS tracker")
    ap.add_argument("--config", default="config/params.yaml")
    ap.add_argument("--lat", type=float, default=None, help="Fixed user latitude (skips geolocation)")
    ap.add_argument("--lon", type=float, default=None, help="Fixed user longitude (skips geolocation)")
    ap.add_argument("--refresh-location", action="store_true", help="Drop the cached user location first")
    ap.add_argument("--no-prompt", action="store_true", help="Never ask for the location on this terminal")
    ap.add_argument("--once", action="store_true", help="Run a single tick, print JSON and exit")
    ap.add_argument("--no-window", action="store_true", help="Do not open the orbit window")
    ap.add_argument("--duration", type=float, default=None, help="Stop after N seconds")
    ap.add_argument("--snapshot", default=None, help="Write the final orbit frame to this PNG")
    args = ap.parse_args()

    if (args.lat is None) != (args.lon is None):
        ap.error("--lat and --lon must be given together")

    P = load_config(args.config)
    # readouts go to stdout
    setup_logging(P["logging"].get("level"), stream=sys.stderr)
    if args.no_prompt:
        P["location"]["prompt"] = False

    cache = KVCache(P["cache"]["root"])
    if args.refresh_location:
        cache.clear(P["location"]["cache_key"])

    session = requests.Session()
    user = resolve_user(P, cache, session, args.lat, args.lon)

    tracker = build_tracker(P, cache, session, user)
    ov = P["orbit_view"]
    view = OrbitView(int(ov["width"]), int(ov["height"]))
    view.update_data(None, user)
    tracker.add_listener(view.update_data)

    if args.once:
        readout = tracker.update()
        print(json.dumps(readout.to_dict() if readout else None, indent=2))
        if args.snapshot:
            view.save_png(args.snapshot)
        return

    tracker.add_readout_listener(print_readout)

    stop = threading.Event()

    if args.duration is not None:
        def _timer():
            time.sleep(float(args.duration))
            stop.set()
        threading.Thread(target=_timer, daemon=True).start()

    t_poll = threading.Thread(target=tracker.run, args=(stop,), daemon=True)
    t_poll.start()

    try:
        if args.no_window:
            while t_poll.is_alive() and not stop.is_set():
                time.sleep(0.2)
        else:
            view.show(stop, fps=float(ov["fps"]))
    except KeyboardInterrupt:
        pass
    finally:
        stop.set()
        t_poll.join(timeout=1.0)

    if args.snapshot:
        path = view.save_png(args.snapshot)
        log.info("Orbit snapshot written", extra={"extra": {"path": str(path)}})


if __name__ == "__main__":
    main()
