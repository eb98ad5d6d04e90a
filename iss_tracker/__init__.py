"""
ISS Tracker

Provides:
- ISSClient: wheretheiss.at position fetches (requests)
- LocationResolver: cached -> ipwho.is -> ipapi.co -> terminal prompt
- ISSTracker: single-flight, rate-limited, cache-backed poller
- OrbitView: OpenCV ring view of the ISS and the visitor by longitude
- A small CLI service in service.py to run the loop in a window or headless.

Usage examples:
    python -m iss_tracker.service
    python -m iss_tracker.service --once --snapshot runtime/orbit.png
"""
from .client import ISSClient, ISSFetchError
from .geolocate import LocationResolver
from .tracker import ISSTracker, render_readout

__all__ = ["ISSClient", "ISSFetchError", "LocationResolver", "ISSTracker", "render_readout"]
