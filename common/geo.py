from __future__ import annotations

import math


EARTH_RADIUS_KM = 6371.0          # sphere used for the distance readout
EARTH_MEAN_RADIUS_M = 6371008.8   # IUGG mean radius (m)


# -------------------------
# Great-circle
# -------------------------
def _central_angle(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    p1 = math.radians(lat1)
    p2 = math.radians(lat2)
    dphi = p2 - p1
    dl = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2.0) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2.0) ** 2
    return 2 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine great-circle distance (km) on a 6371 km sphere."""
    return EARTH_RADIUS_KM * _central_angle(lat1, lon1, lat2, lon2)


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine great-circle distance (m) on the mean Earth radius."""
    return EARTH_MEAN_RADIUS_M * _central_angle(lat1, lon1, lat2, lon2)


# -------------------------
# Longitude -> ring angle
# -------------------------
def lon_to_angle_rad(lon: float) -> float:
    """
    Map longitude (deg) linearly onto a circle: 0 deg -> 0 rad (right),
    +90 -> pi/2, -180/+180 -> -pi/pi.
    """
    return math.radians(lon)
