from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Optional, Any, Dict, List


@dataclass(slots=True)
class Position:
    """
    A point on Earth in WGS84 degrees.

    Used both for the visitor's geolocated position and for the ISS ground
    track point. Refreshed on each poll or geolocation attempt.
    """
    lat: float
    lon: float

    def __post_init__(self) -> None:
        self.lat = float(self.lat)
        self.lon = float(self.lon)
        if not (-90.0 <= self.lat <= 90.0) or not (-180.0 <= self.lon <= 180.0):
            raise ValueError("lat/lon out of range")

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lon": self.lon}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Position":
        return cls(lat=d["lat"], lon=d["lon"])


@dataclass(slots=True)
class CacheEntry:
    """
    Stored cache record.

    Attributes:
        timestamp: epoch seconds at write time.
        payload: JSON-serialisable value.
    """
    timestamp: float
    payload: Any

    def age_s(self, now: float) -> float:
        return now - self.timestamp


@dataclass(frozen=True, slots=True)
class Article:
    title: str
    link: str
    date: str  # YYYY-MM-DD

    @property
    def day(self) -> date:
        return date.fromisoformat(self.date)

    @property
    def year(self) -> str:
        return self.date.split("-")[0]


@dataclass(frozen=True, slots=True)
class Book:
    title: str
    title_link: str
    author: str
    author_link: str


@dataclass(frozen=True, slots=True)
class Song:
    title: str
    link: str


@dataclass(slots=True)
class NowData:
    reading: List[Book] = field(default_factory=list)
    listening: List[Song] = field(default_factory=list)


# ISS readout statuses
STATUS_LIVE = "live"
STATUS_CACHED = "cached"
STATUS_WEAK = "weak"
STATUS_LOST = "lost"


@dataclass(slots=True)
class IssReadout:
    """
    What the ISS widget shows after a tick.

    Attributes:
        headline: main line (distance, or coordinates when user is unknown).
        detail: secondary line.
        status: one of live / cached / weak / lost.
        iss: ISS position rendered (None when signal is lost).
        user: user position at render time, if known.
    """
    headline: str
    detail: str
    status: str
    iss: Optional[Position] = None
    user: Optional[Position] = None

    @property
    def is_live(self) -> bool:
        return self.status == STATUS_LIVE

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
