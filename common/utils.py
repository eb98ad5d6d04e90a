from __future__ import annotations

from typing import Deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from collections import deque
import time


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_now_ms() -> str:
    """UTC ISO-8601 timestamp with millisecond precision."""
    return utc_now().isoformat(timespec="milliseconds").replace("+00:00", "Z")


def now_ms() -> float:
    """Wall clock in milliseconds (drives the orbit view animation phase)."""
    return time.time() * 1000.0


@dataclass(slots=True)
class RateTimer:
    """
    Simple rate tracker for loop diagnostics.

    Usage:
        rt = RateTimer(window=50)
        while True:
            # draw...
            hz = rt.tick()
    """
    window: int = 50
    _times: Deque[float] = field(default_factory=deque)

    def __post_init__(self) -> None:
        self._times = deque(maxlen=self.window)

    def tick(self) -> float:
        t = time.perf_counter()
        self._times.append(t)
        if len(self._times) < 2:
            return 0.0
        dt = (self._times[-1] - self._times[0]) / (len(self._times) - 1)
        return 0.0 if dt <= 0 else 1.0 / dt


def clamp(v: float, lo: float, hi: float) -> float:
    return float(min(hi, max(lo, v)))
