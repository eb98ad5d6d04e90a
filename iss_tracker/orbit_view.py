from __future__ import annotations

"""
Minimalist circular orbit view.

An "imaginary Earth": just the orbit ring, the ISS, and you. Longitude maps
linearly to an angle on the ring (0 deg -> right); latitude is not drawn.
Every frame is a pure function of the latest (iss, user) pair and the wall
clock, which drives the ring spin and the ISS pulse.

    view = OrbitView(480, 480)
    tracker.add_listener(view.update_data)
    frame = view.draw()          # BGR uint8 image
"""

import logging
import math
import threading
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

import cv2
import numpy as np

from common.geo import lon_to_angle_rad
from common.types import Position
from common.utils import RateTimer, clamp, now_ms


log = logging.getLogger(__name__)

Color = Tuple[int, int, int]


def hex_to_bgr(h: str) -> Color:
    h = h.lstrip("#")
    r, g, b = int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)
    return (b, g, r)


def blend(color: Color, alpha: float, bg: Color) -> Color:
    """Pre-multiplied colour of `color` at `alpha` over an opaque `bg`."""
    a = clamp(alpha, 0.0, 1.0)
    return tuple(int(round(a * c + (1.0 - a) * b)) for c, b in zip(color, bg))  # type: ignore[return-value]


THEME: Dict[str, Color] = {
    "bg": hex_to_bgr("#f4f1ea"),
    "orbit": hex_to_bgr("#4a6c56"),   # the path
    "iss": hex_to_bgr("#a37f5f"),     # accent
    "user": hex_to_bgr("#2d6a45"),    # highlight
}

DASH_ON_PX = 4
DASH_OFF_PX = 8
USER_INSET_PX = 15
MARKER_RADIUS_PX = 4
FONT = cv2.FONT_HERSHEY_SIMPLEX
FONT_SCALE = 0.35


def _pt(x: float, y: float) -> Tuple[int, int]:
    return (int(round(x)), int(round(y)))


class OrbitView:
    def __init__(
        self,
        width: int = 480,
        height: int = 480,
        theme: Optional[Dict[str, Color]] = None,
        clock: Callable[[], float] = now_ms,
    ):
        self.theme = dict(THEME, **(theme or {}))
        self.clock = clock
        self.iss = Position(0.0, 0.0)
        self.user: Optional[Position] = None
        self.width = 0
        self.height = 0
        self.resize(width, height)

    # ----------------------------
    # State
    # ----------------------------
    def resize(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            return
        self.width = int(width)
        self.height = int(height)
        self.cx = self.width / 2.0
        self.cy = self.height / 2.0
        self.radius = min(self.width, self.height) * 0.35

    def update_data(self, iss: Optional[Position], user: Optional[Position]) -> None:
        if iss is not None:
            self.iss = iss
        if user is not None:
            self.user = user

    # ----------------------------
    # Geometry
    # ----------------------------
    def marker_xy(self, lon: float, radius: float) -> Tuple[float, float]:
        ang = lon_to_angle_rad(lon)
        return (self.cx + radius * math.cos(ang), self.cy + radius * math.sin(ang))

    # ----------------------------
    # Drawing
    # ----------------------------
    def draw(self, t_ms: Optional[float] = None) -> np.ndarray:
        t = self.clock() if t_ms is None else t_ms
        th = self.theme
        img = np.empty((self.height, self.width, 3), dtype=np.uint8)
        img[:] = th["bg"]

        center = _pt(self.cx, self.cy)
        r = int(round(self.radius))

        # 1. the orbit path: faint solid ring plus a spinning dashed ring
        cv2.circle(img, center, r, blend(th["orbit"], 0.1, th["bg"]), 1, cv2.LINE_AA)
        self._draw_dashed_ring(img, t)

        # 2. user anchor, slightly inside the ring
        if self.user is not None:
            ux, uy = self.marker_xy(self.user.lon, self.radius - USER_INSET_PX)
            cv2.line(img, center, _pt(ux, uy), blend(th["user"], 0.2, th["bg"]), 1, cv2.LINE_AA)
            self._draw_marker(img, ux, uy, th["user"], f"You (Lon {self.user.lon:.1f} deg)", False, t)

        # 3. ISS on the ring
        ix, iy = self.marker_xy(self.iss.lon, self.radius)
        cv2.line(img, center, _pt(ix, iy), blend(th["iss"], 0.3, th["bg"]), 1, cv2.LINE_AA)
        self._draw_marker(img, ix, iy, th["iss"], "ISS", True, t)

        # centre core
        cv2.circle(img, center, 2, th["orbit"], -1, cv2.LINE_AA)
        return img

    def _draw_dashed_ring(self, img: np.ndarray, t_ms: float) -> None:
        circ = 2.0 * math.pi * self.radius
        if circ <= 0:
            return
        period = DASH_ON_PX + DASH_OFF_PX
        shift = (t_ms / 50.0) % period
        deg_per_px = 360.0 / circ
        center = _pt(self.cx, self.cy)
        axes = (int(round(self.radius)), int(round(self.radius)))
        for k in range(-1, int(circ // period) + 1):
            s0 = max(0.0, shift + k * period)
            s1 = min(circ, shift + k * period + DASH_ON_PX)
            if s1 <= s0:
                continue
            cv2.ellipse(img, center, axes, 0, s0 * deg_per_px, s1 * deg_per_px, self.theme["orbit"], 1, cv2.LINE_AA)

    def _draw_marker(
        self,
        img: np.ndarray,
        x: float,
        y: float,
        color: Color,
        label: str,
        pulse: bool,
        t_ms: float,
    ) -> None:
        if pulse:
            halo = 6 + math.sin(t_ms / 200.0) * 2
            cv2.circle(img, _pt(x, y), int(round(halo)), blend(color, 0.5, self.theme["bg"]), 1, cv2.LINE_AA)

        cv2.circle(img, _pt(x, y), MARKER_RADIUS_PX, color, -1, cv2.LINE_AA)

        if label:
            (tw, _th), _ = cv2.getTextSize(label, FONT, FONT_SCALE, 1)
            # right half: text to the right; left half: right-aligned to the left
            tx = x + 10 if x > self.cx else x - 10 - tw
            cv2.putText(img, label, _pt(tx, y + 4), FONT, FONT_SCALE, color, 1, cv2.LINE_AA)

    # ----------------------------
    # Front-ends
    # ----------------------------
    def save_png(self, path: str, t_ms: Optional[float] = None) -> Path:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        if not cv2.imwrite(str(p), self.draw(t_ms)):
            raise RuntimeError(f"Failed to write orbit snapshot: {p}")
        return p

    def show(self, stop_event: threading.Event, fps: float = 30.0, window_name: str = "ISS orbit") -> None:
        """
        Redraw in an OpenCV window until `q`/Esc or stop_event.
        """
        delay_ms = max(1, int(1000.0 / max(1.0, fps)))
        rt = RateTimer(window=int(max(2, fps)))
        frames = 0
        cv2.namedWindow(window_name, cv2.WINDOW_AUTOSIZE)
        try:
            while not stop_event.is_set():
                cv2.imshow(window_name, self.draw())
                hz = rt.tick()
                frames += 1
                if frames % 300 == 0:
                    log.debug("Orbit view frame rate", extra={"extra": {"hz": round(hz, 1)}})
                key = cv2.waitKey(delay_ms) & 0xFF
                if key in (ord("q"), 27):
                    stop_event.set()
        finally:
            cv2.destroyWindow(window_name)
