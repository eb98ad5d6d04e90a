"""
Unit tests for the orbit ring renderer
"""

import math
import os
import sys

import numpy as np
import pytest
import cv2

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.types import Position
from iss_tracker.orbit_view import THEME, OrbitView, blend, hex_to_bgr


def _px(img, xy):
    x, y = xy
    return tuple(int(c) for c in img[int(round(y)), int(round(x))])


class TestGeometry:
    def test_radius_and_centre(self):
        v = OrbitView(400, 300)
        assert (v.cx, v.cy) == (200.0, 150.0)
        assert v.radius == pytest.approx(105.0)

    def test_zero_size_resize_is_ignored(self):
        v = OrbitView(400, 300)
        v.resize(0, 500)
        assert (v.width, v.height) == (400, 300)

    @pytest.mark.parametrize(
        "lon,expected",
        [(0, (300.0, 200.0)), (90, (200.0, 300.0)), (180, (100.0, 200.0)), (-90, (200.0, 100.0))],
    )
    def test_longitude_maps_linearly_to_ring(self, lon, expected):
        v = OrbitView(400, 400)
        x, y = v.marker_xy(lon, 100.0)
        assert x == pytest.approx(expected[0], abs=1e-9)
        assert y == pytest.approx(expected[1], abs=1e-9)


class TestState:
    def test_update_data_ignores_none(self):
        v = OrbitView()
        v.update_data(Position(1, 2), Position(3, 4))
        v.update_data(None, None)
        assert v.iss == Position(1, 2)
        assert v.user == Position(3, 4)

    def test_defaults(self):
        v = OrbitView()
        assert v.iss == Position(0, 0)
        assert v.user is None


class TestDraw:
    def test_frame_shape_and_background(self):
        v = OrbitView(320, 240, clock=lambda: 0.0)
        img = v.draw()
        assert img.shape == (240, 320, 3)
        assert img.dtype == np.uint8
        assert _px(img, (2, 2)) == THEME["bg"]

    def test_iss_marker_drawn_at_longitude(self):
        v = OrbitView(400, 400)
        v.update_data(Position(0, 90), None)
        img = v.draw(t_ms=0.0)
        assert _px(img, v.marker_xy(90, v.radius)) == THEME["iss"]

    def test_user_marker_inside_ring(self):
        v = OrbitView(400, 400)
        v.update_data(Position(0, 0), Position(0, 180))
        img = v.draw(t_ms=0.0)
        assert _px(img, v.marker_xy(180, v.radius - 15)) == THEME["user"]

    def test_no_user_marker_when_unknown(self):
        v = OrbitView(400, 400)
        img = v.draw(t_ms=0.0)
        # where a user at lon 180 would sit: background only
        assert _px(img, v.marker_xy(180, v.radius - 15)) == THEME["bg"]

    def test_centre_core(self):
        v = OrbitView(400, 400)
        img = v.draw(t_ms=0.0)
        assert _px(img, (200, 200)) == THEME["orbit"]

    def test_ring_spins_with_time(self):
        v = OrbitView(400, 400)
        a = v.draw(t_ms=0.0)
        b = v.draw(t_ms=150.0)  # dash phase moves 3 px
        assert not np.array_equal(a, b)

    def test_deterministic_for_fixed_time(self):
        v = OrbitView(200, 200)
        v.update_data(Position(10, -30), Position(5, 60))
        assert np.array_equal(v.draw(t_ms=1234.0), v.draw(t_ms=1234.0))

    def test_save_png(self, tmp_path):
        v = OrbitView(120, 100)
        p = v.save_png(str(tmp_path / "out" / "orbit.png"), t_ms=0.0)
        img = cv2.imread(str(p))
        assert img.shape == (100, 120, 3)


class TestMarkers:
    """Labels, the ISS pulse and the radial lines, checked pixel by pixel."""

    BG = THEME["bg"]

    def _ink(self, img, xs, ys):
        return any(_px(img, (x, y)) != self.BG for x in xs for y in ys)

    def test_label_right_of_marker_on_right_half(self):
        v = OrbitView(400, 400)
        v.update_data(Position(0, 0), None)
        img = v.draw(t_ms=0.0)
        ix, iy = (int(round(c)) for c in v.marker_xy(0, v.radius))
        rows = range(iy - 6, iy - 1)  # cap height, clear of the radial line
        assert self._ink(img, range(ix + 10, ix + 40), rows)
        assert not self._ink(img, range(ix - 40, ix - 10), rows)

    def test_label_left_of_marker_on_left_half(self):
        v = OrbitView(400, 400)
        v.update_data(Position(0, 180), None)
        img = v.draw(t_ms=0.0)
        ix, iy = (int(round(c)) for c in v.marker_xy(180, v.radius))
        rows = range(iy - 6, iy - 1)
        assert self._ink(img, range(ix - 40, ix - 10), rows)
        assert not self._ink(img, range(ix + 10, ix + 40), rows)

    def test_iss_halo_pulses(self):
        v = OrbitView(400, 400)
        v.update_data(Position(0, 0), None)
        ix, iy = (int(round(c)) for c in v.marker_xy(0, v.radius))

        small = v.draw(t_ms=0.0)  # halo radius 6
        assert _px(small, (ix + 6, iy)) != self.BG
        assert _px(small, (ix + 8, iy)) == self.BG

        big = v.draw(t_ms=200 * math.pi / 2)  # halo radius 8
        assert _px(big, (ix + 8, iy)) != self.BG

    def test_iss_radial_line(self):
        v = OrbitView(400, 400)
        v.update_data(Position(0, 90), None)  # straight down from the centre
        img = v.draw(t_ms=0.0)
        assert _px(img, (200, 270)) != self.BG
        assert _px(img, (270, 200)) == self.BG
        assert _px(img, (130, 200)) == self.BG

    def test_user_radial_line(self):
        v = OrbitView(400, 400)
        v.update_data(Position(0, 90), Position(0, 180))
        img = v.draw(t_ms=0.0)
        assert _px(img, (130, 200)) != self.BG

        v2 = OrbitView(400, 400)
        v2.update_data(Position(0, 90), None)
        assert _px(v2.draw(t_ms=0.0), (130, 200)) == self.BG


class TestColours:
    def test_hex_to_bgr(self):
        assert hex_to_bgr("#a37f5f") == (0x5F, 0x7F, 0xA3)

    def test_blend_extremes(self):
        assert blend((0, 0, 0), 1.0, (255, 255, 255)) == (0, 0, 0)
        assert blend((0, 0, 0), 0.0, (255, 255, 255)) == (255, 255, 255)
        assert blend((0, 0, 0), 0.5, (200, 100, 50)) == (100, 50, 25)
