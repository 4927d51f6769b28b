"""
CipherFeed — Drawing Surface Tests
Pixel-level checks of the numpy/OpenCV surface: fills, transforms, alpha.

Run with: pytest tests/test_surface.py -v
"""

import math
import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.surface import ArraySurface, parse_color


class TestParseColor:

    def test_hex(self):
        assert parse_color("#0A0A0A") == (10, 10, 10)
        assert parse_color("#ff6b6b") == (255, 107, 107)

    def test_tuple_clamped(self):
        assert parse_color((300, -4, 12)) == (255, 0, 12)

    @pytest.mark.parametrize("bad", ["#FFF", "#GGGGGG", "red", 42, (1, 2)])
    def test_rejects_malformed(self, bad):
        with pytest.raises(ValueError):
            parse_color(bad)


class TestFills:

    def test_new_surface_is_black(self):
        s = ArraySurface(4, 3)
        assert s.pixels.shape == (3, 4, 3)
        assert s.pixels.dtype == np.uint8
        assert not s.pixels.any()

    def test_full_rect_covers_every_pixel(self):
        s = ArraySurface(17, 9)
        s.fill_rect(0, 0, 17, 9, "#0A0A0A")
        assert np.all(s.pixels == 10)

    def test_alpha_blend(self):
        s = ArraySurface(4, 4)
        s.global_alpha = 0.5
        s.fill_rect(0, 0, 4, 4, "#FFFFFF")
        assert np.all((s.pixels >= 127) & (s.pixels <= 128))

    def test_zero_alpha_draws_nothing(self):
        s = ArraySurface(8, 8)
        s.global_alpha = 0.0
        s.fill_rect(0, 0, 8, 8, "#FFFFFF")
        s.fill_circle(4, 4, 3, "#FFFFFF")
        assert not s.pixels.any()

    def test_circle(self):
        s = ArraySurface(21, 21)
        s.fill_circle(10.5, 10.5, 5, "#FFFFFF")
        assert tuple(s.pixels[10, 10]) == (255, 255, 255)
        assert not s.pixels[0, 0].any()
        assert not s.pixels[17, 10].any()

    def test_polygon(self):
        s = ArraySurface(20, 20)
        s.fill_polygon([(10, 2), (2, 18), (18, 18)], "#00FF00")
        assert tuple(s.pixels[14, 10]) == (0, 255, 0)
        assert not s.pixels[2, 2].any()

    def test_offscreen_shapes_are_clipped(self):
        s = ArraySurface(10, 10)
        s.fill_circle(-50, -50, 5, "#FFFFFF")
        s.fill_polygon([(-30, -30), (-20, -30), (-25, -20)], "#FFFFFF")
        s.fill_rect(20, 20, 5, 5, "#FFFFFF")
        assert not s.pixels.any()
        s.fill_rect(-5, -5, 10, 10, "#FFFFFF")
        assert s.pixels[0, 0].all() and not s.pixels[9, 9].any()

    def test_degenerate_sizes(self):
        s = ArraySurface(10, 10)
        s.fill_circle(5, 5, 0, "#FFFFFF")
        s.fill_rect(0, 0, 0, 5, "#FFFFFF")
        s.fill_polygon([(0, 0), (5, 5)], "#FFFFFF")
        assert not s.pixels.any()

    def test_zero_sized_surface(self):
        s = ArraySurface(0, 0)
        s.fill_rect(0, 0, 10, 10, "#FFFFFF")
        s.fill_circle(0, 0, 3, "#FFFFFF")
        assert s.pixels.shape == (0, 0, 3)


class TestTransforms:

    def test_translate(self):
        s = ArraySurface(10, 10)
        s.translate(6, 6)
        s.fill_rect(0, 0, 2, 2, "#FFFFFF")
        assert s.pixels[6, 6].all() and s.pixels[7, 7].all()
        assert not s.pixels[5, 5].any()

    def test_rotated_square_is_diamond(self):
        s = ArraySurface(20, 20)
        s.translate(10.5, 10.5)
        s.rotate(math.pi / 4)
        s.fill_rect(-5, -5, 10, 10, "#FFFFFF")
        assert tuple(s.pixels[10, 10]) == (255, 255, 255)
        assert s.pixels[5, 10].min() > 250      # inside the top point
        assert not s.pixels[4, 4].any()        # unrotated corner stays empty

    def test_save_restore(self):
        s = ArraySurface(10, 10)
        s.save()
        s.translate(5, 5)
        s.rotate(1.0)
        s.global_alpha = 0.2
        s.restore()
        assert s.global_alpha == 1.0
        s.fill_rect(0, 0, 1, 1, "#FFFFFF")
        assert tuple(s.pixels[0, 0]) == (255, 255, 255)

    def test_restore_without_save_is_noop(self):
        s = ArraySurface(4, 4)
        s.global_alpha = 0.3
        s.restore()
        assert s.global_alpha == pytest.approx(0.3)

    def test_global_alpha_clamped(self):
        s = ArraySurface(4, 4)
        s.global_alpha = 2.5
        assert s.global_alpha == 1.0
        s.global_alpha = -1
        assert s.global_alpha == 0.0
        s.global_alpha = 0.4
        s.global_alpha = float("nan")
        assert s.global_alpha == pytest.approx(0.4)
