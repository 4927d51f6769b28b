"""
CipherFeed — Drawing Surface
Immediate-mode 2D surface over an RGB numpy frame.

Any object exposing the same calls can be handed to the pattern renderer:
    fill_rect(x, y, w, h, color)
    fill_circle(cx, cy, radius, color)
    fill_polygon(points, color)
    save() / restore() / translate(dx, dy) / rotate(angle)
    global_alpha (read/write, 0.0-1.0)

Coordinates follow the canvas convention: pixel (i, j) spans [i, i+1) x [j, j+1),
y grows downward, positive rotation turns clockwise on screen.
"""

import math

import cv2
import numpy as np

# Sub-pixel precision bits for OpenCV rasterization
_SHIFT = 4
_SCALE = 1 << _SHIFT


def parse_color(color) -> tuple:
    """Parse '#RRGGBB' (or an RGB tuple) into an (r, g, b) int tuple."""
    if isinstance(color, str):
        value = color.strip()
        if value.startswith("#"):
            value = value[1:]
        if len(value) != 6:
            raise ValueError(f"Color must be '#RRGGBB', got {color!r}")
        try:
            return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))
        except ValueError:
            raise ValueError(f"Color must be '#RRGGBB', got {color!r}")
    if isinstance(color, (tuple, list)) and len(color) == 3:
        return tuple(max(0, min(255, int(c))) for c in color)
    raise ValueError(f"Unsupported color value: {color!r}")


class ArraySurface:
    """Numpy-backed drawing surface.

    Shapes are rasterized into an anti-aliased coverage mask with OpenCV and
    composited source-over onto `pixels` using the current global alpha.
    """

    def __init__(self, width: int, height: int):
        self.width = max(0, int(width))
        self.height = max(0, int(height))
        self.pixels = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        self._alpha = 1.0
        self._matrix = np.eye(3, dtype=np.float64)
        self._stack = []

    # --- State ---

    @property
    def global_alpha(self) -> float:
        return self._alpha

    @global_alpha.setter
    def global_alpha(self, value: float):
        value = float(value)
        if value != value:  # NaN keeps the previous value, like a canvas context
            return
        self._alpha = max(0.0, min(1.0, value))

    def save(self):
        self._stack.append((self._matrix.copy(), self._alpha))

    def restore(self):
        if self._stack:
            self._matrix, self._alpha = self._stack.pop()

    def translate(self, dx: float, dy: float):
        t = np.array([[1.0, 0.0, dx], [0.0, 1.0, dy], [0.0, 0.0, 1.0]])
        self._matrix = self._matrix @ t

    def rotate(self, angle: float):
        c, s = math.cos(angle), math.sin(angle)
        r = np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])
        self._matrix = self._matrix @ r

    # --- Drawing ---

    def fill_rect(self, x: float, y: float, w: float, h: float, color):
        """Fill a rectangle in local coordinates."""
        if w <= 0 or h <= 0:
            return
        m = self._matrix
        if m[0, 1] == 0.0 and m[1, 0] == 0.0 and m[0, 0] > 0 and m[1, 1] > 0:
            # Axis-aligned: fill whole pixels directly so clears cover every edge pixel
            x0 = m[0, 0] * x + m[0, 2]
            y0 = m[1, 1] * y + m[1, 2]
            x1 = x0 + m[0, 0] * w
            y1 = y0 + m[1, 1] * h
            ix0 = max(0, int(round(x0)))
            iy0 = max(0, int(round(y0)))
            ix1 = min(self.width, int(round(x1)))
            iy1 = min(self.height, int(round(y1)))
            if ix1 <= ix0 or iy1 <= iy0:
                return
            coverage = np.full((iy1 - iy0, ix1 - ix0), 255, dtype=np.uint8)
            self._composite(coverage, ix0, iy0, parse_color(color))
            return
        corners = [(x, y), (x + w, y), (x + w, y + h), (x, y + h)]
        self.fill_polygon(corners, color)

    def fill_circle(self, cx: float, cy: float, radius: float, color):
        """Fill a disc of the given radius centered at (cx, cy)."""
        if radius <= 0:
            return
        center = self._transform([(cx, cy)])[0]
        scale = math.sqrt(abs(np.linalg.det(self._matrix[:2, :2])))
        r = radius * scale
        x0 = max(0, int(math.floor(center[0] - r - 1)))
        y0 = max(0, int(math.floor(center[1] - r - 1)))
        x1 = min(self.width, int(math.ceil(center[0] + r + 1)))
        y1 = min(self.height, int(math.ceil(center[1] + r + 1)))
        if x1 <= x0 or y1 <= y0:
            return
        mask = np.zeros((y1 - y0, x1 - x0), dtype=np.uint8)
        c = (
            int(round((center[0] - 0.5 - x0) * _SCALE)),
            int(round((center[1] - 0.5 - y0) * _SCALE)),
        )
        cv2.circle(mask, c, int(round(r * _SCALE)), 255, thickness=-1,
                   lineType=cv2.LINE_AA, shift=_SHIFT)
        self._composite(mask, x0, y0, parse_color(color))

    def fill_polygon(self, points, color):
        """Fill a closed polygon given in local coordinates."""
        if len(points) < 3:
            return
        pts = self._transform(points)
        x0 = max(0, int(math.floor(pts[:, 0].min() - 1)))
        y0 = max(0, int(math.floor(pts[:, 1].min() - 1)))
        x1 = min(self.width, int(math.ceil(pts[:, 0].max() + 1)))
        y1 = min(self.height, int(math.ceil(pts[:, 1].max() + 1)))
        if x1 <= x0 or y1 <= y0:
            return
        mask = np.zeros((y1 - y0, x1 - x0), dtype=np.uint8)
        local = pts - np.array([x0 + 0.5, y0 + 0.5])
        poly = np.round(local * _SCALE).astype(np.int32).reshape(-1, 1, 2)
        cv2.fillPoly(mask, [poly], 255, lineType=cv2.LINE_AA, shift=_SHIFT)
        self._composite(mask, x0, y0, parse_color(color))

    # --- Internals ---

    def _transform(self, points) -> np.ndarray:
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        homog = np.hstack([pts, np.ones((len(pts), 1))])
        return (homog @ self._matrix.T)[:, :2]

    def _composite(self, mask: np.ndarray, x0: int, y0: int, rgb: tuple):
        """Source-over blend `rgb` through an 8-bit coverage mask at (x0, y0)."""
        if self._alpha <= 0.0:
            return
        h, w = mask.shape
        region = self.pixels[y0:y0 + h, x0:x0 + w].astype(np.float32)
        cov = (mask.astype(np.float32) / 255.0 * self._alpha)[:, :, np.newaxis]
        src = np.array(rgb, dtype=np.float32)
        blended = region * (1.0 - cov) + src * cov
        self.pixels[y0:y0 + h, x0:x0 + w] = np.clip(np.rint(blended), 0, 255).astype(np.uint8)
