"""
CipherFeed — Shape Draw Routines

Each routine draws one filled shape of side/diameter `size` centered on the
surface origin. The caller has already translated and rotated the surface, so
every shape here is drawn in cell-local coordinates.
"""


def draw_circle(surface, size, color):
    """Filled disc of diameter `size`."""
    surface.fill_circle(0.0, 0.0, size / 2, color)


def draw_square(surface, size, color):
    """Filled square of side `size`, centered."""
    surface.fill_rect(-size / 2, -size / 2, size, size, color)


def draw_triangle(surface, size, color):
    """Filled isosceles triangle inscribed in a size x size box, apex up."""
    half = size / 2
    surface.fill_polygon([(0.0, -half), (-half, half), (half, half)], color)
