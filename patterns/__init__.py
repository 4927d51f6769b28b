"""
CipherFeed — Pattern Registry
Shape draw routines keyed by Shape, plus the frame renderer entry points.
Every shape routine is a function: (surface, size, color) -> None
"""

from core.encoding import Shape
from core.surface import ArraySurface
from patterns.shapes import draw_circle, draw_square, draw_triangle
from patterns.grid import (
    GRID_SIZE,
    BACKGROUND_COLOR,
    RenderParams,
    CellParams,
    compute_phase,
    fold_cell,
    size_variation,
    color_index,
    cell_alpha,
    cell_rotation,
    resolve_shape,
    layout_cells,
    render_frame,
)

# Master registry: shape -> (function, description)
# MIXED has no routine of its own; resolve_shape() maps it per cell.
SHAPES = {
    Shape.CIRCLE: {
        "fn": draw_circle,
        "description": "Filled disc, diameter = cell size",
    },
    Shape.SQUARE: {
        "fn": draw_square,
        "description": "Filled square rotated about its center",
    },
    Shape.TRIANGLE: {
        "fn": draw_triangle,
        "description": "Filled apex-up isosceles triangle",
    },
}


def get_shape(shape):
    """Look up the draw routine for a concrete shape."""
    shape = Shape(shape)
    if shape not in SHAPES:
        raise KeyError(f"No draw routine for shape '{shape.value}' (resolve it per cell first)")
    return SHAPES[shape]["fn"]


def list_shapes() -> list[dict]:
    """List drawable shapes with descriptions."""
    return [
        {"name": shape.value, "description": entry["description"]}
        for shape, entry in SHAPES.items()
    ]


def render_to_array(encoding, frame_index: int = 0, width: int = 300, height: int = 300):
    """Render a single frame into a fresh surface and return the (H, W, 3) uint8 RGB array."""
    surface = ArraySurface(width, height)
    render_frame(surface, width, height, RenderParams(encoding=encoding, frame_index=frame_index))
    return surface.pixels
