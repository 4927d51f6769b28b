"""
CipherFeed — Grid Pattern Renderer
Draws one animation frame of an encoding onto an 8x8 grid.

All time variation comes from a single phase value derived from the frame
index, so any (encoding, frame_index, width, height) always draws the same
pixels.
"""

import math
from dataclasses import dataclass

from core.encoding import Shape, VisualEncoding

GRID_SIZE = 8
BACKGROUND_COLOR = "#0A0A0A"
TWO_PI = math.pi * 2

SIZE_FACTOR = 0.3        # base shape size as a fraction of the smaller cell side
PHASE_RATE = 0.01        # phase advance per frame at movement_speed 1.0

# (row + col) % 3 -> shape, for Shape.MIXED
MIXED_SEQUENCE = (Shape.CIRCLE, Shape.SQUARE, Shape.TRIANGLE)


@dataclass(frozen=True)
class RenderParams:
    """Inputs for a single frame."""
    encoding: VisualEncoding
    frame_index: int = 0

    def __post_init__(self):
        if self.frame_index < 0:
            raise ValueError(f"frame_index must be >= 0, got {self.frame_index}")


@dataclass(frozen=True)
class CellParams:
    """Everything needed to draw one grid cell."""
    row: int
    col: int
    final_row: int
    final_col: int
    x: float
    y: float
    size: float
    color: str
    alpha: float
    rotation: float
    shape: Shape


def compute_phase(frame_index, movement_speed) -> float:
    """Animation phase in [0, 2*pi)."""
    return (frame_index * movement_speed * PHASE_RATE) % TWO_PI


def fold_cell(row: int, col: int, symmetry_level: int) -> tuple:
    """Draw position (final_row, final_col) for a cell after symmetry folding.

    Level 2 mirrors the right half onto the left, level 3 and above also
    mirrors the bottom half onto the top. Level 1 enables folding but
    moves nothing on its own.
    """
    half = GRID_SIZE // 2
    use_symmetry = symmetry_level >= 1
    sym_col = GRID_SIZE - 1 - col if symmetry_level >= 2 else col
    sym_row = GRID_SIZE - 1 - row if symmetry_level >= 3 else row
    final_col = sym_col if use_symmetry and col >= half else col
    final_row = sym_row if use_symmetry and row >= half else row
    return final_row, final_col


def size_variation(phase: float, row: int, col: int) -> float:
    """Size multiplier in [0.7, 1.3]."""
    return math.sin(phase + (row + col) * 0.5) * 0.3 + 1


def color_index(phase: float, row: int, col: int, palette_len: int) -> int:
    """Stepped palette index; cells on the same anti-diagonal share a color."""
    return math.floor(((row + col + phase * 10) % (palette_len * 2)) / 2) % palette_len


def cell_alpha(phase: float, row: int, col: int) -> float:
    """Opacity in [0.5, 0.9]."""
    return 0.7 + math.sin(phase + row + col) * 0.2


def cell_rotation(phase: float, row: int, col: int) -> float:
    return phase * 0.5 + (row + col) * 0.1


def resolve_shape(shape, row: int, col: int) -> Shape:
    """Concrete shape for a cell; MIXED cycles by (row + col) % 3."""
    shape = Shape(shape)
    if shape is Shape.MIXED:
        return MIXED_SEQUENCE[(row + col) % 3]
    return shape


def layout_cells(width, height, params: RenderParams) -> list[CellParams]:
    """Compute draw parameters for every cell, row-major.

    Returns an empty list for a zero-sized surface or an empty palette.
    """
    encoding = params.encoding
    palette = encoding.color_palette
    if width <= 0 or height <= 0 or not palette:
        return []

    cell_w = width / GRID_SIZE
    cell_h = height / GRID_SIZE
    base_size = min(cell_w, cell_h) * SIZE_FACTOR
    phase = compute_phase(params.frame_index, encoding.movement_speed)

    cells = []
    for row in range(GRID_SIZE):
        for col in range(GRID_SIZE):
            # Position folds; color, size and shape keep the original row/col
            final_row, final_col = fold_cell(row, col, encoding.symmetry_level)
            cells.append(CellParams(
                row=row,
                col=col,
                final_row=final_row,
                final_col=final_col,
                x=final_col * cell_w + cell_w / 2,
                y=final_row * cell_h + cell_h / 2,
                size=base_size * size_variation(phase, row, col),
                color=palette[color_index(phase, row, col, len(palette))],
                alpha=cell_alpha(phase, row, col),
                rotation=cell_rotation(phase, row, col),
                shape=resolve_shape(encoding.shape, row, col),
            ))
    return cells


def render_frame(surface, width, height, params: RenderParams) -> None:
    """Render one frame of `params.encoding` onto `surface`.

    Degenerate input never raises: a zero-sized surface draws nothing and an
    empty palette leaves only the cleared background.
    """
    from patterns import get_shape

    if width <= 0 or height <= 0:
        return

    surface.global_alpha = 1.0
    surface.fill_rect(0, 0, width, height, BACKGROUND_COLOR)

    for cell in layout_cells(width, height, params):
        surface.global_alpha = cell.alpha
        surface.save()
        surface.translate(cell.x, cell.y)
        surface.rotate(cell.rotation)
        get_shape(cell.shape)(surface, cell.size, cell.color)
        surface.restore()

    surface.global_alpha = 1.0
