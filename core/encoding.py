"""
CipherFeed — Visual Encoding Engine
Maps each emotion to a fixed visual signature: palette, shape, symmetry, speed.

Stored posts embed the resolved encoding, so the table values below must never
change for an existing emotion.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EmotionKey(str, Enum):
    """Closed emotion vocabulary. Declaration order is the display order."""
    CALM = "calm"
    JOY = "joy"
    FEAR = "fear"
    URGENCY = "urgency"
    TRUST = "trust"


class Shape(str, Enum):
    """Primary shape drawn in every grid cell."""
    CIRCLE = "circle"
    SQUARE = "square"
    TRIANGLE = "triangle"
    MIXED = "mixed"      # circle / square / triangle picked per cell


MAX_SYMMETRY_LEVEL = 4


@dataclass(frozen=True)
class VisualEncoding:
    """How an emotion is drawn.

    color_palette: ordered hex colors; index-based selection, duplicates allowed.
    shape: Shape drawn per cell.
    symmetry_level: 0 (no folding) to 4.
    movement_speed: multiplier on phase advance per frame.
    """
    color_palette: tuple
    shape: Shape
    symmetry_level: int
    movement_speed: float

    def __post_init__(self):
        object.__setattr__(self, "color_palette", tuple(self.color_palette))
        object.__setattr__(self, "shape", Shape(self.shape))

    def to_dict(self) -> dict:
        """Serialize using the stored-post key names."""
        return {
            "colorPalette": list(self.color_palette),
            "shape": self.shape.value,
            "symmetryLevel": self.symmetry_level,
            "movementSpeed": self.movement_speed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "VisualEncoding":
        """Rebuild an encoding from stored data.

        Raises:
            ValueError: If a field is missing or out of range.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Encoding must be a dict, got {type(data).__name__}")
        try:
            palette = data["colorPalette"]
            shape = data["shape"]
            level = data["symmetryLevel"]
            speed = data["movementSpeed"]
        except KeyError as e:
            raise ValueError(f"Encoding missing field: {e.args[0]}")

        if not isinstance(palette, (list, tuple)) or not all(isinstance(c, str) for c in palette):
            raise ValueError("colorPalette must be a list of color strings")
        if isinstance(level, bool) or not isinstance(level, int) or not 0 <= level <= MAX_SYMMETRY_LEVEL:
            raise ValueError(f"symmetryLevel must be an integer 0-{MAX_SYMMETRY_LEVEL}, got {level!r}")
        if isinstance(speed, bool) or not isinstance(speed, (int, float)) or not speed > 0:
            raise ValueError(f"movementSpeed must be a positive number, got {speed!r}")
        return cls(
            color_palette=tuple(palette),
            shape=Shape(shape),
            symmetry_level=level,
            movement_speed=float(speed),
        )


# Master table: emotion -> encoding
EMOTION_ENCODINGS = {
    EmotionKey.CALM: VisualEncoding(
        color_palette=("#E8F4F8", "#B8D4E3", "#7FB3D3", "#4A90A4"),
        shape=Shape.CIRCLE,
        symmetry_level=4,
        movement_speed=0.3,
    ),
    EmotionKey.JOY: VisualEncoding(
        color_palette=("#FFE66D", "#FF6B6B", "#FF8E53", "#FFA07A"),
        shape=Shape.CIRCLE,
        symmetry_level=3,
        movement_speed=0.8,
    ),
    EmotionKey.FEAR: VisualEncoding(
        color_palette=("#2C1810", "#4A3728", "#6B4423", "#8B4513"),
        shape=Shape.TRIANGLE,
        symmetry_level=1,
        movement_speed=1.5,
    ),
    EmotionKey.URGENCY: VisualEncoding(
        color_palette=("#FF1744", "#FF6F00", "#FFC400", "#FF3D00"),
        shape=Shape.SQUARE,
        symmetry_level=2,
        movement_speed=2.0,
    ),
    EmotionKey.TRUST: VisualEncoding(
        color_palette=("#1E3A8A", "#3B82F6", "#60A5FA", "#93C5FD"),
        shape=Shape.MIXED,
        symmetry_level=4,
        movement_speed=0.5,
    ),
}


def get_visual_encoding(emotion) -> VisualEncoding:
    """Get the visual encoding for an emotion.

    Accepts an EmotionKey or its string value. Unknown values raise ValueError.
    """
    return EMOTION_ENCODINGS[EmotionKey(emotion)]


def get_all_emotions() -> list[EmotionKey]:
    """All emotion keys, in declaration order."""
    return list(EmotionKey)


def emotion_label(emotion) -> str:
    """Display label for an emotion ("calm" -> "Calm")."""
    value = EmotionKey(emotion).value
    return value[:1].upper() + value[1:]
