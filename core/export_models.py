"""
CipherFeed -- Export Settings Models

Pydantic models for exporting an animated pattern to a file.
PNG writes a single still, GIF uses Pillow, MP4 pipes raw frames to FFmpeg.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, model_validator

from core.safety import MAX_DIMENSION, MAX_FPS, MAX_FRAMES_PER_EXPORT


class ExportFormat(str, Enum):
    """Output format."""
    PNG = "png"  # Single frame at start_frame
    GIF = "gif"  # Looping animated GIF -- short loops, sharing
    MP4 = "mp4"  # H.264 in MP4 container -- needs FFmpeg


class ExportSettings(BaseModel):
    """Complete export configuration.

    Quick start:
        ExportSettings()                          # 300x300 GIF, 90 frames @ 30fps
        ExportSettings(format="mp4", frames=300)  # 10s H.264 clip
    """

    format: ExportFormat = Field(
        default=ExportFormat.GIF,
        description="Output format.",
    )
    width: int = Field(default=300, ge=1, le=MAX_DIMENSION, description="Frame width in pixels.")
    height: int = Field(default=300, ge=1, le=MAX_DIMENSION, description="Frame height in pixels.")
    frames: int = Field(
        default=90,
        ge=1,
        le=MAX_FRAMES_PER_EXPORT,
        description="Number of frames to render (ignored for PNG).",
    )
    fps: int = Field(default=30, ge=1, le=MAX_FPS, description="Playback frame rate.")
    start_frame: int = Field(default=0, ge=0, description="Frame index of the first exported frame.")
    crf: int = Field(
        default=20,
        ge=0,
        le=51,
        description="H.264 Constant Rate Factor (MP4 only). 0=lossless, 23=good default.",
    )
    filename: str | None = Field(
        default=None,
        description="Output filename (without extension). Auto-generated if None.",
    )

    @model_validator(mode="after")
    def validate_format_constraints(self) -> "ExportSettings":
        """yuv420p H.264 needs even dimensions."""
        if self.format == ExportFormat.MP4 and (self.width % 2 or self.height % 2):
            raise ValueError(
                f"MP4 export needs even width and height, got {self.width}x{self.height}"
            )
        return self

    def get_output_extension(self) -> str:
        """Return the file extension (with dot) for the chosen format."""
        return {
            ExportFormat.PNG: ".png",
            ExportFormat.GIF: ".gif",
            ExportFormat.MP4: ".mp4",
        }[self.format]
