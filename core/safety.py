"""
CipherFeed — Input Guards
Centralized checks run before a post is stored or a pattern is exported.
Prevents oversized renders and malformed post fields from reaching the core.
"""

import re

# --- Configurable Limits ---
MAX_CAPTION_LEN = 80          # Characters, after trimming
PIN_LENGTH = 4                # Digits
MAX_DIMENSION = 4096          # Max render width/height in pixels
MAX_FRAMES_PER_EXPORT = 3000  # ~100s at 30fps
MAX_FPS = 60
AUTHOR_MODES = ("anonymous", "named")

_PIN_RE = re.compile(r"^[0-9]{%d}$" % PIN_LENGTH)


class SafetyError(Exception):
    """Raised when an input check fails."""
    pass


def validate_caption(caption):
    """Normalize a caption. Blank captions become None.

    Raises:
        SafetyError: If the caption is longer than MAX_CAPTION_LEN.
    """
    if caption is None:
        return None
    if not isinstance(caption, str):
        raise SafetyError(f"Caption must be text, got {type(caption).__name__}")
    caption = caption.strip()
    if len(caption) > MAX_CAPTION_LEN:
        raise SafetyError(f"Caption must be {MAX_CAPTION_LEN} characters or less")
    return caption or None


def validate_pin(pin: str) -> str:
    """Check that a PIN is exactly PIN_LENGTH ASCII digits.

    Raises:
        SafetyError: With the same wording the post form shows.
    """
    if not isinstance(pin, str) or len(pin) != PIN_LENGTH:
        raise SafetyError(f"PIN must be exactly {PIN_LENGTH} digits")
    if not _PIN_RE.match(pin):
        raise SafetyError("PIN must contain only digits")
    return pin


def validate_author_mode(mode: str) -> str:
    if mode not in AUTHOR_MODES:
        raise SafetyError(
            f"Author mode must be one of {', '.join(AUTHOR_MODES)}, got {mode!r}"
        )
    return mode


def validate_dimensions(width: int, height: int) -> None:
    """Check render dimensions.

    Raises:
        SafetyError: If either side is outside 1..MAX_DIMENSION.
    """
    for label, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise SafetyError(f"{label} must be an integer, got {value!r}")
        if not 1 <= value <= MAX_DIMENSION:
            raise SafetyError(f"{label} must be between 1 and {MAX_DIMENSION}, got {value}")


def validate_frame_count(frames: int) -> None:
    if isinstance(frames, bool) or not isinstance(frames, int):
        raise SafetyError(f"Frame count must be an integer, got {frames!r}")
    if not 1 <= frames <= MAX_FRAMES_PER_EXPORT:
        raise SafetyError(
            f"Frame count must be between 1 and {MAX_FRAMES_PER_EXPORT}, got {frames}. "
            f"Export a shorter loop."
        )


def validate_fps(fps) -> None:
    if isinstance(fps, bool) or not isinstance(fps, (int, float)) or fps != fps:
        raise SafetyError(f"fps must be a number, got {fps!r}")
    if not 1 <= fps <= MAX_FPS:
        raise SafetyError(f"fps must be between 1 and {MAX_FPS}, got {fps}")
