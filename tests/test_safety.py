"""
CipherFeed — Input Guard Tests
Caption, PIN, author mode, and render size limits.

Run with: pytest tests/test_safety.py -v
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.safety import (
    MAX_CAPTION_LEN,
    MAX_DIMENSION,
    MAX_FPS,
    MAX_FRAMES_PER_EXPORT,
    SafetyError,
    validate_author_mode,
    validate_caption,
    validate_dimensions,
    validate_fps,
    validate_frame_count,
    validate_pin,
)


class TestCaption:

    def test_trimmed(self):
        assert validate_caption("  rainy day  ") == "rainy day"

    def test_blank_becomes_none(self):
        assert validate_caption("") is None
        assert validate_caption("   ") is None
        assert validate_caption(None) is None

    def test_limit_applies_after_trimming(self):
        assert validate_caption(" " + "x" * MAX_CAPTION_LEN + " ") == "x" * MAX_CAPTION_LEN

    def test_too_long(self):
        with pytest.raises(SafetyError, match="80 characters or less"):
            validate_caption("x" * (MAX_CAPTION_LEN + 1))

    def test_non_text(self):
        with pytest.raises(SafetyError):
            validate_caption(123)


class TestPin:

    @pytest.mark.parametrize("pin", ["0000", "1234", "9876"])
    def test_valid(self, pin):
        assert validate_pin(pin) == pin

    @pytest.mark.parametrize("pin", ["", "123", "12345", None, 1234])
    def test_wrong_length(self, pin):
        with pytest.raises(SafetyError, match="exactly 4 digits"):
            validate_pin(pin)

    @pytest.mark.parametrize("pin", ["12a4", "12 4", "-123", "١٢٣٤"])
    def test_non_digits(self, pin):
        with pytest.raises(SafetyError, match="only digits"):
            validate_pin(pin)


class TestAuthorMode:

    def test_modes(self):
        assert validate_author_mode("anonymous") == "anonymous"
        assert validate_author_mode("named") == "named"

    def test_unknown(self):
        with pytest.raises(SafetyError):
            validate_author_mode("admin")


class TestRenderLimits:

    def test_dimensions_ok(self):
        validate_dimensions(1, 1)
        validate_dimensions(MAX_DIMENSION, MAX_DIMENSION)

    @pytest.mark.parametrize("w,h", [(0, 10), (10, 0), (-1, 10), (MAX_DIMENSION + 1, 10), (10.5, 10), (True, 10)])
    def test_dimensions_rejected(self, w, h):
        with pytest.raises(SafetyError):
            validate_dimensions(w, h)

    def test_frame_count(self):
        validate_frame_count(1)
        validate_frame_count(MAX_FRAMES_PER_EXPORT)
        with pytest.raises(SafetyError, match="shorter loop"):
            validate_frame_count(MAX_FRAMES_PER_EXPORT + 1)
        with pytest.raises(SafetyError):
            validate_frame_count(0)

    def test_fps(self):
        validate_fps(1)
        validate_fps(29.97)
        validate_fps(MAX_FPS)
        for bad in (0, MAX_FPS + 1, float("nan"), "30", None):
            with pytest.raises(SafetyError):
                validate_fps(bad)
