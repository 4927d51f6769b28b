"""
Conftest: shared fixtures for all CipherFeed test modules.

1. Temporary feed / export directories — tests never touch ~/.cipherfeed
2. Server state redirect — HTTP tests read and write the temporary feed
3. Small reference encodings for pixel-level renderer checks
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.encoding import Shape, VisualEncoding

BACKGROUND_RGB = (10, 10, 10)


def make_encoding(palette=("#FF0000",), shape=Shape.CIRCLE, symmetry_level=0, movement_speed=1.0):
    """Build an encoding outside the emotion table."""
    return VisualEncoding(
        color_palette=tuple(palette),
        shape=shape,
        symmetry_level=symmetry_level,
        movement_speed=movement_speed,
    )


@pytest.fixture
def feed_dir(tmp_path):
    """Empty per-test feed directory."""
    path = tmp_path / "feed"
    path.mkdir()
    return path


@pytest.fixture
def failing_ffmpeg(tmp_path, monkeypatch):
    """Stand-in encoder that rejects the codec, touches its output and exits 1."""
    if sys.platform == "win32":
        pytest.skip("needs a POSIX shell")
    import core.video_io

    script = tmp_path / "bin" / "ffmpeg"
    script.parent.mkdir()
    script.write_text(
        "#!/bin/sh\n"
        "for last; do :; done\n"
        ": > \"$last\"\n"
        "echo 'Unknown encoder libx264' >&2\n"
        "exit 1\n"
    )
    script.chmod(0o755)
    monkeypatch.setattr(core.video_io, "get_ffmpeg", lambda: str(script))
    return script


@pytest.fixture
def server_state(tmp_path):
    """Point the server at temporary feed/export dirs and reset export progress."""
    import server

    saved = dict(server._state)
    server._state["feed_dir"] = tmp_path / "feed"
    server._state["export_dir"] = tmp_path / "exports"
    server._set_progress(active=False, current_frame=0, total_frames=0, phase="idle")
    server._export_cancel.clear()
    yield server._state
    server._state.update(saved)
    server._set_progress(active=False, current_frame=0, total_frames=0, phase="idle")
    server._export_cancel.clear()
