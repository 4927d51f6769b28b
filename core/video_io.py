"""
CipherFeed — Frame Output
Writes rendered frames (numpy arrays) to PNG, animated GIF, or H.264 video.
GIF and PNG go through Pillow; MP4 pipes raw frames into an FFmpeg subprocess.
"""

import contextlib
import logging
import shutil
import subprocess
from io import BytesIO
from pathlib import Path

import numpy as np
from PIL import Image

from core.animation import PatternAnimation
from core.export_models import ExportFormat, ExportSettings

logger = logging.getLogger(__name__)


class ExportCancelledError(Exception):
    """Raised when an export is cancelled part-way."""
    pass


def get_ffmpeg():
    """Find FFmpeg binary."""
    path = shutil.which("ffmpeg")
    if not path:
        raise RuntimeError("FFmpeg not found. Install with: brew install ffmpeg")
    return path


def load_frame(frame_path: str) -> np.ndarray:
    """Load a PNG as a numpy array (H, W, 3) uint8 RGB."""
    img = Image.open(str(frame_path)).convert("RGB")
    return np.array(img)


def save_frame(array: np.ndarray, output_path: str):
    """Save a numpy array (H, W, 3) as PNG."""
    img = Image.fromarray(np.clip(array, 0, 255).astype(np.uint8))
    img.save(str(output_path))


def encode_png(array: np.ndarray) -> bytes:
    """Encode a frame as PNG bytes."""
    buf = BytesIO()
    Image.fromarray(np.clip(array, 0, 255).astype(np.uint8)).save(buf, format="PNG")
    return buf.getvalue()


def encode_gif(frames, fps: float = 30) -> bytes:
    """Encode frames as a looping animated GIF."""
    images = [Image.fromarray(np.clip(f, 0, 255).astype(np.uint8)) for f in frames]
    if not images:
        raise ValueError("Cannot encode a GIF with no frames")
    buf = BytesIO()
    images[0].save(
        buf,
        format="GIF",
        save_all=True,
        append_images=images[1:],
        duration=max(1, int(round(1000 / fps))),
        loop=0,
        optimize=False,
    )
    return buf.getvalue()


def write_gif(frames, output_path: str, fps: float = 30) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(encode_gif(frames, fps))
    return output_path


def open_output_pipe(output_path, width: int, height: int, fps: float = 30, crf: int = 20):
    """Start FFmpeg reading raw RGB frames on stdin and writing H.264 MP4."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    cmd = [
        get_ffmpeg(),
        "-y", "-loglevel", "error",
        "-f", "rawvideo", "-vcodec", "rawvideo",
        "-s", f"{width}x{height}", "-pix_fmt", "rgb24", "-r", str(fps),
        "-i", "-",
        "-c:v", "libx264", "-crf", str(crf), "-preset", "medium",
        "-pix_fmt", "yuv420p",
        str(output_path),
    ]
    return subprocess.Popen(
        cmd, stdin=subprocess.PIPE, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE
    )


def export_animation(
    encoding,
    settings: ExportSettings,
    output_path,
    progress_callback=None,
    cancel_event=None,
) -> Path:
    """Render an encoding to a file.

    Args:
        encoding: VisualEncoding to render.
        settings: ExportSettings (format, size, frame range, fps).
        output_path: Destination file. The extension is taken from settings.
        progress_callback: Optional fn(frames_done, total_frames).
        cancel_event: Optional threading.Event; setting it stops the export.

    Returns:
        Path to the written file.

    Raises:
        ExportCancelledError: If cancel_event was set before the last frame.
        RuntimeError: If FFmpeg is missing or fails; the message ends with its stderr.
            A failed or cancelled MP4 export leaves no partial file.
    """
    output_path = Path(output_path).with_suffix(settings.get_output_extension())
    output_path.parent.mkdir(parents=True, exist_ok=True)

    animation = PatternAnimation(
        encoding,
        width=settings.width,
        height=settings.height,
        fps=settings.fps,
        start_frame=settings.start_frame,
    )
    total = 1 if settings.format == ExportFormat.PNG else settings.frames

    def _frames():
        for done, frame in enumerate(animation.frames(total), start=1):
            if cancel_event is not None and cancel_event.is_set():
                animation.cancel()
                raise ExportCancelledError(f"Export cancelled at frame {done}/{total}")
            if progress_callback:
                progress_callback(done, total)
            yield frame

    if settings.format == ExportFormat.PNG:
        save_frame(next(_frames()), str(output_path))

    elif settings.format == ExportFormat.GIF:
        write_gif(list(_frames()), output_path, fps=settings.fps)

    else:
        pipe = open_output_pipe(output_path, settings.width, settings.height,
                                fps=settings.fps, crf=settings.crf)
        write_error = None
        finished = False
        try:
            try:
                for frame in _frames():
                    pipe.stdin.write(frame.tobytes())
                pipe.stdin.close()
            except OSError as e:
                # FFmpeg exited early; its exit code and stderr say why
                write_error = e
                with contextlib.suppress(OSError):
                    pipe.stdin.close()
            stderr = pipe.stderr.read()
            if pipe.wait() != 0 or write_error is not None:
                tail = stderr.decode("utf-8", errors="replace").strip()[-500:] or str(write_error)
                raise RuntimeError(f"FFmpeg encoding failed (exit code {pipe.returncode}): {tail}")
            finished = True
        finally:
            # FFmpeg is reaped on every exit; only a clean finish keeps the file
            with contextlib.suppress(OSError):
                pipe.stdin.close()
            pipe.wait()
            pipe.stderr.close()
            if not finished:
                output_path.unlink(missing_ok=True)

    logger.info("Exported %d frame(s) to %s", total, output_path)
    return output_path
