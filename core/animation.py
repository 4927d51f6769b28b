"""
CipherFeed — Pattern Animation Driver
Owns one frame counter and one surface, and feeds the renderer frame by frame.

The renderer has no timer of its own: callers either pull frames
(render_next / frames) or hand a callback to run(), which paces itself at
the requested fps until cancel() is called.
"""

import threading
import time

from core.surface import ArraySurface
from patterns import RenderParams, render_frame


class PatternAnimation:
    """Animated rendering of one encoding.

    Frame indices increase by exactly one per rendered frame. A frame that has
    started rendering always completes; after cancel() returns, no further
    frame is started.
    """

    def __init__(self, encoding, width=300, height=300, fps=30, start_frame=0):
        if fps <= 0:
            raise ValueError(f"fps must be > 0, got {fps}")
        if start_frame < 0:
            raise ValueError(f"start_frame must be >= 0, got {start_frame}")
        self.encoding = encoding
        self.width = int(width)
        self.height = int(height)
        self.fps = fps
        self.surface = ArraySurface(self.width, self.height)
        self._frame_index = int(start_frame)
        self._cancel = threading.Event()
        # Serializes render calls against cancel()
        self._render_lock = threading.Lock()

    @property
    def frame_index(self) -> int:
        """Index of the next frame to be rendered."""
        return self._frame_index

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self):
        """Stop the animation. Waits for an in-flight frame to finish."""
        self._cancel.set()
        with self._render_lock:
            pass

    def render_next(self):
        """Render the current frame, advance the counter, return a copy of the pixels.

        Returns None once the animation has been cancelled.
        """
        with self._render_lock:
            if self._cancel.is_set():
                return None
            params = RenderParams(encoding=self.encoding, frame_index=self._frame_index)
            render_frame(self.surface, self.width, self.height, params)
            self._frame_index += 1
            return self.surface.pixels.copy()

    def frames(self, count=None):
        """Yield rendered frames until `count` frames or cancellation."""
        produced = 0
        while count is None or produced < count:
            frame = self.render_next()
            if frame is None:
                return
            produced += 1
            yield frame

    def run(self, on_frame, max_frames=None, realtime=True) -> int:
        """Drive the animation, calling on_frame(frame_index, frame) per frame.

        Args:
            on_frame: Callback. Returning False stops the loop.
            max_frames: Stop after this many frames (None = until cancelled).
            realtime: Sleep between frames to hold `fps`.

        Returns:
            Number of frames rendered.
        """
        interval = 1.0 / self.fps
        rendered = 0
        next_deadline = time.monotonic()

        while max_frames is None or rendered < max_frames:
            index = self._frame_index
            frame = self.render_next()
            if frame is None:
                break
            rendered += 1
            if on_frame(index, frame) is False:
                break

            if realtime:
                next_deadline += interval
                delay = next_deadline - time.monotonic()
                if delay > 0:
                    # Wakes early on cancel()
                    if self._cancel.wait(delay):
                        break
                else:
                    # Fell behind: don't try to catch up with a burst of frames
                    next_deadline = time.monotonic()

        return rendered
