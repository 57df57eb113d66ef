import time


class FrameStats:
    """Counts processed frames and reports a once-per-second FPS figure."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self.frame_count = 0
        self.fps = 0.0
        self._window_start = clock()
        self._window_frames = 0

    def record_frame(self):
        self.frame_count += 1
        self._window_frames += 1
        now = self._clock()
        elapsed = now - self._window_start
        if elapsed >= 1.0:
            self.fps = self._window_frames / elapsed
            self._window_start = now
            self._window_frames = 0

    def reset(self):
        self.frame_count = 0
        self.fps = 0.0
        self._window_start = self._clock()
        self._window_frames = 0
