"""
Per-stream processing state.

One ``EffectContext`` exists for the full frame and one for each panel, so
motion models, trail buffers and frame history never leak between panels.
"""

import logging
import random
from typing import Dict, List, Optional

import numpy as np

from matrixfx.effects.ambient import create_generator
from matrixfx.effects.motion import FULL_FRAME_MIN_AREA, MotionModel

logger = logging.getLogger(__name__)

HISTORY_CAPACITY = 90
INITIAL_TIME_OFFSET = 15
MIN_TIME_OFFSET = 15
MAX_TIME_OFFSET = 75
OFFSET_CHANGE_INTERVAL = 60


class FrameHistory:
    """Fixed-size ring of past frames addressed by age."""

    def __init__(self, capacity: int = HISTORY_CAPACITY):
        self.capacity = int(capacity)
        self._slots: List[Optional[np.ndarray]] = [None] * self.capacity
        self._index = 0
        self._written = 0

    def __len__(self):
        return min(self._written, self.capacity)

    @property
    def frames_written(self) -> int:
        return self._written

    def push(self, frame: np.ndarray):
        self._slots[self._index] = frame.copy()
        self._index = (self._index + 1) % self.capacity
        self._written += 1

    def get(self, offset: int) -> Optional[np.ndarray]:
        """Frame written ``offset`` pushes before the most recent one."""
        if offset < 0 or offset >= self.capacity or self._written <= offset:
            return None
        latest = (self._index - 1) % self.capacity
        return self._slots[(latest - offset) % self.capacity]

    def clear(self):
        self._slots = [None] * self.capacity
        self._index = 0
        self._written = 0


class EffectContext:
    """Buffers and models owned by one processing stream."""

    def __init__(self, name: str = "global", min_contour_area: float = FULL_FRAME_MIN_AREA,
                 motion_settings: Optional[Dict] = None, rng: Optional[random.Random] = None):
        self.name = name
        self.min_contour_area = min_contour_area
        self.motion_settings = dict(motion_settings or {})
        self.rng = rng or random.Random()
        self.width = 0
        self.height = 0
        self.motion_model = MotionModel.from_settings(self.motion_settings)
        self.silhouette_accumulator = np.zeros((0, 0, 3), dtype=np.float32)
        self.trail_age = np.zeros((0, 0), dtype=np.float32)
        self.history = FrameHistory(HISTORY_CAPACITY)
        self.double_exposure_frames = 0
        self.time_offset = INITIAL_TIME_OFFSET
        self.hue_offset = 0.0
        self.hue_grid = None
        self._generators = {}
        self._tick = 0
        self._mask_tick = -1
        self._mask = None

    def ensure_size(self, width: int, height: int) -> bool:
        """Reallocate every buffer when the stream resolution changes."""
        if width == self.width and height == self.height:
            return False
        if self.width or self.height:
            logger.info(f"Context '{self.name}' resized {self.width}x{self.height} -> {width}x{height}")
        self.width = width
        self.height = height
        self.silhouette_accumulator = np.zeros((height, width, 3), dtype=np.float32)
        self.trail_age = np.zeros((height, width), dtype=np.float32)
        self.hue_grid = None
        self.history.clear()
        self.double_exposure_frames = 0
        self.motion_model.reset()
        self._mask = None
        self._mask_tick = -1
        return True

    def begin_frame(self):
        self._tick += 1

    def foreground_mask(self, frame: np.ndarray) -> np.ndarray:
        """Foreground mask for the current tick; the model is updated once per tick."""
        if self._mask_tick != self._tick or self._mask is None:
            self._mask = self.motion_model.apply(frame)
            self._mask_tick = self._tick
        return self._mask

    def generator(self, name: str):
        gen = self._generators.get(name)
        if gen is None:
            gen = create_generator(name, self.width, self.height)
            self._generators[name] = gen
        return gen

    def roll_time_offset(self) -> int:
        self.time_offset = self.rng.randint(MIN_TIME_OFFSET, MAX_TIME_OFFSET)
        return self.time_offset

    def reset(self):
        width, height = self.width, self.height
        self.width = self.height = 0
        self._generators.clear()
        self.hue_offset = 0.0
        self.time_offset = INITIAL_TIME_OFFSET
        if width and height:
            self.ensure_size(width, height)
        else:
            self.motion_model.reset()
            self.history.clear()
