import logging

import cv2
import numpy as np

from matrixfx.effects.ambient.base import AmbientGenerator

logger = logging.getLogger(__name__)

TIME_STEP = 0.05
PHASE_STEP = 0.02
SPATIAL_SCALE = 0.1


class WavePatterns(AmbientGenerator):
    """Three interfering sine waves coloured by position, rendered at half resolution."""

    name = "wave_patterns"

    def __init__(self, width: int = 0, height: int = 0):
        super().__init__(width, height)
        self.reset()

    def reset(self):
        self.wave_time = 0.0
        self.wave_phase = 0.0

    def step(self, width: int, height: int) -> None:
        self.wave_time += TIME_STEP
        self.wave_phase += PHASE_STEP

    def render(self, width: int, height: int) -> np.ndarray:
        proc_w = max(1, width // 2)
        proc_h = max(1, height // 2)
        ys, xs = np.mgrid[0:proc_h, 0:proc_w].astype(np.float32)
        fx = xs * 2.0 * SPATIAL_SCALE
        fy = ys * 2.0 * SPATIAL_SCALE

        combined = (np.sin(fx + self.wave_time)
                    + np.sin(fy + self.wave_time * 1.3)
                    + np.sin((fx + fy) * 0.07 + self.wave_phase)) / 3.0
        hue = np.mod((fx + fy) * 10.0 + self.wave_time * 20.0, 360.0)

        hsv = np.empty((proc_h, proc_w, 3), dtype=np.uint8)
        hsv[..., 0] = (hue / 2.0).astype(np.uint8)
        hsv[..., 1] = 255
        hsv[..., 2] = np.clip((combined + 1.0) * 0.5 * 255.0, 0, 255).astype(np.uint8)
        small = cv2.cvtColor(hsv, cv2.COLOR_HSV2BGR)
        return cv2.resize(small, (width, height), interpolation=cv2.INTER_LINEAR)
