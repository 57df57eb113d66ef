import abc
import logging
from typing import Optional, Tuple

import numpy as np

from matrixfx.utils.frame_utils import DEFAULT_HEIGHT, DEFAULT_WIDTH, black_frame

logger = logging.getLogger(__name__)

FRAME_DT = 1.0 / 30.0


def hsv_to_bgr(h: float, s: float, v: float) -> Tuple[float, float, float]:
    """Convert hue in degrees [0, 360) with s, v in [0, 1] to a BGR triple in [0, 255]."""
    h = h % 360.0
    c = v * s
    x = c * (1.0 - abs((h / 60.0) % 2.0 - 1.0))
    m = v - c
    if h < 60:
        r, g, b = c, x, 0.0
    elif h < 120:
        r, g, b = x, c, 0.0
    elif h < 180:
        r, g, b = 0.0, c, x
    elif h < 240:
        r, g, b = 0.0, x, c
    elif h < 300:
        r, g, b = x, 0.0, c
    else:
        r, g, b = c, 0.0, x
    return ((b + m) * 255.0, (g + m) * 255.0, (r + m) * 255.0)


class AmbientGenerator(abc.ABC):
    """Self-running animation that ignores the camera feed.

    Subclasses implement ``step`` (advance one tick) and ``render`` (draw the
    current state at a given size). ``process`` wraps both and never raises.
    """

    name = "ambient"

    def __init__(self, width: int = 0, height: int = 0):
        self.width = int(width or 0)
        self.height = int(height or 0)

    def _resolve_size(self, target_width: Optional[int], target_height: Optional[int]) -> Tuple[int, int]:
        width = target_width or self.width or DEFAULT_WIDTH
        height = target_height or self.height or DEFAULT_HEIGHT
        return int(width), int(height)

    def process(self, out: Optional[np.ndarray] = None, target_width: Optional[int] = None,
                target_height: Optional[int] = None) -> np.ndarray:
        width, height = self._resolve_size(target_width, target_height)
        try:
            self.step(width, height)
            frame = self.render(width, height)
        except Exception as e:
            logger.error(f"Ambient generator '{self.name}' failed at {width}x{height}: {e}", exc_info=True)
            frame = black_frame(width, height)
        if out is not None and out.shape == frame.shape:
            out[...] = frame
        return frame

    @abc.abstractmethod
    def step(self, width: int, height: int) -> None: pass

    @abc.abstractmethod
    def render(self, width: int, height: int) -> np.ndarray: pass

    def reset(self) -> None: pass
