"""
Background subtraction and contour extraction shared by the motion-driven
effects.
"""

import logging
from typing import List

import cv2
import numpy as np

logger = logging.getLogger(__name__)

FULL_FRAME_MIN_AREA = 1000
PANEL_MIN_AREA = 500
RAINBOW_MIN_AREA = 1500

DEFAULT_HISTORY = 500
DEFAULT_VAR_THRESHOLD = 16
DEFAULT_DETECT_SHADOWS = True

_KERNELS = {}


def ellipse_kernel(size: int) -> np.ndarray:
    kernel = _KERNELS.get(size)
    if kernel is None:
        kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (size, size))
        _KERNELS[size] = kernel
    return kernel


class MotionModel:
    """Adaptive background model producing a foreground mask per frame.

    Every call to ``apply`` updates the model, so callers must feed each
    camera frame exactly once.
    """

    def __init__(self, history: int = DEFAULT_HISTORY, var_threshold: float = DEFAULT_VAR_THRESHOLD,
                 detect_shadows: bool = DEFAULT_DETECT_SHADOWS):
        self.history = int(history)
        self.var_threshold = float(var_threshold)
        self.detect_shadows = bool(detect_shadows)
        self._subtractor = None
        self.reset()

    @classmethod
    def from_settings(cls, settings=None):
        settings = settings or {}
        return cls(
            history=settings.get("history", DEFAULT_HISTORY),
            var_threshold=settings.get("var_threshold", DEFAULT_VAR_THRESHOLD),
            detect_shadows=settings.get("detect_shadows", DEFAULT_DETECT_SHADOWS),
        )

    def reset(self):
        self._subtractor = cv2.createBackgroundSubtractorMOG2(
            history=self.history,
            varThreshold=self.var_threshold,
            detectShadows=self.detect_shadows,
        )

    def apply(self, frame: np.ndarray) -> np.ndarray:
        return self._subtractor.apply(frame)


def clean_mask(mask: np.ndarray, kernel_size: int = 5) -> np.ndarray:
    """Morphological open then close with an elliptical kernel."""
    kernel = ellipse_kernel(kernel_size)
    mask = cv2.morphologyEx(mask, cv2.MORPH_OPEN, kernel)
    return cv2.morphologyEx(mask, cv2.MORPH_CLOSE, kernel)


def find_person_contours(mask: np.ndarray, min_area: float) -> List[np.ndarray]:
    """External contours of the mask whose area exceeds ``min_area``."""
    contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    return [c for c in contours if cv2.contourArea(c) > min_area]
