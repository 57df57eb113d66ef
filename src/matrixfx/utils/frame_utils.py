import logging
from typing import Optional, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_HEIGHT, DEFAULT_WIDTH = 64, 64


def black_frame(width: int, height: int) -> np.ndarray:
    return np.zeros((max(1, int(height)), max(1, int(width)), 3), dtype=np.uint8)


def is_empty_frame(frame: Optional[np.ndarray]) -> bool:
    return frame is None or not isinstance(frame, np.ndarray) or frame.size == 0


def validate_frame(frame: Optional[np.ndarray], default_shape: Tuple[int, int, int] = (DEFAULT_HEIGHT, DEFAULT_WIDTH, 3)) -> np.ndarray:
    """Coerce a frame into a contiguous 3-channel uint8 BGR image.

    Missing or zero-sized frames become a black frame of ``default_shape``.
    Grayscale and BGRA inputs are converted, other dtypes are clipped.
    """
    if is_empty_frame(frame):
        return np.zeros(default_shape, dtype=np.uint8)
    if frame.shape[0] <= 0 or frame.shape[1] <= 0:
        logger.warning(f"Frame with non-positive dimensions detected {frame.shape}, returning default black frame {default_shape}")
        return np.zeros(default_shape, dtype=np.uint8)
    if frame.dtype != np.uint8:
        frame = np.clip(frame, 0, 255).astype(np.uint8)
    if frame.ndim == 2:
        frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
    elif frame.ndim == 3 and frame.shape[2] == 1:
        frame = cv2.cvtColor(frame[:, :, 0], cv2.COLOR_GRAY2BGR)
    elif frame.ndim == 3 and frame.shape[2] == 4:
        frame = cv2.cvtColor(frame, cv2.COLOR_BGRA2BGR)
    elif frame.ndim != 3 or frame.shape[2] != 3:
        logger.warning(f"Unsupported frame layout {frame.shape}, returning black frame")
        return np.zeros((frame.shape[0], frame.shape[1], 3), dtype=np.uint8)
    return np.ascontiguousarray(frame)


def resize_frame(frame: np.ndarray, target_shape: Tuple[int, int], interpolation: int = cv2.INTER_LINEAR) -> np.ndarray:
    """Resize to ``target_shape`` given as (height, width)."""
    frame = validate_frame(frame)
    current_shape = frame.shape[:2]
    target_height, target_width = target_shape
    if target_height <= 0 or target_width <= 0:
        logger.warning(f"Invalid target shape for resize: {(target_height, target_width)}. Returning original frame.")
        return frame
    if current_shape != (target_height, target_width):
        try:
            return cv2.resize(frame, (target_width, target_height), interpolation=interpolation)
        except cv2.error as e:
            logger.error(f"OpenCV resize failed from {current_shape} to {(target_width, target_height)}: {e}")
            return frame
    return frame


def crossfade(frame_a: np.ndarray, frame_b: np.ndarray, progress: float) -> np.ndarray:
    """Blend ``frame_a`` into ``frame_b``; progress 0 shows a, 1 shows b."""
    frame_b = validate_frame(frame_b)
    frame_a = resize_frame(frame_a, frame_b.shape[:2])
    progress = float(np.clip(progress, 0.0, 1.0))
    try:
        return cv2.addWeighted(frame_a, 1.0 - progress, frame_b, progress, 0.0)
    except cv2.error as e:
        logger.warning(f"Crossfade failed: {e}")
        return frame_b
