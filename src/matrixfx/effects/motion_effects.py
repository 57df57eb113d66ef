"""
Motion-driven frame processors.

Every processor has the signature ``(context, frame) -> frame`` and renders
the same way for the full frame and for a panel; only the context's minimum
contour area differs.
"""

import logging

import cv2
import numpy as np

from matrixfx.effects.ambient.base import hsv_to_bgr
from matrixfx.effects.context import OFFSET_CHANGE_INTERVAL, EffectContext
from matrixfx.effects.motion import RAINBOW_MIN_AREA, clean_mask, ellipse_kernel, find_person_contours

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255)
TRAIL_DECAY = 0.7
RAINBOW_DECAY = 0.93
RAINBOW_INTENSITY_FLOOR = 20
RAINBOW_HUE_STEP = 3.0
RAINBOW_ALPHA_FLOOR = 0.08
RAINBOW_ALPHA_BOOST = 1.2
RAINBOW_GAMMA = 0.7
EXPOSURE_CURRENT_WEIGHT = 0.25
EXPOSURE_PAST_WEIGHT = 0.75
POLY_EPSILON = 15.0

def _hue_grid(context: EffectContext, width: int, height: int) -> np.ndarray:
    grid = context.hue_grid
    if grid is None or grid.shape != (height, width):
        ys, xs = np.mgrid[0:height, 0:width].astype(np.float32)
        grid = xs * 0.5 + ys * 0.4
        context.hue_grid = grid
    return grid


def process_pass_through(context: EffectContext, frame: np.ndarray) -> np.ndarray:
    return frame.copy()


def process_filled_silhouette(context: EffectContext, frame: np.ndarray) -> np.ndarray:
    mask = context.foreground_mask(frame)
    contours = find_person_contours(mask, context.min_contour_area)
    out = np.zeros_like(frame)
    if contours:
        cv2.drawContours(out, contours, -1, WHITE, cv2.FILLED)
    return out


def process_outline(context: EffectContext, frame: np.ndarray) -> np.ndarray:
    mask = context.foreground_mask(frame)
    contours = find_person_contours(mask, context.min_contour_area)
    out = np.zeros_like(frame)
    if contours:
        cv2.drawContours(out, contours, -1, WHITE, 2)
    return out


def process_motion_trails(context: EffectContext, frame: np.ndarray) -> np.ndarray:
    mask = context.foreground_mask(frame)
    contours = find_person_contours(mask, context.min_contour_area)
    acc = context.silhouette_accumulator
    acc *= TRAIL_DECAY
    if contours:
        cv2.drawContours(acc, contours, -1, (255.0, 255.0, 255.0), cv2.FILLED)
    return acc.astype(np.uint8)


def process_rainbow_trails(context: EffectContext, frame: np.ndarray) -> np.ndarray:
    """Rainbow-coloured fading trail of past motion composited over the camera feed."""
    height, width = frame.shape[:2]
    mask = clean_mask(context.foreground_mask(frame))
    contours = find_person_contours(mask, RAINBOW_MIN_AREA)

    current = np.zeros((height, width), dtype=np.uint8)
    if contours:
        cv2.drawContours(current, contours, -1, 255, cv2.FILLED)

    trail_age = context.trail_age
    trail_age *= RAINBOW_DECAY
    trail_age[current > 0] = 255.0

    intensity = trail_age.astype(np.uint8)
    intensity[intensity <= RAINBOW_INTENSITY_FLOOR] = 0

    context.hue_offset = (context.hue_offset + RAINBOW_HUE_STEP) % 180.0
    hue = np.mod(_hue_grid(context, width, height) + context.hue_offset, 180.0).astype(np.uint8)
    value = (np.power(intensity / 255.0, RAINBOW_GAMMA) * 255.0).clip(0, 255).astype(np.uint8)
    visible = intensity > RAINBOW_INTENSITY_FLOOR
    hsv = np.zeros((height, width, 3), dtype=np.uint8)
    hsv[..., 0] = np.where(visible, hue, 0)
    hsv[..., 1] = np.where(visible, 255, 0)
    hsv[..., 2] = np.where(visible, value, 0)
    colored = cv2.cvtColor(hsv, cv2.COLOR_HSV2BGR).astype(np.float32)

    alpha = trail_age / 255.0
    blend = (current == 0) & (alpha > RAINBOW_ALPHA_FLOOR)
    boosted = np.minimum(1.0, alpha * RAINBOW_ALPHA_BOOST)[..., None]
    mixed = colored * boosted + frame.astype(np.float32) * (1.0 - boosted)

    out = frame.copy()
    out[blend] = np.clip(mixed[blend], 0, 255).astype(np.uint8)
    return out


def process_double_exposure(context: EffectContext, frame: np.ndarray) -> np.ndarray:
    """Blend the moving regions with a frame from a randomly chosen moment in the past."""
    context.history.push(frame)
    context.double_exposure_frames += 1
    if context.double_exposure_frames >= OFFSET_CHANGE_INTERVAL:
        context.roll_time_offset()
        context.double_exposure_frames = 0

    mask = context.foreground_mask(frame)
    past = context.history.get(context.time_offset)
    if past is None or past.shape != frame.shape:
        return frame.copy()

    mask = cv2.morphologyEx(mask, cv2.MORPH_CLOSE, ellipse_kernel(3))
    mask = cv2.GaussianBlur(mask, (15, 15), 0)
    blended = cv2.addWeighted(frame, EXPOSURE_CURRENT_WEIGHT, past, EXPOSURE_PAST_WEIGHT, 0)
    out = frame.copy()
    out[mask > 0] = blended[mask > 0]
    return out


def process_geometric_abstraction(context: EffectContext, frame: np.ndarray) -> np.ndarray:
    mask = clean_mask(context.foreground_mask(frame))
    contours = find_person_contours(mask, context.min_contour_area)
    out = np.zeros_like(frame)
    for contour in contours:
        approx = cv2.approxPolyDP(contour, POLY_EPSILON, False)
        if len(approx) < 3:
            continue
        hue = (cv2.contourArea(contour) * 0.1) % 360.0
        cv2.fillPoly(out, [approx], hsv_to_bgr(hue, 1.0, 1.0))
        cv2.polylines(out, [approx], True, WHITE, 2)
    return out
