"""
Scrolling tessellation of shapes that continuously morph circle -> triangle
-> square -> hexagon -> star and back, with slowly drifting colours and a
fill/outline cycle.
"""

import logging
import math
from typing import List, Tuple

import cv2
import numpy as np

from matrixfx.effects.ambient.base import AmbientGenerator, hsv_to_bgr

logger = logging.getLogger(__name__)

SHAPE_NAMES = ("circle", "triangle", "square", "hexagon", "star")
NUM_SHAPES = len(SHAPE_NAMES)
TIME_STEP = 0.016
MORPH_STEP = 0.0075
SCROLL_SPEED = 0.8

# shape index -> (cell size as a fraction of the short side, hex tiling)
TESSELLATION = {
    0: (0.12, True),
    1: (0.14, True),
    2: (0.11, False),
    3: (0.13, True),
    4: (0.12, False),
}


def shape_points(shape: int, cx: int, cy: int, radius: int) -> List[Tuple[int, int]]:
    """Vertices of a regular shape centred on (cx, cy)."""
    if shape == 0:
        count, rotation = 32, 0.0
    elif shape == 1:
        count, rotation = 3, -math.pi / 2.0
    elif shape == 2:
        count, rotation = 4, -math.pi / 4.0
    elif shape == 3:
        count, rotation = 6, -math.pi / 2.0
    else:
        count, rotation = 10, -math.pi / 2.0
    points = []
    for i in range(count):
        angle = i * 2.0 * math.pi / count + rotation
        r = radius if shape != 4 or i % 2 == 0 else radius // 2
        points.append((cx + int(r * math.cos(angle)), cy + int(r * math.sin(angle))))
    return points


def morph_points(current: List[Tuple[int, int]], target: List[Tuple[int, int]], progress: float) -> np.ndarray:
    """Per-vertex interpolation; the shorter point list is walked modulo its length."""
    count = max(len(current), len(target))
    out = np.empty((count, 2), dtype=np.int32)
    for i in range(count):
        x1, y1 = current[i % len(current)]
        x2, y2 = target[i % len(target)]
        out[i] = (int(x1 + (x2 - x1) * progress), int(y1 + (y2 - y1) * progress))
    return out


class ProceduralShapes(AmbientGenerator):
    name = "procedural_shapes"

    def __init__(self, width: int = 0, height: int = 0):
        super().__init__(width, height)
        self.reset()

    def reset(self):
        self.frame_counter = 0
        self.time = 0.0
        self.shape = 0
        self.morph_progress = 0.0
        self.fill_progress = 0.0
        self.color_progress = 0.0
        self.base_hue = 0.0

    def step(self, width: int, height: int) -> None:
        self.frame_counter += 1
        self.time = self.frame_counter * TIME_STEP
        self.color_progress = (self.time * 0.25) % 1.0
        self.base_hue = (self.time * 5.0) % 360.0
        if self.morph_progress >= 1.0:
            self.shape = (self.shape + 1) % NUM_SHAPES
            self.morph_progress = 0.0
        self.morph_progress = min(1.0, self.morph_progress + MORPH_STEP)
        self.fill_progress = 0.5 + 0.5 * math.sin(self.time * 0.15)

    def render(self, width: int, height: int) -> np.ndarray:
        frame = np.zeros((height, width, 3), dtype=np.uint8)
        short_side = min(width, height)
        progress = self.morph_progress
        current, following = self.shape, (self.shape + 1) % NUM_SHAPES
        cur_factor, cur_hex = TESSELLATION[current]
        next_factor, next_hex = TESSELLATION[following]

        shape_size = short_side * (cur_factor + (next_factor - cur_factor) * progress)
        if cur_hex and next_hex:
            hex_factor = 1.0
        elif not cur_hex and not next_hex:
            hex_factor = 0.0
        else:
            hex_factor = 1.0 - progress if cur_hex else progress
        radius = int((shape_size - 1.0) * 0.5)
        if radius < 1:
            return frame

        row_spacing = shape_size * 0.866 if hex_factor > 0.5 else shape_size
        cols = int(width / shape_size) + 4
        base_rows = int(height / row_spacing)
        extra_rows = max(2, int((height - base_rows * row_spacing) / row_spacing) + 2)
        rows = base_rows + extra_rows + 4

        scroll = self.time * SCROLL_SPEED * 30.0
        scroll_x = scroll % width
        scroll_y = scroll % height
        wrap = shape_size * 2.0
        cur_cell = short_side * cur_factor
        next_cell = short_side * next_factor

        for row in range(-1, rows):
            for col in range(-1, cols):
                cx1 = col * cur_cell + cur_cell / 2.0 + (cur_cell * 0.5 if cur_hex and row % 2 == 1 else 0.0)
                cy1 = row * cur_cell + cur_cell / 2.0
                cx2 = col * next_cell + next_cell / 2.0 + (next_cell * 0.5 if next_hex and row % 2 == 1 else 0.0)
                cy2 = row * next_cell + next_cell / 2.0
                center_x = cx1 + (cx2 - cx1) * progress - scroll_x
                center_y = cy1 + (cy2 - cy1) * progress - scroll_y

                while center_x < -wrap:
                    center_x += width + wrap * 2.0
                while center_x > width + wrap:
                    center_x -= width + wrap * 2.0
                while center_y < -wrap:
                    center_y += height + wrap * 2.0
                while center_y > height + wrap:
                    center_y -= height + wrap * 2.0

                if (center_x + radius < 0 or center_x - radius > width
                        or center_y + radius < 0 or center_y - radius > height):
                    continue

                hue1 = (self.base_hue + row * 25.0 + col * 18.0) % 360.0
                hue2 = (self.base_hue + 120.0 + row * 25.0 + col * 18.0) % 360.0
                hue = (hue1 + (hue2 - hue1) * self.color_progress) % 360.0
                sat = 0.85 + 0.1 * math.sin(self.time * 0.4 + row + col)
                val = 0.9 + 0.1 * math.cos(self.time * 0.3 + row - col)
                self._draw_shape(frame, int(center_x), int(center_y), radius, hsv_to_bgr(hue, sat, val))
        return frame

    def _draw_shape(self, frame: np.ndarray, cx: int, cy: int, radius: int, color):
        following = (self.shape + 1) % NUM_SHAPES
        points = morph_points(shape_points(self.shape, cx, cy, radius),
                              shape_points(following, cx, cy, radius), self.morph_progress)
        if len(points) < 3:
            return
        if self.fill_progress > 0.3:
            cv2.fillPoly(frame, [points], color)
        thickness = 3 if self.fill_progress < 0.5 else 2
        cv2.polylines(frame, [points], True, color, thickness)
