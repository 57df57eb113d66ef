"""
Fractal root-vein growth.

Veins sprout from the four corners and grow toward the centre, branching into
Y-shaped splits. Curvature comes from blending the heading toward the centre
with layered sinusoids and the escape angle of a short Mandelbrot iteration
at the tip position. Once the network nears capacity old branches wilt and
are pruned; when no tip is left growing the network restarts.

All geometry is kept in normalized [0, 1] coordinates and only scaled to
pixels at render time, so the same state renders at any output size.
"""

import logging
import math
import random
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Tuple

import cv2
import numpy as np

from matrixfx.effects.ambient.base import FRAME_DT, AmbientGenerator

logger = logging.getLogger(__name__)

MAX_SEGMENTS = 800
MAX_GENERATION = 8
BRANCH_ANGLE_SPREAD = 0.45
WILT_SPEED = 0.02
WILT_CAPACITY_RATIO = 0.85
WILT_MIN_AGE = 2.0
WILT_MIN_GENERATION = 2
WILT_TIMEOUT = 12.0
PRUNE_INTERVAL = 90
RESET_AFTER_TICKS = 60
ROOTS_PER_CORNER = 3
CORNER_INSET = 0.02
CENTER = (0.5, 0.5)
CENTER_STOP_RADIUS = 0.06
BOUNDS = (-0.02, 1.02)
MANDELBROT_ITERATIONS = 10


@dataclass
class VeinSegment:
    start: Tuple[float, float]
    end: Tuple[float, float]
    direction: float
    phase: float
    generation: int = 0
    age: float = 0.0
    is_tip: bool = True
    is_wilting: bool = False
    wilt_progress: float = 0.0

    def length(self) -> float:
        return math.hypot(self.end[0] - self.start[0], self.end[1] - self.start[1])

    def brightness(self) -> float:
        pulse = 0.9 + 0.1 * math.sin(self.age * 3.0 + self.phase)
        generation_fade = max(0.4, 1.0 - self.generation * 0.1)
        return pulse * generation_fade * (1.0 - self.wilt_progress)


class SegmentArena:
    """Fixed-capacity segment store with O(1) swap-and-pop removal."""

    def __init__(self, capacity: int = MAX_SEGMENTS):
        self.capacity = capacity
        self._slots: List[VeinSegment] = []

    def __len__(self):
        return len(self._slots)

    def __iter__(self) -> Iterator[VeinSegment]:
        return iter(self._slots)

    def __getitem__(self, index: int) -> VeinSegment:
        return self._slots[index]

    @property
    def free(self) -> int:
        return self.capacity - len(self._slots)

    def add(self, segment: VeinSegment) -> bool:
        if len(self._slots) >= self.capacity:
            return False
        self._slots.append(segment)
        return True

    def remove_at(self, index: int):
        last = self._slots.pop()
        if index < len(self._slots):
            self._slots[index] = last

    def prune(self, predicate: Callable[[VeinSegment], bool]) -> int:
        removed = 0
        i = len(self._slots) - 1
        while i >= 0:
            if predicate(self._slots[i]):
                self.remove_at(i)
                removed += 1
            i -= 1
        return removed

    def clear(self):
        self._slots.clear()


class MandelbrotRootVeins(AmbientGenerator):
    name = "mandelbrot_veins"

    def __init__(self, width: int = 0, height: int = 0, rng: Optional[random.Random] = None):
        super().__init__(width, height)
        self.rng = rng or random.Random()
        self.segments = SegmentArena(MAX_SEGMENTS)
        self.time = 0.0
        self.prune_counter = 0
        self.no_tip_ticks = 0
        self.resets = 0
        self.reset()

    def reset(self):
        self.segments.clear()
        self.time = 0.0
        self.prune_counter = 0
        self.no_tip_ticks = 0
        self._plant_roots()

    def _plant_roots(self):
        for cx, cy in ((0.0, 0.0), (1.0, 0.0), (0.0, 1.0), (1.0, 1.0)):
            sx = cx + (CORNER_INSET if cx < 0.5 else -CORNER_INSET)
            sy = cy + (CORNER_INSET if cy < 0.5 else -CORNER_INSET)
            toward_center = math.atan2(CENTER[1] - cy, CENTER[0] - cx)
            for vein in range(ROOTS_PER_CORNER):
                self.segments.add(VeinSegment(
                    start=(sx, sy),
                    end=(sx, sy),
                    direction=toward_center + (vein - 1) * 0.25,
                    phase=self.rng.random() * 2.0 * math.pi,
                ))

    def active_tips(self) -> int:
        return sum(1 for s in self.segments if s.is_tip and not s.is_wilting)

    def mandelbrot_direction(self, x: float, y: float, base_angle: float) -> float:
        mx = x * 4.0 - 2.0
        my = y * 4.0 - 2.0
        zx = zy = 0.0
        for _ in range(MANDELBROT_ITERATIONS):
            zx, zy = zx * zx - zy * zy + mx, 2.0 * zx * zy + my
            if zx * zx + zy * zy > 4.0:
                break
        return base_angle + 0.15 * math.sin(math.atan2(zy, zx) + self.time * 0.5)

    def step(self, width: int, height: int) -> None:
        self.time += FRAME_DT
        for seg in self.segments:
            seg.age += FRAME_DT
        self._grow()
        self._wilt()
        if self.active_tips() == 0:
            self.no_tip_ticks += 1
            if self.no_tip_ticks >= RESET_AFTER_TICKS:
                logger.debug("Vein network has no growing tips, replanting roots")
                self.resets += 1
                self.reset()
        else:
            self.no_tip_ticks = 0

    def _grow(self):
        spawned: List[VeinSegment] = []
        for seg in self.segments:
            if not seg.is_tip or seg.is_wilting:
                continue
            ex, ey = seg.end
            to_center = math.atan2(CENTER[1] - ey, CENTER[0] - ex)
            heading = seg.direction * 0.85 + to_center * 0.15
            heading = self.mandelbrot_direction(ex, ey, heading)
            heading += 0.15 * math.sin(self.time * 2.0 + seg.phase * 3.0 + ex * 15.0)
            heading += 0.08 * math.cos(self.time * 1.2 + seg.phase * 2.0 + ey * 12.0)

            growth = 0.005 / (1.0 + seg.generation * 0.25)
            nx = ex + growth * math.cos(heading)
            ny = ey + growth * math.sin(heading)
            if (math.hypot(nx - CENTER[0], ny - CENTER[1]) < CENTER_STOP_RADIUS
                    or not BOUNDS[0] <= nx <= BOUNDS[1] or not BOUNDS[0] <= ny <= BOUNDS[1]):
                seg.is_tip = False
                continue

            seg.end = (nx, ny)
            seg.direction = heading
            branch_length = 0.02 + seg.generation * 0.008
            if seg.length() <= branch_length or len(spawned) >= self.segments.free:
                continue

            branch_prob = max(0.15, 0.7 - seg.generation * 0.08)
            if seg.generation < MAX_GENERATION and self.rng.random() < branch_prob:
                for side in (1.0, -1.0):
                    variance = (self.rng.random() - 0.5) * 0.3
                    spawned.append(VeinSegment(
                        start=seg.end,
                        end=seg.end,
                        direction=heading + side * BRANCH_ANGLE_SPREAD * 0.7 + variance,
                        phase=self.rng.random() * 2.0 * math.pi,
                        generation=seg.generation + 1,
                    ))
            else:
                spawned.append(VeinSegment(
                    start=seg.end,
                    end=seg.end,
                    direction=heading + (self.rng.random() - 0.5) * 0.2,
                    phase=seg.phase + 0.05,
                    generation=seg.generation,
                ))
            seg.is_tip = False

        for new_seg in spawned:
            if not self.segments.add(new_seg):
                break

    def _wilt(self):
        if len(self.segments) > MAX_SEGMENTS * WILT_CAPACITY_RATIO:
            for seg in self.segments:
                if (not seg.is_tip and not seg.is_wilting
                        and seg.generation > WILT_MIN_GENERATION and seg.age > WILT_MIN_AGE):
                    seg.is_wilting = True
                    break
        for seg in self.segments:
            if not seg.is_wilting and not seg.is_tip and seg.generation > 0 and seg.age > WILT_TIMEOUT:
                seg.is_wilting = True
            if seg.is_wilting:
                seg.wilt_progress = min(1.0, seg.wilt_progress + WILT_SPEED * FRAME_DT * 30.0)

        self.prune_counter += 1
        if self.prune_counter >= PRUNE_INTERVAL:
            self.prune_counter = 0
            removed = self.segments.prune(lambda s: s.wilt_progress >= 1.0 and s.generation > 0)
            if removed:
                logger.debug(f"Pruned {removed} wilted vein segments, {len(self.segments)} remain")

    def render(self, width: int, height: int) -> np.ndarray:
        frame = np.zeros((height, width, 3), dtype=np.uint8)
        for seg in self.segments:
            if seg.wilt_progress >= 1.0 or seg.length() < 0.001:
                continue
            br = seg.brightness()
            t = seg.generation / float(MAX_GENERATION)
            color = ((255 - t * 100) * br, (50 + t * 50) * br, (100 + t * 155) * br)
            p1 = (int(seg.start[0] * width), int(seg.start[1] * height))
            p2 = (int(seg.end[0] * width), int(seg.end[1] * height))
            cv2.line(frame, p1, p2, color, 1, cv2.LINE_AA)

        for seg in self.segments:
            if seg.is_tip and not seg.is_wilting:
                br = seg.brightness()
                tip = (int(seg.end[0] * width), int(seg.end[1] * height))
                cv2.circle(frame, tip, 2, (255 * br, 200 * br, 255 * br), -1, cv2.LINE_AA)

        glow = cv2.GaussianBlur(frame, (3, 3), 1.0)
        return cv2.addWeighted(frame, 0.8, glow, 0.4, 0)
