"""
Interlocking metal chain that sweeps across the canvas.

Each cycle builds one rigid chain entering from a random edge. Even links lie
along the travel axis and odd links stand perpendicular to them, centred
inside the holes of their even neighbours. Links are drawn in three passes
(back halves of even links, full odd links, front halves of even links) so
the odd links appear to pass through the even ones.
"""

import logging
import math
import random
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Tuple

import cv2
import numpy as np

from matrixfx.effects.ambient.base import FRAME_DT, AmbientGenerator

logger = logging.getLogger(__name__)

TRAVERSE_TIME = 1.0
OSCILLATION_AMPLITUDE = 10.0
OSCILLATION_SPEED = 2.5
WOBBLE_AMPLITUDE = 0.025
LINK_LENGTH = 38.0
LINK_HEIGHT = 14.0
WIRE_THICKNESS = 5.0
BASE_BRIGHTNESS = 0.85
THREADING_BRIGHTNESS_BOOST = 0.4
MAX_CHAIN_LINKS = 96
ARC_SEGMENTS = 12
HOLE_COLOR = (5, 5, 8)

# Hole ellipse semi-axes in link-local coordinates.
HOLE_SEMI_MAJOR = LINK_LENGTH / 2.0 - WIRE_THICKNESS
HOLE_SEMI_MINOR = max(1.0, LINK_HEIGHT / 2.0 - WIRE_THICKNESS)
LINK_SPACING = HOLE_SEMI_MAJOR * 0.9


class ChainDirection(IntEnum):
    FROM_LEFT = 0
    FROM_RIGHT = 1
    FROM_TOP = 2
    FROM_BOTTOM = 3

    @property
    def is_horizontal(self) -> bool:
        return self in (ChainDirection.FROM_LEFT, ChainDirection.FROM_RIGHT)

    @property
    def sign(self) -> float:
        return 1.0 if self in (ChainDirection.FROM_LEFT, ChainDirection.FROM_TOP) else -1.0


@dataclass
class OvalLink:
    id: int
    position: Tuple[float, float]
    rotation: float
    brightness: float = BASE_BRIGHTNESS
    z_order: int = 0
    age: float = 0.0
    is_active: bool = False
    is_threading: bool = False
    threading_with_id: int = -1
    threading_depth: float = 0.0
    oscillation_phase: float = 0.0


def is_point_in_hole(point: Tuple[float, float], link: OvalLink) -> bool:
    return hole_radius(point, link) < 1.0


def hole_radius(point: Tuple[float, float], link: OvalLink) -> float:
    """Normalized elliptical distance of ``point`` from the centre of ``link``'s hole."""
    dx = point[0] - link.position[0]
    dy = point[1] - link.position[1]
    cos_r = math.cos(-link.rotation)
    sin_r = math.sin(-link.rotation)
    local_x = dx * cos_r - dy * sin_r
    local_y = dx * sin_r + dy * cos_r
    return math.hypot(local_x / HOLE_SEMI_MAJOR, local_y / HOLE_SEMI_MINOR)


class OvalChain(AmbientGenerator):
    name = "oval_chain"

    def __init__(self, width: int = 0, height: int = 0, rng: Optional[random.Random] = None,
                 traverse_time: float = TRAVERSE_TIME):
        super().__init__(width, height)
        self.rng = rng or random.Random()
        self.traverse_time = traverse_time
        self.time = 0.0
        self.cycle_start = 0.0
        self.cycles = 0
        self.direction = ChainDirection.FROM_LEFT
        self.links: List[OvalLink] = []
        self._next_id = 0
        self._screen = (0, 0)

    def reset(self):
        self.time = 0.0
        self.cycle_start = 0.0
        self.links = []

    def start_new_chain(self, width: int, height: int):
        self.direction = ChainDirection(self.rng.randrange(4))
        self.cycle_start = self.time
        self.cycles += 1
        self._screen = (width, height)
        screen = width if self.direction.is_horizontal else height
        count = min(int((screen + LINK_LENGTH * 4) / LINK_SPACING) + 2, MAX_CHAIN_LINKS)
        self.links = []
        for i in range(count):
            self.links.append(OvalLink(
                id=self._next_id,
                position=(0.0, 0.0),
                rotation=0.0,
                z_order=i,
                is_active=(i == 0),
                is_threading=(i % 2 == 1),
                oscillation_phase=self.rng.random() * 2.0 * math.pi,
            ))
            self._next_id += 1
        logger.debug(f"New chain of {count} links, direction {self.direction.name}")

    def progress(self) -> float:
        return (self.time - self.cycle_start) / self.traverse_time

    def step(self, width: int, height: int) -> None:
        self.time += FRAME_DT
        if not self.links or self.progress() >= 1.0 or self._screen != (width, height):
            self.start_new_chain(width, height)
        self._layout(width, height)
        self._update_threading()

    def _layout(self, width: int, height: int):
        horizontal = self.direction.is_horizontal
        screen = float(width if horizontal else height)
        margin = LINK_LENGTH * 2.0
        chain_length = len(self.links) * LINK_SPACING
        head = self.progress() * (margin + screen + chain_length + margin) - margin
        origin = 0.0 if self.direction.sign > 0 else screen
        lateral = OSCILLATION_AMPLITUDE * math.sin(self.time * OSCILLATION_SPEED)

        for i, link in enumerate(self.links):
            along = origin + (head - i * LINK_SPACING) * self.direction.sign
            if horizontal:
                link.position = (along, height / 2.0 + lateral)
                link.rotation = 0.0 if i % 2 == 0 else math.pi / 2.0
            else:
                link.position = (width / 2.0 + lateral, along)
                link.rotation = math.pi / 2.0 if i % 2 == 0 else 0.0
            link.rotation += math.sin(self.time * 3.0 + i * 0.5) * WOBBLE_AMPLITUDE
            link.age += FRAME_DT

    def _update_threading(self):
        for i, link in enumerate(self.links):
            if i % 2 == 0:
                link.brightness = BASE_BRIGHTNESS
                continue
            best_depth, best_id = 0.0, -1
            for j in (i - 1, i + 1):
                if 0 <= j < len(self.links):
                    depth = min(1.0, max(0.0, 1.0 - hole_radius(link.position, self.links[j])))
                    if depth > best_depth:
                        best_depth, best_id = depth, self.links[j].id
            link.threading_depth = best_depth
            link.threading_with_id = best_id
            link.is_threading = best_id >= 0
            link.brightness = BASE_BRIGHTNESS + THREADING_BRIGHTNESS_BOOST * best_depth

    def render(self, width: int, height: int) -> np.ndarray:
        frame = np.zeros((height, width, 3), dtype=np.uint8)
        visible = [(i, link) for i, link in enumerate(self.links) if self._on_screen(link, width, height)]
        for i, link in visible:
            if i % 2 == 0:
                self._draw_back_half(frame, link)
        for i, link in visible:
            if i % 2 == 1:
                self._draw_full(frame, link)
        for i, link in visible:
            if i % 2 == 0:
                self._draw_front_half(frame, link)
        return frame

    @staticmethod
    def _on_screen(link: OvalLink, width: int, height: int) -> bool:
        reach = max(LINK_LENGTH, LINK_HEIGHT) * 2.0
        x, y = link.position
        return -reach <= x <= width + reach and -reach <= y <= height + reach

    # Drawing helpers

    @staticmethod
    def _palette(brightness: float):
        base = brightness * 180.0
        metal = (base * 0.75, base * 0.80, base * 0.85)
        highlight = (min(255.0, brightness * 250.0 * 0.88), min(255.0, brightness * 250.0 * 0.93),
                     min(255.0, brightness * 250.0))
        shadow = (base * 0.35, base * 0.38, base * 0.42)
        dark_edge = (base * 0.25, base * 0.28, base * 0.30)
        return metal, highlight, shadow, dark_edge

    @staticmethod
    def _transform(link: OvalLink, points) -> np.ndarray:
        cos_a, sin_a = math.cos(link.rotation), math.sin(link.rotation)
        cx, cy = link.position
        pts = np.asarray(points, dtype=np.float64)
        x = pts[:, 0] * cos_a - pts[:, 1] * sin_a + cx
        y = pts[:, 0] * sin_a + pts[:, 1] * cos_a + cy
        return np.stack([x, y], axis=1).astype(np.int32)

    @staticmethod
    def _arc(center_x: float, radius: float, start: float, reverse: bool = False):
        steps = range(ARC_SEGMENTS, -1, -1) if reverse else range(ARC_SEGMENTS + 1)
        return [(center_x + radius * math.cos(start + math.pi * k / ARC_SEGMENTS),
                 radius * math.sin(start + math.pi * k / ARC_SEGMENTS)) for k in steps]

    @staticmethod
    def _dimensions():
        half_length = LINK_LENGTH / 2.0
        end_radius = LINK_HEIGHT / 2.0
        inner_half_length = (LINK_LENGTH - WIRE_THICKNESS * 2.2) / 2.0
        inner_radius = max(1.0, (LINK_HEIGHT - WIRE_THICKNESS * 2.2) / 2.0)
        return half_length, end_radius, inner_half_length, inner_radius

    def _stadium(self, half_length: float, radius: float):
        return (self._arc(half_length - radius, radius, -math.pi / 2.0)
                + self._arc(-(half_length - radius), radius, math.pi / 2.0))

    def _draw_full(self, frame: np.ndarray, link: OvalLink):
        metal, highlight, shadow, dark_edge = self._palette(link.brightness)
        half_length, end_radius, inner_half_length, inner_radius = self._dimensions()
        straight = half_length - end_radius

        outer = self._transform(link, self._stadium(half_length, end_radius))
        cv2.fillPoly(frame, [outer], metal, cv2.LINE_AA)

        thetas = [-math.pi / 2.0 + math.pi * k / ARC_SEGMENTS for k in range(ARC_SEGMENTS + 1)]
        top = [(straight + (end_radius - WIRE_THICKNESS * 0.3) * math.cos(t),
                max(-end_radius * 0.7 + end_radius * 0.35 * (1.0 + math.sin(t)) * 0.5,
                    -end_radius + WIRE_THICKNESS * 0.5))
               for t in thetas]
        top += [(straight + (end_radius - WIRE_THICKNESS * 0.6) * math.cos(t),
                 max(-end_radius * 0.55, -end_radius + WIRE_THICKNESS * 0.3))
                for t in reversed(thetas)]
        cv2.fillPoly(frame, [self._transform(link, top)], highlight, cv2.LINE_AA)

        thetas = [math.pi / 2.0 - math.pi * k / ARC_SEGMENTS for k in range(ARC_SEGMENTS + 1)]
        bottom = [(straight + (end_radius - WIRE_THICKNESS * 0.2) * math.cos(t),
                   end_radius * 0.3 + end_radius * 0.4 * (1.0 - math.cos(t)) * 0.5)
                  for t in thetas]
        bottom += [(straight + (end_radius - WIRE_THICKNESS * 0.5) * math.cos(t), end_radius * 0.5)
                   for t in reversed(thetas)]
        cv2.fillPoly(frame, [self._transform(link, bottom)], shadow, cv2.LINE_AA)

        hole = self._transform(link, self._stadium(inner_half_length, inner_radius))
        cv2.fillPoly(frame, [hole], HOLE_COLOR, cv2.LINE_AA)
        cv2.polylines(frame, [hole], True, dark_edge, 1, cv2.LINE_AA)
        cv2.polylines(frame, [outer], True, dark_edge, 1, cv2.LINE_AA)

    def _draw_back_half(self, frame: np.ndarray, link: OvalLink):
        metal, highlight, _, dark_edge = self._palette(link.brightness)
        half_length, end_radius, inner_half_length, inner_radius = self._dimensions()
        straight = half_length - end_radius

        for sign in (-1.0, 1.0):
            bar = [(-straight, sign * end_radius), (straight, sign * end_radius),
                   (straight, sign * inner_radius), (-straight, sign * inner_radius)]
            cv2.fillPoly(frame, [self._transform(link, bar)], metal, cv2.LINE_AA)

        back_end = (self._arc(-straight, end_radius, math.pi / 2.0)
                    + self._arc(-(inner_half_length - inner_radius), inner_radius, math.pi / 2.0, reverse=True))
        back_end = self._transform(link, back_end)
        cv2.fillPoly(frame, [back_end], metal, cv2.LINE_AA)

        hole = self._transform(link, self._stadium(inner_half_length, inner_radius))
        cv2.fillPoly(frame, [hole], HOLE_COLOR, cv2.LINE_AA)

        edges = self._transform(link, [(-straight, -end_radius), (straight, -end_radius),
                                       (-straight, end_radius), (straight, end_radius),
                                       (-straight, -end_radius + WIRE_THICKNESS * 0.25),
                                       (straight, -end_radius + WIRE_THICKNESS * 0.25)])
        pts = [(int(x), int(y)) for x, y in edges]
        cv2.line(frame, pts[0], pts[1], dark_edge, 1, cv2.LINE_AA)
        cv2.line(frame, pts[2], pts[3], dark_edge, 1, cv2.LINE_AA)
        cv2.polylines(frame, [back_end], True, dark_edge, 1, cv2.LINE_AA)
        cv2.polylines(frame, [hole], True, dark_edge, 1, cv2.LINE_AA)
        cv2.line(frame, pts[4], pts[5], highlight, 1, cv2.LINE_AA)

    def _draw_front_half(self, frame: np.ndarray, link: OvalLink):
        metal, highlight, _, dark_edge = self._palette(link.brightness)
        half_length, end_radius, inner_half_length, inner_radius = self._dimensions()
        straight = half_length - end_radius

        front = (self._arc(straight, end_radius, -math.pi / 2.0)
                 + self._arc(inner_half_length - inner_radius, inner_radius, -math.pi / 2.0, reverse=True))
        front = self._transform(link, front)
        cv2.fillPoly(frame, [front], metal, cv2.LINE_AA)
        cv2.polylines(frame, [front], True, dark_edge, 1, cv2.LINE_AA)

        glints = [(straight + (end_radius - WIRE_THICKNESS * 0.35) * math.cos(-math.pi / 2.0 + math.pi * k / ARC_SEGMENTS),
                   (end_radius - WIRE_THICKNESS * 0.35) * math.sin(-math.pi / 2.0 + math.pi * k / ARC_SEGMENTS)
                   - WIRE_THICKNESS * 0.15)
                  for k in range(3, ARC_SEGMENTS - 2)]
        for x, y in self._transform(link, glints):
            cv2.circle(frame, (int(x), int(y)), 1, highlight, -1, cv2.LINE_AA)
