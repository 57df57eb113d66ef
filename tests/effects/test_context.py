"""
Tests for per-stream buffers and frame history.
"""

import random
import unittest

import numpy as np

from matrixfx.effects.context import HISTORY_CAPACITY, EffectContext, FrameHistory
from matrixfx.effects.motion_effects import process_rainbow_trails


def numbered(i, size=4):
    return np.full((size, size, 3), i, dtype=np.uint8)


class TestFrameHistory(unittest.TestCase):

    def setUp(self):
        self.history = FrameHistory(capacity=5)

    def test_empty_history(self):
        self.assertIsNone(self.history.get(0))
        self.assertEqual(len(self.history), 0)

    def test_offsets_count_back_from_latest(self):
        for i in range(3):
            self.history.push(numbered(i))
        self.assertEqual(int(self.history.get(0)[0, 0, 0]), 2)
        self.assertEqual(int(self.history.get(2)[0, 0, 0]), 0)
        self.assertIsNone(self.history.get(3))
        self.assertIsNone(self.history.get(-1))

    def test_wraps_at_capacity(self):
        for i in range(12):
            self.history.push(numbered(i))
        self.assertEqual(len(self.history), 5)
        self.assertEqual(self.history.frames_written, 12)
        self.assertEqual(int(self.history.get(4)[0, 0, 0]), 7)
        self.assertIsNone(self.history.get(5))

    def test_push_stores_a_copy(self):
        frame = numbered(9)
        self.history.push(frame)
        frame[...] = 0
        self.assertEqual(int(self.history.get(0)[0, 0, 0]), 9)

    def test_clear(self):
        self.history.push(numbered(1))
        self.history.clear()
        self.assertIsNone(self.history.get(0))


class TestEffectContext(unittest.TestCase):

    def setUp(self):
        self.context = EffectContext(rng=random.Random(11))

    def test_ensure_size_reallocates(self):
        self.assertTrue(self.context.ensure_size(40, 20))
        self.assertFalse(self.context.ensure_size(40, 20))
        self.assertEqual(self.context.silhouette_accumulator.shape, (20, 40, 3))
        self.assertEqual(self.context.trail_age.shape, (20, 40))

        self.context.history.push(numbered(1, 20))
        self.context.silhouette_accumulator[...] = 50
        self.assertTrue(self.context.ensure_size(10, 8))
        self.assertEqual(len(self.context.history), 0)
        self.assertFalse(self.context.silhouette_accumulator.any())
        self.assertEqual(self.context.history.capacity, HISTORY_CAPACITY)

    def test_mask_computed_once_per_tick(self):
        calls = []
        original = self.context.motion_model.apply

        def counting_apply(frame):
            calls.append(1)
            return original(frame)

        self.context.motion_model.apply = counting_apply
        frame = numbered(0, 16)
        self.context.ensure_size(16, 16)
        self.context.begin_frame()
        first = self.context.foreground_mask(frame)
        self.assertIs(self.context.foreground_mask(frame), first)
        self.context.begin_frame()
        self.context.foreground_mask(frame)
        self.assertEqual(len(calls), 2)

    def test_time_offset_roll_in_range(self):
        for _ in range(50):
            offset = self.context.roll_time_offset()
            self.assertGreaterEqual(offset, 15)
            self.assertLessEqual(offset, 75)

    def test_generators_are_cached(self):
        self.context.ensure_size(32, 16)
        waves = self.context.generator("wave_patterns")
        self.assertIs(self.context.generator("wave_patterns"), waves)
        self.assertIsNone(self.context.generator("nope"))

    def test_hue_grid_follows_context_size(self):
        self.context.ensure_size(24, 12)
        self.context.begin_frame()
        process_rainbow_trails(self.context, numbered(0, 24)[:12])
        self.assertEqual(self.context.hue_grid.shape, (12, 24))
        self.context.ensure_size(10, 6)
        self.assertIsNone(self.context.hue_grid)

    def test_reset_keeps_size(self):
        self.context.ensure_size(32, 16)
        self.context.hue_offset = 42.0
        self.context.time_offset = 60
        self.context.reset()
        self.assertEqual((self.context.width, self.context.height), (32, 16))
        self.assertEqual(self.context.hue_offset, 0.0)
        self.assertEqual(self.context.time_offset, 15)


if __name__ == "__main__":
    unittest.main()
