"""
Tests for the motion-driven processors.
"""

import unittest

import numpy as np

from matrixfx.effects import motion_effects
from matrixfx.effects.context import MAX_TIME_OFFSET, MIN_TIME_OFFSET, EffectContext
from matrixfx.effects.motion import find_person_contours

SQUARE = (slice(10, 55), slice(10, 55))


def black(width=64, height=64):
    return np.zeros((height, width, 3), dtype=np.uint8)


def with_square():
    frame = black()
    frame[SQUARE] = 255
    return frame


def run(processor, context, frames):
    outputs = []
    for frame in frames:
        context.ensure_size(frame.shape[1], frame.shape[0])
        context.begin_frame()
        outputs.append(processor(context, frame))
    return outputs


class TestContours(unittest.TestCase):

    def test_small_blobs_are_discarded(self):
        mask = np.zeros((64, 64), dtype=np.uint8)
        mask[2:8, 2:8] = 255
        mask[20:60, 20:60] = 255
        contours = find_person_contours(mask, 1000)
        self.assertEqual(len(contours), 1)
        self.assertEqual(find_person_contours(np.zeros((8, 8), np.uint8), 0), [])


class TestSilhouettes(unittest.TestCase):

    def setUp(self):
        self.context = EffectContext()

    def test_filled_silhouette(self):
        out = run(motion_effects.process_filled_silhouette, self.context, [black(), with_square()])[1]
        self.assertTrue(np.all(out[SQUARE] == 255))
        self.assertEqual(int(np.count_nonzero(out[:, :, 0])), 45 * 45)

    def test_outline_is_hollow(self):
        out = run(motion_effects.process_outline, self.context, [black(), with_square()])[1]
        self.assertTrue(np.all(out[10, 12:50] == 255))
        self.assertFalse(out[20:45, 20:45].any())

    def test_panel_threshold_is_lower(self):
        small = black()
        small[5:30, 5:30] = 255  # contour area 576
        full = run(motion_effects.process_filled_silhouette, EffectContext(), [black(), small])[1]
        panel = run(motion_effects.process_filled_silhouette, EffectContext("panel0", 500), [black(), small])[1]
        self.assertFalse(full.any())
        self.assertTrue(panel.any())

    def test_motion_trails_decay(self):
        outputs = run(motion_effects.process_motion_trails, self.context, [black(), with_square(), black()])
        self.assertTrue(np.all(outputs[1][SQUARE] == 255))
        self.assertEqual(int(outputs[2][30, 30, 0]), 178)
        # The first frame is all foreground, so older trails fade behind the square.
        self.assertLess(int(outputs[2][0, 0, 0]), 178)


class TestRainbowTrails(unittest.TestCase):

    def test_trail_colours_after_motion_leaves(self):
        context = EffectContext()
        outputs = run(motion_effects.process_rainbow_trails, context, [black(), with_square(), black()])
        # While the square is present the live feed shows through.
        self.assertTrue(np.all(outputs[1][30, 30] == 255))
        trail = outputs[2][20:45, 20:45]
        self.assertTrue(trail.any())
        self.assertAlmostEqual(context.hue_offset, 9.0)

    def test_hue_offset_is_per_context(self):
        a, b = EffectContext(), EffectContext()
        run(motion_effects.process_rainbow_trails, a, [black(), black()])
        self.assertAlmostEqual(a.hue_offset, 6.0)
        self.assertEqual(b.hue_offset, 0.0)


class TestDoubleExposure(unittest.TestCase):

    def test_passes_through_until_history_fills(self):
        context = EffectContext()
        frames = [np.full((32, 32, 3), i * 5, dtype=np.uint8) for i in range(context.time_offset)]
        for frame, out in zip(frames, run(motion_effects.process_double_exposure, context, frames)):
            np.testing.assert_array_equal(out, frame)

    def test_offset_rerolled_every_sixty_frames(self):
        context = EffectContext()
        frames = [black(16, 16)] * 60
        run(motion_effects.process_double_exposure, context, frames)
        self.assertEqual(context.double_exposure_frames, 0)
        self.assertGreaterEqual(context.time_offset, MIN_TIME_OFFSET)
        self.assertLessEqual(context.time_offset, MAX_TIME_OFFSET)

    def test_blends_with_past_frame_in_motion(self):
        context = EffectContext()
        background = np.full((64, 64, 3), 40, dtype=np.uint8)
        frames = [background] * 20 + [with_square()]
        out = run(motion_effects.process_double_exposure, context, frames)[-1]
        # 0.25 * 255 + 0.75 * 40
        self.assertEqual(int(out[30, 30, 0]), 94)
        self.assertEqual(int(out[0, 0, 0]), 40)


class TestGeometricAbstraction(unittest.TestCase):

    def test_polygon_filled_with_colour(self):
        out = run(motion_effects.process_geometric_abstraction, EffectContext(), [black(), with_square()])[1]
        centre = out[32, 32]
        self.assertEqual(int(centre.max()), 255)
        self.assertEqual(int(centre.min()), 0)
        self.assertFalse(out[0:5, 0:5].any())


if __name__ == "__main__":
    unittest.main()
