"""
Tests for the ambient generator registry and the simple generators.
"""

import unittest

import numpy as np

from matrixfx.effects.ambient import (
    GENERATOR_REGISTRY, AmbientGenerator, ProceduralShapes, WavePatterns, create_generator, hsv_to_bgr,
)
from matrixfx.effects.ambient.procedural_shapes import NUM_SHAPES, morph_points, shape_points


class BrokenGenerator(AmbientGenerator):
    name = "broken"

    def step(self, width, height):
        raise ValueError("bad state")

    def render(self, width, height):
        return np.zeros((height, width, 3), dtype=np.uint8)


class TestHsvToBgr(unittest.TestCase):

    def test_primaries(self):
        self.assertEqual(hsv_to_bgr(0, 1, 1), (0.0, 0.0, 255.0))
        self.assertEqual(hsv_to_bgr(120, 1, 1), (0.0, 255.0, 0.0))
        self.assertEqual(hsv_to_bgr(240, 1, 1), (255.0, 0.0, 0.0))
        self.assertEqual(hsv_to_bgr(360, 0, 1), (255.0, 255.0, 255.0))


class TestRegistry(unittest.TestCase):

    def test_all_generators_render(self):
        for name in GENERATOR_REGISTRY:
            generator = create_generator(name, 40, 30)
            self.assertIsNotNone(generator, name)
            frame = generator.process()
            self.assertEqual(frame.shape, (30, 40, 3), name)
            self.assertEqual(frame.dtype, np.uint8, name)

    def test_unknown_name(self):
        with self.assertLogs("matrixfx.effects.ambient", level="ERROR"):
            self.assertIsNone(create_generator("plasma"))

    def test_bad_parameters(self):
        with self.assertLogs("matrixfx.effects.ambient", level="ERROR"):
            self.assertIsNone(create_generator("wave_patterns", 10, 10, speed=3))

    def test_failure_renders_black(self):
        with self.assertLogs("matrixfx.effects.ambient.base", level="ERROR"):
            frame = BrokenGenerator().process(target_width=20, target_height=10)
        self.assertEqual(frame.shape, (10, 20, 3))
        self.assertFalse(frame.any())


class TestWavePatterns(unittest.TestCase):

    def test_target_size_override(self):
        waves = WavePatterns(64, 64)
        frame = waves.process(target_width=31, target_height=17)
        self.assertEqual(frame.shape, (17, 31, 3))
        self.assertTrue(frame.any())

    def test_writes_into_output_buffer(self):
        waves = WavePatterns(16, 8)
        out = np.zeros((8, 16, 3), dtype=np.uint8)
        frame = waves.process(out=out)
        np.testing.assert_array_equal(out, frame)

    def test_animates(self):
        waves = WavePatterns(32, 32)
        first = waves.process()
        second = waves.process()
        self.assertFalse(np.array_equal(first, second))


class TestProceduralShapes(unittest.TestCase):

    def test_shapes_cycle(self):
        shapes = ProceduralShapes(64, 64)
        seen = set()
        for _ in range(140 * NUM_SHAPES):
            shapes.step(64, 64)
            seen.add(shapes.shape)
        self.assertEqual(seen, set(range(NUM_SHAPES)))

    def test_render_draws_something(self):
        shapes = ProceduralShapes(64, 48)
        frame = shapes.process()
        self.assertEqual(frame.shape, (48, 64, 3))
        self.assertTrue(frame.any())

    def test_morph_walks_shorter_list(self):
        triangle = shape_points(1, 0, 0, 10)
        star = shape_points(4, 0, 0, 10)
        self.assertEqual(len(morph_points(triangle, star, 0.5)), 10)
        np.testing.assert_array_equal(morph_points(triangle, star, 0.0)[3], triangle[0])


if __name__ == "__main__":
    unittest.main()
