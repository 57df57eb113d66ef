"""
Tests for the effect dispatch table.
"""

import unittest

import numpy as np

from matrixfx.core.dispatcher import EffectDispatcher
from matrixfx.core.types import Effect
from matrixfx.effects.context import EffectContext


def noisy_frame(width=80, height=48, seed=0):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)


class TestEffectDispatcher(unittest.TestCase):

    def setUp(self):
        self.dispatcher = EffectDispatcher()
        self.context = EffectContext()

    def test_every_effect_preserves_shape(self):
        for effect in Effect:
            context = EffectContext()
            for i in range(3):
                frame = noisy_frame(seed=i)
                out = self.dispatcher.render(effect, context, frame)
                self.assertEqual(out.shape, frame.shape, effect.name)
                self.assertEqual(out.dtype, np.uint8, effect.name)

    def test_odd_sizes(self):
        for effect in Effect:
            frame = noisy_frame(width=37, height=5)
            out = self.dispatcher.render(effect, EffectContext(), frame)
            self.assertEqual(out.shape, (5, 37, 3), effect.name)

    def test_unknown_tag_passes_through(self):
        frame = noisy_frame()
        out = self.dispatcher.render(None, self.context, frame)
        np.testing.assert_array_equal(out, frame)
        self.assertIsNot(out, frame)

    def test_debug_passes_through(self):
        frame = noisy_frame()
        np.testing.assert_array_equal(self.dispatcher.render(Effect.DEBUG, self.context, frame), frame)

    def test_failure_becomes_black_frame(self):
        def explode(context, frame):
            raise RuntimeError("boom")

        self.dispatcher.register(Effect.OUTLINE, explode)
        frame = noisy_frame()
        with self.assertLogs("matrixfx.core.dispatcher", level="ERROR"):
            out = self.dispatcher.render(Effect.OUTLINE, self.context, frame)
        self.assertEqual(out.shape, frame.shape)
        self.assertFalse(out.any())
        self.assertEqual(self.dispatcher.handlers[Effect.OUTLINE].failures, 1)

    def test_wrong_size_output_is_resized(self):
        self.dispatcher.register(Effect.OUTLINE, lambda ctx, f: np.zeros((10, 10, 3), np.uint8))
        out = self.dispatcher.render(Effect.OUTLINE, self.context, noisy_frame())
        self.assertEqual(out.shape, (48, 80, 3))

    def test_transition_crossfades(self):
        white = lambda ctx, f: np.full_like(f, 200)
        black = lambda ctx, f: np.zeros_like(f)
        self.dispatcher.register(Effect.OUTLINE, white)
        self.dispatcher.register(Effect.FILLED_SILHOUETTE, black)
        frame = noisy_frame()
        out = self.dispatcher.render_transition(Effect.OUTLINE, Effect.FILLED_SILHOUETTE, 0.5,
                                                self.context, frame)
        self.assertTrue(np.all(out == 100))
        start = self.dispatcher.render_transition(Effect.OUTLINE, Effect.FILLED_SILHOUETTE, 0.0,
                                                  self.context, frame)
        self.assertFalse(start.any())
        done = self.dispatcher.render_transition(Effect.OUTLINE, Effect.FILLED_SILHOUETTE, 1.0,
                                                 self.context, frame)
        self.assertTrue(np.all(done == 200))

    def test_transition_trains_motion_model_once(self):
        calls = []
        model = self.context.motion_model
        original = model.apply

        def counting_apply(frame):
            calls.append(1)
            return original(frame)

        model.apply = counting_apply
        self.dispatcher.render_transition(Effect.OUTLINE, Effect.FILLED_SILHOUETTE, 0.3,
                                          self.context, noisy_frame())
        self.assertEqual(len(calls), 1)


if __name__ == "__main__":
    unittest.main()
