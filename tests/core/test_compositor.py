"""
Tests for multi-panel composition.
"""

import unittest

import numpy as np

from matrixfx.core.compositor import PanelCompositor, TransitionState, panel_bounds
from matrixfx.core.dispatcher import EffectDispatcher
from matrixfx.core.types import Effect, PanelMode
from matrixfx.effects.context import EffectContext
from matrixfx.effects.motion import PANEL_MIN_AREA


def column_ramp(width, height):
    """Frame whose blue channel holds the column index."""
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[:, :, 0] = (np.arange(width) % 256).astype(np.uint8)[None, :]
    return frame


class RecordingProcessor:
    def __init__(self):
        self.calls = []

    def __call__(self, context, frame):
        self.calls.append((context.name, frame.copy()))
        return frame.copy()


class TestPanelBounds(unittest.TestCase):

    def test_even_split(self):
        self.assertEqual(panel_bounds(192, 3), [(0, 64), (64, 128), (128, 192)])

    def test_last_panel_absorbs_remainder(self):
        self.assertEqual(panel_bounds(194, 3), [(0, 64), (64, 128), (128, 194)])

    def test_single_panel(self):
        self.assertEqual(panel_bounds(50, 1), [(0, 50)])


class TestPanelCompositor(unittest.TestCase):

    def setUp(self):
        self.dispatcher = EffectDispatcher()
        self.recorder = RecordingProcessor()
        self.dispatcher.register(Effect.OUTLINE, self.recorder)
        self.compositor = PanelCompositor(3, self.dispatcher)

    def test_extend_slices_exact_columns(self):
        frame = column_ramp(192, 64)
        out = self.compositor.compose(frame, PanelMode.EXTEND, False, Effect.OUTLINE,
                                      [Effect.DEBUG] * 3)
        self.assertEqual(out.shape, frame.shape)
        np.testing.assert_array_equal(out, frame)
        names = [name for name, _ in self.recorder.calls]
        self.assertEqual(names, ["panel0", "panel1", "panel2"])
        for i, (_, region) in enumerate(self.recorder.calls):
            np.testing.assert_array_equal(region, frame[:, i * 64:(i + 1) * 64])

    def test_extend_odd_width(self):
        frame = column_ramp(193, 20)
        self.compositor.compose(frame, PanelMode.EXTEND, False, Effect.OUTLINE, [Effect.DEBUG] * 3)
        widths = [region.shape[1] for _, region in self.recorder.calls]
        self.assertEqual(widths, [64, 64, 65])
        np.testing.assert_array_equal(self.recorder.calls[2][1], frame[:, 128:193])

    def test_extend_per_panel_overrides(self):
        frame = column_ramp(192, 64)
        out = self.compositor.compose(frame, PanelMode.EXTEND, True, Effect.FILLED_SILHOUETTE,
                                      [Effect.DEBUG, Effect.OUTLINE, Effect.DEBUG])
        self.assertEqual([name for name, _ in self.recorder.calls], ["panel1"])
        np.testing.assert_array_equal(out, frame)

    def test_repeat_resizes_whole_frame(self):
        frame = column_ramp(192, 64)
        out = self.compositor.compose(frame, PanelMode.REPEAT, True, Effect.FILLED_SILHOUETTE,
                                      [Effect.OUTLINE] * 3)
        self.assertEqual(out.shape, frame.shape)
        self.assertEqual(len(self.recorder.calls), 3)
        for _, region in self.recorder.calls:
            self.assertEqual(region.shape, (64, 64, 3))
            # The left edge of every copy comes from the left edge of the full frame
            self.assertLess(int(region[0, 0, 0]), 4)
            self.assertGreater(int(region[0, -1, 0]), 185)

    def test_contexts_are_lazy_and_isolated(self):
        self.assertEqual(self.compositor.initialized_panels(), [])
        first = self.compositor.panel_context(1)
        self.assertEqual(self.compositor.initialized_panels(), [1])
        self.assertIs(self.compositor.panel_context(1), first)
        self.assertIsNot(self.compositor.panel_context(0), first)
        self.assertIsNot(self.compositor.panel_context(0).motion_model, first.motion_model)
        self.assertEqual(first.min_contour_area, PANEL_MIN_AREA)

    def test_panel_buffers_sized_to_region(self):
        frame = column_ramp(193, 20)
        self.compositor.compose(frame, PanelMode.EXTEND, False, Effect.MOTION_TRAILS, [Effect.DEBUG] * 3)
        self.assertEqual(self.compositor.panel_context(0).silhouette_accumulator.shape, (20, 64, 3))
        self.assertEqual(self.compositor.panel_context(2).silhouette_accumulator.shape, (20, 65, 3))

    def test_shared_double_exposure_uses_full_frame(self):
        global_context = EffectContext()
        frame = column_ramp(192, 64)
        out = self.compositor.compose(frame, PanelMode.EXTEND, False, Effect.DOUBLE_EXPOSURE,
                                      [Effect.DEBUG] * 3, global_context=global_context)
        self.assertEqual(out.shape, frame.shape)
        self.assertEqual(len(global_context.history), 1)
        self.assertEqual(self.compositor.initialized_panels(), [])

    def test_panel_transition_uses_panel_previous(self):
        self.dispatcher.register(Effect.FILLED_SILHOUETTE, lambda ctx, f: np.zeros_like(f))
        frame = np.full((10, 30, 3), 200, dtype=np.uint8)
        transition = TransitionState(alpha=0.5, previous_panel_effects=[Effect.FILLED_SILHOUETTE] * 3)
        out = self.compositor.compose(frame, PanelMode.REPEAT, True, Effect.OUTLINE,
                                      [Effect.OUTLINE] * 3, transition=transition)
        self.assertTrue(np.all(out == 100))


if __name__ == "__main__":
    unittest.main()
