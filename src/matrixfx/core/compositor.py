"""
Multi-panel composition for a horizontal chain of LED panels.

Extend slices one logical frame across the panels at native resolution.
Repeat resizes the whole frame into every panel and processes each copy
independently. Every panel owns its own ``EffectContext`` so motion
statistics and trail history never leak between panels.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from matrixfx.core.dispatcher import EffectDispatcher
from matrixfx.core.types import Effect, PanelMode
from matrixfx.effects.context import EffectContext
from matrixfx.effects.motion import PANEL_MIN_AREA
from matrixfx.utils.frame_utils import resize_frame

logger = logging.getLogger(__name__)


@dataclass
class TransitionState:
    alpha: float = 1.0
    previous_effect: Optional[Effect] = None
    previous_panel_effects: List[Effect] = field(default_factory=list)


def panel_bounds(total_width: int, num_panels: int) -> List[Tuple[int, int]]:
    """Column ranges [start, end) per panel; the last panel absorbs the remainder."""
    num_panels = max(1, num_panels)
    panel_width = total_width // num_panels
    bounds = []
    for i in range(num_panels):
        start = i * panel_width
        end = total_width if i == num_panels - 1 else start + panel_width
        bounds.append((start, end))
    return bounds


class PanelCompositor:
    def __init__(self, num_panels: int, dispatcher: EffectDispatcher, motion_settings: Optional[Dict] = None):
        self.num_panels = max(1, int(num_panels))
        self.dispatcher = dispatcher
        self.motion_settings = dict(motion_settings or {})
        self._contexts: List[Optional[EffectContext]] = [None] * self.num_panels

    def panel_context(self, index: int) -> EffectContext:
        context = self._contexts[index]
        if context is None:
            context = EffectContext(f"panel{index}", PANEL_MIN_AREA, self.motion_settings)
            self._contexts[index] = context
            logger.debug(f"Created context for panel {index}")
        return context

    def initialized_panels(self) -> List[int]:
        return [i for i, ctx in enumerate(self._contexts) if ctx is not None]

    def reset(self):
        self._contexts = [None] * self.num_panels

    def _render_panel(self, index: int, effect: Effect, previous: Optional[Effect],
                      alpha: float, region: np.ndarray) -> np.ndarray:
        context = self.panel_context(index)
        return self.dispatcher.render_transition(effect, previous, alpha, context, region)

    def compose(self, frame: np.ndarray, panel_mode: PanelMode, per_panel_enabled: bool,
                global_effect: Effect, panel_effects: Sequence[Effect],
                global_context: Optional[EffectContext] = None,
                transition: Optional[TransitionState] = None) -> np.ndarray:
        """Process ``frame`` across all panels and return a frame of the same size.

        Args:
            frame: Full-width BGR input.
            panel_mode: EXTEND slices the frame, REPEAT resizes it per panel.
            per_panel_enabled: In EXTEND, use ``panel_effects`` instead of the
                shared ``global_effect``.
            global_effect: Effect shared by every panel.
            panel_effects: One effect per panel.
            global_context: Full-frame context, used for the shared
                Double Exposure case in EXTEND.
            transition: Crossfade in progress, if any.
        """
        height, width = frame.shape[:2]
        transition = transition or TransitionState()
        out = np.zeros_like(frame)
        bounds = panel_bounds(width, self.num_panels)

        if panel_mode == PanelMode.EXTEND:
            shared = not per_panel_enabled
            if shared and global_effect == Effect.DOUBLE_EXPOSURE and global_context is not None:
                return self.dispatcher.render_transition(
                    global_effect, transition.previous_effect, transition.alpha, global_context, frame)
            for i, (x0, x1) in enumerate(bounds):
                if x1 <= x0:
                    continue
                if shared:
                    effect, previous = global_effect, transition.previous_effect
                else:
                    effect, previous = panel_effects[i], self._previous_for(transition, i)
                region = np.ascontiguousarray(frame[:, x0:x1])
                out[:, x0:x1] = self._render_panel(i, effect, previous, transition.alpha, region)
            return out

        for i, (x0, x1) in enumerate(bounds):
            if x1 <= x0:
                continue
            scaled = resize_frame(frame, (height, x1 - x0))
            out[:, x0:x1] = self._render_panel(
                i, panel_effects[i], self._previous_for(transition, i), transition.alpha, scaled)
        return out

    @staticmethod
    def _previous_for(transition: TransitionState, index: int) -> Optional[Effect]:
        if index < len(transition.previous_panel_effects):
            return transition.previous_panel_effects[index]
        return None
