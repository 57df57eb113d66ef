"""
Timed advancement through the current mode's effects with crossfade
transitions.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional

from matrixfx.core.types import Effect, SystemMode, next_effect_in_mode

logger = logging.getLogger(__name__)

DEFAULT_FPS = 30
MIN_CYCLE_SECONDS = 3
MAX_CYCLE_SECONDS = 7
TRANSITION_FRAMES = 30


@dataclass
class CycleResult:
    """Outcome of one controller tick."""
    switched: bool = False
    effect: Optional[Effect] = None
    panel_effects: List[Effect] = field(default_factory=list)


class AutoCycleController:
    def __init__(self, fps: int = DEFAULT_FPS, min_seconds: float = MIN_CYCLE_SECONDS,
                 max_seconds: float = MAX_CYCLE_SECONDS, transition_frames: int = TRANSITION_FRAMES,
                 enabled: bool = True, rng: Optional[random.Random] = None):
        self.fps = int(fps)
        self.min_seconds = min(min_seconds, max_seconds)
        self.max_seconds = max(min_seconds, max_seconds)
        self.transition_frames = max(1, int(transition_frames))
        self.rng = rng or random.Random()
        self.enabled = enabled
        self.cycle_counter = 0
        self.frames_until_next = 0
        self.transition_frames_remaining = 0
        self.transition_alpha = 1.0
        self.previous_effect: Optional[Effect] = None
        self.previous_panel_effects: List[Effect] = []
        self.roll_interval()

    @property
    def in_transition(self) -> bool:
        return self.transition_frames_remaining > 0 or self.transition_alpha < 1.0

    def roll_interval(self) -> int:
        low = int(round(self.min_seconds * self.fps))
        high = int(round(self.max_seconds * self.fps))
        self.frames_until_next = max(1, self.rng.randint(low, high))
        return self.frames_until_next

    def cancel_transition(self):
        self.transition_frames_remaining = 0
        self.transition_alpha = 1.0
        self.previous_effect = None
        self.previous_panel_effects = []

    def set_enabled(self, enabled: bool):
        if enabled == self.enabled:
            return
        if enabled:
            self.cycle_counter = 0
            self.roll_interval()
        # A frozen controller must not leave the output stuck mid-blend.
        self.cancel_transition()
        self.enabled = enabled
        logger.info(f"Auto-cycling {'enabled' if enabled else 'disabled'}")

    def toggle(self) -> bool:
        self.set_enabled(not self.enabled)
        return self.enabled

    def update(self, current_effect: Effect, mode: SystemMode,
               repeat_panels: Optional[List[Effect]] = None) -> CycleResult:
        """Advance one frame.

        Args:
            current_effect: The globally selected effect.
            mode: Current system mode; its valid list drives the cycle.
            repeat_panels: Per-panel effects when panels run independently
                (Repeat layout). Each one is advanced on a switch.

        Returns:
            CycleResult with ``switched`` set on the frame a new effect starts.
        """
        result = CycleResult(effect=current_effect, panel_effects=list(repeat_panels or []))
        if not self.enabled:
            return result

        if self.transition_frames_remaining > 0:
            self.transition_frames_remaining -= 1
            self.transition_alpha = 1.0 - self.transition_frames_remaining / float(self.transition_frames)
            if self.transition_frames_remaining == 0:
                self.previous_effect = None
                self.previous_panel_effects = []
            return result

        self.cycle_counter += 1
        if self.cycle_counter < self.frames_until_next:
            return result

        self.cycle_counter = 0
        self.previous_effect = current_effect
        result.effect = next_effect_in_mode(current_effect, mode)
        if repeat_panels:
            self.previous_panel_effects = list(repeat_panels)
            result.panel_effects = [next_effect_in_mode(e, mode) for e in repeat_panels]
        result.switched = True
        self.transition_frames_remaining = self.transition_frames
        self.transition_alpha = 0.0
        self.roll_interval()
        logger.info(f"Auto-cycle: {current_effect.name if current_effect else None} -> {result.effect.name} "
                    f"(next switch in {self.frames_until_next} frames)")
        return result
