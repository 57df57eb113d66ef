"""
Frame engine entry point.

``AppCore.process_frame`` runs once per captured frame: it advances the
auto-cycle controller, enforces the effect/mode rules and renders through
either the global context or the panel compositor. Control setters may be
called from another thread; each control value is read once per frame.
"""

import logging
from typing import Any, Dict, Optional

import numpy as np

from matrixfx.core.auto_cycle import AutoCycleController
from matrixfx.core.compositor import PanelCompositor, TransitionState
from matrixfx.core.controls import AtomicValue, ControlEvent, ControlKind, ControlState
from matrixfx.core.dispatcher import EffectDispatcher
from matrixfx.core.types import (
    Effect,
    PanelMode,
    SystemMode,
    coerce_effect,
    coerce_enum,
    get_default_effect_for_mode,
    get_valid_effects_for_mode,
    is_effect_valid_for_mode,
)
from matrixfx.effects.context import EffectContext
from matrixfx.effects.motion import FULL_FRAME_MIN_AREA
from matrixfx.utils.config_manager import merge_config
from matrixfx.utils.frame_stats import FrameStats
from matrixfx.utils.frame_utils import black_frame, is_empty_frame, validate_frame

logger = logging.getLogger(__name__)


class AppCore:
    """Owns the control state, contexts and controllers for one display chain."""

    def __init__(self, width: int, height: int, num_panels: Optional[int] = None,
                 config: Optional[Dict[str, Any]] = None):
        self.config = merge_config(config)
        engine_cfg = self.config["engine"]
        panel_cfg = self.config["panels"]
        self.motion_settings = dict(self.config["motion"])

        self.width = int(width)
        self.height = int(height)
        self.num_panels = max(1, int(num_panels if num_panels is not None else panel_cfg.get("count", 1)))

        system_mode = coerce_enum(SystemMode, engine_cfg.get("system_mode"), SystemMode.ACTIVE)
        effect = coerce_effect(engine_cfg.get("initial_effect"))
        if effect is None or not is_effect_valid_for_mode(effect, system_mode):
            effect = get_default_effect_for_mode(system_mode)
        self.controls = ControlState(
            num_panels=self.num_panels,
            effect=effect,
            system_mode=system_mode,
            panel_mode=coerce_enum(PanelMode, panel_cfg.get("mode"), PanelMode.EXTEND),
            multi_panel=bool(panel_cfg.get("multi_panel", False)),
        )

        self.dispatcher = EffectDispatcher()
        self.global_context = EffectContext("global", FULL_FRAME_MIN_AREA, self.motion_settings)
        self.global_context.ensure_size(self.width, self.height)
        self.compositor = PanelCompositor(self.num_panels, self.dispatcher, self.motion_settings)
        self.auto_cycle = AutoCycleController(
            fps=engine_cfg.get("fps", 30),
            min_seconds=engine_cfg.get("min_cycle_seconds", 3),
            max_seconds=engine_cfg.get("max_cycle_seconds", 7),
            transition_frames=engine_cfg.get("transition_frames", 30),
            enabled=bool(engine_cfg.get("auto_cycle", True)),
        )
        # Set from the control thread, applied by the frame loop.
        self._auto_cycle_request = AtomicValue(self.auto_cycle.enabled)
        self._cancel_request = AtomicValue(False)
        self.stats = FrameStats()
        logger.info(f"AppCore ready: {self.width}x{self.height}, {self.num_panels} panel(s), "
                    f"{system_mode.name} / {effect.name}")

    # Frame processing

    def process_frame(self, frame: Optional[np.ndarray]) -> Optional[np.ndarray]:
        """Render one frame. The result always matches the input's height and width."""
        if is_empty_frame(frame):
            return frame
        frame = validate_frame(frame)
        height, width = frame.shape[:2]
        try:
            out = self._process(frame)
        except Exception as e:
            logger.error(f"Frame processing failed: {e}", exc_info=True)
            out = black_frame(width, height)
        self.stats.record_frame()
        return out

    def _process(self, frame: np.ndarray) -> np.ndarray:
        self._apply_requests()
        mode = self.controls.system_mode
        panel_mode = self.controls.panel_mode
        multi_panel = self.controls.multi_panel
        effect = self._validated_effect(mode)

        use_panels = multi_panel or self.num_panels > 1
        repeat = use_panels and panel_mode == PanelMode.REPEAT
        panel_effects = self.controls.panel_effects()
        if repeat:
            panel_effects = self._seed_repeat_panels(panel_effects, mode)

        result = self.auto_cycle.update(effect, mode, panel_effects if repeat else None)
        if result.switched:
            effect = result.effect
            self.controls.effect = effect
            if repeat:
                panel_effects = result.panel_effects
                for i, panel_effect in enumerate(panel_effects):
                    self.controls.set_panel_effect(i, panel_effect)

        transition = None
        if self.auto_cycle.in_transition:
            transition = TransitionState(
                alpha=self.auto_cycle.transition_alpha,
                previous_effect=self.auto_cycle.previous_effect,
                previous_panel_effects=list(self.auto_cycle.previous_panel_effects),
            )

        if use_panels:
            return self.compositor.compose(frame, panel_mode, multi_panel, effect, panel_effects,
                                           global_context=self.global_context, transition=transition)
        if transition is not None:
            return self.dispatcher.render_transition(effect, transition.previous_effect, transition.alpha,
                                                     self.global_context, frame)
        return self.dispatcher.render(effect, self.global_context, frame)

    def _apply_requests(self):
        self.auto_cycle.set_enabled(self._auto_cycle_request.load())
        if self._cancel_request.exchange(False):
            self.auto_cycle.cancel_transition()

    def _validated_effect(self, mode: SystemMode) -> Effect:
        effect = self.controls.effect
        if not is_effect_valid_for_mode(effect, mode):
            replacement = get_default_effect_for_mode(mode)
            logger.debug(f"{effect!r} is not valid in {mode.name}, using {replacement.name}")
            self.controls.effect = replacement
            effect = replacement
        return effect

    def _seed_repeat_panels(self, panel_effects, mode: SystemMode):
        valid = get_valid_effects_for_mode(mode)
        seeded = list(panel_effects)
        for i, panel_effect in enumerate(seeded):
            if not is_effect_valid_for_mode(panel_effect, mode):
                seeded[i] = valid[i % len(valid)]
                self.controls.set_panel_effect(i, seeded[i])
        return seeded

    # Control surface

    def set_effect(self, effect) -> bool:
        resolved = coerce_effect(effect)
        if resolved is None:
            logger.warning(f"Ignoring unknown effect {effect!r}")
            return False
        self.controls.select_effect(resolved)
        self._cancel_request.store(True)
        return True

    def get_effect(self) -> Effect:
        return self._validated_effect(self.controls.system_mode)

    def set_system_mode(self, mode: SystemMode):
        self.controls.system_mode = mode
        self._cancel_request.store(True)

    def get_system_mode(self) -> SystemMode:
        return self.controls.system_mode

    def set_panel_mode(self, mode: PanelMode):
        self.controls.panel_mode = mode

    def get_panel_mode(self) -> PanelMode:
        return self.controls.panel_mode

    def set_panel_effect(self, index: int, effect) -> bool:
        resolved = coerce_effect(effect)
        if resolved is None or not 0 <= index < self.num_panels:
            logger.warning(f"Ignoring panel effect {effect!r} for panel {index}")
            return False
        self.controls.set_panel_effect(index, resolved)
        return True

    def get_panel_effect(self, index: int) -> Effect:
        return self.controls.panel_effect(index)

    def set_multi_panel_enabled(self, enabled: bool):
        self.controls.multi_panel = enabled

    def is_multi_panel_enabled(self) -> bool:
        return self.controls.multi_panel

    def toggle_auto_cycling(self) -> bool:
        return self._auto_cycle_request.update(lambda enabled: not enabled)

    def set_auto_cycling(self, enabled: bool):
        self._auto_cycle_request.store(bool(enabled))

    def is_auto_cycling(self) -> bool:
        return self._auto_cycle_request.load()

    def handle_event(self, event: ControlEvent) -> bool:
        if event.kind == ControlKind.TOGGLE_AUTO_CYCLE:
            self.toggle_auto_cycling()
            return True
        previous_mode = self.controls.system_mode
        changed = self.controls.handle_event(event)
        if changed and self.controls.system_mode != previous_mode:
            self._cancel_request.store(True)
        return changed

    def status(self) -> Dict[str, Any]:
        return {
            "effect": self.get_effect().name,
            "system_mode": self.controls.system_mode.name,
            "panel_mode": self.controls.panel_mode.name,
            "multi_panel": self.controls.multi_panel,
            "panel_effects": [e.name for e in self.controls.panel_effects()],
            "auto_cycling": self.is_auto_cycling(),
            "transition_alpha": self.auto_cycle.transition_alpha,
            "frame_count": self.stats.frame_count,
            "fps": round(self.stats.fps, 1),
        }

    def reset(self):
        self.global_context.reset()
        self.compositor.reset()
        self._cancel_request.store(True)
        self.stats.reset()
