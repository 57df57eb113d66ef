"""
Effect dispatch table.

Maps every ``Effect`` to the handler that renders it. Handlers never raise:
a failing processor is logged and replaced by a black frame of the input
size, and unknown tags fall back to pass-through.
"""

import logging
from typing import Callable, Dict, Optional

import numpy as np

from matrixfx.core.types import Effect
from matrixfx.effects import motion_effects
from matrixfx.effects.context import EffectContext
from matrixfx.utils.frame_utils import black_frame, crossfade, resize_frame

logger = logging.getLogger(__name__)

ProcessorFunc = Callable[[EffectContext, np.ndarray], np.ndarray]


def ambient_processor(generator_name: str) -> ProcessorFunc:
    """Processor that renders the context's own instance of an ambient generator."""
    def render(context: EffectContext, frame: np.ndarray) -> np.ndarray:
        height, width = frame.shape[:2]
        generator = context.generator(generator_name)
        if generator is None:
            return black_frame(width, height)
        return generator.process(target_width=width, target_height=height)
    render.__name__ = f"ambient_{generator_name}"
    return render


class EffectHandler:
    """Wraps one processor and turns any failure into a safe black frame."""

    def __init__(self, func: ProcessorFunc, name: str):
        self.func = func
        self.name = name
        self.failures = 0

    def __call__(self, context: EffectContext, frame: np.ndarray) -> np.ndarray:
        height, width = frame.shape[:2]
        try:
            out = self.func(context, frame)
        except Exception as e:
            self.failures += 1
            logger.error(f"Error during effect '{self.name}': {e}", exc_info=True)
            return black_frame(width, height)
        if out is None or out.ndim != 3 or out.shape[2] != 3:
            logger.warning(f"Effect '{self.name}' returned an unusable frame, substituting black")
            return black_frame(width, height)
        if out.shape[:2] != (height, width):
            out = resize_frame(out, (height, width))
        return out


DEFAULT_PROCESSORS: Dict[Effect, ProcessorFunc] = {
    Effect.DEBUG: motion_effects.process_pass_through,
    Effect.FILLED_SILHOUETTE: motion_effects.process_filled_silhouette,
    Effect.OUTLINE: motion_effects.process_outline,
    Effect.MOTION_TRAILS: motion_effects.process_motion_trails,
    Effect.RAINBOW_TRAILS: motion_effects.process_rainbow_trails,
    Effect.DOUBLE_EXPOSURE: motion_effects.process_double_exposure,
    Effect.PROCEDURAL_SHAPES: ambient_processor("procedural_shapes"),
    Effect.WAVE_PATTERNS: ambient_processor("wave_patterns"),
    Effect.GEOMETRIC_ABSTRACTION: motion_effects.process_geometric_abstraction,
    Effect.MANDELBROT_VEINS: ambient_processor("mandelbrot_veins"),
}


class EffectDispatcher:
    def __init__(self, handlers: Optional[Dict[Effect, EffectHandler]] = None):
        if handlers is None:
            handlers = {effect: EffectHandler(func, effect.name.lower()) for effect, func in DEFAULT_PROCESSORS.items()}
        self.handlers = dict(handlers)
        self.pass_through = EffectHandler(motion_effects.process_pass_through, "pass_through")

    def register(self, effect: Effect, func: ProcessorFunc, name: Optional[str] = None):
        self.handlers[effect] = EffectHandler(func, name or effect.name.lower())

    def handler_for(self, effect: Optional[Effect]) -> EffectHandler:
        return self.handlers.get(effect, self.pass_through)

    def render(self, effect: Optional[Effect], context: EffectContext, frame: np.ndarray) -> np.ndarray:
        """Render one tick of ``effect`` on ``frame`` using ``context``'s state."""
        height, width = frame.shape[:2]
        context.ensure_size(width, height)
        context.begin_frame()
        return self.handler_for(effect)(context, frame)

    def render_transition(self, effect: Optional[Effect], previous: Optional[Effect], alpha: float,
                          context: EffectContext, frame: np.ndarray) -> np.ndarray:
        """Crossfade from ``previous`` to ``effect`` while ``alpha`` is below 1."""
        if previous is None or previous == effect or alpha >= 1.0:
            return self.render(effect, context, frame)
        height, width = frame.shape[:2]
        context.ensure_size(width, height)
        context.begin_frame()
        old = self.handler_for(previous)(context, frame)
        new = self.handler_for(effect)(context, frame)
        return crossfade(old, new, alpha)
