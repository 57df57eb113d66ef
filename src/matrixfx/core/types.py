"""
Effect, system mode and panel mode enumerations plus the mode rules that
decide which effects may run in each mode.
"""

import logging
from enum import IntEnum
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class Effect(IntEnum):
    DEBUG = 1
    FILLED_SILHOUETTE = 2
    OUTLINE = 3
    MOTION_TRAILS = 4
    RAINBOW_TRAILS = 5
    DOUBLE_EXPOSURE = 6
    PROCEDURAL_SHAPES = 7
    WAVE_PATTERNS = 8
    GEOMETRIC_ABSTRACTION = 9
    MANDELBROT_VEINS = 10


class SystemMode(IntEnum):
    AMBIENT = 0
    ACTIVE = 1


class PanelMode(IntEnum):
    EXTEND = 0
    REPEAT = 1


AMBIENT_EFFECTS: List[Effect] = [
    Effect.PROCEDURAL_SHAPES,
    Effect.WAVE_PATTERNS,
    Effect.MANDELBROT_VEINS,
]

ACTIVE_EFFECTS: List[Effect] = [
    Effect.FILLED_SILHOUETTE,
    Effect.OUTLINE,
    Effect.MOTION_TRAILS,
    Effect.RAINBOW_TRAILS,
    Effect.DOUBLE_EXPOSURE,
    Effect.GEOMETRIC_ABSTRACTION,
]

VALID_EFFECTS: Dict[SystemMode, List[Effect]] = {
    SystemMode.AMBIENT: AMBIENT_EFFECTS,
    SystemMode.ACTIVE: ACTIVE_EFFECTS,
}

DEFAULT_EFFECTS: Dict[SystemMode, Effect] = {
    SystemMode.AMBIENT: Effect.PROCEDURAL_SHAPES,
    SystemMode.ACTIVE: Effect.FILLED_SILHOUETTE,
}


def get_valid_effects_for_mode(mode: SystemMode) -> List[Effect]:
    return list(VALID_EFFECTS[SystemMode(mode)])


def is_effect_valid_for_mode(effect: Optional[Effect], mode: SystemMode) -> bool:
    return effect in VALID_EFFECTS[SystemMode(mode)]


def get_default_effect_for_mode(mode: SystemMode) -> Effect:
    return DEFAULT_EFFECTS[SystemMode(mode)]


def get_appropriate_mode_for_effect(effect: Effect, current_mode: SystemMode) -> SystemMode:
    """Mode an effect belongs to. DEBUG belongs to neither and keeps ``current_mode``."""
    if effect in AMBIENT_EFFECTS:
        return SystemMode.AMBIENT
    if effect == Effect.DEBUG:
        return SystemMode(current_mode)
    return SystemMode.ACTIVE


def next_effect_in_mode(effect: Optional[Effect], mode: SystemMode) -> Effect:
    """Successor of ``effect`` in the mode's list, wrapping around.

    An effect outside the list is treated as sitting at index 0.
    """
    valid = VALID_EFFECTS[SystemMode(mode)]
    index = valid.index(effect) if effect in valid else 0
    return valid[(index + 1) % len(valid)]


def coerce_effect(value: Union[int, str, Effect, None]) -> Optional[Effect]:
    """Turn a number, name or Effect into an Effect, or None if it names nothing."""
    if value is None:
        return None
    if isinstance(value, Effect):
        return value
    if isinstance(value, str):
        name = value.strip().upper()
        if name.isdigit():
            value = int(name)
        elif name in Effect.__members__:
            return Effect[name]
        else:
            return None
    try:
        return Effect(int(value))
    except (TypeError, ValueError):
        return None


def coerce_enum(enum_cls, value, default):
    """Resolve a config value (name or number) into ``enum_cls``."""
    if isinstance(value, enum_cls):
        return value
    try:
        if isinstance(value, str):
            return enum_cls[value.strip().upper()]
        return enum_cls(int(value))
    except (KeyError, TypeError, ValueError):
        logger.warning(f"Unknown {enum_cls.__name__} value {value!r}, using {getattr(default, 'name', default)}")
        return default
