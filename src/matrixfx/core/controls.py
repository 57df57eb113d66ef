"""
Control values shared between an input-handling thread and the frame loop.

Every value is read and written under a lock so the frame loop always sees a
complete value. A change made mid-frame takes effect on the next frame.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from matrixfx.core.types import (
    Effect,
    PanelMode,
    SystemMode,
    coerce_effect,
    coerce_enum,
    get_appropriate_mode_for_effect,
)

logger = logging.getLogger(__name__)


class AtomicValue:
    """A single value guarded by a lock."""

    def __init__(self, value: Any = None):
        self._lock = threading.Lock()
        self._value = value

    def load(self) -> Any:
        with self._lock:
            return self._value

    def store(self, value: Any):
        with self._lock:
            self._value = value

    def exchange(self, value: Any) -> Any:
        with self._lock:
            old, self._value = self._value, value
            return old

    def update(self, func) -> Any:
        """Replace the value with ``func(value)`` under the lock and return it."""
        with self._lock:
            self._value = func(self._value)
            return self._value


class ControlKind(Enum):
    SELECT_EFFECT = "select_effect"
    SET_SYSTEM_MODE = "set_system_mode"
    TOGGLE_SYSTEM_MODE = "toggle_system_mode"
    SET_PANEL_MODE = "set_panel_mode"
    TOGGLE_PANEL_MODE = "toggle_panel_mode"
    TOGGLE_MULTI_PANEL = "toggle_multi_panel"
    SELECT_PANEL = "select_panel"
    TOGGLE_AUTO_CYCLE = "toggle_auto_cycle"


@dataclass
class ControlEvent:
    kind: ControlKind
    value: Any = None
    panel: Optional[int] = None


class ControlState:
    """Effect, mode and panel selections for one engine."""

    def __init__(self, num_panels: int = 1, effect: Effect = Effect.FILLED_SILHOUETTE,
                 system_mode: SystemMode = SystemMode.ACTIVE, panel_mode: PanelMode = PanelMode.EXTEND,
                 multi_panel: bool = False):
        self.num_panels = max(1, int(num_panels))
        self._effect = AtomicValue(effect)
        self._system_mode = AtomicValue(system_mode)
        self._panel_mode = AtomicValue(panel_mode)
        self._multi_panel = AtomicValue(bool(multi_panel))
        self._target_panel = AtomicValue(None)
        self._panel_effects = [AtomicValue(Effect.DEBUG) for _ in range(self.num_panels)]

    @property
    def effect(self) -> Effect:
        return self._effect.load()

    @effect.setter
    def effect(self, value: Effect):
        self._effect.store(value)

    @property
    def system_mode(self) -> SystemMode:
        return self._system_mode.load()

    @system_mode.setter
    def system_mode(self, value: SystemMode):
        self._system_mode.store(SystemMode(value))

    @property
    def panel_mode(self) -> PanelMode:
        return self._panel_mode.load()

    @panel_mode.setter
    def panel_mode(self, value: PanelMode):
        self._panel_mode.store(PanelMode(value))

    @property
    def multi_panel(self) -> bool:
        return self._multi_panel.load()

    @multi_panel.setter
    def multi_panel(self, value: bool):
        self._multi_panel.store(bool(value))

    @property
    def target_panel(self) -> Optional[int]:
        return self._target_panel.load()

    def panel_effect(self, index: int) -> Effect:
        return self._panel_effects[index].load()

    def set_panel_effect(self, index: int, effect: Effect):
        if not 0 <= index < self.num_panels:
            raise IndexError(f"Panel index {index} out of range for {self.num_panels} panels")
        self._panel_effects[index].store(effect)

    def panel_effects(self) -> List[Effect]:
        return [slot.load() for slot in self._panel_effects]

    def select_effect(self, effect: Effect):
        """Select ``effect`` globally and move to the system mode it belongs to."""
        self.system_mode = get_appropriate_mode_for_effect(effect, self.system_mode)
        self.effect = effect

    def handle_event(self, event: ControlEvent) -> bool:
        """Apply a control event. Returns True if the event changed anything.

        TOGGLE_AUTO_CYCLE is not handled here; the engine owning the
        auto-cycle controller consumes it.
        """
        kind = event.kind
        if kind == ControlKind.SELECT_EFFECT:
            effect = coerce_effect(event.value)
            if effect is None:
                logger.warning(f"Ignoring unknown effect selector {event.value!r}")
                return False
            panel = event.panel if event.panel is not None else self.target_panel
            if panel is not None and self.multi_panel:
                if not 0 <= panel < self.num_panels:
                    logger.warning(f"Ignoring effect for missing panel {panel}")
                    return False
                self.set_panel_effect(panel, effect)
            else:
                self.select_effect(effect)
            return True
        if kind == ControlKind.SET_SYSTEM_MODE:
            mode = coerce_enum(SystemMode, event.value, None)
            if mode is None:
                return False
            self.system_mode = mode
            return True
        if kind == ControlKind.TOGGLE_SYSTEM_MODE:
            self.system_mode = SystemMode.ACTIVE if self.system_mode == SystemMode.AMBIENT else SystemMode.AMBIENT
            return True
        if kind == ControlKind.SET_PANEL_MODE:
            panel_mode = coerce_enum(PanelMode, event.value, None)
            if panel_mode is None:
                return False
            self.panel_mode = panel_mode
            return True
        if kind == ControlKind.TOGGLE_PANEL_MODE:
            self.panel_mode = PanelMode.REPEAT if self.panel_mode == PanelMode.EXTEND else PanelMode.EXTEND
            return True
        if kind == ControlKind.TOGGLE_MULTI_PANEL:
            self.multi_panel = not self.multi_panel
            return True
        if kind == ControlKind.SELECT_PANEL:
            if event.value is None:
                self._target_panel.store(None)
                return True
            try:
                panel = int(event.value)
            except (TypeError, ValueError):
                logger.warning(f"Ignoring non-numeric panel selector {event.value!r}")
                return False
            if not 0 <= panel < self.num_panels:
                logger.warning(f"Ignoring selection of missing panel {panel}")
                return False
            self._target_panel.store(panel)
            return True
        logger.warning(f"Unhandled control event {kind}")
        return False
