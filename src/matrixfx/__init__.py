"""
matrixfx: real-time frame effects and procedural animations for chained
LED panels.
"""

from matrixfx.core.app_core import AppCore
from matrixfx.core.controls import ControlEvent, ControlKind
from matrixfx.core.types import Effect, PanelMode, SystemMode

__version__ = "0.1.0"

__all__ = ['AppCore', 'ControlEvent', 'ControlKind', 'Effect', 'PanelMode', 'SystemMode']
