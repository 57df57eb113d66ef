"""Self-running procedural animations that ignore the camera feed."""

import logging
from typing import Any, Optional

from matrixfx.effects.ambient.base import AmbientGenerator, hsv_to_bgr
from matrixfx.effects.ambient.oval_chain import OvalChain
from matrixfx.effects.ambient.procedural_shapes import ProceduralShapes
from matrixfx.effects.ambient.root_veins import MandelbrotRootVeins
from matrixfx.effects.ambient.wave_patterns import WavePatterns

logger = logging.getLogger(__name__)

GENERATOR_REGISTRY = {
    'procedural_shapes': ProceduralShapes,
    'wave_patterns': WavePatterns,
    'mandelbrot_veins': MandelbrotRootVeins,
    'oval_chain': OvalChain,
}


def create_generator(name: str, width: int = 0, height: int = 0, **params: Any) -> Optional[AmbientGenerator]:
    generator_class = GENERATOR_REGISTRY.get(name.lower())
    if not generator_class:
        logger.error(f"Unknown ambient generator: {name}")
        return None
    try:
        return generator_class(width, height, **params)
    except TypeError as e:
        logger.error(f"Invalid parameters for {name}: {params}. Error: {e}")
        return None


__all__ = [
    'AmbientGenerator', 'GENERATOR_REGISTRY', 'MandelbrotRootVeins', 'OvalChain',
    'ProceduralShapes', 'WavePatterns', 'create_generator', 'hsv_to_bgr',
]
