"""FlyerStudio - mask editing and inpainting hand-off for AI flyer generation."""

__version__ = "0.1.0"

from flyerstudio.core.config import FlyerStudioConfig, config
from flyerstudio.core.mask_canvas import BrushMode, MaskCanvasEngine

__all__ = [
    "BrushMode",
    "FlyerStudioConfig",
    "MaskCanvasEngine",
    "config",
]
