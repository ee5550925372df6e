"""Core functionality for mask editing and inpainting hand-off.

This module provides the core components of FlyerStudio:

- **MaskCanvasEngine**: Freehand paint/erase editor over a source image
- **MaskHistory**: Linear undo/redo snapshot log used by the engine
- **InpaintRequest / InpaintingBackend**: Payload and interface for the
  external inpainting service
- **FlyerStudioConfig**: Configuration management using Pydantic Settings
- **config**: Global configuration instance (loads from environment variables)

Architecture Overview
---------------------
1. **Configuration Layer** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with FLYERSTUDIO_ in .env files

2. **Editing Layer** (mask_canvas.py, mask_history.py):
   - Boolean mask at native source resolution
   - Gap-free circular brush strokes, zoom-aware coordinate mapping
   - Bit-packed history snapshots

3. **Hand-off Layer** (inpainting.py, imaging.py):
   - Binary stencil export and request validation
   - Image payload decoding, PNG encoding, overlay previews

Usage Example
-------------
    from flyerstudio.core import BrushMode, MaskCanvasEngine, build_inpaint_request

    engine = MaskCanvasEngine()
    engine.load_source(photo)
    engine.begin_stroke((50, 50), BrushMode.PAINT)
    engine.end_stroke()

    request = build_inpaint_request(engine, "replace the sky with a sunset")
"""

from flyerstudio.core.config import FlyerStudioConfig, config
from flyerstudio.core.exceptions import (
    FlyerStudioError,
    InpaintingError,
    InvalidImageError,
    NoActiveSessionError,
    SessionNotFoundError,
)
from flyerstudio.core.inpainting import InpaintingBackend, InpaintRequest, build_inpaint_request
from flyerstudio.core.mask_canvas import BrushMode, MaskCanvasEngine, Point, SessionHandle
from flyerstudio.core.mask_history import MaskHistory

__all__ = [
    "BrushMode",
    "FlyerStudioConfig",
    "FlyerStudioError",
    "InpaintRequest",
    "InpaintingBackend",
    "InpaintingError",
    "InvalidImageError",
    "MaskCanvasEngine",
    "MaskHistory",
    "NoActiveSessionError",
    "Point",
    "SessionHandle",
    "SessionNotFoundError",
    "build_inpaint_request",
    "config",
]
