"""Pydantic request models for the FlyerStudio API.

These models define the JSON schema for every mutating endpoint.  FastAPI
uses them for automatic request validation, serialisation, and OpenAPI
documentation generation.

Models
------
CreateSessionRequest
    Payload for ``POST /api/sessions`` — the source image to edit.
StrokeRequest
    Payload for ``POST /api/sessions/{id}/strokes`` — one complete brush
    stroke in viewport coordinates.
BrushRequest
    Payload for ``POST /api/sessions/{id}/brush``.
ZoomRequest
    Payload for ``POST /api/sessions/{id}/zoom``.
InpaintPayload
    Payload for ``POST /api/sessions/{id}/inpaint``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class CreateSessionRequest(BaseModel):
    """Request body for the ``POST /api/sessions`` endpoint.

    Attributes:
        image: Source image as a ``data:image/...;base64,`` URL or a bare
            base64 string.
        brush_radius: Optional initial brush radius.  Clamped to the
            configured range.
    """

    image: str = Field(
        ...,
        min_length=1,
        description="Source image as a base64 data URL or bare base64 string.",
    )
    brush_radius: float | None = Field(
        default=None,
        description="Initial brush radius in native pixels (clamped).",
    )


class PointModel(BaseModel):
    """A pointer position in viewport coordinates."""

    x: float
    y: float


class StrokeRequest(BaseModel):
    """Request body for the ``POST /api/sessions/{id}/strokes`` endpoint.

    The first point begins the stroke, every further point extends it, and
    the stroke is committed to history once all points are applied.

    Attributes:
        mode: ``"paint"`` to select pixels or ``"erase"`` to deselect them.
        points: Pointer samples in viewport coordinates (at least one).
        brush_radius: Optional radius to switch to before the stroke.
    """

    mode: Literal["paint", "erase"] = Field(
        default="paint",
        description="Brush mode: 'paint' or 'erase'.",
    )
    points: list[PointModel] = Field(
        ...,
        min_length=1,
        description="Pointer samples in viewport coordinates.",
    )
    brush_radius: float | None = Field(
        default=None,
        description="Brush radius to use for this and later strokes (clamped).",
    )


class BrushRequest(BaseModel):
    """Request body for the ``POST /api/sessions/{id}/brush`` endpoint."""

    radius: float = Field(..., description="Brush radius in native pixels (clamped).")


class ZoomRequest(BaseModel):
    """Request body for the ``POST /api/sessions/{id}/zoom`` endpoint."""

    factor: float = Field(..., gt=0, description="Display zoom factor (clamped).")


class InpaintPayload(BaseModel):
    """Request body for the ``POST /api/sessions/{id}/inpaint`` endpoint.

    Optional sampling fields fall back to the configured defaults when left
    as ``None``.

    Attributes:
        prompt: Replacement instruction.
        negative_prompt: Optional text describing what to avoid.
        seed: Fixed seed, or ``None`` for a random one.
        samples: Number of images to request.
        guidance_scale: Classifier-free guidance scale.
        num_inference_steps: Number of diffusion steps.
        strength: Denoising strength inside the mask.
    """

    prompt: str = Field(..., description="Replacement instruction for the masked region.")
    negative_prompt: str = Field(default="", description="Optional negative instruction.")
    seed: int | None = Field(default=None, ge=0)
    samples: int | None = None
    guidance_scale: float | None = None
    num_inference_steps: int | None = None
    strength: float | None = None
