"""Inpainting hand-off for the mask editor.

The editor never talks to an image-generation vendor itself.  Instead it
produces an :class:`InpaintRequest` (source image, binary stencil, prompt,
and sampling options) and passes it to whatever :class:`InpaintingBackend`
the host application has configured.  Backends return the edited image or
raise :class:`~flyerstudio.core.exceptions.InpaintingError`.

Request Defaults
----------------
The sampling defaults (one sample, FlowMatch Euler scheduler, guidance 3.5,
24 steps, strength 0.9) come from :class:`FlyerStudioConfig` and match the
hosted FLUX inpainting model the flyer application targets.  When no seed
is given a random one in ``[0, 1_000_000)`` is drawn.
"""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod

import numpy as np
from PIL import Image
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from flyerstudio.core.config import FlyerStudioConfig, config as default_config
from flyerstudio.core.mask_canvas import MaskCanvasEngine

logger = logging.getLogger(__name__)

MAX_SEED = 1_000_000


class InpaintRequest(BaseModel):
    """Everything the inpainting collaborator needs for one edit.

    Attributes:
        image: RGB source image at native resolution.
        mask: ``"L"`` stencil of the same size; 255 marks pixels to replace,
            0 marks pixels to keep.
        prompt: Instruction describing the replacement content.
        negative_prompt: Optional text describing what to avoid.
        samples: Number of images to request.
        scheduler: Sampler name understood by the service.
        guidance_scale: Classifier-free guidance scale.
        num_inference_steps: Number of diffusion steps.
        strength: Denoising strength inside the masked region.
        seed: Random seed for reproducible results.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    image: Image.Image
    mask: Image.Image
    prompt: str = Field(..., min_length=1)
    negative_prompt: str = ""
    samples: int = Field(default=1, ge=1, le=4)
    scheduler: str = "FlowMatchEulerDiscreteScheduler"
    guidance_scale: float = Field(default=3.5, ge=0.0)
    num_inference_steps: int = Field(default=24, ge=1, le=100)
    strength: float = Field(default=0.9, ge=0.0, le=1.0)
    seed: int = Field(default_factory=lambda: random.randrange(MAX_SEED), ge=0)

    @field_validator("prompt")
    @classmethod
    def _prompt_not_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("prompt must not be blank")
        return stripped

    @field_validator("mask")
    @classmethod
    def _mask_is_binary(cls, value: Image.Image) -> Image.Image:
        if value.mode != "L":
            raise ValueError(f"mask must be a greyscale 'L' image, got mode {value.mode!r}")
        levels = np.unique(np.asarray(value))
        if not np.isin(levels, (0, 255)).all():
            raise ValueError("mask must contain only the values 0 and 255")
        return value

    @model_validator(mode="after")
    def _sizes_match(self) -> InpaintRequest:
        if self.image.size != self.mask.size:
            raise ValueError(
                f"mask size {self.mask.size} does not match image size {self.image.size}"
            )
        return self

    def options(self) -> dict:
        """Sampling options as a plain dictionary, for backends and logs."""
        return {
            "negative_prompt": self.negative_prompt,
            "samples": self.samples,
            "scheduler": self.scheduler,
            "guidance_scale": self.guidance_scale,
            "num_inference_steps": self.num_inference_steps,
            "strength": self.strength,
            "seed": self.seed,
        }


def build_inpaint_request(
    engine: MaskCanvasEngine,
    prompt: str,
    *,
    negative_prompt: str = "",
    seed: int | None = None,
    config: FlyerStudioConfig | None = None,
    **overrides,
) -> InpaintRequest:
    """Snapshot the engine's source and stencil into an :class:`InpaintRequest`.

    The snapshot is independent of the engine, so editing can continue while
    the request is in flight.

    Args:
        engine: Editor with a loaded source image.
        prompt: Replacement instruction; must not be blank.
        negative_prompt: Optional text describing what to avoid.
        seed: Fixed seed, or ``None`` for a random one.
        config: Source of sampling defaults (global config if omitted).
        **overrides: Any of ``samples``, ``scheduler``, ``guidance_scale``,
            ``num_inference_steps`` or ``strength``.

    Returns:
        A validated request.

    Raises:
        NoActiveSessionError: If the engine has no source image.
        ValueError: If the prompt is blank.
        pydantic.ValidationError: If an override is out of range.
    """
    cfg = config or default_config

    # Checked before touching the engine, matching the editor's own guard.
    if not prompt or not prompt.strip():
        raise ValueError("Please provide an image and a prompt")

    fields = {
        "samples": cfg.inpaint_samples,
        "scheduler": cfg.inpaint_scheduler,
        "guidance_scale": cfg.inpaint_guidance_scale,
        "num_inference_steps": cfg.inpaint_num_inference_steps,
        "strength": cfg.inpaint_strength,
    }
    fields.update({key: value for key, value in overrides.items() if value is not None})
    if seed is not None:
        fields["seed"] = seed

    return InpaintRequest(
        image=engine.source_image(),
        mask=engine.export_binary_mask(),
        prompt=prompt,
        negative_prompt=negative_prompt or "",
        **fields,
    )


class InpaintingBackend(ABC):
    """Interface for the external inpainting collaborator.

    Implementations wrap a hosted model or a local pipeline.  They must not
    retain references to the request after returning.
    """

    @abstractmethod
    def inpaint(self, request: InpaintRequest) -> Image.Image:
        """Replace the masked region of ``request.image``.

        Returns:
            The edited image.

        Raises:
            InpaintingError: If the collaborator fails or returns no image.
        """
