"""Configuration management for FlyerStudio.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the FLYERSTUDIO_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (FLYERSTUDIO_* prefix)
2. .env file in the project root
3. Default values defined in FlyerStudioConfig

Example .env file:
    FLYERSTUDIO_MAX_IMAGE_DIMENSION=4096
    FLYERSTUDIO_DEFAULT_BRUSH_RADIUS=10
    FLYERSTUDIO_MAX_ZOOM=2.0
    FLYERSTUDIO_SERVER_PORT=7860

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
This ensures a single source of truth for all configuration values across
the application.

Usage Example
-------------
    from flyerstudio.core.config import config

    print(config.max_image_dimension)
    print(config.default_brush_radius)

Mask Editor Constraints
-----------------------
- Brush radius is clamped into [min_brush_radius, max_brush_radius]
  (1-50 px, matching the 2-100 px brush diameter slider of the editor UI)
- Zoom is clamped into [min_zoom, max_zoom] (50%-200%)
- max_image_dimension bounds the memory of a single editing session

See Also
--------
- FlyerStudioConfig: Full configuration class documentation
"""

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FlyerStudioConfig(BaseSettings):
    """Main configuration for FlyerStudio.

    This class uses Pydantic Settings to manage all application configuration.
    Values are loaded from environment variables with the FLYERSTUDIO_ prefix,
    with fallback to defaults defined here.

    Attributes
    ----------
    Mask Editor Settings:
        max_image_dimension : int
            Largest accepted width or height of a source image
        default_brush_radius : float
            Brush radius used by new editing sessions
        min_brush_radius : float
            Lower clamp for the brush radius
        max_brush_radius : float
            Upper clamp for the brush radius
        min_zoom : float
            Lower clamp for the display zoom factor
        max_zoom : float
            Upper clamp for the display zoom factor
        overlay_alpha : float
            Opacity of the red preview tint over selected pixels

    Inpainting Defaults:
        inpaint_samples : int
            Number of images requested from the inpainting service
        inpaint_scheduler : str
            Sampler name forwarded to the inpainting service
        inpaint_guidance_scale : float
            Guidance scale forwarded to the inpainting service
        inpaint_num_inference_steps : int
            Inference steps forwarded to the inpainting service
        inpaint_strength : float
            Denoising strength forwarded to the inpainting service

    Server Settings:
        max_sessions : int
            Maximum number of live editing sessions kept in memory
        server_host : str
            Server bind address (0.0.0.0 for local network)
        server_port : int
            Server port (1024-65535)
        log_level : str
            Root log level used by the CLI entry point

    Notes
    -----
    - Configuration is immutable after initialization
    - To modify config, set environment variables and restart the application

    Examples
    --------
    Create a custom configuration:

        >>> custom_config = FlyerStudioConfig(
        ...     default_brush_radius=20,
        ...     max_image_dimension=2048,
        ... )

    Use the global configuration instance:

        >>> from flyerstudio.core.config import config
        >>> print(config.max_zoom)
        2.0
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FLYERSTUDIO_",
        case_sensitive=False,
    )

    # Mask editor settings
    max_image_dimension: int = Field(
        default=4096,
        description="Largest accepted source image width or height in pixels",
        ge=1,
        le=16384,
    )
    default_brush_radius: float = Field(
        default=10.0,
        description="Brush radius for new sessions (half of the 20px default brush)",
        gt=0,
    )
    min_brush_radius: float = Field(default=1.0, gt=0)
    max_brush_radius: float = Field(default=50.0, gt=0)
    min_zoom: float = Field(default=0.5, gt=0)
    max_zoom: float = Field(default=2.0, gt=0)
    overlay_alpha: float = Field(
        default=0.5,
        description="Opacity of the mask preview tint",
        ge=0.0,
        le=1.0,
    )

    # Inpainting defaults (forwarded to the external inpainting service)
    inpaint_samples: int = Field(default=1, ge=1, le=4)
    inpaint_scheduler: str = Field(default="FlowMatchEulerDiscreteScheduler")
    inpaint_guidance_scale: float = Field(default=3.5, ge=0.0)
    inpaint_num_inference_steps: int = Field(default=24, ge=1, le=100)
    inpaint_strength: float = Field(default=0.9, ge=0.0, le=1.0)

    # Server settings
    max_sessions: int = Field(
        default=32,
        description="Live editing sessions kept in memory before eviction",
        ge=1,
    )
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=7860,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")

    @model_validator(mode="after")
    def _check_ranges(self) -> "FlyerStudioConfig":
        """Reject inverted clamp ranges and an out-of-range default brush."""
        if self.min_brush_radius > self.max_brush_radius:
            raise ValueError("min_brush_radius must not exceed max_brush_radius")
        if self.min_zoom > self.max_zoom:
            raise ValueError("min_zoom must not exceed max_zoom")
        if not self.min_brush_radius <= self.default_brush_radius <= self.max_brush_radius:
            raise ValueError("default_brush_radius must lie within the brush radius range")
        return self


# Global configuration instance
# Loads values from environment variables (FLYERSTUDIO_* prefix) and .env file.
config = FlyerStudioConfig()
