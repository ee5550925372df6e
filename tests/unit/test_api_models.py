"""Tests for flyerstudio.api.models — Pydantic request models.

Tests cover:
- Required field validation.
- Default values for optional fields.
- Literal and range constraints.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from flyerstudio.api.models import (
    BrushRequest,
    CreateSessionRequest,
    InpaintPayload,
    StrokeRequest,
    ZoomRequest,
)


class TestCreateSessionRequest:
    """Test CreateSessionRequest Pydantic model."""

    def test_image_required(self):
        with pytest.raises(ValidationError):
            CreateSessionRequest()

    def test_empty_image_rejected(self):
        with pytest.raises(ValidationError):
            CreateSessionRequest(image="")

    def test_brush_radius_optional(self):
        assert CreateSessionRequest(image="abc").brush_radius is None


class TestStrokeRequest:
    """Test StrokeRequest Pydantic model."""

    def test_defaults_to_paint(self):
        req = StrokeRequest(points=[{"x": 1, "y": 2}])
        assert req.mode == "paint"
        assert req.points[0].x == 1.0
        assert req.brush_radius is None

    def test_erase_mode(self):
        assert StrokeRequest(mode="erase", points=[{"x": 0, "y": 0}]).mode == "erase"

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValidationError):
            StrokeRequest(mode="blur", points=[{"x": 0, "y": 0}])

    def test_points_required(self):
        with pytest.raises(ValidationError):
            StrokeRequest(points=[])

    def test_point_needs_both_coordinates(self):
        with pytest.raises(ValidationError):
            StrokeRequest(points=[{"x": 3}])


class TestSettingsRequests:
    """Test BrushRequest and ZoomRequest."""

    def test_brush_radius_not_range_checked(self):
        """Radius clamping happens in the engine, not at validation time."""
        assert BrushRequest(radius=-3).radius == -3

    def test_zoom_must_be_positive(self):
        with pytest.raises(ValidationError):
            ZoomRequest(factor=0)

    def test_zoom_valid(self):
        assert ZoomRequest(factor=1.25).factor == 1.25


class TestInpaintPayload:
    """Test InpaintPayload defaults."""

    def test_defaults(self):
        req = InpaintPayload(prompt="a neon sign")
        assert req.negative_prompt == ""
        assert req.seed is None
        assert req.samples is None
        assert req.strength is None

    def test_prompt_required(self):
        with pytest.raises(ValidationError):
            InpaintPayload()

    def test_negative_seed_rejected(self):
        with pytest.raises(ValidationError):
            InpaintPayload(prompt="x", seed=-1)
