"""Shared pytest fixtures for FlyerStudio tests."""

from collections.abc import Callable, Generator

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from flyerstudio.core.config import FlyerStudioConfig
from flyerstudio.core.imaging import encode_data_url
from flyerstudio.core.mask_canvas import MaskCanvasEngine


@pytest.fixture
def test_config() -> FlyerStudioConfig:
    """Create a test configuration independent of the environment.

    Returns:
        FlyerStudioConfig with a small image limit and session cap
    """
    return FlyerStudioConfig(
        _env_file=None,
        max_image_dimension=512,
        max_sessions=4,
        default_brush_radius=10.0,
        min_brush_radius=1.0,
        max_brush_radius=50.0,
        min_zoom=0.5,
        max_zoom=2.0,
    )


@pytest.fixture
def source_image() -> Image.Image:
    """A flat 100x100 RGB test image.

    Returns:
        PIL image filled with (40, 80, 120)
    """
    return Image.new("RGB", (100, 100), color=(40, 80, 120))


@pytest.fixture
def source_payload(source_image: Image.Image) -> str:
    """The test image encoded the way the browser uploads it.

    Returns:
        PNG data URL
    """
    return encode_data_url(source_image)


@pytest.fixture
def engine(test_config: FlyerStudioConfig) -> MaskCanvasEngine:
    """An engine with no session loaded."""
    return MaskCanvasEngine(test_config)


@pytest.fixture
def loaded_engine(engine: MaskCanvasEngine, source_image: Image.Image) -> MaskCanvasEngine:
    """An engine with the 100x100 test image loaded."""
    engine.load_source(source_image)
    return engine


@pytest.fixture
def make_disk() -> Callable[..., np.ndarray]:
    """Factory for reference disk masks.

    Returns:
        Function ``(width, height, cx, cy, radius) -> bool array`` covering
        every pixel whose centre lies within *radius* of ``(cx, cy)``
    """

    def _make_disk(width: int, height: int, cx: float, cy: float, radius: float) -> np.ndarray:
        ys, xs = np.mgrid[0:height, 0:width]
        return (xs - cx) ** 2 + (ys - cy) ** 2 <= radius * radius

    return _make_disk


@pytest.fixture
def test_client(monkeypatch, test_config: FlyerStudioConfig) -> Generator[TestClient, None, None]:
    """FastAPI TestClient running against the test configuration.

    The inpainting backend slot starts empty; tests install a mock on
    ``app.state.inpainting_backend`` when they need one.

    Yields:
        TestClient with the application lifespan entered
    """
    from flyerstudio.api import main as api_main

    monkeypatch.setattr(api_main, "config", test_config)
    api_main.app.state.inpainting_backend = None

    with TestClient(api_main.app) as client:
        yield client

    api_main.app.state.inpainting_backend = None
