"""Interactive mask editing for inpainting.

This module provides :class:`MaskCanvasEngine`, the in-memory editor behind
the inpainting page.  A user loads a source photo, paints (or erases) an
arbitrary region with a circular brush, and exports the region as a hard
black/white stencil for the external inpainting service.

Key Responsibilities
--------------------
- **Source ownership** — the source image is decoded once per session and
  stored as a read-only RGB array.  Nothing in the engine ever writes to it.
- **Binary mask layer** — the mask is a boolean array at native source
  resolution.  Paint sets pixels, erase unconditionally clears them, so
  overlapping strokes in the same mode are idempotent.
- **Gap-free strokes** — footprints are stamped along the segment between
  consecutive pointer samples at a spacing of at most half the brush
  radius, so fast pointer motion still yields a continuous band.
- **Undo/redo** — every committed stroke or clear becomes a snapshot in a
  :class:`~flyerstudio.core.mask_history.MaskHistory`.
- **Zoom mapping** — pointer coordinates arrive in viewport space and are
  divided by the active zoom before touching the mask.

Usage
-----
::

    from flyerstudio.core.mask_canvas import BrushMode, MaskCanvasEngine

    engine = MaskCanvasEngine()
    engine.load_source(image)

    engine.begin_stroke((120, 80), BrushMode.PAINT)
    engine.extend_stroke((180, 95))
    engine.end_stroke()

    stencil = engine.export_binary_mask()  # PIL "L" image, 0 or 255

See Also
--------
- :mod:`flyerstudio.core.inpainting` — packages the export for the
  inpainting collaborator.
- :mod:`flyerstudio.api.main` — HTTP routes that drive the engine.
"""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass
from enum import Enum

import numpy as np
from PIL import Image

from flyerstudio.core.config import FlyerStudioConfig, config as default_config
from flyerstudio.core.exceptions import InvalidImageError, NoActiveSessionError
from flyerstudio.core.imaging import render_mask_overlay
from flyerstudio.core.mask_history import MaskHistory

logger = logging.getLogger(__name__)


class BrushMode(str, Enum):
    """What a stroke does to the pixels under the brush."""

    PAINT = "paint"
    ERASE = "erase"


@dataclass(frozen=True)
class Point:
    """A 2D coordinate; ``x`` grows rightwards and ``y`` downwards."""

    x: float
    y: float


@dataclass(frozen=True)
class SessionHandle:
    """Identifies one editing session and its native resolution."""

    session_id: str
    width: int
    height: int


PointLike = Point | tuple[float, float]


def _as_point(point: PointLike) -> Point:
    if isinstance(point, Point):
        x, y = point.x, point.y
    else:
        x, y = point
    if not (math.isfinite(x) and math.isfinite(y)):
        raise ValueError(f"Point coordinates must be finite, got ({x}, {y})")
    return Point(float(x), float(y))


def _clip_segment(
    start: Point, end: Point, xmin: float, ymin: float, xmax: float, ymax: float
) -> tuple[Point, Point] | None:
    """Clip a segment to an axis-aligned box (Liang-Barsky).

    Returns:
        The part of the segment inside the box, or ``None`` if it misses.
    """
    dx = end.x - start.x
    dy = end.y - start.y
    t0, t1 = 0.0, 1.0
    for p, q in (
        (-dx, start.x - xmin),
        (dx, xmax - start.x),
        (-dy, start.y - ymin),
        (dy, ymax - start.y),
    ):
        if p == 0:
            if q < 0:
                return None
            continue
        t = q / p
        if p < 0:
            if t > t1:
                return None
            t0 = max(t0, t)
        else:
            if t < t0:
                return None
            t1 = min(t1, t)
    return (
        Point(start.x + t0 * dx, start.y + t0 * dy),
        Point(start.x + t1 * dx, start.y + t1 * dy),
    )


class MaskCanvasEngine:
    """Owns a source image, its editable mask, and the mask's history.

    One engine hosts at most one editing session at a time; loading a new
    source replaces the previous session entirely.  Mask, history, and
    stroke state are owned exclusively by the engine and are only mutated
    by its public methods.

    Attributes:
        _config (FlyerStudioConfig):
            Supplies the brush and zoom clamp ranges, the maximum source
            dimension, and the overlay opacity.
        _source (np.ndarray | None):
            Read-only ``(H, W, 3)`` uint8 array, or ``None`` with no session.
        _mask (np.ndarray | None):
            ``(H, W)`` boolean array; ``True`` marks pixels to be replaced.
        _history (MaskHistory | None):
            Snapshots of committed mask states.
        _stroke_mode (BrushMode | None):
            Mode of the stroke in progress, or ``None`` between strokes.
        _last_point (Point | None):
            Native-resolution position of the last stamped stroke sample.
    """

    def __init__(self, config: FlyerStudioConfig | None = None) -> None:
        self._config = config or default_config

        self._source: np.ndarray | None = None
        self._mask: np.ndarray | None = None
        self._history: MaskHistory | None = None
        self._handle: SessionHandle | None = None

        self._zoom = 1.0
        self._brush_radius = self._clamp_radius(self._config.default_brush_radius)

        self._stroke_mode: BrushMode | None = None
        self._last_point: Point | None = None

    # -- Session lifecycle --------------------------------------------------

    def load_source(self, image: Image.Image | np.ndarray) -> SessionHandle:
        """Start a new editing session on *image*.

        The image is validated and converted before any state changes, so a
        rejected image leaves the current session (if any) intact.

        Args:
            image: A PIL image in any mode, or a uint8 array shaped
                ``(H, W)``, ``(H, W, 3)`` or ``(H, W, 4)``.

        Returns:
            Handle describing the new session.

        Raises:
            InvalidImageError: If the image is empty, larger than
                ``max_image_dimension`` on either side, or of an unsupported
                type, shape, or dtype.
        """
        source = self._to_rgb_array(image)
        height, width = source.shape[:2]
        source.setflags(write=False)

        self._source = source
        self._mask = np.zeros((height, width), dtype=bool)
        self._history = MaskHistory(self._mask)
        self._handle = SessionHandle(uuid.uuid4().hex, width, height)
        self._zoom = 1.0
        self._reset_stroke()

        logger.info(
            "Loaded %dx%d source for session %s.", width, height, self._handle.session_id
        )
        return self._handle

    def close(self) -> None:
        """End the session, dropping source, mask, and history."""
        if self._handle is not None:
            logger.info("Closing session %s.", self._handle.session_id)
        self._source = None
        self._mask = None
        self._history = None
        self._handle = None
        self._zoom = 1.0
        self._reset_stroke()

    def _to_rgb_array(self, image: Image.Image | np.ndarray) -> np.ndarray:
        limit = self._config.max_image_dimension

        if isinstance(image, Image.Image):
            width, height = image.size
            self._check_dimensions(width, height, limit)
            return np.array(image.convert("RGB"), dtype=np.uint8)

        if isinstance(image, np.ndarray):
            if image.ndim not in (2, 3):
                raise InvalidImageError(f"Unsupported image array shape {image.shape}")
            height, width = image.shape[:2]
            self._check_dimensions(width, height, limit)
            if image.dtype != np.uint8:
                raise InvalidImageError(f"Unsupported image dtype {image.dtype}; expected uint8")
            if image.ndim == 2:
                return np.repeat(image[:, :, np.newaxis], 3, axis=2)
            if image.shape[2] not in (3, 4):
                raise InvalidImageError(f"Unsupported channel count {image.shape[2]}")
            return np.array(image[:, :, :3], dtype=np.uint8)

        raise InvalidImageError(f"Unsupported image type {type(image).__name__}")

    @staticmethod
    def _check_dimensions(width: int, height: int, limit: int) -> None:
        if width <= 0 or height <= 0:
            raise InvalidImageError(f"Image has zero size ({width}x{height})")
        if width > limit or height > limit:
            raise InvalidImageError(
                f"Image is {width}x{height}; the maximum dimension is {limit}px"
            )

    def _require_session(self) -> None:
        if self._mask is None:
            raise NoActiveSessionError("No source image loaded. Call load_source() first.")

    # -- Brush and zoom -----------------------------------------------------

    def _clamp_radius(self, radius: float) -> float:
        low, high = self._config.min_brush_radius, self._config.max_brush_radius
        return min(max(radius, low), high)

    def set_brush_radius(self, radius: float) -> float:
        """Set the brush radius, clamped to the configured range.

        Returns:
            The radius actually in effect.

        Raises:
            ValueError: If *radius* is NaN or infinite.
        """
        if not math.isfinite(radius):
            raise ValueError(f"Brush radius must be finite, got {radius}")
        clamped = self._clamp_radius(radius)
        if clamped != radius:
            logger.warning("Brush radius %.2f clamped to %.2f.", radius, clamped)
        self._brush_radius = clamped
        return clamped

    def set_zoom(self, factor: float) -> float:
        """Set the display zoom, clamped to ``[min_zoom, max_zoom]``.

        Returns:
            The zoom factor actually in effect.

        Raises:
            ValueError: If *factor* is not a positive finite number.  The
                current zoom is kept.
        """
        if not math.isfinite(factor) or factor <= 0:
            raise ValueError(f"Zoom factor must be a positive finite number, got {factor}")
        clamped = min(max(factor, self._config.min_zoom), self._config.max_zoom)
        if clamped != factor:
            logger.warning("Zoom %.2f clamped to %.2f.", factor, clamped)
        self._zoom = clamped
        return clamped

    def to_native(self, point: PointLike) -> Point:
        """Map a viewport coordinate onto the native-resolution mask.

        Raises:
            ValueError: If either coordinate is NaN or infinite.
        """
        p = _as_point(point)
        native = Point(p.x / self._zoom, p.y / self._zoom)
        if not (math.isfinite(native.x) and math.isfinite(native.y)):
            raise ValueError(f"Point ({p.x}, {p.y}) is out of range at zoom {self._zoom}")
        return native

    # -- Strokes ------------------------------------------------------------

    def begin_stroke(self, point: PointLike, mode: BrushMode | str = BrushMode.PAINT) -> None:
        """Start a stroke and stamp the brush at *point* (viewport space).

        Ignored when no session is loaded.  A stroke already in progress is
        committed first.

        Raises:
            ValueError: For an unknown mode or a non-finite point.  Nothing
                is committed or painted in that case.
        """
        if self._mask is None:
            logger.debug("begin_stroke ignored: no active session.")
            return

        mode = BrushMode(mode)
        native = self.to_native(point)
        if self._stroke_mode is not None:
            self.end_stroke()

        self._stroke_mode = mode
        self._stamp(native)
        self._last_point = native
        logger.debug("Stroke started (%s) at (%.1f, %.1f).", mode.value, native.x, native.y)

    def extend_stroke(self, point: PointLike) -> None:
        """Continue the current stroke to *point* (viewport space).

        Footprints are stamped along the whole segment from the previous
        sample, both ends included.  Only the part of the segment that can
        reach the raster is walked.  Ignored when no stroke is in progress.

        Raises:
            ValueError: If *point* is not finite.  The mask is unchanged and
                the stroke stays open.
        """
        if self._stroke_mode is None or self._last_point is None:
            return

        native = self.to_native(point)
        radius = self._brush_radius
        height, width = self._mask.shape
        clipped = _clip_segment(
            self._last_point, native, -radius, -radius, width - 1 + radius, height - 1 + radius
        )
        self._last_point = native
        if clipped is None:
            return

        start, end = clipped
        distance = math.hypot(end.x - start.x, end.y - start.y)

        # Spacing of at most half the radius keeps consecutive disks
        # overlapping, so the band has no holes.
        spacing = radius / 2.0
        steps = max(1, math.ceil(distance / spacing))
        for i in range(steps + 1):
            t = i / steps
            self._stamp(Point(start.x + (end.x - start.x) * t, start.y + (end.y - start.y) * t))

    def end_stroke(self) -> None:
        """Commit the stroke in progress as a new history snapshot."""
        if self._stroke_mode is None:
            return
        self._history.commit(self._mask)
        logger.debug(
            "Stroke committed; history now %d entries (cursor %d).",
            len(self._history),
            self._history.cursor,
        )
        self._reset_stroke()

    def cancel_stroke(self) -> None:
        """Discard the stroke in progress, restoring the mask at the cursor."""
        if self._stroke_mode is None:
            return
        self._mask = self._history.current()
        self._reset_stroke()
        logger.debug("Stroke cancelled.")

    def _reset_stroke(self) -> None:
        self._stroke_mode = None
        self._last_point = None

    def _stamp(self, center: Point) -> None:
        """Apply one circular footprint at *center*, clipped to the mask."""
        radius = self._brush_radius
        height, width = self._mask.shape

        x0 = max(0, math.floor(center.x - radius))
        x1 = min(width - 1, math.ceil(center.x + radius))
        y0 = max(0, math.floor(center.y - radius))
        y1 = min(height - 1, math.ceil(center.y + radius))
        if x0 > x1 or y0 > y1:
            return

        ys, xs = np.ogrid[y0 : y1 + 1, x0 : x1 + 1]
        disk = (xs - center.x) ** 2 + (ys - center.y) ** 2 <= radius * radius
        self._mask[y0 : y1 + 1, x0 : x1 + 1][disk] = self._stroke_mode is BrushMode.PAINT

    # -- Whole-mask edits and history ---------------------------------------

    def clear(self) -> None:
        """Deselect every pixel and commit that as a history entry.

        A stroke in progress is abandoned.

        Raises:
            NoActiveSessionError: If no source image is loaded.
        """
        self._require_session()
        self._reset_stroke()
        self._mask[:] = False
        self._history.commit(self._mask)
        logger.debug("Mask cleared; history now %d entries.", len(self._history))

    def undo(self) -> bool:
        """Step the mask back one history entry.

        A stroke in progress is committed first, so undo removes it.

        Returns:
            ``True`` if the mask changed, ``False`` at the start of history
            or with no session.
        """
        if self._history is None:
            return False
        self.end_stroke()
        restored = self._history.undo()
        if restored is None:
            return False
        self._mask = restored
        return True

    def redo(self) -> bool:
        """Step the mask forward one history entry.

        Returns:
            ``True`` if the mask changed, ``False`` at the end of history
            or with no session.
        """
        if self._history is None:
            return False
        self.end_stroke()
        restored = self._history.redo()
        if restored is None:
            return False
        self._mask = restored
        return True

    def clear_history(self) -> None:
        """Drop all history, keeping the current mask as the only entry."""
        self._require_session()
        self.end_stroke()
        self._history.reset(self._mask)
        logger.info("History reset for session %s.", self._handle.session_id)

    def history_snapshots(self) -> list[np.ndarray]:
        """Decoded history entries, oldest first."""
        self._require_session()
        return self._history.snapshots()

    # -- Export -------------------------------------------------------------

    def export_binary_mask(self) -> Image.Image:
        """Threshold the mask into a black/white stencil.

        Returns:
            ``"L"`` image at source resolution; selected pixels are 255 and
            all others 0.  No intermediate values are produced.

        Raises:
            NoActiveSessionError: If no source image is loaded.
        """
        self._require_session()
        return Image.fromarray(np.where(self._mask, 255, 0).astype(np.uint8))

    def source_image(self) -> Image.Image:
        """Return the source as a new RGB PIL image."""
        self._require_session()
        return Image.fromarray(self._source.copy())

    def render_overlay(self) -> Image.Image:
        """Preview of the source with the selection tinted red."""
        self._require_session()
        return render_mask_overlay(self._source, self._mask, alpha=self._config.overlay_alpha)

    def coverage(self) -> float:
        """Fraction of pixels currently selected."""
        self._require_session()
        return float(self._mask.mean())

    # -- Properties ---------------------------------------------------------

    @property
    def has_session(self) -> bool:
        return self._mask is not None

    @property
    def handle(self) -> SessionHandle | None:
        return self._handle

    @property
    def source(self) -> np.ndarray:
        """Read-only RGB array of the source image."""
        self._require_session()
        return self._source

    @property
    def mask(self) -> np.ndarray:
        """Copy of the current boolean mask."""
        self._require_session()
        return self._mask.copy()

    @property
    def zoom(self) -> float:
        return self._zoom

    @property
    def brush_radius(self) -> float:
        return self._brush_radius

    @property
    def is_stroking(self) -> bool:
        return self._stroke_mode is not None

    @property
    def can_undo(self) -> bool:
        return self._history is not None and self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history is not None and self._history.can_redo

    @property
    def history_length(self) -> int:
        return len(self._history) if self._history is not None else 0

    @property
    def history_cursor(self) -> int:
        return self._history.cursor if self._history is not None else 0
