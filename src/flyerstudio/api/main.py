"""FlyerStudio — FastAPI Application.

This module is the single entry point for the mask editing web service.  It
defines the FastAPI ``app`` instance, all REST API routes, and the ``main()``
CLI function that launches the uvicorn server.

Architecture
------------
- **Configuration** comes from :data:`~flyerstudio.core.config.config` and
  the editor limits are served to the frontend via ``GET /api/config``.
- **Editing sessions** live in a :class:`~flyerstudio.api.session_store.SessionStore`
  on ``app.state``; each wraps one :class:`~flyerstudio.core.mask_canvas.MaskCanvasEngine`.
- **Inpainting** is delegated to ``app.state.inpainting_backend``, an
  :class:`~flyerstudio.core.inpainting.InpaintingBackend` injected by the
  host application.  Without one, ``/inpaint`` answers 503.

Handlers are plain ``def`` functions, so FastAPI runs them in its thread
pool; every engine call happens under the session's lock.

Endpoints
---------
========  ======================================  ==============================
Method    Path                                    Purpose
========  ======================================  ==============================
GET       ``/api/config``                         Editor limits and version
POST      ``/api/sessions``                       Open a session on an image
GET       ``/api/sessions/{id}``                  Session state
DELETE    ``/api/sessions/{id}``                  Close a session
POST      ``/api/sessions/{id}/strokes``          Apply one paint/erase stroke
POST      ``/api/sessions/{id}/brush``            Set brush radius
POST      ``/api/sessions/{id}/zoom``             Set zoom factor
POST      ``/api/sessions/{id}/clear``            Clear the mask
POST      ``/api/sessions/{id}/undo``             Undo
POST      ``/api/sessions/{id}/redo``             Redo
POST      ``/api/sessions/{id}/history/reset``    Drop undo/redo history
GET       ``/api/sessions/{id}/mask``             Binary mask PNG
GET       ``/api/sessions/{id}/overlay``          Overlay preview PNG
POST      ``/api/sessions/{id}/inpaint``          Submit to inpainting backend
========  ======================================  ==============================

Usage
-----
CLI (installed entry point)::

    flyerstudio

Direct invocation::

    python -m flyerstudio.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from flyerstudio import __version__
from flyerstudio.api.models import (
    BrushRequest,
    CreateSessionRequest,
    InpaintPayload,
    StrokeRequest,
    ZoomRequest,
)
from flyerstudio.api.session_store import SessionEntry, SessionStore
from flyerstudio.core.config import config
from flyerstudio.core.exceptions import (
    InpaintingError,
    InvalidImageError,
    NoActiveSessionError,
    SessionNotFoundError,
)
from flyerstudio.core.imaging import decode_image_payload, encode_data_url, encode_png
from flyerstudio.core.inpainting import InpaintingBackend, build_inpaint_request
from flyerstudio.core.mask_canvas import MaskCanvasEngine

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Application lifecycle: session store setup and teardown.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown lifecycle.

    On startup:
        Creates an empty :class:`SessionStore` on ``app.state``.  An
        inpainting backend injected before startup is kept; otherwise the
        slot is set to ``None``.

    On shutdown:
        Closes every live session so their buffers are released.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    # --- Startup -----------------------------------------------------------
    app.state.session_store = SessionStore(config)
    app.state.inpainting_backend = getattr(app.state, "inpainting_backend", None)
    logger.info("SessionStore initialised (max %d sessions).", config.max_sessions)

    yield  # Application runs here.

    # --- Shutdown ----------------------------------------------------------
    app.state.session_store.close_all()


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="FlyerStudio Mask Editor",
    description="Mask editing sessions and inpainting hand-off for flyer generation.",
    version=__version__,
    lifespan=lifespan,
)

# Allow cross-origin requests so the editor frontend can be served from a
# different origin during development.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Helpers.
# ---------------------------------------------------------------------------


def _get_entry(session_id: str) -> SessionEntry:
    """Resolve a session or raise a 404."""
    store: SessionStore = app.state.session_store
    try:
        return store.get(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


def _session_state(engine: MaskCanvasEngine) -> dict:
    """Serialise the observable state of an editing session.

    Must be called with the session lock held.
    """
    handle = engine.handle
    if handle is None:
        # The session was evicted or closed between lookup and locking.
        raise HTTPException(status_code=409, detail="Session is no longer active")
    return {
        "session_id": handle.session_id,
        "width": handle.width,
        "height": handle.height,
        "zoom": engine.zoom,
        "brush_radius": engine.brush_radius,
        "history_length": engine.history_length,
        "history_cursor": engine.history_cursor,
        "can_undo": engine.can_undo,
        "can_redo": engine.can_redo,
        "coverage": engine.coverage(),
    }


def _png_response(content: bytes) -> Response:
    return Response(content=content, media_type="image/png")


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.get("/api/config")
def get_config() -> dict:
    """Return the editor limits the frontend needs to build its controls.

    Returns:
        Dictionary with ``version``, ``brush`` (default/min/max radius),
        ``zoom`` (min/max), and ``max_image_dimension``.
    """
    return {
        "version": __version__,
        "brush": {
            "default_radius": config.default_brush_radius,
            "min_radius": config.min_brush_radius,
            "max_radius": config.max_brush_radius,
        },
        "zoom": {"min": config.min_zoom, "max": config.max_zoom},
        "max_image_dimension": config.max_image_dimension,
    }


@app.post("/api/sessions")
def create_session(req: CreateSessionRequest) -> dict:
    """Open a new editing session on an uploaded image.

    Args:
        req: Validated :class:`CreateSessionRequest` payload.

    Returns:
        The new session's state (see ``GET /api/sessions/{id}``).

    Raises:
        HTTPException: 400 if the image cannot be decoded, is empty, or
            exceeds the maximum dimension.
    """
    store: SessionStore = app.state.session_store
    try:
        image = decode_image_payload(req.image, max_dimension=config.max_image_dimension)
        entry = store.create(image, brush_radius=req.brush_radius)
    except (InvalidImageError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    with entry.lock:
        return _session_state(entry.engine)


@app.get("/api/sessions/{session_id}")
def get_session(session_id: str) -> dict:
    """Return the state of one editing session.

    Raises:
        HTTPException: 404 if the session does not exist.
    """
    entry = _get_entry(session_id)
    with entry.lock:
        return _session_state(entry.engine)


@app.delete("/api/sessions/{session_id}")
def delete_session(session_id: str) -> dict:
    """Close a session and release its buffers.

    Raises:
        HTTPException: 404 if the session does not exist.
    """
    store: SessionStore = app.state.session_store
    try:
        store.remove(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return {"success": True, "deleted": session_id}


@app.post("/api/sessions/{session_id}/strokes")
def apply_stroke(session_id: str, req: StrokeRequest) -> dict:
    """Apply one complete stroke and commit it to history.

    Points are viewport coordinates; the session's zoom maps them onto the
    native-resolution mask.

    Raises:
        HTTPException: 404 for an unknown session, 400 for a non-finite
            brush radius or a point that cannot be mapped.  A rejected
            stroke leaves the mask as it was.
    """
    entry = _get_entry(session_id)
    with entry.lock:
        engine = entry.engine
        if req.brush_radius is not None:
            try:
                engine.set_brush_radius(req.brush_radius)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e)) from e

        first, *rest = req.points
        try:
            engine.begin_stroke((first.x, first.y), req.mode)
            for point in rest:
                engine.extend_stroke((point.x, point.y))
        except ValueError as e:
            engine.cancel_stroke()
            raise HTTPException(status_code=400, detail=str(e)) from e
        engine.end_stroke()

        return _session_state(engine)


@app.post("/api/sessions/{session_id}/brush")
def set_brush(session_id: str, req: BrushRequest) -> dict:
    """Set the brush radius; out-of-range values are clamped."""
    entry = _get_entry(session_id)
    with entry.lock:
        try:
            entry.engine.set_brush_radius(req.radius)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        return _session_state(entry.engine)


@app.post("/api/sessions/{session_id}/zoom")
def set_zoom(session_id: str, req: ZoomRequest) -> dict:
    """Set the zoom factor; out-of-range values are clamped."""
    entry = _get_entry(session_id)
    with entry.lock:
        try:
            entry.engine.set_zoom(req.factor)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        return _session_state(entry.engine)


@app.post("/api/sessions/{session_id}/clear")
def clear_mask(session_id: str) -> dict:
    """Deselect every pixel (undoable)."""
    entry = _get_entry(session_id)
    with entry.lock:
        try:
            entry.engine.clear()
        except NoActiveSessionError as e:
            raise HTTPException(status_code=409, detail=str(e)) from e
        return _session_state(entry.engine)


@app.post("/api/sessions/{session_id}/undo")
def undo(session_id: str) -> dict:
    """Step back one history entry; a no-op at the start of history."""
    entry = _get_entry(session_id)
    with entry.lock:
        changed = entry.engine.undo()
        return {**_session_state(entry.engine), "changed": changed}


@app.post("/api/sessions/{session_id}/redo")
def redo(session_id: str) -> dict:
    """Step forward one history entry; a no-op at the end of history."""
    entry = _get_entry(session_id)
    with entry.lock:
        changed = entry.engine.redo()
        return {**_session_state(entry.engine), "changed": changed}


@app.post("/api/sessions/{session_id}/history/reset")
def reset_history(session_id: str) -> dict:
    """Keep the current mask but forget all undo/redo entries."""
    entry = _get_entry(session_id)
    with entry.lock:
        try:
            entry.engine.clear_history()
        except NoActiveSessionError as e:
            raise HTTPException(status_code=409, detail=str(e)) from e
        return _session_state(entry.engine)


@app.get("/api/sessions/{session_id}/mask")
def get_mask(session_id: str) -> Response:
    """Return the hard-thresholded black/white mask as a PNG."""
    entry = _get_entry(session_id)
    with entry.lock:
        try:
            mask = entry.engine.export_binary_mask()
        except NoActiveSessionError as e:
            raise HTTPException(status_code=409, detail=str(e)) from e
    return _png_response(encode_png(mask))


@app.get("/api/sessions/{session_id}/overlay")
def get_overlay(session_id: str) -> Response:
    """Return the source image with the selection tinted, as a PNG."""
    entry = _get_entry(session_id)
    with entry.lock:
        try:
            preview = entry.engine.render_overlay()
        except NoActiveSessionError as e:
            raise HTTPException(status_code=409, detail=str(e)) from e
    return _png_response(encode_png(preview))


@app.post("/api/sessions/{session_id}/inpaint")
def inpaint(session_id: str, req: InpaintPayload) -> dict:
    """Send the source image and binary mask to the inpainting backend.

    The request is snapshotted under the session lock; the backend call
    itself runs without the lock, so the user can keep editing while it is
    in flight.  A failed call leaves the session untouched.

    Returns:
        Dictionary with ``success``, ``seed``, and ``image`` (the edited
        result as a PNG data URL).

    Raises:
        HTTPException: 503 without a configured backend, 404 for an unknown
            session, 400 for a blank prompt or invalid options, 502 if the
            backend fails.
    """
    backend: InpaintingBackend | None = app.state.inpainting_backend
    if backend is None:
        raise HTTPException(status_code=503, detail="Inpainting backend is not configured")

    entry = _get_entry(session_id)
    with entry.lock:
        try:
            request = build_inpaint_request(
                entry.engine,
                req.prompt,
                negative_prompt=req.negative_prompt,
                seed=req.seed,
                samples=req.samples,
                guidance_scale=req.guidance_scale,
                num_inference_steps=req.num_inference_steps,
                strength=req.strength,
                config=config,
            )
        except NoActiveSessionError as e:
            raise HTTPException(status_code=409, detail=str(e)) from e
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

    logger.info("Submitting inpainting request for session %s (seed=%d).", session_id, request.seed)
    try:
        result = backend.inpaint(request)
    except InpaintingError as e:
        logger.exception("Inpainting failed for session %s.", session_id)
        raise HTTPException(status_code=502, detail=f"Failed to inpaint: {e}") from e

    return {"success": True, "seed": request.seed, "image": encode_data_url(result)}


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port, and log level from
    :data:`~flyerstudio.core.config.config` (``FLYERSTUDIO_SERVER_HOST``,
    ``FLYERSTUDIO_SERVER_PORT``, ``FLYERSTUDIO_LOG_LEVEL``).  Defaults to
    ``0.0.0.0:7860``.

    This function is registered as the ``flyerstudio`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "flyerstudio.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
