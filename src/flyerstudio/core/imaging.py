"""Image decoding, encoding, and preview helpers.

The browser front end sends source images as ``data:`` URLs (the result of
``FileReader.readAsDataURL``) or as plain base64 strings, and expects PNGs
back.  These helpers keep the Pillow and numpy plumbing out of the mask
engine and the route handlers.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging

import numpy as np
from PIL import Image, UnidentifiedImageError

from flyerstudio.core.exceptions import InvalidImageError

logger = logging.getLogger(__name__)

# Brush tint used by the editor to show the selected region.
MASK_PREVIEW_COLOR: tuple[int, int, int] = (255, 0, 0)


def decode_image_payload(payload: bytes | str, max_dimension: int | None = None) -> Image.Image:
    """Decode an uploaded image into an RGB :class:`PIL.Image.Image`.

    Args:
        payload: Raw encoded bytes, a base64 string, or a
            ``data:image/<type>;base64,<data>`` URL.
        max_dimension: Largest width or height accepted.  Checked against
            the header before any pixel data is decoded.

    Returns:
        The decoded image converted to RGB.

    Raises:
        InvalidImageError: If the payload is empty, is not valid base64,
            does not contain an image Pillow can read, or is too large.
    """
    if isinstance(payload, str):
        text = payload.strip()
        if text.startswith("data:"):
            # data:[<mediatype>][;base64],<data>
            header, _, text = text.partition(",")
            if ";base64" not in header:
                raise InvalidImageError("Only base64-encoded data URLs are supported")
        try:
            raw = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidImageError(f"Image payload is not valid base64: {e}") from e
    else:
        raw = payload

    if not raw:
        raise InvalidImageError("Image payload is empty")

    try:
        with Image.open(io.BytesIO(raw)) as img:
            width, height = img.size
            if max_dimension is not None and (width > max_dimension or height > max_dimension):
                raise InvalidImageError(
                    f"Image is {width}x{height}; the maximum dimension is {max_dimension}px"
                )
            img.load()
            return img.convert("RGB")
    except Image.DecompressionBombError as e:
        raise InvalidImageError(f"Image is too large to decode: {e}") from e
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageError(f"Failed to decode image: {e}") from e


def encode_png(image: Image.Image) -> bytes:
    """Encode *image* as PNG bytes."""
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def encode_data_url(image: Image.Image) -> str:
    """Encode *image* as a ``data:image/png;base64,...`` URL."""
    return "data:image/png;base64," + base64.b64encode(encode_png(image)).decode("ascii")


def render_mask_overlay(
    source: np.ndarray,
    mask: np.ndarray,
    color: tuple[int, int, int] = MASK_PREVIEW_COLOR,
    alpha: float = 0.5,
) -> Image.Image:
    """Blend a translucent tint over the selected pixels of *source*.

    Args:
        source: RGB array of shape ``(H, W, 3)``.
        mask: Boolean array of shape ``(H, W)``.
        color: RGB tint for selected pixels.
        alpha: Tint opacity in ``[0, 1]``.

    Returns:
        RGB preview image at source resolution.
    """
    preview = source.astype(np.float32)
    tint = np.asarray(color, dtype=np.float32)
    preview[mask] = preview[mask] * (1.0 - alpha) + tint * alpha
    return Image.fromarray(np.clip(preview, 0, 255).astype(np.uint8))
