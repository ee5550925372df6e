"""Exception hierarchy for FlyerStudio.

Core errors are raised by the mask editor and the inpainting hand-off and
translated into HTTP status codes by :mod:`flyerstudio.api.main`.
"""


class FlyerStudioError(Exception):
    """Base class for all FlyerStudio errors."""


class InvalidImageError(FlyerStudioError, ValueError):
    """Source image is malformed, empty, or larger than the allowed maximum.

    The message is intended to be displayed directly to the user.
    """


class NoActiveSessionError(FlyerStudioError, RuntimeError):
    """A mask operation was invoked before a source image was loaded."""


class SessionNotFoundError(FlyerStudioError, KeyError):
    """No editing session exists for the requested identifier."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead.
        return str(self.args[0]) if self.args else "Session not found"


class InpaintingError(FlyerStudioError):
    """The external inpainting collaborator failed to return an image."""
