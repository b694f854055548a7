"""
Error kinds raised by the detection session and its collaborators.
"""

from __future__ import annotations

from typing import Optional


class ViewerError(Exception):
    """Base exception for the detection viewer."""
    pass


class ModelLoadFailure(ViewerError):
    """The detection model failed to load; detection cannot start until reload."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class ModelNotReady(ViewerError):
    """Detection was requested before the model finished loading."""
    pass


class CameraError(ViewerError):
    """Camera acquisition failed."""
    pass


class CameraPermissionDenied(CameraError):
    pass


class CameraUnavailable(CameraError):
    pass


class DetectionInvocationFailure(ViewerError):
    """A single model invocation failed. Transient: the loop keeps running."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class InvalidModeError(ViewerError):
    """Operation is not valid in the current session mode."""
    pass


class NoFrameSourceError(ViewerError):
    """No usable frame source is present (nothing acquired or uploaded)."""
    pass


class InvalidImageError(ViewerError):
    """Uploaded bytes could not be decoded as an image."""
    pass
