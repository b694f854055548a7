"""
Frame sources for the detection pipeline.

This layer abstracts where frames come from (live webcam or uploaded still
image) from the session and pipeline. Each source implements the
FrameSource interface and returns FrameData objects.
"""

from .base import FrameSource, SourceConfig
from .webcam_source import WebcamSource, WebcamSourceConfig
from .image_source import StillImageSource, decode_image

__all__ = [
    "FrameSource",
    "SourceConfig",
    "WebcamSource",
    "WebcamSourceConfig",
    "StillImageSource",
    "decode_image",
]
