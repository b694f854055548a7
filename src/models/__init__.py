"""
Typed models for the detection viewer.
"""

from .frame import FrameData
from .detection import BoundingBox, Category, Detection, classify
from .settings import Settings
from .config import (
    Config,
    CameraConfig,
    DetectionConfig,
    YoloConfig,
    SessionConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "BoundingBox",
    "Category",
    "Detection",
    "classify",
    # Settings
    "Settings",
    # Config
    "Config",
    "CameraConfig",
    "DetectionConfig",
    "YoloConfig",
    "SessionConfig",
    "WebConfig",
]
