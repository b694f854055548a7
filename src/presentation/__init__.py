"""
Presentation: overlay drawing and the sink the pipeline renders into.
"""

from .sink import PresentationSink
from .overlay import color_for, draw_detections, label_text
from .presenter import FramePresenter

__all__ = [
    "PresentationSink",
    "FramePresenter",
    "color_for",
    "draw_detections",
    "label_text",
]
