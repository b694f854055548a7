"""
Frame presenter: the PresentationSink used by the web app.

Draws overlays with OpenCV and publishes the annotated frame to ViewerState;
keeps the latest detections, statistics and error for the JSON endpoints.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np

from analytics.stats import StatsSnapshot
from models.detection import Detection
from models.frame import FrameData
from models.settings import Settings
from web.state import ViewerState
from .overlay import draw_detections


class FramePresenter:
    def __init__(self, state: Optional[ViewerState] = None):
        self.state = state or ViewerState()
        self.detections: List[Detection] = []
        self.stats = StatsSnapshot()
        self.error: Optional[str] = None
        self._annotated: Optional[np.ndarray] = None

    def capture(self) -> Optional[np.ndarray]:
        """The frame currently on screen, overlays included."""
        return None if self._annotated is None else self._annotated.copy()

    def show_frame(self, frame: FrameData) -> None:
        self.detections = []
        self._publish(frame.frame)

    def render(self, frame: FrameData, detections: Sequence[Detection], settings: Settings) -> None:
        self.detections = list(detections)
        self.error = None
        self._publish(draw_detections(frame.frame, detections, settings))

    def render_stats(self, snapshot: StatsSnapshot) -> None:
        self.stats = snapshot

    def render_error(self, message: str) -> None:
        self.error = message

    def clear(self) -> None:
        self.detections = []
        self._annotated = None
        self.state.clear_frame()
        logging.debug("Presentation surface cleared")

    def _publish(self, frame: np.ndarray) -> None:
        self._annotated = frame
        self.state.set_frame(frame)
