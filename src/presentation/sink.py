"""
Presentation sink interface.

Everything the core hands to the display goes through these calls. They are
fire-and-forget: the core never consumes a return value.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

import numpy as np

from analytics.stats import StatsSnapshot
from models.detection import Detection
from models.frame import FrameData
from models.settings import Settings


class PresentationSink(Protocol):
    def show_frame(self, frame: FrameData) -> None:
        """Show a frame without overlays (e.g. a freshly uploaded image)."""
        ...

    def render(self, frame: FrameData, detections: Sequence[Detection], settings: Settings) -> None:
        ...

    def render_stats(self, snapshot: StatsSnapshot) -> None:
        ...

    def render_error(self, message: str) -> None:
        ...

    def clear(self) -> None:
        ...

    def capture(self) -> Optional[np.ndarray]:
        """The image currently on screen, overlays included, or None."""
        ...
