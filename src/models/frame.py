"""
FrameData model for frames handed to the detection pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass
class FrameData:
    """
    A visual frame plus where and when it was captured.

    Attributes:
        frame: The image as a numpy array (BGR format).
        timestamp: Unix timestamp when the frame was captured or decoded.
        frame_index: Sequential frame number since the source was acquired.
        source: Identifier of the frame source ("webcam", "upload", ...).
    """
    frame: np.ndarray
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None

    @property
    def width(self) -> int:
        return int(self.frame.shape[1])

    @property
    def height(self) -> int:
        return int(self.frame.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)

    def copy(self) -> "FrameData":
        return FrameData(
            frame=self.frame.copy(),
            timestamp=self.timestamp,
            frame_index=self.frame_index,
            source=self.source,
        )
