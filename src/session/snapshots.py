"""
Snapshot images: the on-screen frame (overlays included) encoded as PNG.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

import cv2
import numpy as np


@dataclass
class SnapshotImage:
    """An encoded snapshot. Its bytes are dropped on release()."""
    data: Optional[bytes]
    snapshot_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_ms: int = field(default_factory=lambda: int(time.time() * 1000))

    @property
    def released(self) -> bool:
        return self.data is None

    @property
    def filename(self) -> str:
        return f"detection-{self.created_ms}.png"

    def release(self) -> None:
        self.data = None


def encode_snapshot(frame: np.ndarray) -> SnapshotImage:
    ok, buf = cv2.imencode(".png", frame)
    if not ok:
        raise RuntimeError("Failed to encode snapshot PNG")
    return SnapshotImage(data=buf.tobytes())
