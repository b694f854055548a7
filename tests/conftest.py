"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import threading
import time

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.detection import Detection
from models.frame import FrameData
from observation.base import FrameSource, SourceConfig


def det(class_name, confidence, x=10, y=10, w=40, h=30):
    return Detection.from_xywh(class_name, confidence, x, y, w, h)


class FakeBackend:
    """
    Backend returning a fixed detection list.

    With a gate, detect() blocks (in its worker thread) until the gate is set,
    which keeps a run in flight for as long as a test needs.
    """

    def __init__(self, detections=None, gate: threading.Event = None, error: Exception = None):
        self.detections = list(detections or [])
        self.gate = gate
        self.error = error
        self.calls = 0

    def detect(self, frame):
        self.calls += 1
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return list(self.detections)


class FakeWebcam(FrameSource):
    """Webcam stand-in counting acquire/release calls."""

    def __init__(self, error: Exception = None, frames_available: bool = True):
        super().__init__(SourceConfig(source_id="webcam"))
        self.error = error
        self.frames_available = frames_available
        self.acquire_count = 0
        self.release_count = 0

    def acquire(self) -> None:
        self.acquire_count += 1
        if self.error is not None:
            raise self.error
        self._is_acquired = True

    def read(self):
        if not self._is_acquired or not self.frames_available:
            return None
        self._frame_index += 1
        return FrameData(
            frame=np.zeros((120, 160, 3), dtype=np.uint8),
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def release(self) -> None:
        self.release_count += 1
        self._is_acquired = False


class RecordingSink:
    """PresentationSink that records every call."""

    def __init__(self):
        self.renders = []
        self.stats = []
        self.errors = []
        self.shown = []
        self.clears = 0
        self._on_screen = None

    def show_frame(self, frame):
        self.shown.append(frame)
        self._on_screen = frame.frame

    def render(self, frame, detections, settings):
        self.renders.append(list(detections))
        self._on_screen = frame.frame

    def render_stats(self, snapshot):
        self.stats.append(snapshot)

    def render_error(self, message):
        self.errors.append(message)

    def clear(self):
        self.clears += 1
        self._on_screen = None

    def capture(self):
        return None if self._on_screen is None else self._on_screen.copy()


@pytest.fixture
def frame():
    return FrameData(frame=np.zeros((120, 160, 3), dtype=np.uint8), timestamp=time.time(), source="test")


@pytest.fixture
def png_bytes():
    import cv2

    image = np.full((60, 80, 3), 127, dtype=np.uint8)
    ok, buf = cv2.imencode(".png", image)
    assert ok
    return buf.tobytes()


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "device_id": 0,
            "resolution": [1280, 720],
            "fps": 30,
        },
        "detection": {
            "backend": "yolo",
            "yolo": {"model": "yolov8n.pt", "conf_threshold": 0.25},
        },
        "settings": {"threshold": 0.5},
        "session": {
            "frame_interval_ms": 16,
            "history_capacity": 12,
            "latency_window": 30,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
