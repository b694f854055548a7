import threading
import time

import cv2
import numpy as np


class ViewerState:
    """
    Latest rendered output, shared between the session (event loop) and the
    streaming endpoints (which iterate in a worker thread).
    """

    def __init__(self, jpeg_quality: int = 85):
        self.jpeg_quality = jpeg_quality
        self.frame = None
        self.frame_lock = threading.Lock()
        self.system_stats = {
            "start_time": time.time(),
            "last_frame_ts": None,
            "frames_published": 0,
        }

    def set_frame(self, frame: np.ndarray):
        """Publish the current annotated frame."""
        with self.frame_lock:
            self.frame = frame.copy() if frame is not None else None
            if frame is not None:
                self.system_stats["last_frame_ts"] = time.time()
                self.system_stats["frames_published"] += 1

    def clear_frame(self):
        with self.frame_lock:
            self.frame = None

    def get_frame(self):
        with self.frame_lock:
            if self.frame is None:
                return None
            return self.frame.copy()

    def get_jpeg(self):
        """Current frame as JPEG bytes, or None when nothing is on screen."""
        frame = self.get_frame()
        if frame is None:
            return None
        ok, buf = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), int(self.jpeg_quality)])
        if not ok:
            raise RuntimeError("Failed to encode JPEG")
        return buf.tobytes()

    def get_system_stats_copy(self):
        """Return a shallow copy of current system stats."""
        return dict(self.system_stats)
