"""
OpenCV-based webcam source.

Supports:
- USB webcams (device_id as int, e.g., 0)
- Stream URLs or device paths (device_id as str)
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import cv2
import numpy as np

from models.frame import FrameData
from session.errors import CameraPermissionDenied, CameraUnavailable
from .base import FrameSource, SourceConfig


@dataclass
class WebcamSourceConfig(SourceConfig):
    """
    Configuration for the OpenCV webcam source.

    Attributes:
        device_id: Camera index (int) or device path / URL (str).
        buffer_size: OpenCV capture buffer size (reduces latency for live feeds).
        max_retries: Maximum attempts to open the device.
        warmup_s: Delay after opening before the first read.
        swap_rb: Swap R/B channels (fixes RGB vs BGR issues).
        flip_horizontal: Mirror the frame (selfie view).
    """
    device_id: Union[int, str] = 0
    buffer_size: int = 1
    max_retries: int = 3
    warmup_s: float = 0.5
    swap_rb: bool = False
    flip_horizontal: bool = False

    @classmethod
    def from_camera_config(cls, camera_cfg: Dict[str, Any], source_id: str = "webcam") -> "WebcamSourceConfig":
        """Adapter: Create WebcamSourceConfig from the camera section of config.yaml."""
        resolution = camera_cfg.get("resolution")
        if resolution:
            resolution = tuple(resolution)

        return cls(
            source_id=source_id,
            resolution=resolution,
            fps=camera_cfg.get("fps"),
            device_id=camera_cfg.get("device_id", 0),
            buffer_size=camera_cfg.get("buffer_size", 1),
            max_retries=camera_cfg.get("max_retries", 3),
            swap_rb=camera_cfg.get("swap_rb", False),
            flip_horizontal=camera_cfg.get("flip_horizontal", False),
        )


def _device_path(device_id: Union[int, str]) -> Optional[str]:
    if isinstance(device_id, int):
        return f"/dev/video{device_id}"
    if device_id.startswith("/dev/"):
        return device_id
    return None


class WebcamSource(FrameSource):
    """
    Wraps cv2.VideoCapture to provide the current webcam frame as FrameData.

    Example:
        config = WebcamSourceConfig(device_id=0, resolution=(1280, 720))
        with WebcamSource(config) as source:
            frame_data = source.read()
    """

    def __init__(self, config: WebcamSourceConfig):
        super().__init__(config)
        self._webcam_config = config
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def device_id(self) -> Union[int, str]:
        return self._webcam_config.device_id

    def acquire(self) -> None:
        """Open the capture device, retrying before giving up."""
        if self._is_acquired:
            return

        self._check_permissions()

        cfg = self._webcam_config
        for attempt in range(max(1, cfg.max_retries)):
            if attempt > 0:
                wait_time = min(2 ** attempt, 10)
                logging.info(
                    f"Retrying camera open (attempt {attempt + 1}/{cfg.max_retries}) after {wait_time}s"
                )
                time.sleep(wait_time)

            cap = cv2.VideoCapture(self.device_id)
            if cap.isOpened():
                self._cap = cap
                break
            cap.release()
            logging.warning(f"Failed to open camera {self.device_id}")
        else:
            raise CameraUnavailable(
                f"Could not open camera {self.device_id} after {cfg.max_retries} attempts"
            )

        if cfg.resolution:
            w, h = cfg.resolution
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
        if cfg.fps:
            self._cap.set(cv2.CAP_PROP_FPS, cfg.fps)
        self._cap.set(cv2.CAP_PROP_BUFFERSIZE, cfg.buffer_size)

        actual_w = self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)
        actual_h = self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)
        logging.info(f"Camera acquired: device={self.device_id}, resolution=({actual_w}x{actual_h})")

        if cfg.warmup_s > 0:
            time.sleep(cfg.warmup_s)

        self._is_acquired = True
        self._frame_index = 0

    def _check_permissions(self) -> None:
        path = _device_path(self.device_id)
        if path and os.path.exists(path) and not os.access(path, os.R_OK):
            raise CameraPermissionDenied(
                f"Camera {path} is not readable. Grant access to the video device and retry."
            )

    def read(self) -> Optional[FrameData]:
        if not self._is_acquired or self._cap is None:
            return None

        ret, frame = self._cap.read()
        if not ret or frame is None:
            logging.warning(f"Failed to read frame from camera {self.device_id}")
            return None

        frame = self._apply_transforms(frame)
        self._frame_index += 1
        return FrameData(
            frame=frame,
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def _apply_transforms(self, frame: np.ndarray) -> np.ndarray:
        cfg = self._webcam_config
        if cfg.flip_horizontal:
            frame = cv2.flip(frame, 1)
        if cfg.swap_rb:
            frame = frame[..., ::-1].copy()
        return frame

    def release(self) -> None:
        """Stop the capture device."""
        was_acquired = self._is_acquired
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        self._is_acquired = False
        if was_acquired:
            logging.info(f"Camera released: device={self.device_id}")
