"""
Still image source built from an uploaded file.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

import cv2
import numpy as np

from models.frame import FrameData
from session.errors import InvalidImageError
from .base import FrameSource, SourceConfig


def decode_image(data: bytes) -> np.ndarray:
    """Decode encoded image bytes (JPEG, PNG, ...) into a BGR array."""
    if not data:
        raise InvalidImageError("Empty upload")
    buf = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buf, cv2.IMREAD_COLOR)
    if image is None:
        raise InvalidImageError("Uploaded file is not a decodable image")
    return image


class StillImageSource(FrameSource):
    """Serves the same decoded image on every read until released."""

    def __init__(self, image: np.ndarray, name: Optional[str] = None):
        super().__init__(SourceConfig(source_id="upload", metadata={"name": name}))
        self._image: Optional[np.ndarray] = image
        self._loaded_at = time.time()

    @classmethod
    def from_bytes(cls, data: bytes, name: Optional[str] = None) -> "StillImageSource":
        return cls(decode_image(data), name=name)

    @property
    def name(self) -> Optional[str]:
        return self._config.metadata.get("name")

    def acquire(self) -> None:
        if self._image is None:
            raise InvalidImageError("Image has been released")
        self._is_acquired = True

    def read(self) -> Optional[FrameData]:
        if not self._is_acquired or self._image is None:
            return None
        self._frame_index += 1
        return FrameData(
            frame=self._image,
            timestamp=self._loaded_at,
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def release(self) -> None:
        if self._image is not None:
            logging.debug(f"Released uploaded image {self.name or ''}".rstrip())
        self._image = None
        self._is_acquired = False
