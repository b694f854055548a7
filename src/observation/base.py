"""
FrameSource interface for the viewer's frame inputs.

Two sources exist:
- the live webcam (OpenCV capture device)
- a still image decoded from an upload
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from models.frame import FrameData


@dataclass
class SourceConfig:
    """
    Base configuration for frame sources.

    Attributes:
        source_id: Identifier for this source (e.g., "webcam", "upload").
        resolution: Target resolution as (width, height). None = use source default.
        fps: Target frames per second. None = use source default.
        metadata: Additional source-specific configuration.
    """
    source_id: str = "default"
    resolution: Optional[tuple[int, int]] = None
    fps: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class FrameSource(ABC):
    """
    Abstract base class for frame sources.

    Lifecycle:
        1. Create instance with config
        2. Call acquire() to take hold of the device or image
        3. Call read() whenever the pipeline needs the current frame
        4. Call release() to give the resource back

    Can also be used as a context manager:
        with WebcamSource(config) as source:
            frame_data = source.read()
    """

    def __init__(self, config: SourceConfig):
        self._config = config
        self._is_acquired = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        return self._config.source_id

    @property
    def is_acquired(self) -> bool:
        """Whether the source currently holds its resource and can be read."""
        return self._is_acquired

    @property
    def frame_index(self) -> int:
        """Number of frames read since acquire()."""
        return self._frame_index

    @abstractmethod
    def acquire(self) -> None:
        """
        Take hold of the underlying resource.

        Raises:
            CameraPermissionDenied / CameraUnavailable for webcams.
        """
        pass

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """
        Return the current frame, or None if no frame is available.
        """
        pass

    @abstractmethod
    def release(self) -> None:
        """
        Release the underlying resource. Safe to call multiple times.
        """
        pass

    def __enter__(self) -> "FrameSource":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()
