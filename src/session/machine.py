"""
Detection session state machine.

Two orthogonal axes:
- mode: webcam (continuous loop) or still image (one-shot passes)
- running: in webcam mode the loop is live; in still-image mode a detection
  pass has been requested and is in flight

All state is mutated from the event loop that calls into the session. Model
calls run in worker threads (see DetectionModelAdapter); their results are
applied back on the loop, and a generation counter bumped by every stop and
mode switch marks results that arrive after the session moved on as stale.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from analytics.stats import StatisticsAggregator, StatsSnapshot
from inference.adapter import DetectionModelAdapter
from models.frame import FrameData
from models.settings import Settings
from observation.base import FrameSource
from observation.image_source import StillImageSource
from pipeline.detect import DetectionPipeline, PipelineResult, monotonic_ms
from presentation.sink import PresentationSink
from .errors import (
    CameraUnavailable,
    DetectionInvocationFailure,
    InvalidModeError,
    NoFrameSourceError,
    ViewerError,
)
from .history import SnapshotHistory
from .snapshots import SnapshotImage, encode_snapshot


class SessionMode(str, Enum):
    WEBCAM = "webcam"
    STILL_IMAGE = "still_image"


@dataclass
class SessionState:
    mode: SessionMode = SessionMode.WEBCAM
    is_running: bool = False
    active_source: Optional[FrameSource] = None


@dataclass(frozen=True)
class ControlsState:
    """Which user actions are currently usable."""
    start_enabled: bool
    stop_enabled: bool
    detect_enabled: bool
    snapshot_enabled: bool
    upload_enabled: bool

    def to_dict(self) -> Dict[str, bool]:
        return {
            "start_enabled": self.start_enabled,
            "stop_enabled": self.stop_enabled,
            "detect_enabled": self.detect_enabled,
            "snapshot_enabled": self.snapshot_enabled,
            "upload_enabled": self.upload_enabled,
        }


class DetectionSession:
    """
    Owns the frame source, the detection loop, statistics and snapshot history.

    Example:
        session = DetectionSession(adapter, webcam_factory, FramePresenter())
        await session.start()
        ...
        session.stop()
    """

    def __init__(
        self,
        adapter: DetectionModelAdapter,
        webcam_factory: Callable[[], FrameSource],
        sink: PresentationSink,
        settings: Optional[Settings] = None,
        *,
        mode: SessionMode = SessionMode.WEBCAM,
        frame_interval_ms: float = 16,
        history_capacity: int = 12,
        latency_window: int = 30,
        max_read_failures: int = 10,
        clock: Callable[[], float] = monotonic_ms,
    ):
        self.adapter = adapter
        self.sink = sink
        self.settings = settings or Settings()
        self.frame_interval_ms = frame_interval_ms
        self.max_read_failures = max_read_failures
        self.clock = clock
        self._webcam_factory = webcam_factory

        self.aggregator = StatisticsAggregator(latency_window=latency_window, now_ms=clock())
        self.pipeline = DetectionPipeline(adapter, self.settings, self.aggregator, sink, clock=clock)
        self.history: SnapshotHistory[SnapshotImage] = SnapshotHistory(
            capacity=history_capacity, release=lambda snap: snap.release()
        )
        self.state = SessionState(mode=SessionMode(mode))
        self.last_error: Optional[str] = None

        self._generation = 0
        self._starting = False
        self._read_failures = 0
        self._pending: Optional[asyncio.TimerHandle] = None
        self._inflight: Optional[asyncio.Future] = None
        self._reading: Optional[asyncio.Future] = None

    # ------------------------------------------------------------------
    # State inspection
    # ------------------------------------------------------------------

    @property
    def mode(self) -> SessionMode:
        return self.state.mode

    @property
    def is_running(self) -> bool:
        return self.state.is_running

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def stats(self) -> StatsSnapshot:
        return self.aggregator.last_snapshot

    def controls(self) -> ControlsState:
        webcam = self.state.mode == SessionMode.WEBCAM
        has_source = self.state.active_source is not None
        ready = self.adapter.is_ready
        running = self.state.is_running
        return ControlsState(
            start_enabled=webcam and ready and not running and not self._starting,
            stop_enabled=webcam and running,
            detect_enabled=not webcam and ready and has_source and not running,
            snapshot_enabled=has_source,
            upload_enabled=not webcam,
        )

    def status(self) -> Dict[str, Any]:
        return {
            "mode": self.state.mode.value,
            "running": self.state.is_running,
            "has_source": self.state.active_source is not None,
            "model_state": self.adapter.state.value,
            "model_error": self.adapter.error,
            "last_error": self.last_error,
            "controls": self.controls().to_dict(),
            "snapshots": len(self.history),
        }

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self.state.is_running

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def switch_mode(self, target: SessionMode | str) -> None:
        """
        Tear down whatever is active, then enter target.

        The teardown happens even when target is the current mode; afterwards
        the session is not running and holds no frame source.
        """
        target = SessionMode(target)
        self._teardown()
        self.state.mode = target
        self.last_error = None
        logging.info(f"Mode switched to {target.value}")

    async def start(self) -> None:
        """
        Acquire the webcam and begin the continuous detection loop.

        Raises:
            InvalidModeError: Not in webcam mode.
            ModelLoadFailure / ModelNotReady: The model cannot be used yet.
            CameraPermissionDenied / CameraUnavailable: Acquisition failed.
        """
        if self.state.mode != SessionMode.WEBCAM:
            raise InvalidModeError("start() is only available in webcam mode")
        if self.state.is_running or self._starting:
            return
        self.adapter.ensure_ready()

        generation = self._generation
        source = self._webcam_factory()
        self._starting = True
        try:
            await asyncio.to_thread(source.acquire)
        except ViewerError:
            source.release()
            raise
        except Exception as e:
            source.release()
            raise CameraUnavailable(f"Could not access camera: {e}") from e
        finally:
            self._starting = False

        if generation != self._generation or self.state.mode != SessionMode.WEBCAM:
            # Stopped or switched away while the camera was opening.
            source.release()
            logging.info("Start abandoned: session changed while acquiring camera")
            return

        self.state.active_source = source
        self.state.is_running = True
        self.last_error = None
        self._read_failures = 0
        self.aggregator.reset(self.clock())
        logging.info(f"Detection started: source={source.source_id}")
        self._schedule_next(0)

    def stop(self) -> None:
        """
        Stop detection. Idempotent.

        In webcam mode the camera is released and the surface cleared. In
        still-image mode the image stays loaded and on screen; any pass in
        flight is discarded when it completes. A stop that lands while start()
        is still acquiring the camera makes start() release it and return.
        """
        webcam = self.state.mode == SessionMode.WEBCAM
        if self._starting:
            self._generation += 1
        if not self.state.is_running and not (webcam and self.state.active_source is not None):
            return

        self.state.is_running = False
        self._generation += 1
        self._cancel_pending()
        if webcam:
            self._release_source()
            self.sink.clear()
        logging.info("Detection stopped")

    async def shutdown(self) -> None:
        """Process teardown: stop, release every held resource."""
        self.stop()
        self._teardown()
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self.history.clear()
        logging.info("Session shut down")

    def _teardown(self) -> None:
        self.state.is_running = False
        self._generation += 1
        self._cancel_pending()
        self._release_source()
        self.sink.clear()

    def _release_source(self) -> None:
        source = self.state.active_source
        self.state.active_source = None
        if source is None:
            return
        if self._reading is not None and not self._reading.done():
            # A worker thread is still inside read(); release once it returns.
            self._reading.add_done_callback(lambda _: self._close_source(source))
        else:
            self._close_source(source)

    @staticmethod
    def _close_source(source: FrameSource) -> None:
        try:
            source.release()
        except Exception as e:
            logging.warning(f"Error releasing frame source: {e}")

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    # ------------------------------------------------------------------
    # Webcam loop
    # ------------------------------------------------------------------

    def _schedule_next(self, delay_ms: float) -> None:
        loop = asyncio.get_running_loop()
        self._pending = loop.call_later(max(0.0, delay_ms) / 1000.0, self._tick, self._generation)

    def _tick(self, generation: int) -> None:
        self._pending = None
        if not self._is_current(generation):
            return
        self._inflight = asyncio.ensure_future(self._iterate(generation))

    async def _iterate(self, generation: int) -> None:
        try:
            source = self.state.active_source
            try:
                frame = await self._read_frame(source) if source is not None else None
            except Exception as e:
                logging.warning(f"Frame read error: {e}")
                frame = None
            if not self._is_current(generation):
                return
            if frame is None:
                self._on_read_failure()
            else:
                self._read_failures = 0
                await self.pipeline.run_once(frame, is_current=lambda: self._is_current(generation))
        except DetectionInvocationFailure as e:
            self.last_error = str(e)
        except Exception as e:
            logging.exception(f"Unexpected error in detection loop: {e}")
            self.last_error = f"Unexpected error: {e}"
        finally:
            if self._is_current(generation):
                self._schedule_next(self.frame_interval_ms)

    async def _read_frame(self, source: FrameSource) -> Optional[FrameData]:
        self._reading = asyncio.ensure_future(asyncio.to_thread(source.read))
        return await asyncio.shield(self._reading)

    def _on_read_failure(self) -> None:
        self._read_failures += 1
        logging.warning(f"Frame read failed ({self._read_failures}/{self.max_read_failures})")
        if self._read_failures >= self.max_read_failures:
            message = f"Camera stopped delivering frames after {self._read_failures} attempts"
            logging.error(message)
            self.stop()
            self.last_error = message
            self.sink.render_error(message)

    # ------------------------------------------------------------------
    # Still image
    # ------------------------------------------------------------------

    async def load_image(self, data: bytes, name: Optional[str] = None) -> None:
        """
        Decode an upload and make it the active frame source.

        Raises:
            InvalidModeError: Not in still-image mode.
            InvalidImageError: The bytes are not a decodable image.
        """
        if self.state.mode != SessionMode.STILL_IMAGE:
            raise InvalidModeError("Images can only be loaded in still-image mode")
        source = await asyncio.to_thread(StillImageSource.from_bytes, data, name)
        if self.state.mode != SessionMode.STILL_IMAGE:
            source.release()
            raise InvalidModeError("Mode changed while the image was decoding")

        # A pass still in flight belongs to the previous image.
        self.state.is_running = False
        self._generation += 1
        self._release_source()

        source.acquire()
        self.state.active_source = source
        self.last_error = None
        self.sink.show_frame(source.read())
        logging.info(f"Image loaded: {name or 'upload'}")

    async def detect_image(self) -> Optional[PipelineResult]:
        """
        Run one detection pass over the loaded image.

        Returns None if a pass is already in flight or the result went stale.

        Raises:
            InvalidModeError, NoFrameSourceError, ModelNotReady, ModelLoadFailure,
            DetectionInvocationFailure (the previous render is left in place).
        """
        if self.state.mode != SessionMode.STILL_IMAGE:
            raise InvalidModeError("detect_image() is only available in still-image mode")
        source = self.state.active_source
        if source is None:
            raise NoFrameSourceError("No image loaded")
        self.adapter.ensure_ready()
        if self.state.is_running:
            return None

        frame = source.read()
        if frame is None:
            raise NoFrameSourceError("Loaded image is no longer available")

        generation = self._generation
        self.state.is_running = True
        try:
            return await self.pipeline.run_once(frame, is_current=lambda: self._is_current(generation))
        except DetectionInvocationFailure as e:
            self.last_error = str(e)
            raise
        finally:
            if generation == self._generation:
                self.state.is_running = False

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    async def take_snapshot(self) -> SnapshotImage:
        """Capture what is on screen into the history. PNG encoding runs in a worker thread."""
        image = self.sink.capture()
        if image is None:
            raise NoFrameSourceError("Nothing on screen to snapshot")
        snap = await asyncio.to_thread(encode_snapshot, image)
        self.history.append(snap)
        logging.info(f"Snapshot captured: {snap.filename} ({len(self.history)}/{self.history.capacity})")
        return snap

    def remove_snapshot(self, index: int) -> SnapshotImage:
        return self.history.remove(index).image_handle
