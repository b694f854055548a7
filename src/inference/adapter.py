"""
Async adapter around a blocking inference backend.

The adapter owns the model loading lifecycle (loading -> ready | failed) and
runs both loading and inference in worker threads so the event loop that
drives the session and the web server never blocks on the model.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable, List, Optional

import numpy as np

from models.config import DetectionConfig
from models.detection import Detection
from session.errors import ModelLoadFailure, ModelNotReady
from .backend import InferenceBackend, NullBackend
from .cpu_backend import CpuYoloConfig, UltralyticsCpuBackend


class ModelState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


BackendFactory = Callable[[], InferenceBackend]


def backend_factory_from_config(cfg: DetectionConfig) -> BackendFactory:
    """Return a zero-arg callable that builds the configured backend."""
    if cfg.backend == "none":
        return NullBackend
    if cfg.backend == "yolo":
        ycfg = cfg.yolo
        return lambda: UltralyticsCpuBackend(
            CpuYoloConfig(
                model=ycfg.model,
                conf_threshold=float(ycfg.conf_threshold),
                iou_threshold=float(ycfg.iou_threshold),
                classes=ycfg.classes,
            )
        )
    raise ValueError(f"Unknown detection backend: {cfg.backend}")


class DetectionModelAdapter:
    """
    Example:
        adapter = DetectionModelAdapter(backend_factory_from_config(cfg))
        await adapter.load()
        detections = await adapter.detect(frame)
    """

    def __init__(self, factory: BackendFactory):
        self._factory = factory
        self._backend: Optional[InferenceBackend] = None
        self._state = ModelState.LOADING
        self._error: Optional[str] = None

    @classmethod
    def from_backend(cls, backend: InferenceBackend) -> "DetectionModelAdapter":
        """Wrap an already constructed backend; the adapter starts out ready."""
        adapter = cls(lambda: backend)
        adapter._backend = backend
        adapter._state = ModelState.READY
        return adapter

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == ModelState.READY

    @property
    def error(self) -> Optional[str]:
        return self._error

    async def load(self) -> None:
        """Load the model in a worker thread. Failures are kept and re-raised."""
        if self._state == ModelState.READY:
            return
        self._state = ModelState.LOADING
        self._error = None
        logging.info("Loading detection model...")
        try:
            backend = await asyncio.to_thread(self._factory)
        except Exception as e:
            self._state = ModelState.FAILED
            self._error = f"Error loading model: {e}"
            logging.error(self._error)
            raise ModelLoadFailure(self._error, cause=e) from e
        self._backend = backend
        self._state = ModelState.READY
        logging.info("Model loaded successfully")

    def ensure_ready(self) -> None:
        """Raise the error kind matching the current loading state, if not ready."""
        if self._state == ModelState.FAILED:
            raise ModelLoadFailure(self._error or "Model failed to load")
        if self._state != ModelState.READY or self._backend is None:
            raise ModelNotReady("Model not loaded yet. Please wait.")

    async def detect(self, frame: np.ndarray) -> List[Detection]:
        self.ensure_ready()
        return await asyncio.to_thread(self._backend.detect, frame)
