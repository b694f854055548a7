from __future__ import annotations

from dataclasses import dataclass

from inference.adapter import DetectionModelAdapter, backend_factory_from_config
from models.config import Config
from models.settings import Settings
from observation.webcam_source import WebcamSource, WebcamSourceConfig
from presentation.presenter import FramePresenter
from session.machine import DetectionSession
from web.state import ViewerState


@dataclass
class RuntimeContext:
    """Holds the session and its collaborators; avoids global singletons."""

    config: Config
    adapter: DetectionModelAdapter
    presenter: FramePresenter
    session: DetectionSession


def build_context(config: Config) -> RuntimeContext:
    """Wire adapter, webcam factory, presenter and session from config."""
    adapter = DetectionModelAdapter(backend_factory_from_config(config.detection))
    presenter = FramePresenter(ViewerState(jpeg_quality=config.session.jpeg_quality))
    webcam_cfg = WebcamSourceConfig.from_camera_config(config.camera.to_dict())

    session = DetectionSession(
        adapter,
        lambda: WebcamSource(webcam_cfg),
        presenter,
        Settings.from_dict(config.settings),
        frame_interval_ms=config.session.frame_interval_ms,
        history_capacity=config.session.history_capacity,
        latency_window=config.session.latency_window,
    )
    return RuntimeContext(config=config, adapter=adapter, presenter=presenter, session=session)
