"""
Single-frame detection pipeline.

One run: time the model call, filter by threshold and category, feed the
statistics aggregator, then the presentation sink.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from analytics.stats import StatisticsAggregator, StatsSnapshot
from inference.adapter import DetectionModelAdapter
from models.detection import Detection, classify
from models.frame import FrameData
from models.settings import Settings
from presentation.sink import PresentationSink
from session.errors import DetectionInvocationFailure


def monotonic_ms() -> float:
    return time.perf_counter() * 1000.0


def filter_detections(detections: Sequence[Detection], settings: Settings) -> List[Detection]:
    """
    Keep detections at or above the threshold whose category is enabled.

    Model order is preserved.
    """
    return [
        d
        for d in detections
        if d.confidence >= settings.threshold
        and settings.is_category_enabled(classify(d.class_name))
    ]


@dataclass
class PipelineResult:
    frame: FrameData
    detections: List[Detection] = field(default_factory=list)
    latency_ms: float = 0.0
    stats: Optional[StatsSnapshot] = None


class DetectionPipeline:
    def __init__(
        self,
        adapter: DetectionModelAdapter,
        settings: Settings,
        aggregator: StatisticsAggregator,
        sink: PresentationSink,
        clock: Callable[[], float] = monotonic_ms,
    ):
        self.adapter = adapter
        self.settings = settings
        self.aggregator = aggregator
        self.sink = sink
        self.clock = clock

    async def run_once(
        self,
        frame: FrameData,
        is_current: Callable[[], bool] = lambda: True,
    ) -> Optional[PipelineResult]:
        """
        Run detection on one frame.

        ``is_current`` is checked once the model call returns; if it reports
        the run went stale (session stopped or switched mode meanwhile) the
        result is dropped and None is returned.

        Raises:
            DetectionInvocationFailure: The model call failed. The failure has
                already been surfaced to the sink.
        """
        start = self.clock()
        try:
            raw = await self.adapter.detect(frame.frame)
        except Exception as e:
            if not is_current():
                logging.debug(f"Ignoring failure from stale detection run: {e}")
                return None
            message = f"Detection failed: {e}"
            logging.warning(message)
            self.sink.render_error(message)
            raise DetectionInvocationFailure(message, cause=e) from e

        now = self.clock()
        if not is_current():
            logging.debug("Discarding stale detection result")
            return None

        latency_ms = now - start
        detections = filter_detections(raw, self.settings)
        snapshot = self.aggregator.record(detections, latency_ms, now)

        self.sink.render(frame, detections, self.settings)
        self.sink.render_stats(snapshot)

        return PipelineResult(frame=frame, detections=detections, latency_ms=latency_ms, stats=snapshot)
