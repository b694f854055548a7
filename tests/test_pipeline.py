"""
Tests for the single-frame detection pipeline.
"""

import asyncio
import itertools

import pytest

from analytics.stats import StatisticsAggregator
from inference.adapter import DetectionModelAdapter
from models.detection import Category, classify
from models.settings import Settings
from pipeline.detect import DetectionPipeline, filter_detections
from session.errors import DetectionInvocationFailure
from conftest import FakeBackend, RecordingSink, det


MIXED = [
    det("person", 0.95),
    det("car", 0.3),
    det("dog", 0.9),
    det("toaster", 0.6),
    det("truck", 0.5),
    det("cat", 0.1),
    det("person", 0.49),
]


def _pipeline(detections=None, settings=None, error=None, clock=None):
    backend = FakeBackend(detections, error=error)
    settings = settings or Settings()
    sink = RecordingSink()
    times = iter(clock or itertools.count(0, 25))
    pipeline = DetectionPipeline(
        DetectionModelAdapter.from_backend(backend),
        settings,
        StatisticsAggregator(now_ms=0),
        sink,
        clock=lambda: next(times),
    )
    return pipeline, sink, backend


class TestFilterDetections:
    @pytest.mark.parametrize("threshold", [i / 10 for i in range(11)])
    def test_nothing_below_threshold(self, threshold):
        out = filter_detections(MIXED, Settings(threshold=threshold))
        assert all(d.confidence >= threshold for d in out)
        assert len(out) == sum(1 for d in MIXED if d.confidence >= threshold)

    @pytest.mark.parametrize(
        "disabled",
        [set(c) for n in range(len(Category) + 1) for c in itertools.combinations(Category, n)],
    )
    def test_disabled_categories_excluded(self, disabled):
        settings = Settings(threshold=0.0, category_filters={c: c not in disabled for c in Category})
        out = filter_detections(MIXED, settings)
        assert all(classify(d.class_name) not in disabled for d in out)
        assert len(out) == sum(1 for d in MIXED if classify(d.class_name) not in disabled)

    def test_threshold_is_inclusive(self):
        out = filter_detections([det("truck", 0.5)], Settings(threshold=0.5))
        assert len(out) == 1

    def test_model_order_preserved(self):
        out = filter_detections(MIXED, Settings(threshold=0.5))
        assert [d.class_name for d in out] == ["person", "dog", "toaster", "truck"]


class TestRunOnce:
    def test_example_scenario(self, frame):
        pipeline, sink, _ = _pipeline([det("dog", 0.9), det("car", 0.3)])
        result = asyncio.run(pipeline.run_once(frame))

        assert [d.class_name for d in result.detections] == ["dog"]
        assert result.stats.unique_count == 1
        assert result.stats.avg_confidence_pct == 90
        assert sink.renders == [result.detections]
        assert sink.stats == [result.stats]

    def test_latency_measured_around_model_call(self, frame):
        pipeline, _, _ = _pipeline([], clock=[100, 142])
        result = asyncio.run(pipeline.run_once(frame))
        assert result.latency_ms == 42
        assert result.stats.avg_latency_ms == 42
        assert result.stats.total_processed == 1

    def test_settings_changes_apply_to_next_run(self, frame):
        settings = Settings()
        pipeline, _, _ = _pipeline([det("dog", 0.9), det("car", 0.6)], settings=settings)
        first = asyncio.run(pipeline.run_once(frame))
        settings.set_category_filter(Category.ANIMAL, False)
        second = asyncio.run(pipeline.run_once(frame))
        assert len(first.detections) == 2
        assert [d.class_name for d in second.detections] == ["car"]

    def test_failure_is_surfaced_and_raised(self, frame):
        pipeline, sink, _ = _pipeline(error=RuntimeError("boom"))
        with pytest.raises(DetectionInvocationFailure) as info:
            asyncio.run(pipeline.run_once(frame))
        assert isinstance(info.value.cause, RuntimeError)
        assert sink.renders == []
        assert len(sink.errors) == 1
        assert "boom" in sink.errors[0]
        assert pipeline.aggregator.stats.total_processed == 0

    def test_stale_result_is_discarded(self, frame):
        pipeline, sink, backend = _pipeline([det("dog", 0.9)])
        result = asyncio.run(pipeline.run_once(frame, is_current=lambda: False))
        assert result is None
        assert backend.calls == 1
        assert sink.renders == []
        assert sink.stats == []
        assert pipeline.aggregator.stats.total_processed == 0

    def test_stale_failure_is_not_surfaced(self, frame):
        pipeline, sink, _ = _pipeline(error=RuntimeError("late"))
        assert asyncio.run(pipeline.run_once(frame, is_current=lambda: False)) is None
        assert sink.errors == []
