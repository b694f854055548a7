"""
Tests for the rolling statistics aggregator.
"""

import pytest

from analytics.stats import StatisticsAggregator, StatsSnapshot, summarize_detections
from conftest import det


class TestFps:
    @pytest.mark.parametrize("n", [1, 5, 30, 60])
    def test_fps_equals_frames_per_second_window(self, n):
        agg = StatisticsAggregator(now_ms=0)
        # n records within one second, the n-th landing exactly on the 1000ms boundary
        for i in range(1, n + 1):
            snap = agg.record([], latency_ms=10, now_ms=i * 1000 / n)
        assert snap.fps == n

    def test_fps_not_updated_before_window_elapses(self):
        agg = StatisticsAggregator(now_ms=0)
        for t in (100, 200, 999):
            snap = agg.record([], 5, t)
        assert snap.fps == 0
        assert agg.stats.frame_count == 3

    def test_window_resets_after_update(self):
        agg = StatisticsAggregator(now_ms=0)
        agg.record([], 5, 500)
        agg.record([], 5, 1000)
        assert agg.stats.frame_count == 0
        assert agg.stats.window_start_ms == 1000
        snap = agg.record([], 5, 1500)
        assert snap.fps == 2

    def test_fps_rounds(self):
        agg = StatisticsAggregator(now_ms=0)
        agg.record([], 5, 400)
        agg.record([], 5, 800)
        snap = agg.record([], 5, 1500)
        # 3 frames over 1.5s
        assert snap.fps == 2

    def test_reset_restarts_window(self):
        agg = StatisticsAggregator(now_ms=0)
        agg.record([], 5, 900)
        agg.reset(5000)
        assert agg.stats.frame_count == 0
        snap = agg.record([], 5, 6000)
        assert snap.fps == 1


class TestLatency:
    def test_window_is_bounded(self):
        agg = StatisticsAggregator(now_ms=0)
        for i in range(100):
            agg.record([], latency_ms=i, now_ms=i)
        assert len(agg.stats.latencies) == 30
        assert list(agg.stats.latencies) == list(range(70, 100))

    def test_average_uses_recent_window(self):
        agg = StatisticsAggregator(latency_window=3, now_ms=0)
        for latency in (1000, 10, 20, 30):
            snap = agg.record([], latency, 0)
        assert snap.avg_latency_ms == 20

    def test_average_rounds_to_int(self):
        agg = StatisticsAggregator(now_ms=0)
        agg.record([], 10, 0)
        snap = agg.record([], 13, 0)
        assert snap.avg_latency_ms == 12  # round(11.5) with banker's rounding
        assert isinstance(snap.avg_latency_ms, int)

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            StatisticsAggregator(latency_window=0)


class TestDetectionSummary:
    def test_total_counts_runs_not_objects(self):
        agg = StatisticsAggregator(now_ms=0)
        agg.record([det("dog", 0.9), det("cat", 0.8)], 5, 0)
        snap = agg.record([], 5, 0)
        assert snap.total_processed == 2
        assert snap.object_count == 0

    def test_counts_and_confidence_fresh_each_call(self):
        agg = StatisticsAggregator(now_ms=0)
        agg.record([det("dog", 0.9)] * 5, 5, 0)
        snap = agg.record([det("dog", 0.9), det("dog", 0.7), det("car", 0.5)], 5, 0)
        assert snap.object_count == 3
        assert snap.unique_count == 2
        assert snap.counts_by_class == {"dog": 2, "car": 1}
        assert snap.avg_confidence == pytest.approx(0.7)
        assert snap.avg_confidence_pct == 70

    def test_empty_confidence_is_zero(self):
        count, counts, avg = summarize_detections([])
        assert (count, counts, avg) == (0, {}, 0.0)

    def test_sorted_objects(self):
        snap = StatsSnapshot(counts_by_class={"cat": 1, "person": 3, "car": 2})
        assert snap.sorted_objects() == [("person", 3), ("car", 2), ("cat", 1)]

    def test_last_snapshot(self):
        agg = StatisticsAggregator(now_ms=0)
        assert agg.last_snapshot == StatsSnapshot()
        snap = agg.record([det("dog", 0.9)], 5, 0)
        assert agg.last_snapshot is snap
