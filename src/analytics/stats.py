"""
Rolling detection statistics.

FPS is a windowed rate recomputed at most once per second; detection latency
is averaged over the most recent runs only, so recent performance dominates.
Object counts and mean confidence describe the latest detection set and are
not accumulated.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Sequence, Tuple

from models.detection import Detection

FPS_WINDOW_MS = 1000.0
DEFAULT_LATENCY_WINDOW = 30


@dataclass
class RollingStats:
    """Mutable counters updated once per completed pipeline run."""
    fps: int = 0
    frame_count: int = 0
    window_start_ms: float = 0.0
    latencies: Deque[int] = field(default_factory=lambda: deque(maxlen=DEFAULT_LATENCY_WINDOW))
    total_processed: int = 0


@dataclass(frozen=True)
class StatsSnapshot:
    """What the presentation layer shows after each run."""
    fps: int = 0
    avg_latency_ms: int = 0
    total_processed: int = 0
    object_count: int = 0
    unique_count: int = 0
    avg_confidence: float = 0.0
    counts_by_class: Dict[str, int] = field(default_factory=dict)

    @property
    def avg_confidence_pct(self) -> int:
        return int(round(self.avg_confidence * 100))

    def sorted_objects(self) -> List[Tuple[str, int]]:
        """Class counts, most frequent first."""
        return sorted(self.counts_by_class.items(), key=lambda kv: kv[1], reverse=True)

    def to_dict(self) -> Dict[str, object]:
        return {
            "fps": self.fps,
            "avg_latency_ms": self.avg_latency_ms,
            "total_processed": self.total_processed,
            "object_count": self.object_count,
            "unique_count": self.unique_count,
            "avg_confidence": self.avg_confidence,
            "avg_confidence_pct": self.avg_confidence_pct,
            "counts_by_class": dict(self.counts_by_class),
        }


def summarize_detections(detections: Sequence[Detection]) -> Tuple[int, Dict[str, int], float]:
    """Return (count, counts per class name, mean confidence or 0)."""
    counts: Dict[str, int] = {}
    for d in detections:
        counts[d.class_name] = counts.get(d.class_name, 0) + 1
    if detections:
        avg_conf = sum(d.confidence for d in detections) / len(detections)
    else:
        avg_conf = 0.0
    return len(detections), counts, avg_conf


class StatisticsAggregator:
    def __init__(self, latency_window: int = DEFAULT_LATENCY_WINDOW, now_ms: float = 0.0):
        if latency_window <= 0:
            raise ValueError("latency_window must be positive")
        self._latency_window = latency_window
        self.stats = RollingStats(window_start_ms=now_ms, latencies=deque(maxlen=latency_window))
        self._last = StatsSnapshot()

    @property
    def last_snapshot(self) -> StatsSnapshot:
        return self._last

    def reset(self, now_ms: float) -> None:
        """Restart the FPS window at now_ms. Latency history and totals are kept."""
        self.stats.fps = 0
        self.stats.frame_count = 0
        self.stats.window_start_ms = now_ms

    def average_latency_ms(self) -> int:
        latencies = self.stats.latencies
        if not latencies:
            return 0
        return int(round(sum(latencies) / len(latencies)))

    def record(self, detections: Sequence[Detection], latency_ms: float, now_ms: float) -> StatsSnapshot:
        s = self.stats
        s.latencies.append(int(round(latency_ms)))
        s.total_processed += 1

        s.frame_count += 1
        elapsed = now_ms - s.window_start_ms
        if elapsed >= FPS_WINDOW_MS:
            s.fps = int(round(s.frame_count * 1000 / elapsed))
            s.frame_count = 0
            s.window_start_ms = now_ms

        count, counts_by_class, avg_conf = summarize_detections(detections)
        self._last = StatsSnapshot(
            fps=s.fps,
            avg_latency_ms=self.average_latency_ms(),
            total_processed=s.total_processed,
            object_count=count,
            unique_count=len(counts_by_class),
            avg_confidence=avg_conf,
            counts_by_class=counts_by_class,
        )
        return self._last
