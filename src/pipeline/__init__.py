"""
Detection pipeline: model call, filtering, statistics and presentation for
one frame.
"""

from .detect import DetectionPipeline, PipelineResult, filter_detections, monotonic_ms

__all__ = [
    "DetectionPipeline",
    "PipelineResult",
    "filter_detections",
    "monotonic_ms",
]
