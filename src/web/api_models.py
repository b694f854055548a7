from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from models.detection import Category
from session.machine import SessionMode


class ControlsResponse(BaseModel):
    start_enabled: bool
    stop_enabled: bool
    detect_enabled: bool
    snapshot_enabled: bool
    upload_enabled: bool


class StatusResponse(BaseModel):
    mode: str = Field(..., description="webcam|still_image")
    running: bool
    has_source: bool
    model_state: str = Field(..., description="loading|ready|failed")
    model_error: Optional[str] = None
    last_error: Optional[str] = None
    controls: ControlsResponse
    snapshots: int


class ModeRequest(BaseModel):
    mode: SessionMode


class SettingsModel(BaseModel):
    threshold: float = Field(..., ge=0.0, le=1.0)
    show_boxes: bool
    show_labels: bool
    show_confidence: bool
    category_filters: Dict[str, bool]


class SettingsUpdate(BaseModel):
    """Partial settings update; omitted fields are left unchanged."""
    threshold: Optional[float] = Field(None, ge=0.0, le=1.0, description="Step 0.1 in the UI")
    show_boxes: Optional[bool] = None
    show_labels: Optional[bool] = None
    show_confidence: Optional[bool] = None
    category_filters: Optional[Dict[Category, bool]] = None


class ObjectCount(BaseModel):
    name: str
    count: int


class StatsResponse(BaseModel):
    fps: int
    avg_latency_ms: int
    total_processed: int
    object_count: int
    unique_count: int
    avg_confidence: float
    avg_confidence_pct: int
    counts_by_class: Dict[str, int]
    objects: List[ObjectCount] = Field(
        default_factory=list, description="Class counts, most frequent first"
    )


class DetectionModel(BaseModel):
    class_name: str
    confidence: float
    category: str
    bbox: List[float] = Field(..., description="[x, y, width, height] in pixels")


class DetectionsResponse(BaseModel):
    detections: List[DetectionModel]
    error: Optional[str] = None


class SnapshotInfo(BaseModel):
    index: int
    snapshot_id: str
    filename: str
    captured_at: float
    size_bytes: int
