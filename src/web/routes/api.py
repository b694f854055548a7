from __future__ import annotations

import asyncio
from typing import List

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response, StreamingResponse

from presentation.presenter import FramePresenter
from session.machine import DetectionSession
from ..api_models import (
    DetectionsResponse,
    ModeRequest,
    SettingsModel,
    SettingsUpdate,
    SnapshotInfo,
    StatsResponse,
    StatusResponse,
)

router = APIRouter()

MJPEG_MAX_FPS = 30


def _session(request: Request) -> DetectionSession:
    return request.app.state.session


def _presenter(request: Request) -> FramePresenter:
    return request.app.state.presenter


def _status(session: DetectionSession) -> dict:
    return session.status()


@router.get("/status", response_model=StatusResponse)
async def status(request: Request):
    """
    Session status for the UI:
    - mode: webcam|still_image
    - running: detection loop live (webcam) or a pass in flight (still image)
    - model_state: loading|ready|failed
    - controls: which actions are currently usable
    """
    return _status(_session(request))


@router.post("/mode", response_model=StatusResponse)
async def switch_mode(request: Request, body: ModeRequest):
    session = _session(request)
    session.switch_mode(body.mode)
    return _status(session)


@router.post("/start", response_model=StatusResponse)
async def start(request: Request):
    session = _session(request)
    await session.start()
    return _status(session)


@router.post("/stop", response_model=StatusResponse)
async def stop(request: Request):
    session = _session(request)
    session.stop()
    return _status(session)


@router.post("/image", response_model=StatusResponse)
async def upload_image(request: Request):
    """Load the raw request body (JPEG, PNG, ...) as the still image."""
    session = _session(request)
    data = await request.body()
    await session.load_image(data, name=request.headers.get("x-filename"))
    return _status(session)


@router.post("/detect", response_model=DetectionsResponse)
async def detect(request: Request):
    session = _session(request)
    await session.detect_image()
    return _detections(_presenter(request))


@router.get("/settings", response_model=SettingsModel)
async def get_settings(request: Request):
    return _session(request).settings.to_dict()


@router.put("/settings", response_model=SettingsModel)
async def update_settings(request: Request, body: SettingsUpdate):
    settings = _session(request).settings
    filters = None
    if body.category_filters is not None:
        filters = {category.value: enabled for category, enabled in body.category_filters.items()}
    settings.update(
        threshold=body.threshold,
        show_boxes=body.show_boxes,
        show_labels=body.show_labels,
        show_confidence=body.show_confidence,
        category_filters=filters,
    )
    return settings.to_dict()


@router.get("/stats", response_model=StatsResponse)
async def stats(request: Request):
    snapshot = _presenter(request).stats
    payload = snapshot.to_dict()
    payload["objects"] = [{"name": name, "count": count} for name, count in snapshot.sorted_objects()]
    return payload


def _detections(presenter: FramePresenter) -> dict:
    return {
        "detections": [d.to_dict() for d in presenter.detections],
        "error": presenter.error,
    }


@router.get("/detections", response_model=DetectionsResponse)
async def detections(request: Request):
    return _detections(_presenter(request))


@router.get("/frame.jpg")
async def frame_jpeg(request: Request):
    jpg = _presenter(request).state.get_jpeg()
    if jpg is None:
        raise HTTPException(status_code=404, detail="No frame on screen")
    return Response(content=jpg, media_type="image/jpeg")


@router.get("/stream.mjpg")
async def mjpeg_stream(request: Request, fps: int = 10):
    """Multipart MJPEG of the annotated frame."""
    state = _presenter(request).state
    delay = 1.0 / max(1, min(MJPEG_MAX_FPS, int(fps)))

    async def frames():
        while not await request.is_disconnected():
            jpg = state.get_jpeg()
            if jpg is not None:
                yield b"--frame\r\nContent-Type: image/jpeg\r\n\r\n" + jpg + b"\r\n"
            await asyncio.sleep(delay)

    return StreamingResponse(frames(), media_type="multipart/x-mixed-replace; boundary=frame")


@router.post("/snapshots", response_model=SnapshotInfo, status_code=201)
async def take_snapshot(request: Request):
    session = _session(request)
    await session.take_snapshot()
    return _snapshot_infos(session)[-1]


def _snapshot_infos(session: DetectionSession) -> List[dict]:
    return [
        {
            "index": i,
            "snapshot_id": entry.image_handle.snapshot_id,
            "filename": entry.image_handle.filename,
            "captured_at": entry.captured_at,
            "size_bytes": len(entry.image_handle.data or b""),
        }
        for i, entry in enumerate(session.history)
    ]


@router.get("/snapshots", response_model=List[SnapshotInfo])
async def list_snapshots(request: Request):
    return _snapshot_infos(_session(request))


def _check_index(session: DetectionSession, index: int) -> None:
    if not 0 <= index < len(session.history):
        raise HTTPException(status_code=404, detail=f"Snapshot {index} not found")


@router.get("/snapshots/{index}")
async def download_snapshot(request: Request, index: int):
    session = _session(request)
    _check_index(session, index)
    snap = session.history[index].image_handle
    return Response(
        content=snap.data,
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{snap.filename}"'},
    )


@router.delete("/snapshots/{index}", status_code=204)
async def delete_snapshot(request: Request, index: int):
    session = _session(request)
    _check_index(session, index)
    session.remove_snapshot(index)
    return Response(status_code=204)
