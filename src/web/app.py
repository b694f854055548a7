"""
FastAPI application factory for the detection viewer.

Routes:
- / -> Jinja2 viewer page
- /api/* -> REST API (controls, statistics, frames, snapshots)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Dict, Optional, Type

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from models.config import Config
from runtime.context import RuntimeContext, build_context
from session.errors import (
    CameraError,
    DetectionInvocationFailure,
    InvalidImageError,
    InvalidModeError,
    ModelLoadFailure,
    ModelNotReady,
    NoFrameSourceError,
    ViewerError,
)
from .routes import api, pages

ERROR_STATUS: Dict[Type[ViewerError], int] = {
    InvalidImageError: 400,
    InvalidModeError: 409,
    NoFrameSourceError: 409,
    CameraError: 409,
    DetectionInvocationFailure: 502,
    ModelNotReady: 503,
    ModelLoadFailure: 503,
}


def _status_for(exc: ViewerError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500


def _log_load_result(task: "asyncio.Task[None]") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logging.error(f"Model loading failed: {exc}")


def create_app(config: Optional[Config] = None, ctx: Optional[RuntimeContext] = None) -> FastAPI:
    """
    Create the FastAPI app and wire routes.

    The session is built from config unless a ready RuntimeContext is given
    (tests pass one with fake collaborators).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        context = ctx or build_context(config or Config())
        app.state.ctx = context
        app.state.session = context.session
        app.state.presenter = context.presenter

        load_task = None
        if not context.adapter.is_ready:
            load_task = asyncio.create_task(context.adapter.load())
            load_task.add_done_callback(_log_load_result)
        try:
            yield
        finally:
            if load_task is not None and not load_task.done():
                load_task.cancel()
            await context.session.shutdown()

    app = FastAPI(
        title="Live Object Detection Viewer",
        version="0.1.0",
        description="Webcam and still-image object detection with live overlays",
        lifespan=lifespan,
    )

    @app.exception_handler(ViewerError)
    async def viewer_error_handler(request: Request, exc: ViewerError):
        status_code = _status_for(exc)
        if status_code >= 500:
            logging.warning(f"{request.url.path}: {exc}")
        return JSONResponse(
            {"detail": str(exc), "error": type(exc).__name__},
            status_code=status_code,
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse({"detail": str(exc)}, status_code=422)

    app.include_router(api.router, prefix="/api")
    app.include_router(pages.router)

    return app
