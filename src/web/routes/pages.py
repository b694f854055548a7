"""
Page routes for the detection viewer web interface.
"""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


@router.get("/", response_class=HTMLResponse)
def dashboard(request: Request):
    """Viewer page: live frame, controls, statistics and snapshot history."""
    session = request.app.state.session
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "status": session.status(),
            "settings": session.settings.to_dict(),
            "categories": list(session.settings.category_filters.keys()),
        },
    )
