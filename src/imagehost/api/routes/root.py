"""Index page endpoint."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from imagehost.api.dependencies import get_imagehost_app
from imagehost.api.errors import PlainTextError
from imagehost.api.routes.upload import UPLOAD_PATH

if TYPE_CHECKING:
    from imagehost.app import Application

router = APIRouter(tags=["ui"])
logger = logging.getLogger(__name__)


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def get_index(app: Application = Depends(get_imagehost_app)) -> HTMLResponse:
    """Render the upload page."""
    context = {
        "upload_path": UPLOAD_PATH,
        "form_field": app.config.upload.form_field,
        "version": app.version,
    }
    try:
        page = app.index_page.render(context)
    except Exception as exc:
        logger.error("Failed to render %s: %s", app.index_page.name, exc, exc_info=True)
        raise PlainTextError("Failed to render page") from exc
    return HTMLResponse(page)
