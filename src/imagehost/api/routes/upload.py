"""Image upload endpoint."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from imagehost.api.dependencies import REQUEST_ID_HEADER, get_imagehost_app, get_request_context
from imagehost.errors import BadRequestError
from imagehost.pipeline import RequestContext, encode_image_info

if TYPE_CHECKING:
    from imagehost.app import Application

router = APIRouter(tags=["upload"])
logger = logging.getLogger(__name__)

UPLOAD_PATH = "/api/1/uploadImage"


@router.post(UPLOAD_PATH)
async def upload_image(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    app: Application = Depends(get_imagehost_app),
) -> Response:
    """Store a multipart image upload and return its blob key and serving URL.

    The response body is exactly ``{"Key": ..., "Url": ...}``. Failures are
    plain text: 400 when the upload is missing or unreadable, 500 when a
    storage or resolver step fails.
    """
    try:
        form = await request.form()
    except Exception as exc:
        logger.error("Failed to parse multipart form: %s", exc, extra=ctx.log_extra)
        raise BadRequestError("Failed to parse multipart form", stage="extract", cause=exc) from exc

    try:
        info = await app.pipeline.handle_upload(ctx, form)
    finally:
        await form.close()

    body = encode_image_info(info)
    return Response(
        content=body,
        media_type="application/json",
        headers={REQUEST_ID_HEADER: ctx.request_id},
    )
