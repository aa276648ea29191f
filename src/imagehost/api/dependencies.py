"""FastAPI dependency helpers."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, cast
from uuid import uuid4

from fastapi import Depends, Request, status

from imagehost.api.errors import APIError, APIErrorCode
from imagehost.pipeline import RequestContext

if TYPE_CHECKING:
    from imagehost.app import Application

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


async def get_imagehost_app(request: Request) -> Application:
    """Get the ImageHost Application instance from request state."""
    app = cast("Application | None", getattr(request.app.state, "imagehost", None))
    if app is None:
        raise APIError(
            "Application not initialized",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code=APIErrorCode.APP_NOT_INITIALIZED,
        )
    return app


def _request_id_from(request: Request) -> str:
    supplied = request.headers.get(REQUEST_ID_HEADER)
    if supplied and _REQUEST_ID_PATTERN.match(supplied):
        return supplied
    return uuid4().hex


async def get_request_context(
    request: Request,
    app: Application = Depends(get_imagehost_app),
) -> RequestContext:
    """Build the per-request context handed to the upload pipeline."""
    return RequestContext(request_id=_request_id_from(request), upload=app.config.upload)
