"""Health endpoint."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from imagehost.api.dependencies import get_imagehost_app

if TYPE_CHECKING:
    from imagehost.app import Application

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    status: str
    object_store: str
    platform: str


@router.get("/health", response_model=HealthResponse)
async def get_health(
    app: Application = Depends(get_imagehost_app),
) -> HealthResponse | JSONResponse:
    """Liveness/readiness check; 503 when the object store is unreachable."""
    try:
        store_ok = await app.platform.store.ping()
    except Exception as exc:
        logger.warning("Object store ping raised: %s", exc)
        store_ok = False

    response = HealthResponse(
        status="healthy" if store_ok else "degraded",
        object_store="ok" if store_ok else "unavailable",
        platform=app.platform.name,
    )
    if not store_ok:
        return JSONResponse(status_code=503, content=response.model_dump(mode="json"))
    return response
