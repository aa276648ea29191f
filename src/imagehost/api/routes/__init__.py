"""API route registration."""

from __future__ import annotations

from fastapi import FastAPI

from imagehost.api.routes import health, root, upload


def register_routes(app: FastAPI) -> None:
    """Register all API routers."""
    app.include_router(health.router)
    app.include_router(upload.router)
    app.include_router(root.router)
