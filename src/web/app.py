"""
FastAPI application factory for the expression monitor status API.

Routes:
- /api/health, /api/results, /api/status -> REST API
- /api/v1/healthz, /api/v1/results -> versioned aliases
"""

from __future__ import annotations

from fastapi import FastAPI

from .routes import api


def create_app() -> FastAPI:
    """Create the FastAPI app and wire routes."""
    app = FastAPI(
        title="Expression Monitor",
        version="0.1.0",
        description="Periodic face detection and emotion recognition results",
    )

    app.include_router(api.router, prefix="/api")
    app.include_router(api.router_v1)

    return app
