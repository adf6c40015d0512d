"""
FastAPI application factory and API package.

Run with:
    uvicorn requirement_audit.api:app --reload --port 8000

Or via main.py:
    python -m requirement_audit --serve
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from requirement_audit.config import get_settings
from requirement_audit.api.routes import catalog_router, health_router
from requirement_audit.api.sprint_routes import sprint_router
from requirement_audit.exceptions import (
    NotFoundError,
    PartialCatalogUpdateError,
    SprintStateError,
    StorageError,
)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Application factory — create and configure the FastAPI instance."""
    settings = get_settings()

    application = FastAPI(
        title="Requirement Audit Planner API",
        description="Risk scoring and audit-cycle planning for hierarchical requirement catalogs",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS: allow the frontend (adjust origins in production)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(health_router, tags=["Health"])
    application.include_router(catalog_router, prefix="/api/catalogs", tags=["Catalogs"])
    application.include_router(sprint_router, prefix="/api/sprints", tags=["Sprints"])

    @application.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @application.exception_handler(SprintStateError)
    async def sprint_conflict(request: Request, exc: SprintStateError):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @application.exception_handler(PartialCatalogUpdateError)
    async def partial_update(request: Request, exc: PartialCatalogUpdateError):
        logger.error(f"Partial catalog update on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"detail": str(exc), "updated": exc.updated, "failed": exc.failed},
        )

    @application.exception_handler(StorageError)
    async def storage_failure(request: Request, exc: StorageError):
        logger.error(f"Storage failure on {request.url.path}: {exc}")
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    logger.info(f"Configured {settings.app_name} API (storage: {settings.storage_backend})")
    return application


# Module-level instance for `uvicorn requirement_audit.api:app`
app = create_app()
