"""Main FastAPI application for the Clinic Roster dashboard.

This module sets up the FastAPI application with all routes, middleware,
and configuration for the dashboard API.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clinic_roster.dashboard.api.dependencies import get_document_store
from clinic_roster.dashboard.api.logging_config import setup_logging
from clinic_roster.dashboard.api.middleware import setup_middleware
from clinic_roster.dashboard.api.routes import health, organizations
from clinic_roster.infrastructure.settings import APP_VERSION, settings

setup_logging(use_json=settings.json_logs, log_level=settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    logger.info(f"{settings.app_name} API starting up (environment: {settings.environment})")
    # Raises ValueError for the development secret in production
    auth_config = settings.auth_config
    logger.info(f"Accepting tokens signed with {', '.join(auth_config.algorithms)}")
    logger.info("API documentation available at /api/docs")
    yield
    store = get_document_store()
    if hasattr(store, "close"):
        store.close()
    logger.info(f"{settings.app_name} API shutting down...")


app = FastAPI(
    title="Clinic Roster API",
    description="Organization directory and doctor roster API for the clinical-records dashboard",
    version=APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["Authorization", "Content-Type"],
    expose_headers=["X-Process-Time"],
)

setup_middleware(app, enable_hsts=settings.enable_hsts)

app.include_router(health.router)
app.include_router(organizations.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Clinic Roster API",
        "version": APP_VERSION,
        "docs": "/api/docs",
        "health": "/api/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "clinic_roster.dashboard.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
