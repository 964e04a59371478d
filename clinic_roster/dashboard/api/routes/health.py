"""Health check endpoint for dashboard API."""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter

from clinic_roster.dashboard.api.dependencies import StorageDep
from clinic_roster.dashboard.models.health import DatabaseHealth, HealthResponse
from clinic_roster.domain.ports import DocumentStorePort
from clinic_roster.infrastructure.settings import APP_VERSION

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


def check_database_health(storage: DocumentStorePort) -> DatabaseHealth:
    """Ping the document store and report its status.

    Security Impact:
        - Only checks connectivity, no sensitive data exposed
    """
    db_type = getattr(storage, "db_type", "unknown")

    start_time = time.time()
    if storage.is_available():
        response_time = (time.time() - start_time) * 1000
        return DatabaseHealth(status="connected", type=db_type, response_time_ms=round(response_time, 2))

    return DatabaseHealth(status="disconnected", type=db_type, response_time_ms=None)


@router.get("/health", response_model=HealthResponse)
def health_check(storage: StorageDep) -> HealthResponse:
    """Health check endpoint.

    The service stays usable without the store (the directory degrades to
    its seed list), so a disconnected store reports ``degraded``.
    """
    db_health = check_database_health(storage)
    overall_status = "healthy" if db_health.status == "connected" else "degraded"

    return HealthResponse(
        status=overall_status,
        timestamp=datetime.now(timezone.utc),
        version=APP_VERSION,
        database=db_health
    )
