"""Middleware configuration for dashboard API.

This module sets up middleware for logging, error handling and security headers.
"""

import logging
import time
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from clinic_roster.dashboard.api.security import SecurityHeadersMiddleware

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request/response logging.

    Logs method, path, status and timing only. Headers are never logged, so
    bearer tokens stay out of the logs.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        logger.info(
            f"{request.method} {request.url.path} - "
            f"Client: {request.client.host if request.client else 'unknown'}"
        )

        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = f"{process_time:.3f}"

        logger.info(
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.3f}s"
        )
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turns any exception escaping a route into a 500 JSON body."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"Unhandled error on {request.method} {request.url.path}: {str(e)}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error"}
            )


def setup_middleware(app, enable_hsts: bool = False) -> None:
    """Setup application middleware.

    Middleware Order (outermost first):
        1. LoggingMiddleware - Logs requests/responses, sets X-Process-Time
        2. SecurityHeadersMiddleware - Adds security headers, including to error bodies
        3. ErrorHandlingMiddleware - Handles errors
    """
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=enable_hsts)
    app.add_middleware(LoggingMiddleware)
