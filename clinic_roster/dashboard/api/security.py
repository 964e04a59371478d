"""Security middleware for dashboard API.

Roster payloads carry protected health information, so every response is
marked non-cacheable in addition to the usual hardening headers.

Security Impact:
    - Prevents MIME sniffing and framing of API responses
    - Keeps PHI out of shared and browser caches
    - Enforces HTTPS in production when HSTS is enabled
"""

import logging
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "Cache-Control": "no-store",
}

# Swagger UI loads its own assets; docs pages keep the default policy
DOCS_PATHS = ("/api/docs", "/api/redoc", "/api/openapi.json")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware for adding security headers to every response."""

    def __init__(self, app, enable_hsts: bool = False):
        """Initialize security headers middleware.

        Parameters:
            app: FastAPI application
            enable_hsts: Enable HSTS header (use in production with HTTPS)
        """
        super().__init__(app)
        self.enable_hsts = enable_hsts

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        for header, value in SECURITY_HEADERS.items():
            if header == "Content-Security-Policy" and request.url.path.startswith(DOCS_PATHS):
                continue
            response.headers[header] = value

        if self.enable_hsts:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
