"""Security middleware for production deployment."""

from fastapi import Request, Response, status
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable
import time

from clipdex.config import settings
from clipdex.services.logging_service import logger


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    The clip viewer embeds YouTube players, so frames are allowed from the
    YouTube embed hosts only.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        if settings.is_production:
            # Force HTTPS for 1 year
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        csp_directives = [
            "default-src 'self'",
            "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net",  # viewer navigation script, docs UI
            "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net",
            "img-src 'self' data: https:",
            "frame-src https://www.youtube.com https://www.youtube-nocookie.com",
            "frame-ancestors 'none'",
            "base-uri 'self'",
            "form-action 'self'"
        ]
        response.headers["Content-Security-Policy"] = "; ".join(csp_directives)
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=(), payment=()"

        # Never cache responses that carry tokens or private data
        if request.url.path.startswith(("/api/auth", "/api/platforms", "/api/clips")):
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, private"
            response.headers["Pragma"] = "no-cache"

        return response


class HTTPSRedirectMiddleware(BaseHTTPMiddleware):
    """
    Redirect HTTP requests to HTTPS in production.

    Honours ``X-Forwarded-Proto`` from the load balancer.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if settings.is_production:
            scheme = request.headers.get("x-forwarded-proto", request.url.scheme)
            if scheme == "http":
                https_url = request.url.replace(scheme="https")
                return RedirectResponse(str(https_url), status_code=status.HTTP_301_MOVED_PERMANENTLY)

        return await call_next(request)


class AuditLogMiddleware(BaseHTTPMiddleware):
    """
    Log security-relevant events for audit trail.

    Logs authentication requests, platform connection changes and
    state-changing clip operations.
    """

    def __init__(self, app):
        super().__init__(app)
        self.sensitive_paths = [
            "/api/auth",
            "/api/platforms",
            "/api/clips"
        ]

    def _should_log(self, path: str, method: str) -> bool:
        """
        Determine if request should be logged.

        Args:
            path: Request path
            method: HTTP method

        Returns:
            True if should log
        """
        if path.startswith("/api/auth"):
            return True

        if method in ["POST", "PUT", "PATCH", "DELETE"]:
            return any(path.startswith(sensitive) for sensitive in self.sensitive_paths)

        return False

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self._should_log(request.url.path, request.method):
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)

        logger.info(
            "Audit",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            ip=request.client.host if request.client else "unknown",
            duration_ms=round((time.perf_counter() - start) * 1000, 1)
        )

        return response
