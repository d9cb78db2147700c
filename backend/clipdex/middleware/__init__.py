"""Middleware modules for FastAPI application."""

from clipdex.middleware.security_middleware import (
    SecurityHeadersMiddleware,
    HTTPSRedirectMiddleware,
    AuditLogMiddleware
)

__all__ = [
    "SecurityHeadersMiddleware",
    "HTTPSRedirectMiddleware",
    "AuditLogMiddleware"
]
