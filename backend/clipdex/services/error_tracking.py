"""
Error Tracking Service

Reports unexpected failures to Sentry when SENTRY_DSN is set. Events are
scrubbed of OAuth codes, platform tokens and session credentials before
they leave the process. Without a DSN, exceptions are only logged.
"""

from typing import Optional, Dict, Any
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from clipdex.config import settings
from clipdex.services.logging_service import logger

FILTERED = "[Filtered]"

SENSITIVE_KEYS = frozenset({
    "authorization",
    "cookie",
    "set-cookie",
    "clipdex_session",
    "password",
    "access_token",
    "refresh_token",
    "code",
    "state",
})

IGNORED_PATHS = ("/health",)


def _scrub_mapping(values: Any) -> Any:
    if not isinstance(values, dict):
        return values
    return {
        key: FILTERED if key.lower() in SENSITIVE_KEYS else _scrub_mapping(value)
        for key, value in values.items()
    }


def _scrub_query_string(query: Any) -> Any:
    if not isinstance(query, str) or not query:
        return query
    pairs = []
    for pair in query.split("&"):
        key, sep, _ = pair.partition("=")
        pairs.append(f"{key}={FILTERED}" if sep and key.lower() in SENSITIVE_KEYS else pair)
    return "&".join(pairs)


def scrub_event(event: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Prepare a Sentry event for sending.

    Returns None for events that should be dropped: health checks and
    HTTPExceptions, which are expected 4xx/5xx responses.
    """
    request = event.get("request")
    if request:
        url = request.get("url", "")
        if any(path in url for path in IGNORED_PATHS):
            return None

        for field in ("headers", "cookies", "data"):
            if field in request:
                request[field] = _scrub_mapping(request[field])
        if "query_string" in request:
            request["query_string"] = _scrub_query_string(request["query_string"])

    for exception in event.get("exception", {}).get("values", []):
        if "HTTPException" in exception.get("type", ""):
            return None

    return event


class ErrorTracker:
    """Centralized error tracking."""

    def __init__(self, dsn: Optional[str] = None):
        self.sentry_enabled = False

        sentry_dsn = dsn if dsn is not None else settings.SENTRY_DSN
        if sentry_dsn:
            self._initialize_sentry(sentry_dsn)

    def _initialize_sentry(self, dsn: str):
        try:
            sentry_sdk.init(
                dsn=dsn,
                environment=settings.ENVIRONMENT,
                release=f"clipdex@{settings.APP_VERSION}",
                traces_sample_rate=0.1,
                integrations=[
                    FastApiIntegration(),
                    SqlalchemyIntegration()
                ],
                before_send=lambda event, hint: scrub_event(event),
                send_default_pii=False
            )
        except Exception as e:
            logger.error("Failed to initialize Sentry", error=str(e))
            return

        self.sentry_enabled = True
        logger.info("Sentry error tracking enabled", environment=settings.ENVIRONMENT)

    def capture_exception(
        self,
        exception: Exception,
        context: Optional[Dict[str, Any]] = None,
        tags: Optional[Dict[str, str]] = None
    ):
        """
        Log an exception and report it to Sentry.

        Args:
            exception: The exception to capture
            context: Request or operation details (clip id, platform, ...)
            tags: Searchable tags such as ``operation``
        """
        logger.error(
            "Exception captured",
            error=str(exception),
            error_type=type(exception).__name__,
            **(context or {})
        )

        if not self.sentry_enabled:
            return

        with sentry_sdk.new_scope() as scope:
            if context:
                scope.set_context("clipdex", context)
            for key, value in (tags or {}).items():
                scope.set_tag(key, value)
            sentry_sdk.capture_exception(exception)

    def set_user_context(self, user_id: str, username: Optional[str] = None):
        """Attach the authenticated user to subsequent events."""
        if self.sentry_enabled:
            sentry_sdk.set_user({"id": user_id, "username": username})


# Global instance
error_tracker = ErrorTracker()


def capture_exception(exception: Exception, **kwargs):
    """Capture an exception."""
    error_tracker.capture_exception(exception, **kwargs)
