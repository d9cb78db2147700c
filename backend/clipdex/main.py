"""FastAPI main application."""

import os

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from clipdex.config import settings
from clipdex.database import init_db
from clipdex.routers import auth, platforms, clips, pages, health
from clipdex.middleware import (
    SecurityHeadersMiddleware,
    HTTPSRedirectMiddleware,
    AuditLogMiddleware
)
from clipdex.services.error_tracking import capture_exception
from clipdex.services.logging_service import logger

# Create FastAPI application
app = FastAPI(
    title="ClipDex API",
    description="Gaming clip portfolio: YouTube connections, uploads, imports and public profiles",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(HTTPSRedirectMiddleware)
app.add_middleware(AuditLogMiddleware)

# Holds the OAuth state of identity-provider logins in progress
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    session_cookie=settings.OAUTH_SESSION_COOKIE_NAME,
    max_age=settings.OAUTH_STATE_EXPIRE_MINUTES * 60,
    same_site="lax",
    https_only=settings.is_production
)


# ============================================
# Error responses
# ============================================

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render every HTTP error as ``{"error": ..., "code": ...}``."""
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": f"{field}: {message}" if field else message}
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error", path=request.url.path, method=request.method, error=str(exc), exc_info=True)
    capture_exception(exc, context={"path": request.url.path, "method": request.method})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": str(exc) if settings.DEBUG else "Internal server error"}
    )


@app.on_event("startup")
async def startup_event():
    """Initialize application on startup."""
    if settings.is_production and (
        settings.SECRET_KEY.startswith("change-me") or settings.JWT_SECRET_KEY.startswith("change-me")
    ):
        raise RuntimeError("SECRET_KEY and JWT_SECRET_KEY must be set in production")

    # Read by oauthlib during the YouTube code exchange
    if settings.GOOGLE_RELAX_TOKEN_SCOPE:
        os.environ["OAUTHLIB_RELAX_TOKEN_SCOPE"] = "1"

    # Create tables if they don't exist
    init_db()

    logger.info(
        "Application started",
        environment=settings.ENVIRONMENT,
        database=settings.DATABASE_URL.split("@")[1] if "@" in settings.DATABASE_URL else "configured",
        version=settings.APP_VERSION
    )


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutting down")


# Include routers; pages last so /{username} does not shadow API paths
app.include_router(health.router, tags=["Health"])
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(platforms.router, prefix="/api/platforms", tags=["Platforms"])
app.include_router(clips.router, prefix="/api/clips", tags=["Clips"])
app.include_router(pages.router, tags=["Pages"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "clipdex.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
