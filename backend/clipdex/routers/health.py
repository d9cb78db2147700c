"""Health check endpoints for load balancers and uptime monitors."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime

from clipdex.database import get_db
from clipdex.config import settings
from clipdex.services.logging_service import logger

router = APIRouter()


@router.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """
    Health check with a database connectivity check.

    Returns 200 when the database answers, 503 otherwise.
    """
    checks = {"database": False}
    errors = []

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = True
    except SQLAlchemyError as e:
        logger.error("Health check database query failed", error=str(e))
        errors.append(f"Database: {str(e)}")

    body = {
        "status": "healthy" if all(checks.values()) else "unhealthy",
        "checks": checks,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "timestamp": datetime.utcnow().isoformat()
    }

    if errors:
        body["errors"] = errors
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)

    return body
