"""Authentication dependencies for protected routes."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from clipdex.config import settings
from clipdex.database import get_db
from clipdex.models.user import User
from clipdex.services.auth_service import AuthService
from clipdex.services.error_tracking import error_tracker
from clipdex.utils.security import decode_access_token

# Bearer token scheme; the session cookie is accepted when the header is absent
security = HTTPBearer(auto_error=False)


def extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    """Return the bearer token, falling back to the session cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def _resolve_user(db: Session, token: Optional[str]) -> tuple:
    if not token:
        return None, "Unauthorized"

    payload = decode_access_token(token)
    if not payload:
        return None, "Invalid authentication credentials"

    return AuthService.validate_session(db, token)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Dependency to get the current authenticated user.

    Usage in routes:
        @router.get("/protected")
        def protected_route(current_user: User = Depends(get_current_user)):
            return {"user": current_user.username}

    Raises:
        HTTPException: 401 if authentication fails
    """
    user, error = _resolve_user(db, extract_token(request, credentials))
    if error or not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error or "Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    error_tracker.set_user_context(str(user.id), user.username)
    return user

