"""Authentication endpoints: email/password and identity providers."""

from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from clipdex.config import settings
from clipdex.database import get_db
from clipdex.models.schemas import (
    UserCreate,
    UserLogin,
    UserResponse,
    UserUpdate,
    Token,
    RegisterResponse,
    MessageResponse,
    ProviderInfo,
    ProvidersResponse
)
from clipdex.models.user import User
from clipdex.services import identity_service
from clipdex.services.auth_service import AuthService
from clipdex.services.identity_service import IdentityProviderError, InvalidStateError
from clipdex.services.logging_service import logger
from clipdex.middleware.auth import get_current_user, security, extract_token
from clipdex.utils.validators import sanitize_input

router = APIRouter()


def _client_info(request: Request) -> tuple:
    ip_address = request.client.host if request.client else None
    return ip_address, request.headers.get("user-agent")


def _set_session_cookie(response, token: str) -> None:
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=settings.is_production
    )


def _login_redirect(**params) -> RedirectResponse:
    return RedirectResponse(f"{settings.FRONTEND_URL}/?{urlencode(params)}", status_code=status.HTTP_302_FOUND)


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Register a new user with email and password.

    Requirements:
    - Unique email and username
    - Username 3-50 chars, letters/digits/underscore/hyphen, starting with a letter
    - Password of at least 8 characters

    Returns:
        JWT access token and user data
    """
    user, error = AuthService.register_user(db, user_data)

    if error:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error
        )

    ip_address, user_agent = _client_info(request)
    access_token = AuthService.create_user_session(db, user, ip_address, user_agent)

    return RegisterResponse(
        message="User created successfully",
        user_id=user.id,
        access_token=access_token,
        token_type="bearer",
        user=UserResponse.model_validate(user)
    )


@router.post("/login", response_model=Token)
async def login(
    login_data: UserLogin,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Login with username/email and password.

    The token is returned in the body and set as the session cookie.
    """
    user, error = AuthService.authenticate_user(db, login_data)

    if error:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error,
            headers={"WWW-Authenticate": "Bearer"},
        )

    ip_address, user_agent = _client_info(request)
    access_token = AuthService.create_user_session(db, user, ip_address, user_agent)
    logger.info("User logged in", user_id=user.id)

    token = Token(
        access_token=access_token,
        token_type="bearer",
        user=UserResponse.model_validate(user)
    )
    response = JSONResponse(content=token.model_dump(mode="json"))
    _set_session_cookie(response, access_token)
    return response


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    credentials=Depends(security),
    db: Session = Depends(get_db)
):
    """Logout current user by invalidating the session."""
    token = extract_token(request, credentials)
    if not token or not AuthService.logout_user(db, token):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session not found"
        )

    response = JSONResponse(content=MessageResponse(message="Successfully logged out").model_dump())
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current authenticated user's information."""
    return UserResponse.model_validate(current_user)


@router.patch("/me", response_model=UserResponse)
async def update_current_user(
    update_data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update the public profile (display name, bio, website, avatar)."""
    for field, value in update_data.model_dump(exclude_unset=True).items():
        if isinstance(value, str):
            value = sanitize_input(value, max_length=1000) or None
        # display_name is required; null or blank keeps the current one
        if value is None and field == "display_name":
            continue
        setattr(current_user, field, value)

    db.commit()
    db.refresh(current_user)
    return UserResponse.model_validate(current_user)


# ============================================
# Identity providers
# ============================================

@router.get("/providers", response_model=ProvidersResponse)
async def list_providers():
    """Identity providers configured for sign-in."""
    return ProvidersResponse(providers=[
        ProviderInfo(id=p.id, name=p.name, login_url=f"/api/auth/{p.id}/login")
        for p in identity_service.enabled_providers()
    ])


@router.get("/{provider}/login")
async def provider_login(provider: str, request: Request):
    """
    Redirect to the provider's consent screen.

    The state is stored in this browser's session; the callback only
    accepts it from the same browser.
    """
    identity_provider = identity_service.get_provider(provider)
    if identity_provider is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown identity provider")

    return await identity_service.authorize_redirect(request, identity_provider)


@router.get("/{provider}/callback")
async def provider_callback(
    provider: str,
    request: Request,
    code: str = None,
    state: str = None,
    db: Session = Depends(get_db)
):
    """
    Complete sign-in with an identity provider.

    Links or creates the user, starts a session and redirects to the
    dashboard. Failures redirect to the login page with ``error`` set.
    """
    identity_provider = identity_service.get_provider(provider)
    if identity_provider is None:
        return _login_redirect(error="unknown_provider")

    if not code or not state:
        return _login_redirect(error="missing_code")

    try:
        profile = await identity_service.fetch_profile(request, identity_provider)
    except InvalidStateError:
        logger.warning("Identity provider state rejected", provider=provider)
        return _login_redirect(error="invalid_state")
    except IdentityProviderError as e:
        logger.warning("Identity provider sign-in failed", provider=provider, error=str(e))
        return _login_redirect(error=str(e))

    user = AuthService.get_or_create_oauth_user(db, identity_provider.id, profile)
    if not user.is_active:
        return _login_redirect(error="Account is deactivated")

    ip_address, user_agent = _client_info(request)
    access_token = AuthService.create_user_session(db, user, ip_address, user_agent)
    logger.info("User logged in", user_id=user.id, provider=provider)

    response = _login_redirect(token=access_token)
    _set_session_cookie(response, access_token)
    return response
