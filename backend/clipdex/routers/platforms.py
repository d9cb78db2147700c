"""Platform connection endpoints (YouTube OAuth, disconnect, remote video listing)."""

from urllib.parse import urlencode
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from clipdex.config import settings
from clipdex.database import get_db
from clipdex.models.platform_connection import Platform, PlatformConnection
from clipdex.models.platform_schemas import (
    PlatformConnectionResponse,
    PlatformInfo,
    PlatformListResponse,
    DisconnectRequest,
    ConnectUrlResponse,
    RemoteVideo,
    RemoteVideoListResponse
)
from clipdex.models.schemas import SuccessResponse
from clipdex.models.user import User
from clipdex.middleware.auth import get_current_user
from clipdex.platforms.youtube.youtube_api import YouTubeAPI, YouTubeAPIError
from clipdex.services.clip_service import ClipService
from clipdex.services.error_tracking import capture_exception
from clipdex.services.logging_service import logger
from clipdex.services.platform_service import (
    PLATFORM_CATALOGUE,
    SUPPORTED_PLATFORMS,
    PlatformConnectError,
    PlatformService
)

router = APIRouter()


def get_owned_connection(db: Session, connection_id: UUID, user: User) -> PlatformConnection:
    """
    Load a platform connection the user owns.

    Raises:
        HTTPException: 404 if it does not exist, 403 if another user owns it
    """
    connection = PlatformService.get_connection(db, connection_id)
    if not connection:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Platform connection not found")
    if connection.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return connection


def _platforms_redirect(**params) -> RedirectResponse:
    return RedirectResponse(
        f"{settings.FRONTEND_URL}/platforms?{urlencode(params)}",
        status_code=status.HTTP_302_FOUND
    )


@router.get("", response_model=PlatformListResponse)
def list_platforms(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Platform catalogue with the caller's connection for each entry."""
    connections = {
        connection.platform: connection
        for connection in db.query(PlatformConnection).filter(
            PlatformConnection.user_id == current_user.id
        ).all()
    }

    platforms = []
    for entry in PLATFORM_CATALOGUE:
        connection = connections.get(entry["id"])
        platforms.append(PlatformInfo(
            **entry,
            connection=PlatformConnectionResponse.model_validate(connection) if connection else None
        ))

    return PlatformListResponse(platforms=platforms)


@router.get("/connect")
def connect_platform(
    platform: str = Query(...),
    redirect: bool = Query(True),
    current_user: User = Depends(get_current_user)
):
    """
    Start the OAuth flow for a platform.

    - **platform**: Platform id, only YOUTUBE is supported
    - **redirect**: Set to false to receive the consent URL as JSON
    """
    try:
        target = Platform(platform.upper())
    except ValueError:
        target = None

    if target not in SUPPORTED_PLATFORMS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Platform not supported yet")

    url = PlatformService.build_connect_url(current_user.id, target)
    if not redirect:
        return ConnectUrlResponse(url=url)
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


@router.get("/callback")
def platform_callback(
    code: str = None,
    state: str = None,
    error: str = None,
    db: Session = Depends(get_db)
):
    """
    OAuth callback from Google.

    The user is identified by the signed state, not by a session, so the
    redirect works even when the browser holds no API token.
    """
    if error:
        return _platforms_redirect(error=error)

    if not code or not state:
        return _platforms_redirect(error="missing_code")

    try:
        PlatformService.complete_connection(db, code, state)
    except PlatformConnectError as e:
        logger.warning("Platform connection failed", error=str(e))
        return _platforms_redirect(error=str(e))
    except YouTubeAPIError as e:
        logger.error("Platform connection failed", error=str(e), status_code=e.status_code)
        return _platforms_redirect(error=str(e))
    except Exception as e:
        # Token exchange errors come from oauthlib with varied types
        logger.error("Platform connection failed", error=str(e), exc_info=True)
        capture_exception(e, context={"step": "platform_callback"})
        return _platforms_redirect(error="Failed to connect platform")

    return _platforms_redirect(success="true")


@router.post("/disconnect", response_model=SuccessResponse)
def disconnect_platform(
    request_data: DisconnectRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Remove a connection. Videos on the platform and the grant itself are untouched."""
    if not request_data.platform_connection_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing platform connection ID")

    connection = get_owned_connection(db, request_data.platform_connection_id, current_user)
    PlatformService.disconnect(db, connection)

    return SuccessResponse()


@router.get("/youtube/videos", response_model=RemoteVideoListResponse)
def list_youtube_videos(
    platform_connection_id: UUID = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Recent uploads of the connected channel, flagged when already imported."""
    connection = get_owned_connection(db, platform_connection_id, current_user)
    if connection.platform != Platform.YOUTUBE:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Not a YouTube connection")

    api = YouTubeAPI.from_connection(connection)
    try:
        videos = api.list_my_videos()
    except YouTubeAPIError as e:
        logger.error("Failed to list YouTube videos", connection_id=connection.id, error=str(e))
        if e.status_code == 401:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="YouTube authorization expired. Please reconnect your account."
            )
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to fetch YouTube videos")
    finally:
        PlatformService.sync_tokens(db, connection, api)

    imported = ClipService.existing_video_ids(db, Platform.YOUTUBE, [video["id"] for video in videos])

    return RemoteVideoListResponse(videos=[
        RemoteVideo(**video, already_imported=video["id"] in imported)
        for video in videos
    ])
