"""Clip endpoints: listing, editing, deletion, import and upload."""

import json
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from clipdex.config import settings
from clipdex.database import get_db
from clipdex.models.clip import Clip, ClipVisibility, YouTubeVisibility
from clipdex.models.clip_schemas import (
    GAMES,
    ClipResponse,
    ClipUpdate,
    ClipUpdateResponse,
    ClipDeleteRequest,
    ClipDeleteResponse,
    ImportRequest,
    ImportResponse,
    UploadedClip,
    UploadResponse,
    ClipStats,
    GamesResponse
)
from clipdex.models.platform_connection import Platform
from clipdex.models.user import User
from clipdex.middleware.auth import get_current_user
from clipdex.platforms.youtube.youtube_api import YouTubeAPI, YouTubeAPIError, watch_url
from clipdex.routers.platforms import get_owned_connection
from clipdex.services.clip_service import ClipService
from clipdex.services.error_tracking import capture_exception
from clipdex.services.logging_service import logger
from clipdex.services.platform_service import PlatformService
from clipdex.utils.validators import parse_tags, sanitize_input

router = APIRouter()


def get_owned_clip(db: Session, clip_id: UUID, user: User) -> Clip:
    """
    Load a clip the user owns.

    Raises:
        HTTPException: 404 if it does not exist, 403 if another user owns it
    """
    clip = db.query(Clip).filter(Clip.id == clip_id).first()
    if not clip:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Clip not found")
    if clip.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return clip


async def _read_delete_options(request: Request) -> ClipDeleteRequest:
    """Parse the optional DELETE body; anything unreadable means a local delete."""
    body = await request.body()
    if not body:
        return ClipDeleteRequest()
    try:
        return ClipDeleteRequest.model_validate(json.loads(body))
    except (ValueError, ValidationError):
        return ClipDeleteRequest()


# ============================================
# Listing
# ============================================

@router.get("", response_model=List[ClipResponse])
def list_clips(
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """All clips of the current user, newest first, whatever their visibility."""
    return ClipService.list_user_clips(db, current_user.id, limit=limit)


@router.get("/stats", response_model=ClipStats)
def get_clip_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return ClipStats(**ClipService.user_stats(db, current_user.id))


@router.get("/games", response_model=GamesResponse)
def list_games():
    """Game catalogue offered by the upload and import forms."""
    return GamesResponse(games=GAMES)


# ============================================
# Import and upload
# ============================================

@router.post("/import", response_model=ImportResponse)
def import_clips(
    import_data: ImportRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Import videos that already exist on a connected channel.

    - **platform_connection_id**: Connection the videos belong to
    - **videos**: Descriptors of the selected videos

    Videos that are already imported are skipped, not duplicated.
    """
    if not import_data.platform_connection_id or not import_data.videos:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid request")

    connection = get_owned_connection(db, import_data.platform_connection_id, current_user)
    if connection.platform != Platform.YOUTUBE:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="YouTube platform not connected")

    imported, skipped = ClipService.import_videos(db, connection, import_data.videos)

    return ImportResponse(imported=len(imported), skipped=skipped)


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_clip(
    file: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    game: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    youtube_visibility: str = Form("unlisted"),
    visibility: str = Form("public"),
    platform_connection_id: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Upload a video file to the connected YouTube channel and record it as a clip.

    The file is validated before anything is sent to YouTube, and the clip
    row is written only after the upload succeeded.
    """
    title = sanitize_input(title, max_length=100)
    game = sanitize_input(game, max_length=100)
    if not file or not title or not game or not platform_connection_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")

    try:
        privacy = YouTubeVisibility(youtube_visibility.upper())
        clip_visibility = ClipVisibility(visibility.upper())
        connection_id = UUID(platform_connection_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid request")

    if file.size is not None and file.size > settings.max_upload_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE_MB}MB"
        )

    if file.content_type not in settings.allowed_upload_content_types_list:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unsupported file type")

    connection = PlatformService.get_connection(db, connection_id)
    if not connection or connection.platform != Platform.YOUTUBE:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="YouTube platform not connected")
    if connection.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    data = await file.read()
    if len(data) > settings.max_upload_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE_MB}MB"
        )

    tag_list = parse_tags(tags)
    tag_list.append(game)
    description = description or ""

    logger.info(
        "Upload request",
        user_id=current_user.id,
        filename=file.filename,
        size_mb=round(len(data) / (1024 * 1024), 2),
        game=game
    )

    api = YouTubeAPI.from_connection(connection)
    try:
        video_id = api.upload_video(
            data,
            mime_type=file.content_type,
            title=title,
            description=description or f"{game} gameplay clip uploaded via ClipDex",
            tags=tag_list,
            privacy_status=privacy.value.lower()
        )
        details = api.get_video_details(video_id)
    except YouTubeAPIError as e:
        logger.error("YouTube upload failed", user_id=current_user.id, error=str(e), status_code=e.status_code)
        if e.status_code == 403:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="YouTube API quota exceeded or permissions denied. Please try again later."
            )
        if e.status_code == 401:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="YouTube authentication expired. Please reconnect your account."
            )
        capture_exception(e, context={"step": "upload"}, tags={"platform": "youtube"})
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e) or "Upload failed")
    finally:
        PlatformService.sync_tokens(db, connection, api)

    clip = ClipService.create_uploaded_clip(
        db,
        connection,
        video_id=video_id,
        title=title,
        description=description,
        game=game,
        tags=tag_list,
        thumbnail_url=details["thumbnail_url"],
        duration=details["duration"],
        visibility=clip_visibility,
        youtube_visibility=privacy
    )

    return UploadResponse(clip=UploadedClip(
        id=clip.id,
        video_id=video_id,
        url=watch_url(video_id),
        thumbnail_url=details["thumbnail_url"]
    ))


# ============================================
# Single clip
# ============================================

@router.get("/{clip_id}", response_model=ClipResponse)
def get_clip(
    clip_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return get_owned_clip(db, clip_id, current_user)


@router.patch("/{clip_id}", response_model=ClipUpdateResponse)
def update_clip(
    clip_id: UUID,
    update_data: ClipUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Update clip metadata.

    Only fields present in the request body change; each one replaces the
    stored value.
    """
    clip = get_owned_clip(db, clip_id, current_user)

    for field, value in update_data.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        setattr(clip, field, value)

    db.commit()
    db.refresh(clip)
    logger.info("Clip updated", clip_id=clip.id, user_id=current_user.id)

    return ClipUpdateResponse(clip=ClipResponse.model_validate(clip))


@router.delete("/{clip_id}", response_model=ClipDeleteResponse)
async def delete_clip(
    clip_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Delete a clip, optionally removing the video from YouTube first.

    Body (optional): ``{"delete_from_youtube": true}``. When the remote
    delete fails the clip is kept and a ``YOUTUBE_DELETE_FAILED`` error is
    returned.
    """
    options = await _read_delete_options(request)
    clip = get_owned_clip(db, clip_id, current_user)
    deleted_remote = options.delete_from_youtube and clip.platform == Platform.YOUTUBE

    if deleted_remote:
        connection = clip.platform_connection
        if connection is None:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={
                    "error": "Failed to delete from YouTube: platform is no longer connected",
                    "code": "YOUTUBE_DELETE_FAILED"
                }
            )

        api = YouTubeAPI.from_connection(connection)
        try:
            api.delete_video(clip.external_video_id)
        except YouTubeAPIError as e:
            logger.error("Failed to delete from YouTube", clip_id=clip.id, error=str(e))
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={"error": f"Failed to delete from YouTube: {e}", "code": "YOUTUBE_DELETE_FAILED"}
            )
        finally:
            PlatformService.sync_tokens(db, connection, api)

        logger.info("Video deleted from YouTube", video_id=clip.external_video_id)

    db.delete(clip)
    db.commit()
    logger.info("Clip deleted", clip_id=clip_id, user_id=current_user.id)

    return ClipDeleteResponse(deleted_from_youtube=deleted_remote)
