"""Server-rendered public pages: landing, profiles and the clip viewer."""

from pathlib import Path
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from clipdex.config import settings
from clipdex.database import get_db
from clipdex.models.clip_schemas import ClipResponse, ProfileStats, PublicProfileResponse
from clipdex.models.schemas import PublicUserResponse
from clipdex.services.clip_service import ClipService
from clipdex.services import identity_service
from clipdex.utils.validators import RESERVED_USERNAMES

router = APIRouter()

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


def _not_found(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "404.html",
        {"app_name": "ClipDex"},
        status_code=status.HTTP_404_NOT_FOUND
    )


@router.get("/api/profiles/{username}", response_model=PublicProfileResponse)
def get_profile_json(username: str, db: Session = Depends(get_db)):
    """JSON form of a public profile; only PUBLIC clips are included."""
    user, clips = ClipService.get_public_profile(db, username)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return PublicProfileResponse(
        user=PublicUserResponse.model_validate(user),
        stats=ProfileStats(**ClipService.profile_stats(clips)),
        clips=[ClipResponse.model_validate(clip) for clip in clips]
    )


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def landing_page(request: Request):
    return templates.TemplateResponse(request, "index.html", {
        "app_name": "ClipDex",
        "dashboard_url": settings.FRONTEND_URL,
        "providers": identity_service.enabled_providers(),
    })


@router.get("/{username}", response_class=HTMLResponse, include_in_schema=False)
def profile_page(username: str, request: Request, db: Session = Depends(get_db)):
    """
    Public profile page.

    Featured clips are shown in their own row above the full grid.
    """
    if username.lower() in RESERVED_USERNAMES:
        return _not_found(request)

    user, clips = ClipService.get_public_profile(db, username)
    if not user:
        return _not_found(request)

    return templates.TemplateResponse(request, "profile.html", {
        "app_name": "ClipDex",
        "profile": user,
        "stats": ClipService.profile_stats(clips),
        "featured": [clip for clip in clips if clip.is_featured],
        "clips": clips,
    })


@router.get("/{username}/clips/{clip_id}", response_class=HTMLResponse, include_in_schema=False)
def clip_viewer_page(username: str, clip_id: str, request: Request, db: Session = Depends(get_db)):
    """Full-screen viewer for one public clip with previous/next navigation."""
    try:
        clip_uuid = UUID(clip_id)
    except ValueError:
        return _not_found(request)

    user, clips = ClipService.get_public_profile(db, username)
    if not user:
        return _not_found(request)

    index, previous, following = ClipService.neighbours(clips, clip_uuid)
    if index is None:
        return _not_found(request)

    return templates.TemplateResponse(request, "viewer.html", {
        "app_name": "ClipDex",
        "profile": user,
        "clip": clips[index],
        "position": index + 1,
        "total": len(clips),
        "previous": previous,
        "next": following,
    })
