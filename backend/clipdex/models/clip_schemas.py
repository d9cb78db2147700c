"""Pydantic schemas for clip endpoints."""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from clipdex.models.clip import ClipVisibility, YouTubeVisibility
from clipdex.models.platform_connection import Platform
from clipdex.models.schemas import PublicUserResponse
from clipdex.utils.validators import clean_tags

GAMES = [
    "Valorant",
    "League of Legends",
    "CS2",
    "Fortnite",
    "Apex Legends",
    "Overwatch 2",
    "Call of Duty",
    "Minecraft",
    "Other",
]


class ClipResponse(BaseModel):
    """Schema for clip response."""
    id: UUID
    user_id: UUID
    platform_connection_id: Optional[UUID] = None
    platform: Platform
    external_video_id: str
    external_url: str
    embed_url: str
    display_title: str
    description: str
    game: str
    tags: List[str]
    thumbnail_url: Optional[str] = None
    duration: int
    view_count: int
    visibility: ClipVisibility
    youtube_visibility: Optional[YouTubeVisibility] = None
    is_featured: bool
    uploaded_at: datetime
    published_at: Optional[datetime] = None
    updated_at: datetime

    class Config:
        from_attributes = True


class ClipUpdate(BaseModel):
    """
    Editable clip fields.

    Every field present in the request replaces the stored value.
    """
    display_title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    game: Optional[str] = Field(None, min_length=1, max_length=100)
    tags: Optional[List[str]] = None
    is_featured: Optional[bool] = None
    visibility: Optional[ClipVisibility] = None

    @field_validator('tags')
    @classmethod
    def strip_tags(cls, v):
        if v is None:
            return v
        return clean_tags(v)


class ClipUpdateResponse(BaseModel):
    success: bool = True
    clip: ClipResponse


class ClipDeleteRequest(BaseModel):
    """Optional body of DELETE /api/clips/{id}."""
    delete_from_youtube: bool = False


class ClipDeleteResponse(BaseModel):
    success: bool = True
    deleted_from_youtube: bool


class ImportVideo(BaseModel):
    """A remote video selected for import."""
    external_video_id: str = Field(..., min_length=1, max_length=100)
    display_title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = ""
    game: str = Field(..., min_length=1, max_length=100)
    tags: List[str] = []
    thumbnail_url: Optional[str] = None
    published_at: Optional[datetime] = None

    @field_validator('tags')
    @classmethod
    def strip_tags(cls, v):
        return clean_tags(v)


class ImportRequest(BaseModel):
    platform_connection_id: Optional[UUID] = None
    videos: List[ImportVideo] = []


class ImportResponse(BaseModel):
    success: bool = True
    imported: int
    skipped: int


class UploadedClip(BaseModel):
    id: UUID
    video_id: str
    url: str
    thumbnail_url: str


class UploadResponse(BaseModel):
    success: bool = True
    clip: UploadedClip


class ClipStats(BaseModel):
    """Dashboard totals for the current user."""
    total_clips: int
    total_views: int
    games: int
    featured: int


class GamesResponse(BaseModel):
    games: List[str]


class ProfileStats(BaseModel):
    clips: int
    views: int
    games: int


class PublicProfileResponse(BaseModel):
    """Public profile: user fields, stats and PUBLIC clips."""
    user: PublicUserResponse
    stats: ProfileStats
    clips: List[ClipResponse]
