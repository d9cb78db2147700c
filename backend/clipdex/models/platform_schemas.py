"""Pydantic schemas for platform connection endpoints."""

from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from clipdex.models.platform_connection import Platform


class PlatformConnectionResponse(BaseModel):
    """A connected platform account, without its tokens."""
    id: UUID
    platform: Platform
    platform_user_id: str
    platform_username: Optional[str] = None
    channel_name: Optional[str] = None
    channel_url: Optional[str] = None
    avatar_url: Optional[str] = None
    expires_at: Optional[datetime] = None
    last_sync_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PlatformInfo(BaseModel):
    """Catalogue entry shown on the platforms page."""
    id: Platform
    name: str
    description: str
    available: bool
    connection: Optional[PlatformConnectionResponse] = None


class PlatformListResponse(BaseModel):
    platforms: List[PlatformInfo]


class DisconnectRequest(BaseModel):
    platform_connection_id: Optional[UUID] = None


class ConnectUrlResponse(BaseModel):
    url: str


class RemoteVideo(BaseModel):
    """A video on the connected channel, as offered for import."""
    id: str
    title: str
    description: str = ""
    thumbnail_url: Optional[str] = None
    published_at: Optional[datetime] = None
    duration: int = 0
    already_imported: bool = False


class RemoteVideoListResponse(BaseModel):
    videos: List[RemoteVideo]
