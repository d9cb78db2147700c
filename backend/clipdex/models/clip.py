"""Clip model: local metadata for a remotely hosted video."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    Column, String, Integer, Boolean, DateTime, ForeignKey, Text, Uuid, UniqueConstraint, Enum, JSON
)
from sqlalchemy.orm import relationship

from clipdex.database import Base
from clipdex.models.platform_connection import Platform


class ClipVisibility(str, enum.Enum):
    """Publication state on ClipDex, independent of the platform's own privacy."""

    PUBLIC = "PUBLIC"
    UNLISTED = "UNLISTED"
    PRIVATE = "PRIVATE"


class YouTubeVisibility(str, enum.Enum):
    """Privacy status of the video on YouTube itself."""

    PUBLIC = "PUBLIC"
    UNLISTED = "UNLISTED"
    PRIVATE = "PRIVATE"


class Clip(Base):
    """A video clip owned by one user and hosted on an external platform."""

    __tablename__ = "clips"
    __table_args__ = (
        UniqueConstraint("platform", "external_video_id", name="uq_clip_platform_external_video"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    platform_connection_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("platform_connections.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Remote video
    platform = Column(Enum(Platform, name="platform"), nullable=False)
    external_video_id = Column(String(100), nullable=False)
    external_url = Column(Text, nullable=False)
    thumbnail_url = Column(Text, nullable=True)
    duration = Column(Integer, default=0, nullable=False)  # seconds
    view_count = Column(Integer, default=0, nullable=False)
    youtube_visibility = Column(Enum(YouTubeVisibility, name="youtube_visibility"), nullable=True)

    # Local metadata
    display_title = Column(String(255), nullable=False)
    description = Column(Text, default="", nullable=False)
    game = Column(String(100), nullable=False, index=True)
    tags = Column(JSON, default=list, nullable=False)
    visibility = Column(
        Enum(ClipVisibility, name="clip_visibility"),
        default=ClipVisibility.PUBLIC,
        nullable=False,
        index=True
    )
    is_featured = Column(Boolean, default=False, nullable=False)

    uploaded_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    published_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="clips")
    platform_connection = relationship("PlatformConnection", back_populates="clips")

    @property
    def embed_url(self) -> str:
        if self.platform == Platform.YOUTUBE:
            return f"https://www.youtube.com/embed/{self.external_video_id}"
        return self.external_url

    @property
    def duration_label(self) -> str:
        minutes, seconds = divmod(self.duration or 0, 60)
        return f"{minutes}:{seconds:02d}"

    def __repr__(self):
        return f"<Clip(id={self.id}, platform={self.platform}, external_video_id={self.external_video_id})>"
