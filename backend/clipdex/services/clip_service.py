"""Clip persistence: import, upload bookkeeping, listings and stats."""

from datetime import datetime
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from clipdex.models.clip import Clip, ClipVisibility, YouTubeVisibility
from clipdex.models.clip_schemas import ImportVideo
from clipdex.models.platform_connection import Platform, PlatformConnection
from clipdex.models.user import User
from clipdex.platforms.youtube.youtube_api import watch_url
from clipdex.services.logging_service import logger
from clipdex.utils.validators import sanitize_input


class ClipService:
    """Service for clip operations."""

    @staticmethod
    def existing_video_ids(db: Session, platform: Platform, video_ids: Sequence[str]) -> set:
        """Return which of ``video_ids`` already have a clip on ``platform``."""
        if not video_ids:
            return set()
        rows = db.query(Clip.external_video_id).filter(
            Clip.platform == platform,
            Clip.external_video_id.in_(list(video_ids))
        ).all()
        return {row[0] for row in rows}

    @staticmethod
    def import_videos(
        db: Session,
        connection: PlatformConnection,
        videos: List[ImportVideo]
    ) -> Tuple[List[Clip], int]:
        """
        Create clips for remote videos that are not imported yet.

        A video is skipped when its (platform, external id) pair exists
        locally or appears earlier in the same batch. Stats are placeholders
        until the next sync.

        Returns:
            Tuple of (created clips, skipped count)
        """
        platform = connection.platform
        seen = ClipService.existing_video_ids(db, platform, [v.external_video_id for v in videos])

        imported = []
        skipped = 0
        for video in videos:
            if video.external_video_id in seen:
                skipped += 1
                continue
            seen.add(video.external_video_id)

            clip = Clip(
                user_id=connection.user_id,
                platform_connection_id=connection.id,
                platform=platform,
                external_video_id=video.external_video_id,
                external_url=watch_url(video.external_video_id),
                display_title=sanitize_input(video.display_title, max_length=255),
                description=video.description or "",
                game=video.game,
                tags=video.tags,
                thumbnail_url=video.thumbnail_url,
                duration=0,
                view_count=0,
                youtube_visibility=YouTubeVisibility.UNLISTED,
                visibility=ClipVisibility.PUBLIC,
                published_at=video.published_at
            )
            db.add(clip)
            imported.append(clip)

        db.commit()
        for clip in imported:
            db.refresh(clip)

        logger.info(
            "Clips imported",
            connection_id=connection.id,
            imported=len(imported),
            skipped=skipped
        )
        return imported, skipped

    @staticmethod
    def create_uploaded_clip(
        db: Session,
        connection: PlatformConnection,
        video_id: str,
        title: str,
        description: str,
        game: str,
        tags: List[str],
        thumbnail_url: str,
        duration: int,
        visibility: ClipVisibility,
        youtube_visibility: YouTubeVisibility
    ) -> Clip:
        """Persist the clip for a video that was just uploaded."""
        clip = Clip(
            user_id=connection.user_id,
            platform_connection_id=connection.id,
            platform=connection.platform,
            external_video_id=video_id,
            external_url=watch_url(video_id),
            display_title=title,
            description=description or "",
            game=game,
            tags=tags,
            thumbnail_url=thumbnail_url,
            duration=duration,
            view_count=0,
            visibility=visibility,
            youtube_visibility=youtube_visibility,
            published_at=datetime.utcnow()
        )
        db.add(clip)
        db.commit()
        db.refresh(clip)

        logger.info("Clip uploaded", clip_id=clip.id, video_id=video_id, user_id=connection.user_id)
        return clip

    @staticmethod
    def list_user_clips(db: Session, user_id: UUID, limit: Optional[int] = None) -> List[Clip]:
        """The user's own clips, newest first, regardless of visibility."""
        query = db.query(Clip).filter(Clip.user_id == user_id).order_by(Clip.uploaded_at.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def list_public_clips(db: Session, user_id: UUID) -> List[Clip]:
        """Clips shown on the public profile: PUBLIC only, featured first, newest first."""
        return db.query(Clip).filter(
            Clip.user_id == user_id,
            Clip.visibility == ClipVisibility.PUBLIC
        ).order_by(Clip.is_featured.desc(), Clip.uploaded_at.desc()).all()

    @staticmethod
    def user_stats(db: Session, user_id: UUID) -> dict:
        """Totals for the dashboard header."""
        total_clips, total_views, games = db.query(
            func.count(Clip.id),
            func.coalesce(func.sum(Clip.view_count), 0),
            func.count(func.distinct(Clip.game))
        ).filter(Clip.user_id == user_id).one()

        featured = db.query(func.count(Clip.id)).filter(
            Clip.user_id == user_id,
            Clip.is_featured.is_(True)
        ).scalar()

        return {
            "total_clips": total_clips,
            "total_views": int(total_views),
            "games": games,
            "featured": featured,
        }

    @staticmethod
    def profile_stats(clips: List[Clip]) -> dict:
        return {
            "clips": len(clips),
            "views": sum(clip.view_count or 0 for clip in clips),
            "games": len({clip.game for clip in clips}),
        }

    @staticmethod
    def get_public_profile(db: Session, username: str) -> Tuple[Optional[User], List[Clip]]:
        """Look up a profile by username together with its public clips."""
        user = db.query(User).filter(User.username == username, User.is_active.is_(True)).first()
        if not user:
            return None, []
        return user, ClipService.list_public_clips(db, user.id)

    @staticmethod
    def neighbours(clips: List[Clip], clip_id: UUID) -> Tuple[Optional[int], Optional[Clip], Optional[Clip]]:
        """
        Position of a clip in a profile listing and its previous/next clips.

        Returns:
            (index, previous, next); index is None when the clip is not listed
        """
        for index, clip in enumerate(clips):
            if clip.id == clip_id:
                previous = clips[index - 1] if index > 0 else None
                following = clips[index + 1] if index + 1 < len(clips) else None
                return index, previous, following
        return None, None, None
