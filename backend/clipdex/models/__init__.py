"""Database models."""

from clipdex.models.user import User, UserSession, OAuthAccount
from clipdex.models.platform_connection import Platform, PlatformConnection
from clipdex.models.clip import Clip, ClipVisibility, YouTubeVisibility

__all__ = [
    "User",
    "UserSession",
    "OAuthAccount",
    "Platform",
    "PlatformConnection",
    "Clip",
    "ClipVisibility",
    "YouTubeVisibility",
]
