"""Platform connection lifecycle: connect, callback upsert, token sync."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from clipdex.models.platform_connection import Platform, PlatformConnection
from clipdex.models.user import User
from clipdex.platforms.youtube import auth as youtube_auth
from clipdex.platforms.youtube.youtube_api import YouTubeAPI
from clipdex.services.logging_service import logger
from clipdex.utils.security import create_state_token, decode_state_token

PLATFORM_CATALOGUE = [
    {
        "id": Platform.YOUTUBE,
        "name": "YouTube",
        "description": "Upload clips directly to your YouTube channel",
        "available": True,
    },
    {
        "id": Platform.TWITCH,
        "name": "Twitch",
        "description": "Import clips and VODs from your Twitch channel",
        "available": False,
    },
    {
        "id": Platform.VIMEO,
        "name": "Vimeo",
        "description": "Upload to Vimeo for professional hosting",
        "available": False,
    },
]

SUPPORTED_PLATFORMS = {entry["id"] for entry in PLATFORM_CATALOGUE if entry["available"]}


class PlatformConnectError(Exception):
    """The OAuth callback could not complete; nothing was stored."""


class PlatformService:
    """Service for platform connection operations."""

    @staticmethod
    def build_connect_url(user_id: UUID, platform: Platform) -> str:
        """
        Consent-screen URL for connecting a platform.

        The state is signed so the callback can trust the user id it carries.
        """
        state = create_state_token({"user_id": str(user_id), "platform": platform.value})
        return youtube_auth.get_authorization_url(state)

    @staticmethod
    def complete_connection(db: Session, code: str, state: str) -> PlatformConnection:
        """
        Finish the OAuth flow and upsert the connection.

        Every remote call happens before the database write, so a failure
        leaves no partial state behind.

        Raises:
            PlatformConnectError: If the state is invalid or any remote step fails
        """
        claims = decode_state_token(state)
        if not claims or not claims.get("user_id") or not claims.get("platform"):
            raise PlatformConnectError("invalid_state")

        try:
            user_id = UUID(claims["user_id"])
            platform = Platform(claims["platform"])
        except ValueError:
            raise PlatformConnectError("invalid_state")

        if platform not in SUPPORTED_PLATFORMS:
            raise PlatformConnectError("Platform not supported yet")

        if db.query(User.id).filter(User.id == user_id, User.is_active.is_(True)).first() is None:
            raise PlatformConnectError("invalid_state")

        credentials = youtube_auth.exchange_code(code)
        channel = YouTubeAPI(credentials).get_my_channel()
        if not channel:
            raise PlatformConnectError("No YouTube channel found")

        return PlatformService.upsert_connection(
            db,
            user_id=user_id,
            platform=platform,
            channel=channel,
            access_token=credentials.token,
            refresh_token=credentials.refresh_token,
            expires_at=credentials.expiry
        )

    @staticmethod
    def upsert_connection(
        db: Session,
        user_id: UUID,
        platform: Platform,
        channel: dict,
        access_token: str,
        refresh_token: Optional[str],
        expires_at: Optional[datetime]
    ) -> PlatformConnection:
        """
        Create the (user, platform) connection or refresh its tokens.

        A reconnect without a new refresh token keeps the stored one.
        """
        connection = db.query(PlatformConnection).filter(
            PlatformConnection.user_id == user_id,
            PlatformConnection.platform == platform
        ).first()

        if connection is None:
            connection = PlatformConnection(
                user_id=user_id,
                platform=platform,
                platform_user_id=channel["channel_id"],
                platform_username=channel.get("custom_url") or "",
                channel_name=channel.get("title") or "",
                channel_url=channel.get("channel_url"),
                avatar_url=channel.get("thumbnail_url") or "",
                access_token=access_token,
                refresh_token=refresh_token,
                expires_at=expires_at
            )
            db.add(connection)
            logger.info("Platform connected", user_id=user_id, platform=platform.value)
        else:
            connection.access_token = access_token
            if refresh_token:
                connection.refresh_token = refresh_token
            connection.expires_at = expires_at
            connection.last_sync_at = datetime.utcnow()
            logger.info("Platform reconnected", user_id=user_id, platform=platform.value)

        db.commit()
        db.refresh(connection)
        return connection

    @staticmethod
    def sync_tokens(db: Session, connection: PlatformConnection, api: YouTubeAPI) -> None:
        """
        Persist a token the client library refreshed during a call.

        Args:
            db: Database session
            connection: Connection the client was built from
            api: Client whose credentials may have been refreshed
        """
        credentials = api.credentials
        token = getattr(credentials, "token", None)
        if not isinstance(token, str) or not token or token == connection.access_token:
            return

        expiry = getattr(credentials, "expiry", None)
        connection.access_token = token
        connection.expires_at = expiry if isinstance(expiry, datetime) else None
        connection.last_sync_at = datetime.utcnow()
        db.commit()
        logger.info("Platform token refreshed", connection_id=connection.id)

    @staticmethod
    def get_connection(db: Session, connection_id: UUID) -> Optional[PlatformConnection]:
        return db.query(PlatformConnection).filter(PlatformConnection.id == connection_id).first()

    @staticmethod
    def disconnect(db: Session, connection: PlatformConnection) -> None:
        """
        Delete the local connection record.

        Remote videos and the Google grant are left untouched; clips keep
        their rows with the connection reference cleared.
        """
        connection_id = connection.id
        db.delete(connection)
        db.commit()
        logger.info("Platform disconnected", connection_id=connection_id)
