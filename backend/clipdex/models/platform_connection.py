"""Platform connection model: stored OAuth credentials for a video platform."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Uuid, UniqueConstraint, Enum
from sqlalchemy.orm import relationship

from clipdex.database import Base
from clipdex.services.credential_service import credential_service


class Platform(str, enum.Enum):
    """External video platforms a user can connect."""

    YOUTUBE = "YOUTUBE"
    TWITCH = "TWITCH"
    VIMEO = "VIMEO"


class PlatformConnection(Base):
    """
    OAuth link between a user and an external video platform account.

    Tokens are Fernet-encrypted at rest; use ``access_token`` and
    ``refresh_token`` to read or write the plaintext values.
    """

    __tablename__ = "platform_connections"
    __table_args__ = (
        UniqueConstraint("user_id", "platform", name="uq_platform_connection_user_platform"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    platform = Column(Enum(Platform, name="platform"), nullable=False)

    # Remote channel identity
    platform_user_id = Column(String(255), nullable=False)
    platform_username = Column(String(255), nullable=True)
    channel_name = Column(String(255), nullable=True)
    channel_url = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)

    # Credentials
    encrypted_access_token = Column(Text, nullable=False)
    encrypted_refresh_token = Column(Text, nullable=True)
    expires_at = Column(DateTime, nullable=True)

    last_sync_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="platforms")
    clips = relationship("Clip", back_populates="platform_connection")

    @property
    def access_token(self):
        return credential_service.decrypt_token(self.encrypted_access_token)

    @access_token.setter
    def access_token(self, value):
        self.encrypted_access_token = credential_service.encrypt_token(value)

    @property
    def refresh_token(self):
        return credential_service.decrypt_token(self.encrypted_refresh_token)

    @refresh_token.setter
    def refresh_token(self, value):
        self.encrypted_refresh_token = credential_service.encrypt_token(value)

    def __repr__(self):
        return f"<PlatformConnection(id={self.id}, user_id={self.user_id}, platform={self.platform})>"
