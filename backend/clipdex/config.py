"""Application configuration management."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite:///./clipdex.db"
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20

    # Security
    SECRET_KEY: str = "change-me"
    JWT_SECRET_KEY: str = "change-me-too"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours
    OAUTH_STATE_EXPIRE_MINUTES: int = 10
    BCRYPT_ROUNDS: int = 10
    SESSION_COOKIE_NAME: str = "clipdex_session"
    OAUTH_SESSION_COOKIE_NAME: str = "clipdex_oauth"

    # CORS
    ALLOWED_ORIGINS: str = "http://localhost:8501"

    # Public URLs
    APP_BASE_URL: str = "http://localhost:8000"
    FRONTEND_URL: str = "http://localhost:8501"

    # Google (YouTube connections and Google sign-in)
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    # Google may return previously granted scopes alongside the requested ones
    GOOGLE_RELAX_TOKEN_SCOPE: bool = True

    # Identity providers
    DISCORD_CLIENT_ID: str = ""
    DISCORD_CLIENT_SECRET: str = ""
    TWITCH_CLIENT_ID: str = ""
    TWITCH_CLIENT_SECRET: str = ""

    # Uploads
    MAX_UPLOAD_SIZE_MB: int = 500
    ALLOWED_UPLOAD_CONTENT_TYPES: str = "video/mp4,video/webm,video/quicktime"

    # Observability
    LOG_LEVEL: str = "INFO"
    SENTRY_DSN: str = ""
    APP_VERSION: str = "1.0.0"

    # Application
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse ALLOWED_ORIGINS comma-separated string into list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    @property
    def allowed_upload_content_types_list(self) -> List[str]:
        """Parse ALLOWED_UPLOAD_CONTENT_TYPES into a list of MIME types."""
        return [t.strip() for t in self.ALLOWED_UPLOAD_CONTENT_TYPES.split(",") if t.strip()]

    @property
    def max_upload_size_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() in ("prod", "production")

    @property
    def platform_callback_url(self) -> str:
        """Redirect URI registered with Google for platform connections."""
        return f"{self.APP_BASE_URL.rstrip('/')}/api/platforms/callback"

    def provider_callback_url(self, provider: str) -> str:
        """Redirect URI registered with an identity provider."""
        return f"{self.APP_BASE_URL.rstrip('/')}/api/auth/{provider}/callback"


# Global settings instance
settings = Settings()
