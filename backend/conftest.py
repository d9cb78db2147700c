"""
Pytest configuration and shared fixtures for ClipDex tests.
"""

import os

# Settings are read at import time, so the test environment is set first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key")
os.environ.setdefault("GOOGLE_CLIENT_ID", "test-google-client-id")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "test-google-client-secret")
os.environ.setdefault("DISCORD_CLIENT_ID", "test-discord-client-id")
os.environ.setdefault("DISCORD_CLIENT_SECRET", "test-discord-client-secret")
os.environ.setdefault("APP_BASE_URL", "http://testserver")
os.environ.setdefault("FRONTEND_URL", "http://dashboard.test")
os.environ.setdefault("SENTRY_DSN", "")

import pytest
from typing import Generator, Dict, List
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from unittest.mock import Mock, patch

from clipdex.main import app
from clipdex.database import Base, get_db
from clipdex.models.user import User
from clipdex.models.platform_connection import Platform, PlatformConnection
from clipdex.models.clip import Clip, ClipVisibility, YouTubeVisibility
from clipdex.services.auth_service import AuthService
from clipdex.utils.security import hash_password


# Database setup
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def test_db() -> Generator[Session, None, None]:
    """
    Create a fresh in-memory SQLite database for each test.
    """
    engine = create_engine(
        SQLALCHEMY_TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()

    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(test_db: Session) -> TestClient:
    """
    Create a test client with overridden database dependency.
    """
    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# User fixtures
def _make_user(db: Session, username: str, email: str, password: str) -> User:
    user = User(
        username=username,
        display_name=username.capitalize(),
        email=email,
        hashed_password=hash_password(password),
        bio=f"{username} plays too much",
        is_active=True,
        created_at=datetime.utcnow()
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def test_user(test_db: Session) -> User:
    """
    Create a test user.
    """
    return _make_user(test_db, "alice", "alice@example.com", "testpassword123")


@pytest.fixture
def test_user2(test_db: Session) -> User:
    """
    Create a second test user for ownership tests.
    """
    return _make_user(test_db, "bob", "bob@example.com", "testpassword456")


@pytest.fixture
def auth_headers(test_db: Session, test_user: User) -> Dict[str, str]:
    """
    Create authentication headers backed by a real session.
    """
    access_token = AuthService.create_user_session(test_db, test_user)
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def auth_headers2(test_db: Session, test_user2: User) -> Dict[str, str]:
    """
    Create authentication headers for second user.
    """
    access_token = AuthService.create_user_session(test_db, test_user2)
    return {"Authorization": f"Bearer {access_token}"}


# Platform connection fixtures
def _make_connection(db: Session, user: User, platform: Platform = Platform.YOUTUBE) -> PlatformConnection:
    connection = PlatformConnection(
        user_id=user.id,
        platform=platform,
        platform_user_id=f"UC_{user.username}",
        platform_username=f"@{user.username}",
        channel_name=f"{user.display_name} Gaming",
        channel_url=f"https://www.youtube.com/channel/UC_{user.username}",
        avatar_url="https://yt3.ggpht.com/avatar.jpg",
        access_token=f"access-{user.username}",
        refresh_token=f"refresh-{user.username}",
        expires_at=datetime.utcnow() + timedelta(hours=1)
    )
    db.add(connection)
    db.commit()
    db.refresh(connection)
    return connection


@pytest.fixture
def youtube_connection(test_db: Session, test_user: User) -> PlatformConnection:
    """
    YouTube connection owned by test_user.
    """
    return _make_connection(test_db, test_user)


@pytest.fixture
def other_connection(test_db: Session, test_user2: User) -> PlatformConnection:
    """
    YouTube connection owned by test_user2.
    """
    return _make_connection(test_db, test_user2)


@pytest.fixture
def twitch_connection(test_db: Session, test_user: User) -> PlatformConnection:
    return _make_connection(test_db, test_user, Platform.TWITCH)


# Clip fixtures
@pytest.fixture
def clips(test_db: Session, test_user: User, youtube_connection: PlatformConnection) -> List[Clip]:
    """
    Create clips for test_user, oldest first.

    The third clip is featured and the fourth is private.
    """
    now = datetime.utcnow()
    specs = [
        ("vid_ace", "Valorant ace", "Valorant", ClipVisibility.PUBLIC, False, 120),
        ("vid_clutch", "1v4 clutch", "CS2", ClipVisibility.PUBLIC, False, 80),
        ("vid_pentakill", "Pentakill", "League of Legends", ClipVisibility.PUBLIC, True, 300),
        ("vid_secret", "Unfinished edit", "Valorant", ClipVisibility.PRIVATE, False, 5),
    ]

    created = []
    for index, (video_id, title, game, visibility, featured, views) in enumerate(specs):
        clip = Clip(
            user_id=test_user.id,
            platform_connection_id=youtube_connection.id,
            platform=Platform.YOUTUBE,
            external_video_id=video_id,
            external_url=f"https://www.youtube.com/watch?v={video_id}",
            display_title=title,
            description=f"{title} description",
            game=game,
            tags=[game],
            thumbnail_url=f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg",
            duration=30 + index,
            view_count=views,
            youtube_visibility=YouTubeVisibility.UNLISTED,
            visibility=visibility,
            is_featured=featured,
            uploaded_at=now - timedelta(days=len(specs) - index)
        )
        test_db.add(clip)
        created.append(clip)

    test_db.commit()
    for clip in created:
        test_db.refresh(clip)
    return created


@pytest.fixture
def other_clip(test_db: Session, test_user2: User, other_connection: PlatformConnection) -> Clip:
    """
    A public clip owned by test_user2.
    """
    clip = Clip(
        user_id=test_user2.id,
        platform_connection_id=other_connection.id,
        platform=Platform.YOUTUBE,
        external_video_id="vid_bob",
        external_url="https://www.youtube.com/watch?v=vid_bob",
        display_title="Bob's clip",
        description="",
        game="Fortnite",
        tags=[],
        duration=10,
        view_count=1,
        visibility=ClipVisibility.PUBLIC
    )
    test_db.add(clip)
    test_db.commit()
    test_db.refresh(clip)
    return clip


# YouTube client mock
@pytest.fixture
def mock_youtube():
    """
    Replace the YouTube client built from stored connections.

    The mocked credentials carry no refreshed token, so no write-back happens.
    """
    api = Mock()
    api.credentials = Mock(token=None, expiry=None)
    api.upload_video.return_value = "new_video_id"
    api.get_video_details.return_value = {
        "duration": 90,
        "thumbnail_url": "https://i.ytimg.com/vi/new_video_id/maxresdefault.jpg"
    }
    api.list_my_videos.return_value = []

    with patch("clipdex.platforms.youtube.youtube_api.YouTubeAPI.from_connection", return_value=api):
        yield api
