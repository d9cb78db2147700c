"""
Unit tests for platform connection endpoints.
"""

import os
import pytest
from datetime import datetime, timedelta
from urllib.parse import parse_qs, urlparse
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from unittest.mock import Mock, patch
from uuid import uuid4

from clipdex.config import settings
from clipdex.main import app
from clipdex.models.clip import Clip
from clipdex.models.platform_connection import Platform, PlatformConnection
from clipdex.models.user import User
from clipdex.platforms.youtube.youtube_api import YouTubeAPIError
from clipdex.services.platform_service import PlatformService
from clipdex.utils.security import create_state_token, decode_state_token

CHANNEL = {
    "channel_id": "UC_new_channel",
    "title": "Alice Plays",
    "custom_url": "@aliceplays",
    "thumbnail_url": "https://yt3.ggpht.com/alice.jpg",
    "channel_url": "https://youtube.com/channel/UC_new_channel",
}


def _state(user: User) -> str:
    return create_state_token({"user_id": str(user.id), "platform": "YOUTUBE"})


def _credentials(token: str = "new-access", refresh_token: str = "new-refresh") -> Mock:
    return Mock(token=token, refresh_token=refresh_token, expiry=datetime.utcnow() + timedelta(hours=1))


@pytest.mark.unit
@pytest.mark.platforms
class TestPlatformList:
    """Test GET /api/platforms."""

    def test_catalogue_without_connections(self, client: TestClient, auth_headers: dict):
        response = client.get("/api/platforms", headers=auth_headers)

        assert response.status_code == 200
        platforms = {p["id"]: p for p in response.json()["platforms"]}
        assert set(platforms) == {"YOUTUBE", "TWITCH", "VIMEO"}
        assert platforms["YOUTUBE"]["available"] is True
        assert platforms["TWITCH"]["available"] is False
        assert platforms["YOUTUBE"]["connection"] is None

    def test_catalogue_with_connection(
        self, client: TestClient, auth_headers: dict, youtube_connection: PlatformConnection
    ):
        response = client.get("/api/platforms", headers=auth_headers)

        youtube = next(p for p in response.json()["platforms"] if p["id"] == "YOUTUBE")
        assert youtube["connection"]["id"] == str(youtube_connection.id)
        assert youtube["connection"]["channel_name"] == "Alice Gaming"
        assert "access_token" not in youtube["connection"]
        assert "encrypted_access_token" not in youtube["connection"]

    def test_other_users_connections_hidden(
        self, client: TestClient, auth_headers: dict, other_connection: PlatformConnection
    ):
        response = client.get("/api/platforms", headers=auth_headers)

        youtube = next(p for p in response.json()["platforms"] if p["id"] == "YOUTUBE")
        assert youtube["connection"] is None


@pytest.mark.unit
@pytest.mark.platforms
class TestConnect:
    """Test the OAuth connect and callback flow."""

    def test_connect_returns_consent_url(self, client: TestClient, auth_headers: dict, test_user: User):
        response = client.get(
            "/api/platforms/connect",
            headers=auth_headers,
            params={"platform": "YOUTUBE", "redirect": "false"}
        )

        assert response.status_code == 200
        url = urlparse(response.json()["url"])
        params = parse_qs(url.query)
        assert url.netloc == "accounts.google.com"
        assert params["access_type"] == ["offline"]
        assert params["prompt"] == ["consent"]
        assert "youtube.upload" in params["scope"][0]
        assert "youtube.readonly" in params["scope"][0]
        assert "youtube.force-ssl" in params["scope"][0]
        assert params["redirect_uri"] == ["http://testserver/api/platforms/callback"]

        claims = decode_state_token(params["state"][0])
        assert claims["user_id"] == str(test_user.id)
        assert claims["platform"] == "YOUTUBE"

    def test_connect_redirects(self, client: TestClient, auth_headers: dict):
        response = client.get(
            "/api/platforms/connect",
            headers=auth_headers,
            params={"platform": "youtube"},
            follow_redirects=False
        )

        assert response.status_code == 302
        assert response.headers["location"].startswith("https://accounts.google.com/")

    @pytest.mark.parametrize("platform", ["TWITCH", "VIMEO", "myspace"])
    def test_connect_unsupported_platform(self, client: TestClient, auth_headers: dict, platform: str):
        response = client.get("/api/platforms/connect", headers=auth_headers, params={"platform": platform})

        assert response.status_code == 400
        assert response.json() == {"error": "Platform not supported yet"}

    def test_connect_requires_auth(self, client: TestClient):
        response = client.get("/api/platforms/connect", params={"platform": "YOUTUBE"})

        assert response.status_code == 401

    def test_callback_missing_code(self, client: TestClient):
        response = client.get("/api/platforms/callback", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "http://dashboard.test/platforms?error=missing_code"

    def test_callback_invalid_state(self, client: TestClient, test_db: Session):
        response = client.get(
            "/api/platforms/callback",
            params={"code": "abc", "state": "tampered"},
            follow_redirects=False
        )

        assert response.headers["location"].endswith("?error=invalid_state")
        assert test_db.query(PlatformConnection).count() == 0

    def test_callback_rejects_login_token_as_state(self, client: TestClient, auth_headers: dict, test_db: Session):
        token = auth_headers["Authorization"].split()[1]

        response = client.get(
            "/api/platforms/callback",
            params={"code": "abc", "state": token},
            follow_redirects=False
        )

        assert "error=invalid_state" in response.headers["location"]

    def test_callback_provider_denied(self, client: TestClient):
        response = client.get(
            "/api/platforms/callback",
            params={"error": "access_denied"},
            follow_redirects=False
        )

        assert response.headers["location"].endswith("?error=access_denied")

    def test_callback_creates_connection(self, client: TestClient, test_user: User, test_db: Session):
        api = Mock()
        api.get_my_channel.return_value = CHANNEL

        with patch("clipdex.platforms.youtube.auth.exchange_code", return_value=_credentials()), \
                patch("clipdex.services.platform_service.YouTubeAPI", return_value=api):
            response = client.get(
                "/api/platforms/callback",
                params={"code": "abc", "state": _state(test_user)},
                follow_redirects=False
            )

        assert response.status_code == 302
        assert response.headers["location"] == "http://dashboard.test/platforms?success=true"

        connection = test_db.query(PlatformConnection).one()
        assert connection.user_id == test_user.id
        assert connection.platform == Platform.YOUTUBE
        assert connection.platform_user_id == "UC_new_channel"
        assert connection.channel_name == "Alice Plays"
        assert connection.platform_username == "@aliceplays"
        assert connection.access_token == "new-access"
        assert connection.refresh_token == "new-refresh"
        assert connection.encrypted_access_token != "new-access"

    def test_reconnect_keeps_refresh_token(
        self, client: TestClient, test_user: User, youtube_connection: PlatformConnection, test_db: Session
    ):
        api = Mock()
        api.get_my_channel.return_value = CHANNEL

        with patch("clipdex.platforms.youtube.auth.exchange_code", return_value=_credentials("fresh", None)), \
                patch("clipdex.services.platform_service.YouTubeAPI", return_value=api):
            client.get(
                "/api/platforms/callback",
                params={"code": "abc", "state": _state(test_user)},
                follow_redirects=False
            )

        test_db.refresh(youtube_connection)
        assert test_db.query(PlatformConnection).count() == 1
        assert youtube_connection.access_token == "fresh"
        assert youtube_connection.refresh_token == "refresh-alice"
        assert youtube_connection.last_sync_at is not None

    def test_callback_without_channel(self, client: TestClient, test_user: User, test_db: Session):
        api = Mock()
        api.get_my_channel.return_value = None

        with patch("clipdex.platforms.youtube.auth.exchange_code", return_value=_credentials()), \
                patch("clipdex.services.platform_service.YouTubeAPI", return_value=api):
            response = client.get(
                "/api/platforms/callback",
                params={"code": "abc", "state": _state(test_user)},
                follow_redirects=False
            )

        assert "error=No+YouTube+channel+found" in response.headers["location"]
        assert test_db.query(PlatformConnection).count() == 0

    def test_callback_exchange_failure(self, client: TestClient, test_user: User, test_db: Session):
        with patch("clipdex.platforms.youtube.auth.exchange_code", side_effect=RuntimeError("invalid_grant")):
            response = client.get(
                "/api/platforms/callback",
                params={"code": "abc", "state": _state(test_user)},
                follow_redirects=False
            )

        assert "error=Failed+to+connect+platform" in response.headers["location"]
        assert test_db.query(PlatformConnection).count() == 0


@pytest.mark.unit
@pytest.mark.platforms
class TestDisconnect:
    """Test POST /api/platforms/disconnect."""

    def test_disconnect_keeps_clips(
        self, client: TestClient, auth_headers: dict, youtube_connection: PlatformConnection,
        clips: list, test_db: Session
    ):
        response = client.post(
            "/api/platforms/disconnect",
            headers=auth_headers,
            json={"platform_connection_id": str(youtube_connection.id)}
        )

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert test_db.query(PlatformConnection).count() == 0

        remaining = test_db.query(Clip).all()
        assert len(remaining) == len(clips)
        assert all(clip.platform_connection_id is None for clip in remaining)

    def test_disconnect_missing_id(self, client: TestClient, auth_headers: dict):
        response = client.post("/api/platforms/disconnect", headers=auth_headers, json={})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing platform connection ID"}

    def test_disconnect_unknown(self, client: TestClient, auth_headers: dict):
        response = client.post(
            "/api/platforms/disconnect",
            headers=auth_headers,
            json={"platform_connection_id": str(uuid4())}
        )

        assert response.status_code == 404

    def test_disconnect_foreign(
        self, client: TestClient, auth_headers: dict, other_connection: PlatformConnection, test_db: Session
    ):
        response = client.post(
            "/api/platforms/disconnect",
            headers=auth_headers,
            json={"platform_connection_id": str(other_connection.id)}
        )

        assert response.status_code == 403
        assert test_db.query(PlatformConnection).count() == 1


@pytest.mark.unit
@pytest.mark.platforms
class TestRemoteVideos:
    """Test GET /api/platforms/youtube/videos."""

    def test_lists_videos_with_import_flag(
        self, client: TestClient, auth_headers: dict, youtube_connection: PlatformConnection,
        clips: list, mock_youtube
    ):
        mock_youtube.list_my_videos.return_value = [
            {
                "id": "vid_ace",
                "title": "Valorant ace",
                "description": "",
                "thumbnail_url": "https://i.ytimg.com/vi/vid_ace/mqdefault.jpg",
                "published_at": "2024-05-01T12:00:00Z",
                "duration": 62,
            },
            {
                "id": "brand_new",
                "title": "Brand new",
                "description": "fresh",
                "thumbnail_url": None,
                "published_at": "2024-05-02T12:00:00Z",
                "duration": 15,
            },
        ]

        response = client.get(
            "/api/platforms/youtube/videos",
            headers=auth_headers,
            params={"platform_connection_id": str(youtube_connection.id)}
        )

        assert response.status_code == 200
        videos = {v["id"]: v for v in response.json()["videos"]}
        assert videos["vid_ace"]["already_imported"] is True
        assert videos["brand_new"]["already_imported"] is False
        assert videos["vid_ace"]["duration"] == 62

    def test_foreign_connection(
        self, client: TestClient, auth_headers: dict, other_connection: PlatformConnection, mock_youtube
    ):
        response = client.get(
            "/api/platforms/youtube/videos",
            headers=auth_headers,
            params={"platform_connection_id": str(other_connection.id)}
        )

        assert response.status_code == 403
        mock_youtube.list_my_videos.assert_not_called()

    def test_expired_authorization(
        self, client: TestClient, auth_headers: dict, youtube_connection: PlatformConnection, mock_youtube
    ):
        mock_youtube.list_my_videos.side_effect = YouTubeAPIError("Video search failed", status_code=401)

        response = client.get(
            "/api/platforms/youtube/videos",
            headers=auth_headers,
            params={"platform_connection_id": str(youtube_connection.id)}
        )

        assert response.status_code == 401
        assert "reconnect" in response.json()["error"]


@pytest.mark.unit
@pytest.mark.platforms
class TestTokenSync:
    """Test persisting tokens refreshed by the client library."""

    def test_refreshed_token_is_stored(self, test_db: Session, youtube_connection: PlatformConnection):
        expiry = datetime.utcnow() + timedelta(hours=1)
        api = Mock()
        api.credentials = Mock(token="refreshed-token", expiry=expiry)

        PlatformService.sync_tokens(test_db, youtube_connection, api)

        test_db.refresh(youtube_connection)
        assert youtube_connection.access_token == "refreshed-token"
        assert youtube_connection.expires_at == expiry
        assert youtube_connection.refresh_token == "refresh-alice"

    def test_unchanged_token_is_not_written(self, test_db: Session, youtube_connection: PlatformConnection):
        api = Mock()
        api.credentials = Mock(token="access-alice", expiry=None)

        PlatformService.sync_tokens(test_db, youtube_connection, api)

        assert youtube_connection.last_sync_at is None


@pytest.mark.unit
@pytest.mark.platforms
class TestGoogleTokenScope:
    """Test the relaxed token scope applied at startup."""

    def test_set_on_startup(self, monkeypatch):
        monkeypatch.delenv("OAUTHLIB_RELAX_TOKEN_SCOPE", raising=False)
        import clipdex.platforms.youtube.auth  # noqa: F401

        assert "OAUTHLIB_RELAX_TOKEN_SCOPE" not in os.environ

        with TestClient(app):
            assert os.environ["OAUTHLIB_RELAX_TOKEN_SCOPE"] == "1"

    def test_disabled(self, monkeypatch):
        monkeypatch.delenv("OAUTHLIB_RELAX_TOKEN_SCOPE", raising=False)
        monkeypatch.setattr(settings, "GOOGLE_RELAX_TOKEN_SCOPE", False)

        with TestClient(app):
            assert "OAUTHLIB_RELAX_TOKEN_SCOPE" not in os.environ
