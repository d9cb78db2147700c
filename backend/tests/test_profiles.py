"""
Tests for public profile pages, the clip viewer and the health endpoint.
"""

import pytest
from fastapi.testclient import TestClient
from uuid import uuid4

from clipdex.models.clip import Clip
from clipdex.models.user import User


@pytest.mark.unit
@pytest.mark.profiles
class TestProfileJSON:
    """Test GET /api/profiles/{username}."""

    def test_public_clips_only(self, client: TestClient, clips: list):
        response = client.get("/api/profiles/alice")

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["username"] == "alice"
        assert "email" not in data["user"]
        assert [c["external_video_id"] for c in data["clips"]] == ["vid_pentakill", "vid_clutch", "vid_ace"]
        assert data["stats"] == {"clips": 3, "views": 500, "games": 3}

    def test_unknown_user(self, client: TestClient):
        response = client.get("/api/profiles/nobody")

        assert response.status_code == 404
        assert response.json() == {"error": "User not found"}

    def test_inactive_user_hidden(self, client: TestClient, test_user: User, test_db):
        test_user.is_active = False
        test_db.commit()

        response = client.get("/api/profiles/alice")

        assert response.status_code == 404


@pytest.mark.unit
@pytest.mark.profiles
class TestProfilePage:
    """Test the server-rendered profile page."""

    def test_renders_public_clips(self, client: TestClient, clips: list):
        response = client.get("/alice")

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        body = response.text
        assert "Alice" in body
        assert "Valorant ace" in body
        assert "Pentakill" in body
        assert "Featured" in body
        assert "Unfinished edit" not in body
        assert "3 clips" in body

    def test_profile_without_clips(self, client: TestClient, test_user: User):
        response = client.get("/alice")

        assert response.status_code == 200
        assert "No clips yet." in response.text

    def test_unknown_profile(self, client: TestClient):
        response = client.get("/nobody")

        assert response.status_code == 404
        assert "404" in response.text

    def test_reserved_segment_is_not_a_profile(self, client: TestClient, test_db):
        response = client.get("/api")

        assert response.status_code == 404

    def test_landing_page(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == 200
        assert "ClipDex" in response.text
        assert "/api/auth/discord/login" in response.text

    def test_security_headers_allow_youtube_frames(self, client: TestClient, test_user: User):
        response = client.get("/alice")

        assert "frame-src https://www.youtube.com" in response.headers["content-security-policy"]
        assert response.headers["x-content-type-options"] == "nosniff"


@pytest.mark.unit
@pytest.mark.profiles
class TestClipViewer:
    """Test /{username}/clips/{clip_id}."""

    def test_viewer_links_neighbours(self, client: TestClient, clips: list):
        pentakill, clutch, ace = clips[2], clips[1], clips[0]

        response = client.get(f"/alice/clips/{clutch.id}")

        assert response.status_code == 200
        body = response.text
        assert "https://www.youtube.com/embed/vid_clutch" in body
        assert f'id="prev" href="/alice/clips/{pentakill.id}"' in body
        assert f'id="next" href="/alice/clips/{ace.id}"' in body
        assert "2 / 3" in body

    def test_viewer_navigation_handlers(self, client: TestClient, clips: list):
        response = client.get(f"/alice/clips/{clips[1].id}")

        body = response.text
        for event in ("keydown", "wheel", "touchstart", "touchend"):
            assert f'addEventListener("{event}"' in body
        assert "SWIPE_THRESHOLD = 50" in body

    def test_first_clip_has_no_previous(self, client: TestClient, clips: list):
        response = client.get(f"/alice/clips/{clips[2].id}")

        assert response.status_code == 200
        assert 'id="prev"' not in response.text
        assert 'id="next"' in response.text

    def test_private_clip_not_found(self, client: TestClient, clips: list):
        response = client.get(f"/alice/clips/{clips[3].id}")

        assert response.status_code == 404

    def test_clip_of_another_user(self, client: TestClient, clips: list, other_clip: Clip):
        response = client.get(f"/alice/clips/{other_clip.id}")

        assert response.status_code == 404

    @pytest.mark.parametrize("clip_id", ["not-a-uuid", str(uuid4())])
    def test_unknown_clip(self, client: TestClient, clips: list, clip_id: str):
        response = client.get(f"/alice/clips/{clip_id}")

        assert response.status_code == 404


@pytest.mark.unit
class TestHealth:
    """Test the health endpoint."""

    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"]["database"] is True
