"""
Unit tests for clip listing, editing and deletion.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from uuid import uuid4

from clipdex.models.clip import Clip, ClipVisibility
from clipdex.models.clip_schemas import GAMES
from clipdex.platforms.youtube.youtube_api import YouTubeAPIError


@pytest.mark.unit
@pytest.mark.clips
class TestClipListing:
    """Test the dashboard clip endpoints."""

    def test_list_own_clips_newest_first(self, client: TestClient, auth_headers: dict, clips: list, other_clip: Clip):
        response = client.get("/api/clips", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert [c["external_video_id"] for c in data] == ["vid_secret", "vid_pentakill", "vid_clutch", "vid_ace"]
        assert data[0]["embed_url"] == "https://www.youtube.com/embed/vid_secret"

    def test_list_requires_auth(self, client: TestClient):
        response = client.get("/api/clips")

        assert response.status_code == 401

    def test_stats(self, client: TestClient, auth_headers: dict, clips: list):
        response = client.get("/api/clips/stats", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {
            "total_clips": 4,
            "total_views": 505,
            "games": 3,
            "featured": 1
        }

    def test_stats_without_clips(self, client: TestClient, auth_headers: dict):
        response = client.get("/api/clips/stats", headers=auth_headers)

        assert response.json()["total_clips"] == 0
        assert response.json()["total_views"] == 0

    def test_games_catalogue(self, client: TestClient):
        response = client.get("/api/clips/games")

        assert response.status_code == 200
        assert response.json()["games"] == GAMES
        assert "Other" in GAMES

    def test_get_own_clip(self, client: TestClient, auth_headers: dict, clips: list):
        response = client.get(f"/api/clips/{clips[0].id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["display_title"] == "Valorant ace"

    def test_get_other_users_clip(self, client: TestClient, auth_headers: dict, other_clip: Clip):
        response = client.get(f"/api/clips/{other_clip.id}", headers=auth_headers)

        assert response.status_code == 403
        assert response.json() == {"error": "Forbidden"}

    def test_get_missing_clip(self, client: TestClient, auth_headers: dict):
        response = client.get(f"/api/clips/{uuid4()}", headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {"error": "Clip not found"}


@pytest.mark.unit
@pytest.mark.clips
class TestClipUpdate:
    """Test PATCH /api/clips/{id}."""

    def test_update_fields(self, client: TestClient, auth_headers: dict, clips: list, test_db: Session):
        clip = clips[0]

        response = client.patch(
            f"/api/clips/{clip.id}",
            headers=auth_headers,
            json={
                "display_title": "Ace on Haven",
                "tags": [" ace ", "", "haven"],
                "is_featured": True,
                "visibility": "UNLISTED"
            }
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["clip"]["display_title"] == "Ace on Haven"
        assert data["clip"]["tags"] == ["ace", "haven"]
        assert data["clip"]["is_featured"] is True
        assert data["clip"]["visibility"] == "UNLISTED"

        test_db.refresh(clip)
        assert clip.visibility == ClipVisibility.UNLISTED

    def test_update_leaves_absent_fields(self, client: TestClient, auth_headers: dict, clips: list):
        clip = clips[1]

        response = client.patch(f"/api/clips/{clip.id}", headers=auth_headers, json={"game": "Valorant"})

        data = response.json()["clip"]
        assert data["game"] == "Valorant"
        assert data["display_title"] == "1v4 clutch"
        assert data["description"] == "1v4 clutch description"

    def test_update_other_users_clip(self, client: TestClient, auth_headers: dict, other_clip: Clip, test_db: Session):
        response = client.patch(
            f"/api/clips/{other_clip.id}",
            headers=auth_headers,
            json={"display_title": "Mine now"}
        )

        assert response.status_code == 403
        test_db.refresh(other_clip)
        assert other_clip.display_title == "Bob's clip"

    def test_update_missing_clip(self, client: TestClient, auth_headers: dict):
        response = client.patch(f"/api/clips/{uuid4()}", headers=auth_headers, json={"game": "CS2"})

        assert response.status_code == 404

    def test_update_unauthenticated(self, client: TestClient, clips: list):
        response = client.patch(f"/api/clips/{clips[0].id}", json={"game": "CS2"})

        assert response.status_code == 401

    def test_update_invalid_visibility(self, client: TestClient, auth_headers: dict, clips: list):
        response = client.patch(
            f"/api/clips/{clips[0].id}",
            headers=auth_headers,
            json={"visibility": "EVERYONE"}
        )

        assert response.status_code == 400
        assert "error" in response.json()


@pytest.mark.unit
@pytest.mark.clips
class TestClipDelete:
    """Test DELETE /api/clips/{id}."""

    def test_delete_locally(self, client: TestClient, auth_headers: dict, clips: list, test_db: Session, mock_youtube):
        clip_id = clips[0].id

        response = client.delete(f"/api/clips/{clip_id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True, "deleted_from_youtube": False}
        assert test_db.query(Clip).filter(Clip.id == clip_id).first() is None
        mock_youtube.delete_video.assert_not_called()

    def test_delete_with_non_json_body(self, client: TestClient, auth_headers: dict, clips: list, mock_youtube):
        response = client.request(
            "DELETE",
            f"/api/clips/{clips[0].id}",
            headers={**auth_headers, "Content-Type": "application/json"},
            content=b"not json"
        )

        assert response.status_code == 200
        assert response.json()["deleted_from_youtube"] is False
        mock_youtube.delete_video.assert_not_called()

    def test_delete_from_youtube(self, client: TestClient, auth_headers: dict, clips: list, test_db: Session, mock_youtube):
        clip_id = clips[0].id

        response = client.request(
            "DELETE",
            f"/api/clips/{clip_id}",
            headers=auth_headers,
            json={"delete_from_youtube": True}
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "deleted_from_youtube": True}
        mock_youtube.delete_video.assert_called_once_with("vid_ace")
        assert test_db.query(Clip).filter(Clip.id == clip_id).first() is None

    def test_youtube_failure_keeps_clip(self, client: TestClient, auth_headers: dict, clips: list, test_db: Session, mock_youtube):
        clip_id = clips[0].id
        mock_youtube.delete_video.side_effect = YouTubeAPIError("Video delete failed: quota", status_code=403)

        response = client.request(
            "DELETE",
            f"/api/clips/{clip_id}",
            headers=auth_headers,
            json={"delete_from_youtube": True}
        )

        assert response.status_code == 500
        data = response.json()
        assert data["code"] == "YOUTUBE_DELETE_FAILED"
        assert data["error"].startswith("Failed to delete from YouTube")
        assert test_db.query(Clip).filter(Clip.id == clip_id).first() is not None

    def test_delete_other_users_clip(self, client: TestClient, auth_headers: dict, other_clip: Clip, test_db: Session):
        response = client.delete(f"/api/clips/{other_clip.id}", headers=auth_headers)

        assert response.status_code == 403
        assert test_db.query(Clip).filter(Clip.id == other_clip.id).first() is not None

    def test_delete_missing_clip(self, client: TestClient, auth_headers: dict):
        response = client.delete(f"/api/clips/{uuid4()}", headers=auth_headers)

        assert response.status_code == 404
