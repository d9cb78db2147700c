"""API client for backend communication."""

import requests
import streamlit as st
from typing import Optional, Dict, Any, List
import os

UPLOAD_TIMEOUT = 600


class APIClient:
    """Client for communicating with the ClipDex API."""

    def __init__(self, base_url: Optional[str] = None):
        """
        Initialize API client.

        Args:
            base_url: Base URL of the API (default: from environment or localhost)
        """
        self.base_url = base_url or os.getenv("API_BASE_URL", "http://localhost:8000")

    def _get_headers(self, json_body: bool = True) -> Dict[str, str]:
        """
        Get request headers with authorization token if available.

        Returns:
            Headers dictionary
        """
        headers = {}
        if json_body:
            headers["Content-Type"] = "application/json"

        if "token" in st.session_state:
            headers["Authorization"] = f"Bearer {st.session_state.token}"

        return headers

    @staticmethod
    def _error(response: requests.Response, default: str) -> str:
        try:
            return response.json().get("error", default)
        except ValueError:
            return default

    def _request(
        self,
        method: str,
        path: str,
        expected: int = 200,
        default_error: str = "Request failed",
        **kwargs
    ) -> tuple[bool, Any]:
        """
        Send a request and unwrap the response.

        Returns:
            Tuple of (success, data or error_message)
        """
        kwargs.setdefault("headers", self._get_headers())
        kwargs.setdefault("timeout", 30)
        try:
            response = requests.request(method, f"{self.base_url}{path}", **kwargs)
        except requests.exceptions.ConnectionError:
            return False, "Cannot connect to server. Make sure the backend is running."
        except requests.exceptions.RequestException as e:
            return False, f"Error: {str(e)}"

        if response.status_code == expected:
            return True, response.json()
        return False, self._error(response, default_error)

    # ============================================
    # Authentication
    # ============================================

    def register(self, email: str, username: str, password: str, display_name: Optional[str] = None) -> tuple[bool, Any]:
        """
        Register a new user.

        Returns:
            Tuple of (success, data or error_message)
        """
        return self._request(
            "POST",
            "/api/auth/register",
            expected=201,
            default_error="Registration failed",
            json={
                "email": email,
                "username": username,
                "password": password,
                "display_name": display_name
            },
            headers={"Content-Type": "application/json"}
        )

    def login(self, username: str, password: str) -> tuple[bool, Any]:
        """
        Login with username/email and password.

        Returns:
            Tuple of (success, data or error_message)
        """
        return self._request(
            "POST",
            "/api/auth/login",
            default_error="Login failed",
            json={"username": username, "password": password},
            headers={"Content-Type": "application/json"}
        )

    def logout(self) -> tuple[bool, str]:
        success, _ = self._request("POST", "/api/auth/logout", default_error="Logout failed")
        return success, "Logged out successfully" if success else "Logout failed"

    def get_current_user(self) -> tuple[bool, Any]:
        return self._request("GET", "/api/auth/me", default_error="Failed to get user information")

    def update_profile(self, **fields) -> tuple[bool, Any]:
        return self._request("PATCH", "/api/auth/me", default_error="Failed to update profile", json=fields)

    def list_providers(self) -> List[Dict[str, Any]]:
        success, data = self._request("GET", "/api/auth/providers")
        return data["providers"] if success else []

    def provider_login_url(self, provider: Dict[str, Any]) -> str:
        return f"{self.base_url}{provider['login_url']}"

    def health_check(self) -> bool:
        """
        Check if the API is healthy.

        Returns:
            True if API is accessible, False otherwise
        """
        try:
            response = requests.get(f"{self.base_url}/health", timeout=5)
            return response.status_code == 200
        except requests.exceptions.RequestException:
            return False

    # ============================================
    # Platforms
    # ============================================

    def list_platforms(self) -> tuple[bool, Any]:
        success, data = self._request("GET", "/api/platforms", default_error="Failed to load platforms")
        return success, data["platforms"] if success else data

    def get_connect_url(self, platform: str = "YOUTUBE") -> tuple[bool, Any]:
        """Consent-screen URL for connecting (or reconnecting) a platform."""
        success, data = self._request(
            "GET",
            "/api/platforms/connect",
            default_error="Failed to start connection",
            params={"platform": platform, "redirect": "false"}
        )
        return success, data["url"] if success else data

    def disconnect_platform(self, connection_id: str) -> tuple[bool, Any]:
        return self._request(
            "POST",
            "/api/platforms/disconnect",
            default_error="Failed to disconnect",
            json={"platform_connection_id": connection_id}
        )

    def list_youtube_videos(self, connection_id: str) -> tuple[bool, Any]:
        success, data = self._request(
            "GET",
            "/api/platforms/youtube/videos",
            default_error="Failed to fetch YouTube videos",
            params={"platform_connection_id": connection_id}
        )
        return success, data["videos"] if success else data

    def youtube_connection(self) -> Optional[Dict[str, Any]]:
        """The user's YouTube connection, if any."""
        success, platforms = self.list_platforms()
        if not success:
            return None
        for platform in platforms:
            if platform["id"] == "YOUTUBE":
                return platform.get("connection")
        return None

    # ============================================
    # Clips
    # ============================================

    def list_clips(self) -> tuple[bool, Any]:
        return self._request("GET", "/api/clips", default_error="Failed to load clips")

    def get_clip_stats(self) -> tuple[bool, Any]:
        return self._request("GET", "/api/clips/stats", default_error="Failed to load stats")

    def list_games(self) -> List[str]:
        success, data = self._request("GET", "/api/clips/games")
        return data["games"] if success else ["Other"]

    def update_clip(self, clip_id: str, **fields) -> tuple[bool, Any]:
        success, data = self._request(
            "PATCH",
            f"/api/clips/{clip_id}",
            default_error="Failed to update clip",
            json=fields
        )
        return success, data["clip"] if success else data

    def delete_clip(self, clip_id: str, delete_from_youtube: bool = False) -> tuple[bool, Any]:
        return self._request(
            "DELETE",
            f"/api/clips/{clip_id}",
            default_error="Failed to delete clip",
            json={"delete_from_youtube": delete_from_youtube}
        )

    def import_clips(self, connection_id: str, videos: List[Dict[str, Any]]) -> tuple[bool, Any]:
        return self._request(
            "POST",
            "/api/clips/import",
            default_error="Import failed",
            json={"platform_connection_id": connection_id, "videos": videos}
        )

    def upload_clip(
        self,
        file_name: str,
        file_bytes: bytes,
        content_type: str,
        form: Dict[str, str]
    ) -> tuple[bool, Any]:
        """Upload a video file; the request stays open until YouTube accepts it."""
        return self._request(
            "POST",
            "/api/clips/upload",
            expected=201,
            default_error="Upload failed",
            data=form,
            files={"file": (file_name, file_bytes, content_type)},
            headers=self._get_headers(json_body=False),
            timeout=UPLOAD_TIMEOUT
        )

    def profile_url(self, username: str) -> str:
        return f"{self.base_url}/{username}"
