"""Input validation utilities."""

import re
from typing import Iterable, List, Optional, Tuple
from urllib.parse import urlparse

MIN_PASSWORD_LENGTH = 8

# ISO 8601 durations as returned by the YouTube Data API, e.g. PT1H2M3S
_DURATION_PATTERN = re.compile(r'^P(?:(\d+)D)?T?(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?$')


def validate_email(email: str) -> Tuple[bool, str]:
    """
    Validate email address format.

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not email or len(email) > 255:
        return False, "Email address is required and must be less than 255 characters"

    # Basic email regex pattern
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'

    if not re.match(pattern, email):
        return False, "Invalid email address format"

    return True, ""


def validate_http_url(url: str) -> Tuple[bool, str]:
    """
    Validate a link shown on a public profile.

    Only absolute http(s) URLs are accepted; anything else (javascript:,
    data:, relative paths) would be rendered as a live link.

    Returns:
        Tuple of (is_valid, error_message)
    """
    parsed = urlparse(url.strip())
    if parsed.scheme.lower() not in ("http", "https") or not parsed.netloc:
        return False, "URL must start with http:// or https://"

    return True, ""


def validate_username(username: str) -> Tuple[bool, str]:
    """
    Validate username format.

    Requirements:
    - 3-50 characters
    - Alphanumeric, underscores and hyphens only
    - Must start with a letter

    Usernames are also public profile URLs, so reserved route names are
    rejected.

    Args:
        username: Username to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not username:
        return False, "Username is required"

    if len(username) < 3:
        return False, "Username must be at least 3 characters long"

    if len(username) > 50:
        return False, "Username must be less than 50 characters"

    if not username[0].isalpha():
        return False, "Username must start with a letter"

    if not re.match(r'^[a-zA-Z0-9_-]+$', username):
        return False, "Username can only contain letters, numbers, hyphens and underscores"

    if username.lower() in RESERVED_USERNAMES:
        return False, "Username is not available"

    return True, ""


def validate_password(password: str) -> Tuple[bool, str]:
    """Validate password length."""
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    return True, ""


def sanitize_input(text: Optional[str], max_length: int = 1000) -> str:
    """
    Sanitize user input by removing potentially dangerous characters.

    Args:
        text: Input text to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    # Remove null bytes
    text = text.replace('\x00', '')

    # Trim to max length
    if len(text) > max_length:
        text = text[:max_length]

    return text.strip()


def parse_tags(raw: Optional[str]) -> List[str]:
    """Split a comma-separated tag string into trimmed, non-empty tags."""
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def clean_tags(tags: Iterable[str]) -> List[str]:
    """Trim tags and drop empties while keeping their order."""
    return [tag.strip() for tag in tags if tag and tag.strip()]


def parse_iso8601_duration(duration: Optional[str]) -> int:
    """
    Convert an ISO 8601 duration to seconds.

    ``PT1M30S`` -> 90. Anything unparsable is treated as 0.
    """
    if not duration:
        return 0

    match = _DURATION_PATTERN.match(duration.strip())
    if not match:
        return 0

    days, hours, minutes, seconds = (int(part or 0) for part in match.groups())
    return days * 86400 + hours * 3600 + minutes * 60 + seconds


# First path segments served by the application itself
RESERVED_USERNAMES = frozenset({
    "api",
    "docs",
    "redoc",
    "openapi.json",
    "health",
    "static",
    "login",
    "dashboard",
})
