"""Password hashing and signed token helpers."""

import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import bcrypt
from jose import jwt, JWTError

from clipdex.config import settings

# bcrypt only looks at the first 72 bytes of a secret
BCRYPT_MAX_BYTES = 72

STATE_TOKEN_TYPE = "oauth_state"
ACCESS_TOKEN_TYPE = "access"


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, hashed_password: Optional[str]) -> bool:
    """Check a password against a stored bcrypt hash."""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT access token.

    Args:
        data: Claims to embed (``sub`` should be the user id)
        expires_delta: Lifetime, defaults to ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        Encoded JWT
    """
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    # jti keeps tokens issued in the same second distinct
    to_encode.update({
        "exp": expire,
        "iat": datetime.utcnow(),
        "jti": uuid.uuid4().hex,
        "type": ACCESS_TOKEN_TYPE
    })
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode an access token, returning None if it is invalid or expired."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        return None
    return payload


def create_state_token(data: Dict[str, Any]) -> str:
    """
    Sign an OAuth ``state`` parameter.

    The state round-trips through the provider's consent screen, so it is a
    short-lived JWT rather than plain JSON.
    """
    to_encode = data.copy()
    expire = datetime.utcnow() + timedelta(minutes=settings.OAUTH_STATE_EXPIRE_MINUTES)
    to_encode.update({"exp": expire, "type": STATE_TOKEN_TYPE})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_state_token(state: str) -> Optional[Dict[str, Any]]:
    """Verify a signed OAuth state, returning its claims or None."""
    try:
        payload = jwt.decode(state, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None

    if payload.get("type") != STATE_TOKEN_TYPE:
        return None
    return payload
