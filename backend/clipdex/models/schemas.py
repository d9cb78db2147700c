"""Pydantic schemas for users, authentication and generic responses."""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from clipdex.utils.validators import validate_http_url


# ============================================
# User Schemas
# ============================================

class UserCreate(BaseModel):
    """
    Schema for user registration.

    Fields are optional here so that missing values surface as a 400 from
    the registration service rather than a schema error.
    """
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    display_name: Optional[str] = Field(None, max_length=100)


class UserLogin(BaseModel):
    """Schema for user login. ``username`` accepts a username or an email."""
    username: str
    password: str


class UserResponse(BaseModel):
    """Schema for user response."""
    id: UUID
    username: str
    display_name: str
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    website: Optional[str] = None
    created_at: datetime
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    """
    Schema for updating the public profile.

    An empty ``bio``, ``website`` or ``avatar_url`` clears the field.
    """
    display_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=1000)
    website: Optional[str] = Field(None, max_length=255)
    avatar_url: Optional[str] = Field(None, max_length=2000)

    @field_validator("website", "avatar_url")
    @classmethod
    def http_url_only(cls, v):
        if v is None or not v.strip():
            return None
        is_valid, error = validate_http_url(v)
        if not is_valid:
            raise ValueError(error)
        return v.strip()


class PublicUserResponse(BaseModel):
    """Profile fields visible to anyone."""
    username: str
    display_name: str
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    website: Optional[str] = None

    class Config:
        from_attributes = True


# ============================================
# Authentication Schemas
# ============================================

class Token(BaseModel):
    """Schema for JWT token response."""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class RegisterResponse(Token):
    """Registration response: the token plus a confirmation message."""
    message: str
    user_id: UUID


class ProviderInfo(BaseModel):
    """An identity provider available on the login page."""
    id: str
    name: str
    login_url: str


# ============================================
# Generic Response Schemas
# ============================================

class MessageResponse(BaseModel):
    """Generic message response."""
    message: str
    detail: Optional[str] = None


class SuccessResponse(BaseModel):
    success: bool = True


class ProvidersResponse(BaseModel):
    providers: List[ProviderInfo]
