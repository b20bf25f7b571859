"""Authentication schemas."""
from typing import List

from pydantic import BaseModel, Field

from app.schemas.user import UserResponse


class TokenRequest(BaseModel):
    """Token request schema."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Token response schema."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class RefreshTokenRequest(BaseModel):
    """Refresh token request schema."""

    refresh_token: str


class RefreshTokenResponse(BaseModel):
    """Refresh token response schema."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int


class CurrentUserResponse(UserResponse):
    """The authenticated user with the permission names it holds."""

    permissions: List[str] = []
