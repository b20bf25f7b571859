"""Authentication API endpoints."""
from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import UnauthorizedError
from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.auth import (
    CurrentUserResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
    TokenRequest,
    TokenResponse,
)
from app.services.auth_service import AuthService
from app.utils.permissions import get_user_permissions

router = APIRouter()


async def _login(db: AsyncSession, username: str, password: str) -> TokenResponse:
    user = await AuthService.authenticate_user(db, username, password)
    if not user:
        raise UnauthorizedError("Incorrect username or password")
    tokens = await AuthService.create_tokens(user)
    return TokenResponse(**tokens)


@router.post("/login", response_model=TokenResponse)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """Login endpoint (OAuth2 password flow) - returns access and refresh tokens."""
    return await _login(db, form_data.username, form_data.password)


@router.post("/login/json", response_model=TokenResponse)
async def login_json(
    credentials: TokenRequest,
    db: AsyncSession = Depends(get_db),
):
    """Login with a JSON body."""
    return await _login(db, credentials.username, credentials.password)


@router.post("/refresh", response_model=RefreshTokenResponse)
async def refresh_token(
    request: RefreshTokenRequest,
    db: AsyncSession = Depends(get_db),
):
    """Refresh access token using refresh token."""
    tokens = await AuthService.refresh_access_token(db, request.refresh_token)
    return RefreshTokenResponse(**tokens)


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user),
):
    """Get current authenticated user information."""
    response = CurrentUserResponse.model_validate(current_user)
    response.permissions = get_user_permissions(current_user)
    return response
