"""Users API endpoints (Admin)."""
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError
from app.core.security import Permission
from app.crud import changelog as changelog_crud
from app.crud.user import user
from app.database import get_db
from app.dependencies import require_permission
from app.models.user import User
from app.schemas.changelog import ChangeLogResponse
from app.schemas.common import Page
from app.schemas.user import UserCreate, UserResponse, UserUpdate

router = APIRouter()


@router.get("", response_model=Page[UserResponse])
async def list_users(
    page: int = 1,
    page_size: int = Query(10, alias="pageSize"),
    username: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Literal["ASC", "DESC"] = Query("ASC", alias="sortOrder"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.USER_VIEW)),
):
    """List users."""
    return await user.list_users(
        db,
        page=page,
        page_size=page_size,
        username=username,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.USER_CREATE)),
):
    """Create a new user."""
    if await user.get_by_username(db, username=user_data.username):
        raise ConflictError("User with this username already exists")
    return await user.create(db, obj_in=user_data, actor_id=current_user.id)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.USER_VIEW)),
):
    """Get a user by ID."""
    user_obj = await user.get(db, user_id)
    if not user_obj:
        raise NotFoundError("User not found")
    return user_obj


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.USER_UPDATE)),
):
    """Update a user."""
    user_obj = await user.get(db, user_id)
    if not user_obj:
        raise NotFoundError("User not found")

    if user_data.username and user_data.username != user_obj.username:
        if await user.get_by_username(db, username=user_data.username):
            raise ConflictError("User with this username already exists")

    return await user.update(db, db_obj=user_obj, obj_in=user_data, actor_id=current_user.id)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.USER_DELETE)),
):
    """Delete a user."""
    if not await user.remove(db, id=user_id, actor_id=current_user.id):
        raise NotFoundError("User not found")


@router.get("/{user_id}/changelogs", response_model=Page[ChangeLogResponse])
async def list_user_changelogs(
    user_id: int,
    page: int = 1,
    page_size: int = Query(10, alias="pageSize"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.USER_VIEW)),
):
    """Change history of a user; password hashes are masked."""
    return await changelog_crud.list_by_association(db, "user", user_id, page, page_size)
