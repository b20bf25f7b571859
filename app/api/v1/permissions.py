"""Permissions API endpoints (Admin)."""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError
from app.core.security import Permission
from app.crud import changelog as changelog_crud
from app.crud.user import permission
from app.database import get_db
from app.dependencies import require_permission
from app.models.user import User
from app.schemas.changelog import ChangeLogResponse
from app.schemas.common import Page
from app.schemas.user import PermissionCreate, PermissionResponse, PermissionUpdate

router = APIRouter()


@router.get("", response_model=Page[PermissionResponse])
async def list_permissions(
    page: int = 1,
    page_size: int = Query(10, alias="pageSize"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.PERMISSION_VIEW)),
):
    """List permissions."""
    return await permission.paginate(db, page=page, page_size=page_size)


@router.post("", response_model=PermissionResponse, status_code=status.HTTP_201_CREATED)
async def create_permission(
    permission_data: PermissionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.PERMISSION_CREATE)),
):
    """Create a permission."""
    if await permission.get_by_name(db, name=permission_data.name):
        raise ConflictError("Permission with this name already exists")
    return await permission.create(db, obj_in=permission_data, actor_id=current_user.id)


@router.get("/{permission_id}", response_model=PermissionResponse)
async def get_permission(
    permission_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.PERMISSION_VIEW)),
):
    """Get a permission by ID."""
    permission_obj = await permission.get(db, permission_id)
    if not permission_obj:
        raise NotFoundError("Permission not found")
    return permission_obj


@router.put("/{permission_id}", response_model=PermissionResponse)
async def update_permission(
    permission_id: int,
    permission_data: PermissionUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.PERMISSION_UPDATE)),
):
    """Update a permission."""
    permission_obj = await permission.get(db, permission_id)
    if not permission_obj:
        raise NotFoundError("Permission not found")
    return await permission.update(
        db, db_obj=permission_obj, obj_in=permission_data, actor_id=current_user.id
    )


@router.delete("/{permission_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_permission(
    permission_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.PERMISSION_DELETE)),
):
    """Delete a permission."""
    if not await permission.remove(db, id=permission_id, actor_id=current_user.id):
        raise NotFoundError("Permission not found")


@router.get("/{permission_id}/changelogs", response_model=Page[ChangeLogResponse])
async def list_permission_changelogs(
    permission_id: int,
    page: int = 1,
    page_size: int = Query(10, alias="pageSize"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.PERMISSION_VIEW)),
):
    """Change history of a permission, including the roles it was granted to."""
    return await changelog_crud.list_by_association(db, "permission", permission_id, page, page_size)
