"""Roles API endpoints (Admin)."""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError
from app.core.security import Permission
from app.crud import changelog as changelog_crud
from app.crud.user import role
from app.database import get_db
from app.dependencies import require_permission
from app.models.user import User
from app.schemas.changelog import ChangeLogResponse
from app.schemas.common import Page
from app.schemas.user import RoleCreate, RoleResponse, RoleUpdate

router = APIRouter()


@router.get("", response_model=Page[RoleResponse])
async def list_roles(
    page: int = 1,
    page_size: int = Query(10, alias="pageSize"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.ROLE_VIEW)),
):
    """List all roles."""
    return await role.paginate(db, page=page, page_size=page_size)


@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(
    role_data: RoleCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.ROLE_CREATE)),
):
    """Create a new role with its permissions."""
    if await role.get_by_name(db, name=role_data.name):
        raise ConflictError("Role with this name already exists")
    return await role.create(db, obj_in=role_data, actor_id=current_user.id)


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(
    role_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.ROLE_VIEW)),
):
    """Get a role by ID."""
    role_obj = await role.get(db, role_id)
    if not role_obj:
        raise NotFoundError("Role not found")
    return role_obj


@router.put("/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: int,
    role_data: RoleUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.ROLE_UPDATE)),
):
    """Update a role."""
    role_obj = await role.get(db, role_id)
    if not role_obj:
        raise NotFoundError("Role not found")
    if role_data.name and role_data.name != role_obj.name and await role.get_by_name(db, name=role_data.name):
        raise ConflictError("Role with this name already exists")
    return await role.update(db, db_obj=role_obj, obj_in=role_data, actor_id=current_user.id)


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(
    role_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.ROLE_DELETE)),
):
    """Delete a role."""
    if not await role.remove(db, id=role_id, actor_id=current_user.id):
        raise NotFoundError("Role not found")


@router.get("/{role_id}/changelogs", response_model=Page[ChangeLogResponse])
async def list_role_changelogs(
    role_id: int,
    page: int = 1,
    page_size: int = Query(10, alias="pageSize"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.ROLE_VIEW)),
):
    """Change history of a role, including permission and user assignments."""
    return await changelog_crud.list_by_association(db, "role", role_id, page, page_size)
