"""Departments API endpoints."""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError
from app.core.security import Permission
from app.crud import changelog as changelog_crud
from app.crud.inventory import department
from app.database import get_db
from app.dependencies import require_permission
from app.models.user import User
from app.schemas.changelog import ChangeLogResponse
from app.schemas.common import Page
from app.schemas.inventory import DepartmentCreate, DepartmentResponse, DepartmentUpdate

router = APIRouter()


@router.get("", response_model=Page[DepartmentResponse])
async def list_departments(
    page: int = 1,
    page_size: int = Query(10, alias="pageSize"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.DEPARTMENT_VIEW)),
):
    """List departments."""
    return await department.paginate(db, page=page, page_size=page_size)


@router.post("", response_model=DepartmentResponse, status_code=status.HTTP_201_CREATED)
async def create_department(
    department_data: DepartmentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.DEPARTMENT_CREATE)),
):
    """Create a department."""
    if await department.get_by_name(db, name=department_data.name):
        raise ConflictError("Department with this name already exists")
    return await department.create(db, obj_in=department_data, actor_id=current_user.id)


@router.get("/{department_id}", response_model=DepartmentResponse)
async def get_department(
    department_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.DEPARTMENT_VIEW)),
):
    """Get a department by ID."""
    department_obj = await department.get(db, department_id)
    if not department_obj:
        raise NotFoundError("Department not found")
    return department_obj


@router.put("/{department_id}", response_model=DepartmentResponse)
async def update_department(
    department_id: int,
    department_data: DepartmentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.DEPARTMENT_UPDATE)),
):
    """Rename a department."""
    department_obj = await department.get(db, department_id)
    if not department_obj:
        raise NotFoundError("Department not found")
    return await department.update(
        db, db_obj=department_obj, obj_in=department_data, actor_id=current_user.id
    )


@router.delete("/{department_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_department(
    department_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.DEPARTMENT_DELETE)),
):
    """Delete a department that has no items."""
    if not await department.remove(db, id=department_id, actor_id=current_user.id):
        raise NotFoundError("Department not found")


@router.get("/{department_id}/changelogs", response_model=Page[ChangeLogResponse])
async def list_department_changelogs(
    department_id: int,
    page: int = 1,
    page_size: int = Query(10, alias="pageSize"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.DEPARTMENT_VIEW)),
):
    """Change history of a department."""
    return await changelog_crud.list_by_association(db, "department", department_id, page, page_size)
