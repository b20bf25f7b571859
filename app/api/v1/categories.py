"""Categories API endpoints."""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError
from app.core.security import Permission
from app.crud import changelog as changelog_crud
from app.crud.inventory import category
from app.database import get_db
from app.dependencies import require_permission
from app.models.user import User
from app.schemas.changelog import ChangeLogResponse
from app.schemas.common import Page
from app.schemas.inventory import CategoryCreate, CategoryResponse, CategoryUpdate

router = APIRouter()


@router.get("", response_model=Page[CategoryResponse])
async def list_categories(
    page: int = 1,
    page_size: int = Query(10, alias="pageSize"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.CATEGORY_VIEW)),
):
    """List categories."""
    return await category.paginate(db, page=page, page_size=page_size)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.CATEGORY_CREATE)),
):
    """Create a category."""
    if await category.get_by_name(db, name=category_data.name):
        raise ConflictError("Category with this name already exists")
    return await category.create(db, obj_in=category_data, actor_id=current_user.id)


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.CATEGORY_VIEW)),
):
    """Get a category by ID."""
    category_obj = await category.get(db, category_id)
    if not category_obj:
        raise NotFoundError("Category not found")
    return category_obj


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    category_data: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.CATEGORY_UPDATE)),
):
    """Rename a category."""
    category_obj = await category.get(db, category_id)
    if not category_obj:
        raise NotFoundError("Category not found")
    return await category.update(db, db_obj=category_obj, obj_in=category_data, actor_id=current_user.id)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.CATEGORY_DELETE)),
):
    """Delete a category that has no items."""
    if not await category.remove(db, id=category_id, actor_id=current_user.id):
        raise NotFoundError("Category not found")


@router.get("/{category_id}/changelogs", response_model=Page[ChangeLogResponse])
async def list_category_changelogs(
    category_id: int,
    page: int = 1,
    page_size: int = Query(10, alias="pageSize"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.CATEGORY_VIEW)),
):
    """Change history of a category."""
    return await changelog_crud.list_by_association(db, "category", category_id, page, page_size)
