"""Items API endpoints."""
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.core.security import Permission
from app.crud import changelog as changelog_crud
from app.crud.inventory import item
from app.database import get_db
from app.dependencies import require_permission
from app.models.user import User
from app.schemas.changelog import ChangeLogResponse
from app.schemas.common import Page
from app.schemas.inventory import ItemCreate, ItemResponse, ItemUpdate

router = APIRouter()


@router.get("", response_model=Page[ItemResponse])
async def list_items(
    page: int = 1,
    page_size: int = Query(10, alias="pageSize"),
    name: Optional[str] = None,
    department: Optional[str] = None,
    category: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Literal["ASC", "DESC"] = Query("ASC", alias="sortOrder"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.ITEM_VIEW)),
):
    """List items with filtering, sorting and pagination."""
    return await item.list_items(
        db,
        page=page,
        page_size=page_size,
        name=name,
        department=department,
        category=category,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    item_data: ItemCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.ITEM_CREATE)),
):
    """Create an item."""
    return await item.create(db, obj_in=item_data, actor_id=current_user.id)


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(
    item_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.ITEM_VIEW)),
):
    """Get an item by ID."""
    item_obj = await item.get(db, item_id)
    if not item_obj:
        raise NotFoundError("Item not found")
    return item_obj


@router.put("/{item_id}", response_model=ItemResponse)
async def update_item(
    item_id: int,
    item_data: ItemUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.ITEM_UPDATE)),
):
    """Update an item."""
    item_obj = await item.get(db, item_id)
    if not item_obj:
        raise NotFoundError("Item not found")
    return await item.update(db, db_obj=item_obj, obj_in=item_data, actor_id=current_user.id)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.ITEM_DELETE)),
):
    """Delete an item."""
    if not await item.remove(db, id=item_id, actor_id=current_user.id):
        raise NotFoundError("Item not found")


@router.get("/{item_id}/changelogs", response_model=Page[ChangeLogResponse])
async def list_item_changelogs(
    item_id: int,
    page: int = 1,
    page_size: int = Query(10, alias="pageSize"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.ITEM_VIEW)),
):
    """Change history of an item, oldest first."""
    return await changelog_crud.list_by_association(db, "item", item_id, page, page_size)
