"""Department, category and item CRUD operations."""
from typing import Any, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, ValidationError
from app.crud.base import CRUDBase
from app.models.inventory import Category, Department, Item
from app.schemas.inventory import ItemCreate, ItemUpdate

ITEM_SORT_FIELDS = ("name", "category", "department", "creationDate", "updatedOn")
SORT_ORDERS = ("ASC", "DESC")


class CRUDItemOwner(CRUDBase):
    """Shared behaviour of departments and categories."""

    owner_column: str

    async def get_by_name(self, db: AsyncSession, *, name: str):
        result = await db.execute(self.live(select(self.model).where(self.model.name == name)))
        return result.scalar_one_or_none()

    async def count_items(self, db: AsyncSession, owner_id: int) -> int:
        result = await db.execute(
            select(func.count(Item.id)).where(
                getattr(Item, self.owner_column) == owner_id,
                Item.deletion_date.is_(None),
            )
        )
        return result.scalar_one()

    async def before_remove(self, db: AsyncSession, obj, *, soft: bool) -> None:
        if await self.count_items(db, obj.id):
            raise ConflictError(f"Cannot delete {self.model.__changelog_name__} with assigned items.")


class CRUDDepartment(CRUDItemOwner):
    """CRUD operations for Department."""

    owner_column = "department_id"


class CRUDCategory(CRUDItemOwner):
    """CRUD operations for Category."""

    owner_column = "category_id"


class CRUDItem(CRUDBase[Item, ItemCreate, ItemUpdate]):
    """CRUD operations for Item."""

    async def _check_references(self, db: AsyncSession, data: Dict[str, Any]) -> None:
        if data.get("department_id") is not None and await department.get(db, data["department_id"]) is None:
            raise ValidationError("Invalid departmentId")
        if data.get("category_id") is not None and await category.get(db, data["category_id"]) is None:
            raise ValidationError("Invalid categoryId")

    async def create(self, db: AsyncSession, *, obj_in: ItemCreate, actor_id: int) -> Item:
        """Create an item after checking its department and category exist."""
        await self._check_references(db, obj_in.model_dump())
        return await super().create(db, obj_in=obj_in, actor_id=actor_id)

    async def update(self, db: AsyncSession, *, db_obj: Item, obj_in: ItemUpdate, actor_id: int) -> Item:
        """Update an item; a relation change is logged as link/unlink."""
        data = obj_in.model_dump(exclude_unset=True)
        if "department_id" in data and data["department_id"] is None:
            raise ValidationError("Item department is required")
        await self._check_references(db, data)
        return await super().update(db, db_obj=db_obj, obj_in=data, actor_id=actor_id)

    async def list_items(
        self,
        db: AsyncSession,
        *,
        page: int,
        page_size: int,
        name: Optional[str] = None,
        department: Optional[str] = None,
        category: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: str = "ASC",
    ) -> Dict[str, Any]:
        """Page through items filtered by (partial) names, optionally sorted.

        Unknown ``sort_by`` values leave the default id order.
        """
        query = select(Item)
        if name:
            query = query.where(Item.name.ilike(f"%{name}%"))
        if department or sort_by == "department":
            query = query.join(Department, Item.department_id == Department.id)
            if department:
                query = query.where(Department.name.ilike(f"%{department}%"))
        if category or sort_by == "category":
            # Uncategorized items stay in the result when only sorting
            query = query.outerjoin(Category, Item.category_id == Category.id)
            if category:
                query = query.where(Category.name.ilike(f"%{category}%"))

        column = {
            "name": Item.name,
            "category": Category.name,
            "department": Department.name,
            "creationDate": Item.creation_date,
            "updatedOn": Item.updated_on,
        }.get(sort_by)
        if column is not None:
            query = query.order_by(column.desc() if sort_order.upper() == "DESC" else column.asc(), Item.id)
        else:
            query = query.order_by(Item.id)

        return await self.paginate(db, page=page, page_size=page_size, query=query)


department = CRUDDepartment(Department)
category = CRUDCategory(Category)
item = CRUDItem(Item)
