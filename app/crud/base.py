"""Base CRUD operations."""
import logging
import math
from typing import Any, Dict, Generic, Iterable, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.changelog import hooks  # noqa: F401  registers change-log listeners
from app.changelog.context import acting_as
from app.core.exceptions import ConflictError
from app.database import Base
from app.db.types import utcnow

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


def empty_page(page: int) -> Dict[str, Any]:
    return {"data": [], "total": 0, "totalPages": 0, "currentPage": page}


def page_result(rows: Iterable[Any], total: int, page: int, page_size: int) -> Dict[str, Any]:
    return {
        "data": list(rows),
        "total": total,
        "totalPages": math.ceil(total / page_size),
        "currentPage": page,
    }


def _as_dict(obj_in: Union[BaseModel, Dict[str, Any]], **kwargs) -> Dict[str, Any]:
    if isinstance(obj_in, BaseModel):
        return obj_in.model_dump(**kwargs)
    return dict(obj_in)


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """CRUD object with default methods to Create, Read, Update, Delete.

    Every mutating method takes the acting user's id and flushes inside
    :func:`acting_as`, so the change log attributes the mutation to it.
    Soft-deletable models (``__soft_delete__``) hide rows with a
    ``deletion_date`` from reads.
    """

    def __init__(self, model: Type[ModelType]):
        self.model = model

    @property
    def soft_delete(self) -> bool:
        return getattr(self.model, "__soft_delete__", False)

    def live(self, query):
        """Restrict ``query`` to rows that are not soft-deleted."""
        if self.soft_delete:
            query = query.where(self.model.deletion_date.is_(None))
        return query

    async def get(self, db: AsyncSession, id: Any) -> Optional[ModelType]:
        """Get a single record by ID."""
        result = await db.execute(self.live(select(self.model).where(self.model.id == id)))
        return result.scalar_one_or_none()

    async def get_multi(self, db: AsyncSession, *, skip: int = 0, limit: int = 100) -> List[ModelType]:
        """Get multiple records."""
        result = await db.execute(
            self.live(select(self.model)).order_by(self.model.id).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def paginate(
        self,
        db: AsyncSession,
        *,
        page: int,
        page_size: int,
        query=None,
    ) -> Dict[str, Any]:
        """Return ``{data, total, totalPages, currentPage}`` for ``query``."""
        if page < 1 or page_size < 1:
            return empty_page(page)
        if query is None:
            query = select(self.model).order_by(self.model.id)
        query = self.live(query)

        total = (
            await db.execute(select(func.count()).select_from(query.order_by(None).subquery()))
        ).scalar_one()
        result = await db.execute(query.offset((page - 1) * page_size).limit(page_size))
        return page_result(result.scalars().all(), total, page, page_size)

    async def create(
        self,
        db: AsyncSession,
        *,
        obj_in: Union[CreateSchemaType, Dict[str, Any]],
        actor_id: int,
    ) -> ModelType:
        """Create a new record."""
        db_obj = self.model(**_as_dict(obj_in))
        with acting_as(db, actor_id):
            db.add(db_obj)
            await self.commit(db)
        await db.refresh(db_obj)
        return db_obj

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: ModelType,
        obj_in: Union[UpdateSchemaType, Dict[str, Any]],
        actor_id: int,
    ) -> ModelType:
        """Update a record."""
        update_data = _as_dict(obj_in, exclude_unset=True)
        with acting_as(db, actor_id):
            self.apply(db, db_obj, update_data)
            await self.commit(db)
        await db.refresh(db_obj)
        return db_obj

    def apply(self, db: AsyncSession, db_obj: ModelType, update_data: Dict[str, Any]) -> None:
        for field, value in update_data.items():
            setattr(db_obj, field, value)
        db.add(db_obj)

    async def remove(
        self,
        db: AsyncSession,
        *,
        id: Any,
        actor_id: int,
        soft: bool = True,
    ) -> Optional[ModelType]:
        """Delete a record; soft-deletable models only get a ``deletion_date``."""
        obj = await self.get(db, id)
        if obj is None:
            return None
        with acting_as(db, actor_id):
            await self.before_remove(db, obj, soft=soft)
            if soft and self.soft_delete:
                obj.deletion_date = utcnow()
            else:
                await db.delete(obj)
            await self.commit(db)
        return obj

    async def before_remove(self, db: AsyncSession, obj: ModelType, *, soft: bool) -> None:
        """Hook for subclasses; runs inside the removal's actor scope."""

    async def replace_links(
        self,
        db: AsyncSession,
        join_model,
        *,
        owner_field: str,
        owner_id: int,
        target_field: str,
        target_ids: Iterable[int],
    ) -> None:
        """Make the join rows of ``owner_id`` point exactly at ``target_ids``.

        Removed rows go through one bulk DELETE and new rows through one bulk
        INSERT, each logged as unlink/link. Must run inside ``acting_as``.
        """
        owner_column = getattr(join_model, owner_field)
        target_column = getattr(join_model, target_field)
        result = await db.execute(select(target_column).where(owner_column == owner_id))
        current = set(result.scalars().all())
        wanted = set(target_ids)

        removed = sorted(current - wanted)
        added = sorted(wanted - current)
        if removed:
            await db.execute(
                delete(join_model).where(owner_column == owner_id, target_column.in_(removed))
            )
        if added:
            await db.execute(
                insert(join_model),
                [{owner_field: owner_id, target_field: target_id} for target_id in added],
            )

    async def flush(self, db: AsyncSession) -> None:
        """Flush pending changes, rolling back on any failure."""
        await self._guarded(db, db.flush)

    async def commit(self, db: AsyncSession) -> None:
        """Commit, rolling back on any failure."""
        await self._guarded(db, db.commit)

    async def _guarded(self, db: AsyncSession, operation) -> None:
        try:
            await operation()
        except IntegrityError as exc:
            await db.rollback()
            logger.info("Integrity error on %s: %s", self.model.__name__, exc.orig)
            raise ConflictError(f"{self.model.__name__} conflicts with existing data") from exc
        except Exception:
            await db.rollback()
            raise
