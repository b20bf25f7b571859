"""User, role and permission CRUD operations."""
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.changelog.context import acting_as
from app.core.exceptions import ValidationError
from app.crud.base import CRUDBase
from app.models.user import Permission, Role, RolePermission, User, UserRole
from app.schemas.user import (
    PermissionCreate,
    PermissionUpdate,
    RoleCreate,
    RoleUpdate,
    UserCreate,
    UserUpdate,
)
from app.services.auth_service import AuthService

USER_SORT_FIELDS = ("username", "creationDate", "updatedOn")


class CRUDPermission(CRUDBase[Permission, PermissionCreate, PermissionUpdate]):
    """CRUD operations for Permission."""

    async def get_by_name(self, db: AsyncSession, *, name: str) -> Optional[Permission]:
        result = await db.execute(self.live(select(Permission).where(Permission.name == name)))
        return result.scalar_one_or_none()

    async def before_remove(self, db: AsyncSession, obj: Permission, *, soft: bool) -> None:
        if not soft:
            await db.execute(delete(RolePermission).where(RolePermission.permission_id == obj.id))


class CRUDRole(CRUDBase[Role, RoleCreate, RoleUpdate]):
    """CRUD operations for Role."""

    async def get_by_name(self, db: AsyncSession, *, name: str) -> Optional[Role]:
        """Get role by name."""
        result = await db.execute(self.live(select(Role).where(Role.name == name)))
        return result.scalar_one_or_none()

    async def _existing_permission_ids(self, db: AsyncSession, ids: Iterable[int]) -> List[int]:
        wanted = set(ids)
        if not wanted:
            return []
        result = await db.execute(permission.live(select(Permission.id).where(Permission.id.in_(wanted))))
        found = set(result.scalars().all())
        if found != wanted:
            raise ValidationError(f"Unknown permission ids: {sorted(wanted - found)}")
        return sorted(found)

    async def set_permissions(
        self, db: AsyncSession, *, role_id: int, permission_ids: Iterable[int], actor_id: int
    ) -> None:
        """Replace the permissions granted to a role."""
        ids = await self._existing_permission_ids(db, permission_ids)
        with acting_as(db, actor_id):
            await self.replace_links(
                db,
                RolePermission,
                owner_field="role_id",
                owner_id=role_id,
                target_field="permission_id",
                target_ids=ids,
            )
            await self.commit(db)

    async def create(self, db: AsyncSession, *, obj_in: RoleCreate, actor_id: int) -> Role:
        """Create a role and grant its permissions."""
        ids = await self._existing_permission_ids(db, obj_in.permission_ids)
        role_obj = Role(name=obj_in.name, description=obj_in.description)
        with acting_as(db, actor_id):
            db.add(role_obj)
            await self.flush(db)
            await self.replace_links(
                db,
                RolePermission,
                owner_field="role_id",
                owner_id=role_obj.id,
                target_field="permission_id",
                target_ids=ids,
            )
            await self.commit(db)
        await db.refresh(role_obj)
        return role_obj

    async def update(self, db: AsyncSession, *, db_obj: Role, obj_in: RoleUpdate, actor_id: int) -> Role:
        """Update a role; ``permission_ids`` replaces the whole set when given.

        Ids are checked before anything is written, and the scalar changes
        commit together with the new permission set.
        """
        data = obj_in.model_dump(exclude_unset=True, exclude={"permission_ids"})
        ids = None
        if obj_in.permission_ids is not None:
            ids = await self._existing_permission_ids(db, obj_in.permission_ids)
        with acting_as(db, actor_id):
            self.apply(db, db_obj, data)
            await self.flush(db)
            if ids is not None:
                await self.replace_links(
                    db,
                    RolePermission,
                    owner_field="role_id",
                    owner_id=db_obj.id,
                    target_field="permission_id",
                    target_ids=ids,
                )
            await self.commit(db)
        await db.refresh(db_obj)
        return db_obj

    async def before_remove(self, db: AsyncSession, obj: Role, *, soft: bool) -> None:
        # Hard deletes unlink first so the join rows are logged
        if not soft:
            await self.replace_links(
                db,
                RolePermission,
                owner_field="role_id",
                owner_id=obj.id,
                target_field="permission_id",
                target_ids=[],
            )
            await db.execute(delete(UserRole).where(UserRole.role_id == obj.id))


class CRUDUser(CRUDBase[User, UserCreate, UserUpdate]):
    """CRUD operations for User."""

    async def get_by_username(self, db: AsyncSession, *, username: str) -> Optional[User]:
        """Get user by username."""
        result = await db.execute(self.live(select(User).where(User.username == username)))
        return result.scalar_one_or_none()

    async def _existing_role_ids(self, db: AsyncSession, ids: Iterable[int]) -> List[int]:
        wanted = set(ids)
        if not wanted:
            return []
        result = await db.execute(role.live(select(Role.id).where(Role.id.in_(wanted))))
        found = set(result.scalars().all())
        if found != wanted:
            raise ValidationError(f"Unknown role ids: {sorted(wanted - found)}")
        return sorted(found)

    async def set_roles(self, db: AsyncSession, *, user_id: int, role_ids: Iterable[int], actor_id: int) -> None:
        """Replace the roles assigned to a user."""
        ids = await self._existing_role_ids(db, role_ids)
        with acting_as(db, actor_id):
            await self.replace_links(
                db,
                UserRole,
                owner_field="user_id",
                owner_id=user_id,
                target_field="role_id",
                target_ids=ids,
            )
            await self.commit(db)

    async def create(self, db: AsyncSession, *, obj_in: UserCreate, actor_id: int) -> User:
        """Create a new user with roles."""
        ids = await self._existing_role_ids(db, obj_in.role_ids)
        user_obj = User(
            username=obj_in.username,
            password_hash=AuthService.hash_password(obj_in.password),
            is_active=obj_in.is_active,
        )
        with acting_as(db, actor_id):
            db.add(user_obj)
            await self.flush(db)
            await self.replace_links(
                db,
                UserRole,
                owner_field="user_id",
                owner_id=user_obj.id,
                target_field="role_id",
                target_ids=ids,
            )
            await self.commit(db)
        await db.refresh(user_obj)
        return user_obj

    async def update(self, db: AsyncSession, *, db_obj: User, obj_in: UserUpdate, actor_id: int) -> User:
        """Update user; a new password is hashed, ``role_ids`` replaces the set."""
        data: Dict[str, Any] = obj_in.model_dump(exclude_unset=True, exclude={"password", "role_ids"})
        if obj_in.password:
            data["password_hash"] = AuthService.hash_password(obj_in.password)
        ids = None
        if obj_in.role_ids is not None:
            ids = await self._existing_role_ids(db, obj_in.role_ids)
        with acting_as(db, actor_id):
            self.apply(db, db_obj, data)
            await self.flush(db)
            if ids is not None:
                await self.replace_links(
                    db,
                    UserRole,
                    owner_field="user_id",
                    owner_id=db_obj.id,
                    target_field="role_id",
                    target_ids=ids,
                )
            await self.commit(db)
        await db.refresh(db_obj)
        return db_obj

    async def before_remove(self, db: AsyncSession, obj: User, *, soft: bool) -> None:
        if not soft:
            await self.replace_links(
                db,
                UserRole,
                owner_field="user_id",
                owner_id=obj.id,
                target_field="role_id",
                target_ids=[],
            )

    async def list_users(
        self,
        db: AsyncSession,
        *,
        page: int,
        page_size: int,
        username: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: str = "ASC",
    ) -> Dict[str, Any]:
        """Page through users filtered by partial username."""
        query = select(User)
        if username:
            query = query.where(User.username.ilike(f"%{username}%"))
        column = {
            "username": User.username,
            "creationDate": User.creation_date,
            "updatedOn": User.updated_on,
        }.get(sort_by)
        if column is not None:
            query = query.order_by(column.desc() if sort_order.upper() == "DESC" else column.asc(), User.id)
        else:
            query = query.order_by(User.id)
        return await self.paginate(db, page=page, page_size=page_size, query=query)


permission = CRUDPermission(Permission)
role = CRUDRole(Role)
user = CRUDUser(User)
