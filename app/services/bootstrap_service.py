"""Bootstrap utilities for ensuring permissions, roles and the default admin exist.

Everything here runs as the system actor, so the seed data shows up in the
change log like any other mutation.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.changelog.constants import SYSTEM_ACTOR_ID
from app.config import settings
from app.core.security import (
    ADMIN_ROLE_DESCRIPTION,
    ADMIN_ROLE_NAME,
    PERMISSION_DESCRIPTIONS,
    ROLE_PERMISSIONS,
    Permission as PermissionName,
)
from app.crud.user import permission as permission_crud
from app.crud.user import role as role_crud
from app.crud.user import user as user_crud
from app.models.user import Permission, Role, User
from app.schemas.user import PermissionCreate, RoleCreate, UserCreate

logger = logging.getLogger(__name__)

DEFAULT_ROLE_DESCRIPTIONS = {
    ADMIN_ROLE_NAME: ADMIN_ROLE_DESCRIPTION,
    "viewer": "Read-only access to the inventory",
}


async def ensure_permissions(db: AsyncSession, *, actor_id: int = SYSTEM_ACTOR_ID) -> Dict[str, Permission]:
    """Ensure every known permission exists and return them by name."""
    permission_map: Dict[str, Permission] = {}
    for name in PermissionName:
        permission_obj = await permission_crud.get_by_name(db, name=name.value)
        if permission_obj is None:
            permission_obj = await permission_crud.create(
                db,
                obj_in=PermissionCreate(name=name.value, description=PERMISSION_DESCRIPTIONS[name]),
                actor_id=actor_id,
            )
            logger.info("Created permission %s", name.value)
        permission_map[name.value] = permission_obj
    return permission_map


async def ensure_roles(
    db: AsyncSession,
    *,
    role_names: Iterable[str],
    permission_map: Dict[str, Permission],
    actor_id: int = SYSTEM_ACTOR_ID,
) -> Dict[str, Role]:
    """Ensure that the given roles exist with their default permissions."""
    role_map: Dict[str, Role] = {}
    for role_name in role_names:
        permission_ids = [permission_map[p.value].id for p in ROLE_PERMISSIONS.get(role_name, [])]
        role_obj = await role_crud.get_by_name(db, name=role_name)
        if role_obj is None:
            role_obj = await role_crud.create(
                db,
                obj_in=RoleCreate(
                    name=role_name,
                    description=DEFAULT_ROLE_DESCRIPTIONS.get(role_name, f"Default role: {role_name}"),
                    permission_ids=permission_ids,
                ),
                actor_id=actor_id,
            )
            logger.info("Created role %s", role_name)
        elif {p.id for p in role_obj.permissions} != set(permission_ids):
            await role_crud.set_permissions(
                db, role_id=role_obj.id, permission_ids=permission_ids, actor_id=actor_id
            )
            await db.refresh(role_obj)
            logger.info("Updated permissions for role %s", role_name)
        role_map[role_name] = role_obj
    return role_map


async def ensure_default_admin(
    db: AsyncSession,
    *,
    admin_role: Role,
    username: Optional[str] = None,
    password: Optional[str] = None,
    actor_id: int = SYSTEM_ACTOR_ID,
) -> User:
    """Ensure that the default administrator account exists and holds the admin role."""
    username = username or settings.DEFAULT_ADMIN_USERNAME
    password = password or settings.DEFAULT_ADMIN_PASSWORD

    admin_user = await user_crud.get_by_username(db, username=username)
    if admin_user is None:
        admin_user = await user_crud.create(
            db,
            obj_in=UserCreate(username=username, password=password, role_ids=[admin_role.id]),
            actor_id=actor_id,
        )
        logger.info("Created default admin user %s", username)
        return admin_user

    role_ids = {r.id for r in admin_user.roles}
    if admin_role.id not in role_ids:
        await user_crud.set_roles(
            db, user_id=admin_user.id, role_ids=role_ids | {admin_role.id}, actor_id=actor_id
        )
        await db.refresh(admin_user)
    return admin_user


async def populate_admin_and_permissions(db: AsyncSession) -> User:
    """Seed permissions, default roles and the admin user; safe to run repeatedly."""
    permission_map = await ensure_permissions(db)
    role_map = await ensure_roles(db, role_names=ROLE_PERMISSIONS.keys(), permission_map=permission_map)
    return await ensure_default_admin(db, admin_role=role_map[ADMIN_ROLE_NAME])
