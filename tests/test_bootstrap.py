"""Tests for the permission/admin bootstrap."""
import pytest
from sqlalchemy import func, select

from app.changelog.constants import SYSTEM_ACTOR_ID
from app.core.security import ADMIN_ROLE_DESCRIPTION, Permission as PermissionName
from app.models.changelog import ChangeLog
from app.models.user import Permission, Role
from app.services.bootstrap_service import populate_admin_and_permissions


@pytest.mark.asyncio
async def test_creates_permissions(db_session):
    await populate_admin_and_permissions(db_session)

    names = set((await db_session.execute(select(Permission.name))).scalars().all())
    assert {"create_category", "get_user"} <= names
    assert names == {p.value for p in PermissionName}


@pytest.mark.asyncio
async def test_creates_admin_role_and_user(db_session):
    admin = await populate_admin_and_permissions(db_session)

    role = (await db_session.execute(select(Role).where(Role.name == "admin"))).scalar_one()
    assert role.description == ADMIN_ROLE_DESCRIPTION
    assert len(role.permissions) == len(PermissionName)
    assert admin.username == "admin"
    assert [r.name for r in admin.roles] == ["admin"]


@pytest.mark.asyncio
async def test_is_idempotent(db_session):
    await populate_admin_and_permissions(db_session)
    logs = (await db_session.execute(select(func.count(ChangeLog.id)))).scalar_one()

    await populate_admin_and_permissions(db_session)

    assert (await db_session.execute(select(func.count(ChangeLog.id)))).scalar_one() == logs
    assert (await db_session.execute(select(func.count(Role.id)))).scalar_one() == 2


@pytest.mark.asyncio
async def test_seed_is_attributed_to_system_actor(db_session, fetch_logs):
    admin = await populate_admin_and_permissions(db_session)

    logs = await fetch_logs(user_id=admin.id)
    assert [log.operation for log in logs] == ["create", "link"]
    assert {log.changed_by for log in logs} == {SYSTEM_ACTOR_ID}
