"""Tests for user, role and permission management."""
import pytest
from sqlalchemy import select

from app.models.user import Permission


async def permission_ids(db_session, *names):
    result = await db_session.execute(select(Permission.id).where(Permission.name.in_(names)))
    return sorted(result.scalars().all())


@pytest.mark.asyncio
async def test_user_response_hides_password_hash(client, auth_headers):
    response = await client.post(
        "/api/v1/users", json={"username": "carol", "password": "pw"}, headers=auth_headers
    )

    assert response.status_code == 201
    body = response.json()
    assert "password_hash" not in body
    assert "password" not in body
    assert body["username"] == "carol"


@pytest.mark.asyncio
async def test_duplicate_username_conflicts(client, auth_headers):
    await client.post("/api/v1/users", json={"username": "dave", "password": "pw"}, headers=auth_headers)
    response = await client.post(
        "/api/v1/users", json={"username": "dave", "password": "pw"}, headers=auth_headers
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_role_permission_replacement_logs_link_and_unlink(client, auth_headers, db_session):
    first = await permission_ids(db_session, "get_item", "get_category")
    second = await permission_ids(db_session, "get_item", "get_department")

    created = await client.post(
        "/api/v1/roles",
        json={"name": "reader", "permission_ids": first},
        headers=auth_headers,
    )
    role_id = created.json()["id"]
    updated = await client.put(
        f"/api/v1/roles/{role_id}", json={"permission_ids": second}, headers=auth_headers
    )
    history = await client.get(f"/api/v1/roles/{role_id}/changelogs", headers=auth_headers)

    assert sorted(p["id"] for p in updated.json()["permissions"]) == second
    logs = history.json()["data"]
    assert [log["operation"] for log in logs] == ["create", "link", "link", "unlink", "link"]
    dropped = sorted(set(first) - set(second))
    added = sorted(set(second) - set(first))
    assert [logs[3]["permission_id"]] == dropped
    assert [logs[4]["permission_id"]] == added


@pytest.mark.asyncio
async def test_user_role_assignment_is_visible_from_both_sides(client, auth_headers):
    role = await client.post("/api/v1/roles", json={"name": "clerk"}, headers=auth_headers)
    role_id = role.json()["id"]
    user = await client.post(
        "/api/v1/users",
        json={"username": "erin", "password": "pw", "role_ids": [role_id]},
        headers=auth_headers,
    )
    user_id = user.json()["id"]

    user_history = await client.get(f"/api/v1/users/{user_id}/changelogs", headers=auth_headers)
    role_history = await client.get(f"/api/v1/roles/{role_id}/changelogs", headers=auth_headers)

    assert [log["operation"] for log in user_history.json()["data"]] == ["create", "link"]
    assert [log["operation"] for log in role_history.json()["data"]] == ["create", "link"]
    assert [r["id"] for r in user.json()["roles"]] == [role_id]


@pytest.mark.asyncio
async def test_unknown_role_ids_are_rejected(client, auth_headers):
    response = await client.post(
        "/api/v1/users",
        json={"username": "frank", "password": "pw", "role_ids": [999]},
        headers=auth_headers,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_users_filters_and_sorts(client, auth_headers):
    for name in ("zoe", "yann"):
        await client.post("/api/v1/users", json={"username": name, "password": "pw"}, headers=auth_headers)

    filtered = await client.get("/api/v1/users", params={"username": "ya"}, headers=auth_headers)
    ordered = await client.get(
        "/api/v1/users", params={"sortBy": "username", "sortOrder": "DESC"}, headers=auth_headers
    )

    assert [u["username"] for u in filtered.json()["data"]] == ["yann"]
    assert [u["username"] for u in ordered.json()["data"]] == ["zoe", "yann", "admin"]


@pytest.mark.asyncio
async def test_permission_crud(client, auth_headers):
    created = await client.post(
        "/api/v1/permissions",
        json={"name": "export_items", "description": "Export items"},
        headers=auth_headers,
    )
    permission_id = created.json()["id"]
    renamed = await client.put(
        f"/api/v1/permissions/{permission_id}",
        json={"description": "Export inventory"},
        headers=auth_headers,
    )
    deleted = await client.delete(f"/api/v1/permissions/{permission_id}", headers=auth_headers)
    history = await client.get(f"/api/v1/permissions/{permission_id}/changelogs", headers=auth_headers)

    assert created.status_code == 201
    assert renamed.json()["description"] == "Export inventory"
    assert deleted.status_code == 204
    assert [log["operation"] for log in history.json()["data"]] == ["create", "update", "delete"]


@pytest.mark.asyncio
async def test_empty_permission_description_is_rejected(client, auth_headers):
    response = await client.post(
        "/api/v1/permissions", json={"name": "noop", "description": ""}, headers=auth_headers
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_role_update_with_unknown_permission_changes_nothing(client, auth_headers):
    created = await client.post("/api/v1/roles", json={"name": "stocker"}, headers=auth_headers)
    role_id = created.json()["id"]

    response = await client.put(
        f"/api/v1/roles/{role_id}",
        json={"name": "renamed", "permission_ids": [99999]},
        headers=auth_headers,
    )
    current = await client.get(f"/api/v1/roles/{role_id}", headers=auth_headers)
    history = await client.get(f"/api/v1/roles/{role_id}/changelogs", headers=auth_headers)

    assert response.status_code == 422
    assert current.json()["name"] == "stocker"
    assert [log["operation"] for log in history.json()["data"]] == ["create"]


@pytest.mark.asyncio
async def test_role_rename_and_permissions_commit_together(client, auth_headers, db_session):
    [get_item] = await permission_ids(db_session, "get_item")
    created = await client.post("/api/v1/roles", json={"name": "stocker"}, headers=auth_headers)
    role_id = created.json()["id"]

    response = await client.put(
        f"/api/v1/roles/{role_id}",
        json={"name": "storekeeper", "permission_ids": [get_item]},
        headers=auth_headers,
    )
    history = await client.get(f"/api/v1/roles/{role_id}/changelogs", headers=auth_headers)

    assert response.json()["name"] == "storekeeper"
    assert [p["id"] for p in response.json()["permissions"]] == [get_item]
    assert [log["operation"] for log in history.json()["data"]] == ["create", "update", "link"]


@pytest.mark.asyncio
async def test_user_update_with_unknown_role_changes_nothing(client, auth_headers):
    created = await client.post(
        "/api/v1/users", json={"username": "gina", "password": "pw"}, headers=auth_headers
    )
    user_id = created.json()["id"]

    response = await client.put(
        f"/api/v1/users/{user_id}",
        json={"username": "georgina", "role_ids": [999]},
        headers=auth_headers,
    )
    current = await client.get(f"/api/v1/users/{user_id}", headers=auth_headers)
    history = await client.get(f"/api/v1/users/{user_id}/changelogs", headers=auth_headers)

    assert response.status_code == 422
    assert current.json()["username"] == "gina"
    assert [log["operation"] for log in history.json()["data"]] == ["create"]
