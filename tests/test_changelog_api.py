"""Tests for reading change logs through the API and the CRUD layer."""
import pytest

from app.core.exceptions import UnknownAssociationError
from app.crud.changelog import list_by_association, redact
from app.schemas.changelog import ChangeLogDetailResponse, ChangeLogResponse


async def create_department(client, auth_headers, name="Kitchen"):
    response = await client.post("/api/v1/departments", json={"name": name}, headers=auth_headers)
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_item_history_is_returned_oldest_first(client, auth_headers, admin_user):
    department = await create_department(client, auth_headers)
    created = await client.post(
        "/api/v1/items",
        json={"name": "Knife", "department_id": department["id"]},
        headers=auth_headers,
    )
    item_id = created.json()["id"]
    await client.put(f"/api/v1/items/{item_id}", json={"quantity": 5}, headers=auth_headers)

    response = await client.get(f"/api/v1/items/{item_id}/changelogs", headers=auth_headers)

    assert response.status_code == 200
    page = response.json()
    assert page["total"] == 2
    assert page["currentPage"] == 1
    assert [log["operation"] for log in page["data"]] == ["create", "update"]
    assert all(log["changed_by"] == admin_user.id for log in page["data"])
    update_fields = {d["field"]: d for d in page["data"][1]["details"]}
    assert update_fields["quantity"]["old_value"] == 1
    assert update_fields["quantity"]["new_value"] == 5
    assert update_fields["quantity"]["diff_type"] == "changed"


@pytest.mark.asyncio
async def test_changelog_pagination(client, auth_headers):
    department = await create_department(client, auth_headers)
    for name in ("Pantry", "Storage", "Bar"):
        await client.put(
            f"/api/v1/departments/{department['id']}", json={"name": name}, headers=auth_headers
        )

    response = await client.get(
        f"/api/v1/departments/{department['id']}/changelogs",
        params={"page": 2, "pageSize": 3},
        headers=auth_headers,
    )

    page = response.json()
    assert page["total"] == 4
    assert page["totalPages"] == 2
    assert page["currentPage"] == 2
    [last] = page["data"]
    assert {d["field"]: d["new_value"] for d in last["details"]}["name"] == "Bar"


@pytest.mark.asyncio
async def test_invalid_page_returns_empty_result(client, auth_headers):
    department = await create_department(client, auth_headers)

    response = await client.get(
        f"/api/v1/departments/{department['id']}/changelogs",
        params={"page": 0},
        headers=auth_headers,
    )

    assert response.json() == {"data": [], "total": 0, "totalPages": 0, "currentPage": 0}


@pytest.mark.asyncio
async def test_password_hash_is_masked_in_user_history(client, auth_headers, db_session):
    created = await client.post(
        "/api/v1/users",
        json={"username": "bob", "password": "s3cret"},
        headers=auth_headers,
    )
    user_id = created.json()["id"]
    await client.put(f"/api/v1/users/{user_id}", json={"password": "n3w"}, headers=auth_headers)

    response = await client.get(f"/api/v1/users/{user_id}/changelogs", headers=auth_headers)

    logs = response.json()["data"]
    password_details = [d for log in logs for d in log["details"] if d["field"] == "password_hash"]
    assert len(password_details) == 2
    assert all(
        detail["old_value"] == "************" and detail["new_value"] == "************"
        for detail in password_details
    )

    trusted = await list_by_association(db_session, "user", user_id, redact_sensitive=False)
    raw = [d for log in trusted["data"] for d in log.details if d.field == "password_hash"]
    assert raw[0].new_value.startswith("$2")


@pytest.mark.asyncio
async def test_changelogs_require_authentication(client):
    response = await client.get("/api/v1/items/1/changelogs")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_unknown_association_is_rejected(db_session):
    with pytest.raises(UnknownAssociationError):
        await list_by_association(db_session, "widget", 1)


def test_redact_returns_copies():
    log = ChangeLogResponse(
        id=1,
        operation="update",
        changed_at="2026-01-05T12:00:00+00:00",
        changed_by=3,
        user_id=3,
        details=[
            ChangeLogDetailResponse(id=1, field="password_hash", old_value="a", new_value="b", diff_type="changed"),
            ChangeLogDetailResponse(id=2, field="username", old_value="x", new_value="y", diff_type="changed"),
        ],
    )

    masked = redact(log)

    assert [(d.old_value, d.new_value) for d in masked.details] == [
        ("************", "************"),
        ("x", "y"),
    ]
    assert log.details[0].old_value == "a"
