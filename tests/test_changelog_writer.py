"""Tests for ChangeLogWriter and detached recording."""
import pytest
from prometheus_client import REGISTRY
from sqlalchemy import func, select

from app.changelog.diff import EntityState
from app.changelog.writer import change_log_writer, record_change
from app.core.exceptions import (
    DetailPersistError,
    InvariantViolationError,
    MissingActorError,
    UnknownAssociationError,
)
from app.models.changelog import ChangeLog, ChangeLogDetail

ITEM_RELATIONS = frozenset({"category_id", "department_id"})


def item_state(values, previous=None):
    previous = previous or {}
    return EntityState(
        model_name="item",
        values=values,
        previous=previous,
        changed=tuple(previous),
        relation_fields=ITEM_RELATIONS,
        identity=values.get("id"),
    )


async def write(db_session, *args, **kwargs):
    return await db_session.run_sync(
        lambda session: change_log_writer.write(session.connection(), *args, **kwargs)
    )


async def count(db_session, model) -> int:
    return (await db_session.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.mark.asyncio
async def test_create_writes_log_and_details(db_session, fetch_logs):
    state = item_state({"id": 11, "name": "Knife", "quantity": 2})

    result = await write(db_session, state, "create", 7, "item", 11)
    await db_session.commit()

    assert result.operation == "create"
    assert result.association == {"item_id": 11}
    assert result.failed == []

    [log] = await fetch_logs(item_id=11)
    assert log.changed_by == 7
    assert log.changed_at is not None
    assert [(d.field, d.old_value, d.new_value, d.diff_type) for d in log.details] == [
        ("id", None, 11, "added"),
        ("name", None, "Knife", "added"),
        ("quantity", None, 2, "added"),
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("actor", [None, "7", -1, True, 1.5])
async def test_invalid_actor_is_rejected(db_session, actor):
    with pytest.raises(MissingActorError):
        await write(db_session, item_state({"id": 1}), "create", actor, "item", 1)

    assert await count(db_session, ChangeLog) == 0


@pytest.mark.asyncio
async def test_system_actor_is_accepted(db_session):
    result = await write(db_session, item_state({"id": 1, "name": "Seed"}), "create", 0, "item", 1)

    assert result is not None


@pytest.mark.asyncio
async def test_unknown_model_has_no_association(db_session):
    with pytest.raises(UnknownAssociationError):
        await write(db_session, item_state({"id": 1}), "create", 7, "widget", 1)


@pytest.mark.asyncio
async def test_missing_model_id_violates_association_invariant(db_session):
    with pytest.raises(InvariantViolationError):
        await write(db_session, item_state({"name": "Orphan"}), "create", 7, "item", None)

    assert await count(db_session, ChangeLog) == 0


@pytest.mark.asyncio
async def test_orm_change_log_without_association_is_rejected(db_session):
    db_session.add(ChangeLog(operation="create", changed_by=7))

    with pytest.raises(InvariantViolationError):
        await db_session.flush()
    await db_session.rollback()

    assert await count(db_session, ChangeLog) == 0


@pytest.mark.asyncio
async def test_unknown_operation_is_rejected(db_session):
    with pytest.raises(ValueError):
        await write(db_session, item_state({"id": 1}), "merge", 7, "item", 1)


@pytest.mark.asyncio
async def test_update_without_net_change_writes_nothing(db_session):
    state = item_state({"id": 1, "name": "Knife"}, previous={"name": "Knife"})

    assert await write(db_session, state, "update", 7, "item", 1) is None
    assert await count(db_session, ChangeLog) == 0


@pytest.mark.asyncio
async def test_update_of_relation_is_written_as_link(db_session, fetch_logs):
    state = item_state({"id": 3, "category_id": 5}, previous={"category_id": None})

    result = await write(db_session, state, "update", 7, "item", 3)
    await db_session.commit()

    assert result.operation == "link"
    [log] = await fetch_logs(item_id=3)
    assert log.operation == "link"
    assert log.change_details == {"relation": "category_id", "related_id": 5}
    assert [(d.field, d.new_value, d.diff_type) for d in log.details] == [("category_id", 5, "added")]


@pytest.mark.asyncio
async def test_detail_failure_keeps_the_change_log(db_session, fetch_logs):
    before = REGISTRY.get_sample_value("change_log_detail_failures_total") or 0.0
    state = item_state({"id": 4, "name": "Knife", "blob": object()})

    result = await write(db_session, state, "create", 7, "item", 4)
    await db_session.commit()

    [failed] = result.failed
    assert failed.field == "blob"
    assert isinstance(failed.error, DetailPersistError)
    assert isinstance(failed.error.cause, TypeError)
    assert REGISTRY.get_sample_value("change_log_detail_failures_total") == before + 1

    [log] = await fetch_logs(item_id=4)
    assert [d.field for d in log.details] == ["id", "name"]


@pytest.mark.asyncio
async def test_written_counter_is_labelled_by_operation(db_session):
    labels = {"operation": "delete"}
    before = REGISTRY.get_sample_value("change_logs_written_total", labels) or 0.0

    await write(db_session, item_state({"id": 8, "name": "Knife"}), "delete", 7, "item", 8)

    assert REGISTRY.get_sample_value("change_logs_written_total", labels) == before + 1


@pytest.mark.asyncio
async def test_join_row_sets_both_associations(db_session, fetch_logs):
    state = EntityState(
        model_name="role_permission",
        values={"role_id": 2, "permission_id": 6},
        relation_fields=frozenset({"role_id", "permission_id"}),
    )

    result = await write(
        db_session, state, "link", 7, "role_permission", 2, relation="permission_id", related_id=6
    )
    await db_session.commit()

    assert result.association == {"permission_id": 6, "role_id": 2}
    [log] = await fetch_logs(role_id=2)
    assert log.permission_id == 6
    assert {d.field for d in log.details} == {"role_id", "permission_id"}


@pytest.mark.asyncio
async def test_record_change_commits_in_its_own_transaction(db_session, session_factory, fetch_logs):
    state = item_state({"id": 21, "name": "Ladle"})

    result = await record_change(state, "create", 7, "item", 21, session_factory=session_factory)

    assert result.operation == "create"
    [log] = await fetch_logs(item_id=21)
    assert log.changed_by == 7
    assert await count(db_session, ChangeLogDetail) == 2


@pytest.mark.asyncio
async def test_record_change_propagates_actor_errors(session_factory):
    with pytest.raises(MissingActorError):
        await record_change(item_state({"id": 1}), "create", None, "item", 1, session_factory=session_factory)
