"""ORM lifecycle listeners that feed the change log.

Tracked entities are logged from mapper ``after_insert``/``after_update``/
``after_delete`` events, on the connection of the flush that wrote them.
ORM bulk statements (``session.execute(insert(UserRole), rows)``,
``update(Item).where(...)``, ``delete(UserRole).where(...)``) are logged from
``do_orm_execute``: rows an UPDATE or DELETE touches are snapshotted before the
statement runs. A bulk statement whose rows cannot be determined raises
:class:`UnloggableStatementError` instead of running unlogged.

Attribution comes from the session (see :func:`app.changelog.context.acting_as`);
a session without options is an internal mutation and is not logged.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from sqlalchemy import event, inspect, select
from sqlalchemy.engine import Connection
from sqlalchemy.orm import Mapper, Session, object_session

from app.changelog.constants import SOFT_DELETE_FIELD
from app.changelog.context import AuditOptions, audit_options
from app.changelog.diff import EntityState, changelog_name, values_equal
from app.changelog.inference import relation_changes
from app.changelog.writer import WriteResult, change_log_writer
from app.core.exceptions import UnloggableStatementError
from app.models.inventory import Category, Department, Item
from app.models.user import Permission, Role, RolePermission, User, UserRole

logger = logging.getLogger(__name__)

TRACKED_MODELS = (Item, Category, Department, Permission, Role, User)
JOIN_MODELS = (UserRole, RolePermission)

_JOIN_OPERATIONS = {"create": "link", "delete": "unlink"}


def on_action(
    action: str,
    instance_or_instances: Union[Any, Sequence[Any]],
    options: Optional[AuditOptions],
    model_name: str,
    connection: Connection,
) -> List[WriteResult]:
    """Log ``action`` (create/update/delete) for one instance or a bulk list.

    Every instance of a bulk call gets its own change log. Accepts ORM
    instances or prepared :class:`EntityState` snapshots.
    """
    if options is None:
        return []
    actor = options.require_actor()

    if isinstance(instance_or_instances, (list, tuple)):
        instances = instance_or_instances
    else:
        instances = [instance_or_instances]

    results: List[WriteResult] = []
    for instance in instances:
        state = instance if isinstance(instance, EntityState) else EntityState.from_instance(instance)
        results.extend(_log_state(action, state, actor, model_name, connection))
    return results


def _log_state(
    action: str,
    state: EntityState,
    actor: int,
    model_name: str,
    connection: Connection,
) -> List[WriteResult]:
    if state.is_join_table:
        owner, relation = state.foreign_keys[:2]
        written = change_log_writer.write(
            connection,
            state,
            _JOIN_OPERATIONS[action],
            actor,
            model_name,
            state.values[owner],
            relation=relation,
            related_id=state.values[relation],
        )
        return [written]

    if action != "update":
        written = change_log_writer.write(connection, state, action, actor, model_name, state.identity)
        return [written]

    results = []
    changes = relation_changes(state)
    for field, operation in changes:
        related_id = state.values.get(field) if operation == "link" else state.previous_value(field)
        results.append(
            change_log_writer.write(
                connection,
                state,
                operation,
                actor,
                model_name,
                state.identity,
                relation=field,
                related_id=related_id,
            )
        )

    remainder = change_log_writer.write(
        connection,
        state.excluding(field for field, _ in changes),
        "update",
        actor,
        model_name,
        state.identity,
    )
    if remainder is not None:
        results.append(remainder)
    return results


def _select_rows(
    session: Session, mapper: Mapper, whereclause, params: Optional[Mapping[str, Any]] = None
) -> List[Mapping[str, Any]]:
    query = select(*mapper.local_table.columns).order_by(*mapper.primary_key)
    if whereclause is not None:
        query = query.where(whereclause)
    return list(session.connection().execute(query, params).mappings().all())


def before_mutation(
    session: Session, model, whereclause, params: Optional[Mapping[str, Any]] = None
) -> List[EntityState]:
    """Snapshot the rows of ``model`` a bulk update or delete is about to touch.

    ``params`` are the bind values of ``whereclause`` when it uses bindparams.
    """
    mapper = inspect(model)
    rows = _select_rows(session, mapper, whereclause, params)
    return [EntityState.from_values(mapper, row) for row in rows]


def _updated_state(mapper: Mapper, before: EntityState, row: Mapping[str, Any]) -> EntityState:
    """State of ``row`` with ``before`` as the committed values."""
    current = EntityState.from_values(mapper, row)
    changed = tuple(
        key for key, value in current.values.items() if not values_equal(before.values.get(key), value)
    )
    return replace(current, previous={key: before.values.get(key) for key in changed}, changed=changed)


def _is_soft_delete(mapper: Mapper, state: EntityState) -> bool:
    return (
        getattr(mapper.class_, "__soft_delete__", False)
        and SOFT_DELETE_FIELD in state.changed
        and state.previous.get(SOFT_DELETE_FIELD) is None
        and state.values.get(SOFT_DELETE_FIELD) is not None
    )


def _after_insert(mapper: Mapper, connection: Connection, target) -> None:
    on_action("create", target, audit_options(object_session(target)), changelog_name(mapper), connection)


def _after_update(mapper: Mapper, connection: Connection, target) -> None:
    options = audit_options(object_session(target))
    if options is None:
        return
    state = EntityState.from_instance(target)
    action = "delete" if _is_soft_delete(mapper, state) else "update"
    on_action(action, state, options, changelog_name(mapper), connection)


def _after_delete(mapper: Mapper, connection: Connection, target) -> None:
    on_action("delete", target, audit_options(object_session(target)), changelog_name(mapper), connection)


for _model in TRACKED_MODELS:
    event.listen(_model, "after_insert", _after_insert)
    event.listen(_model, "after_update", _after_update)
    event.listen(_model, "after_delete", _after_delete)

for _model in JOIN_MODELS:
    event.listen(_model, "after_insert", _after_insert)
    event.listen(_model, "after_delete", _after_delete)


def _primary_key(mapper: Mapper):
    return mapper.primary_key[0]


def _inserted_rows(orm_execute_state, mapper: Mapper) -> List[Dict[str, Any]]:
    """Rows an INSERT writes, from execute() parameters or ``.values()``."""
    params = orm_execute_state.parameters
    if isinstance(params, Mapping) and params:
        return [dict(params)]
    if isinstance(params, (list, tuple)):
        return [dict(row) for row in params]

    columns = {column.key for column in mapper.local_table.columns}
    rows: Dict[int, Dict[str, Any]] = {}
    for key, value in orm_execute_state.statement.compile().params.items():
        if key in columns:
            rows.setdefault(0, {})[key] = value
            continue
        # multi-row .values() binds are named <column>_m<row>
        name, marker, index = key.rpartition("_m")
        if marker and name in columns and index.isdigit():
            rows.setdefault(int(index), {})[name] = value
    return [rows[index] for index in sorted(rows)]


def _log_bulk_insert(orm_execute_state, mapper: Mapper, options: AuditOptions, model_name: str):
    session = orm_execute_state.session
    rows = _inserted_rows(orm_execute_state, mapper)
    if not rows:
        raise UnloggableStatementError(f"Cannot determine the rows inserted into {model_name}")

    if mapper.class_ in JOIN_MODELS:
        result = orm_execute_state.invoke_statement()
        states = [EntityState.from_values(mapper, row) for row in rows]
        on_action("create", states, options, model_name, session.connection())
        return result

    key = _primary_key(mapper)
    ids = [row.get(key.key) for row in rows]
    if any(identity is None for identity in ids):
        raise UnloggableStatementError(f"Bulk insert into {model_name} needs explicit primary keys to be logged")
    result = orm_execute_state.invoke_statement()
    states = [EntityState.from_values(mapper, row) for row in _select_rows(session, mapper, key.in_(ids))]
    on_action("create", states, options, model_name, session.connection())
    return result


def _log_bulk_update(orm_execute_state, mapper: Mapper, options: AuditOptions, model_name: str):
    if mapper.class_ in JOIN_MODELS:
        raise UnloggableStatementError(f"{model_name} rows are replaced through insert and delete, not updated")

    session = orm_execute_state.session
    key = _primary_key(mapper)
    params = orm_execute_state.parameters
    if isinstance(params, (list, tuple)):
        # bulk UPDATE by primary key
        whereclause = key.in_([row[key.key] for row in params])
        params = None
    else:
        whereclause = orm_execute_state.statement.whereclause
    snapshot = before_mutation(session, mapper.class_, whereclause, params or None)

    result = orm_execute_state.invoke_statement()
    if not snapshot:
        return result

    after = {
        row[key.key]: row
        for row in _select_rows(session, mapper, key.in_([state.identity for state in snapshot]))
    }
    for before in snapshot:
        row = after.get(before.identity)
        if row is None:
            continue
        state = _updated_state(mapper, before, row)
        action = "delete" if _is_soft_delete(mapper, state) else "update"
        on_action(action, state, options, model_name, session.connection())
    return result


def _log_bulk_delete(orm_execute_state, mapper: Mapper, options: AuditOptions, model_name: str):
    session = orm_execute_state.session
    params = orm_execute_state.parameters
    snapshot = before_mutation(
        session,
        mapper.class_,
        orm_execute_state.statement.whereclause,
        params if isinstance(params, Mapping) and params else None,
    )
    result = orm_execute_state.invoke_statement()
    on_action("delete", snapshot, options, model_name, session.connection())
    return result


@event.listens_for(Session, "do_orm_execute")
def _log_bulk_statements(orm_execute_state):
    """Log ORM bulk INSERT/UPDATE/DELETE statements on logged models.

    Join rows become link/unlink; tracked entities get one create, update
    or delete log per affected row.
    """
    if orm_execute_state.is_insert:
        handler = _log_bulk_insert
    elif orm_execute_state.is_update:
        handler = _log_bulk_update
    elif orm_execute_state.is_delete:
        handler = _log_bulk_delete
    else:
        return None
    mapper = orm_execute_state.bind_mapper
    if mapper is None or mapper.class_ not in TRACKED_MODELS + JOIN_MODELS:
        return None

    options = audit_options(orm_execute_state.session)
    if options is None:
        return None
    options.require_actor()
    return handler(orm_execute_state, mapper, options, changelog_name(mapper))
