"""Persistence of change logs on the caller's connection."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import insert
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from app.changelog.constants import ASSOCIATION_FIELDS, OPERATIONS
from app.changelog.context import validate_actor
from app.changelog.diff import EntityState, FieldDiff, diff, serialize_value
from app.changelog.inference import changed_relation_fields, infer_operation
from app.core.exceptions import DetailPersistError, UnknownAssociationError
from app.db.types import utcnow
from app.middleware.metrics import change_log_detail_failures_total, change_logs_written_total
from app.models.changelog import ChangeLog, ChangeLogDetail

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetailOutcome:
    """Result of persisting one detail row."""

    field: str
    persisted: bool
    error: Optional[DetailPersistError] = None


@dataclass
class WriteResult:
    """What a single ``ChangeLogWriter.write`` call stored."""

    change_log_id: int
    operation: str
    association: Dict[str, Any]
    outcomes: List[DetailOutcome] = field(default_factory=list)

    @property
    def failed(self) -> List[DetailOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.persisted]


def resolve_association(state: EntityState, model_name: str, model_id: Any) -> Dict[str, Any]:
    """Association columns to set on the change log row."""
    if state.is_join_table:
        association = {
            column: state.values[column]
            for column in ASSOCIATION_FIELDS.values()
            if state.values.get(column) is not None
        }
    else:
        try:
            column = ASSOCIATION_FIELDS[model_name]
        except (KeyError, TypeError):
            raise UnknownAssociationError(model_name) from None
        association = {column: model_id}
    ChangeLog.require_association(association)
    return association


@contextmanager
def _detail_scope(connection: Connection):
    # SQLite keeps the transaction usable after a failed statement; other
    # backends abort it, so each detail gets its own savepoint there.
    if connection.dialect.name == "sqlite":
        yield
    else:
        with connection.begin_nested():
            yield


class ChangeLogWriter:
    """Writes one ChangeLog row plus its ChangeLogDetail rows."""

    def write(
        self,
        connection: Connection,
        state: EntityState,
        operation: str,
        user_id: Any,
        model_name: str,
        model_id: Any,
        relation: Optional[str] = None,
        related_id: Any = None,
    ) -> Optional[WriteResult]:
        """Log ``operation`` on ``state``; returns ``None`` for a no-op update."""
        actor = validate_actor(user_id)
        if operation not in OPERATIONS:
            raise ValueError(f"Unknown change-log operation: {operation!r}")

        if operation == "update" and relation is None:
            operation = infer_operation(state, operation)
            if operation != "update":
                relation = changed_relation_fields(state)[0]
                related_id = (
                    state.values.get(relation) if operation == "link" else state.previous_value(relation)
                )

        association = resolve_association(state, model_name, model_id)
        diffs = diff(state, operation, relation=relation, related_id=related_id)
        if operation == "update" and not diffs:
            logger.debug("No net changes on %s %s, change log skipped", model_name, model_id)
            return None

        values: Dict[str, Any] = {
            "operation": operation,
            "changed_by": actor,
            "changed_at": utcnow(),
            **association,
        }
        if relation is not None and related_id is not None:
            values["change_details"] = {"relation": relation, "related_id": serialize_value(related_id)}

        change_log_id = connection.execute(
            insert(ChangeLog.__table__).values(**values)
        ).inserted_primary_key[0]

        outcomes = [self._persist_detail(connection, change_log_id, entry) for entry in diffs]
        change_logs_written_total.labels(operation=operation).inc()
        logger.debug(
            "Change log %s: %s on %s %s by %s (%d details)",
            change_log_id,
            operation,
            model_name,
            model_id,
            actor,
            len(outcomes),
        )
        return WriteResult(change_log_id, operation, association, outcomes)

    def _persist_detail(self, connection: Connection, change_log_id: int, entry: FieldDiff) -> DetailOutcome:
        try:
            row = {
                "change_log_id": change_log_id,
                "field": entry.field,
                "old_value": serialize_value(entry.old_value),
                "new_value": serialize_value(entry.new_value),
                "diff_type": entry.diff_type,
            }
            with _detail_scope(connection):
                connection.execute(insert(ChangeLogDetail.__table__).values(**row))
        except (TypeError, ValueError, SQLAlchemyError) as exc:
            error = DetailPersistError(entry.field, exc)
            change_log_detail_failures_total.inc()
            logger.warning("Skipping detail of change log %s: %s", change_log_id, error, exc_info=True)
            return DetailOutcome(entry.field, False, error)
        return DetailOutcome(entry.field, True)


change_log_writer = ChangeLogWriter()


async def record_change(
    state: EntityState,
    operation: str,
    user_id: Any,
    model_name: str,
    model_id: Any,
    relation: Optional[str] = None,
    related_id: Any = None,
    *,
    session_factory=None,
) -> Optional[WriteResult]:
    """Write a change log in its own transaction.

    Detached from any business mutation, so it is not rolled back with one.
    """
    if session_factory is None:
        from app.database import AsyncSessionLocal

        session_factory = AsyncSessionLocal

    async with session_factory() as session:
        async with session.begin():
            return await session.run_sync(
                lambda sync_session: change_log_writer.write(
                    sync_session.connection(),
                    state,
                    operation,
                    user_id,
                    model_name,
                    model_id,
                    relation=relation,
                    related_id=related_id,
                )
            )
