"""Field-level diffing of entity snapshots."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple
from uuid import UUID

from sqlalchemy import inspect
from sqlalchemy.orm import Mapper

from app.changelog.constants import TIMESTAMP_FIELDS, diff_type_for


@dataclass(frozen=True)
class FieldDiff:
    """A single changed attribute."""

    field: str
    old_value: Any
    new_value: Any
    diff_type: str


@dataclass(frozen=True)
class EntityState:
    """Snapshot of a mapped instance as seen by a lifecycle hook.

    ``values`` holds the loaded column values after the mutation, ``previous``
    the committed value of every attribute listed in ``changed``.
    ``relation_fields`` is declared by the schema: columns carrying a foreign
    key (or ``info={"relation": True}``).
    """

    model_name: str
    values: Mapping[str, Any]
    previous: Mapping[str, Any] = field(default_factory=dict)
    changed: Tuple[str, ...] = ()
    relation_fields: FrozenSet[str] = frozenset()
    identity: Any = None

    @classmethod
    def from_instance(cls, instance) -> "EntityState":
        """Build a snapshot from a persistent or just-flushed ORM instance."""
        insp = inspect(instance)
        mapper = insp.mapper
        values: Dict[str, Any] = {}
        previous: Dict[str, Any] = {}
        changed: List[str] = []
        for attr in mapper.column_attrs:
            key = attr.key
            # Expired or deferred attributes are skipped; loading them here
            # would emit SQL in the middle of a flush.
            if key not in insp.dict:
                continue
            values[key] = insp.dict[key]
            history = insp.attrs[key].history
            if history.added or history.deleted:
                previous[key] = history.deleted[0] if history.deleted else None
                changed.append(key)
        return cls(
            model_name=changelog_name(mapper),
            values=values,
            previous=previous,
            changed=tuple(changed),
            relation_fields=relation_fields(mapper),
            identity=values.get("id"),
        )

    @classmethod
    def from_values(cls, mapper: Mapper, row: Mapping[str, Any]) -> "EntityState":
        """Build a snapshot from a plain row (bulk statements, snapshots)."""
        values = {attr.key: row[attr.key] for attr in mapper.column_attrs if attr.key in row}
        return cls(
            model_name=changelog_name(mapper),
            values=values,
            relation_fields=relation_fields(mapper),
            identity=values.get("id"),
        )

    def previous_value(self, key: str) -> Any:
        if key in self.previous:
            return self.previous[key]
        return self.values.get(key)

    def excluding(self, fields: Iterable[str]) -> "EntityState":
        """Return a copy that no longer reports ``fields`` as changed."""
        dropped = set(fields)
        return replace(
            self,
            previous={k: v for k, v in self.previous.items() if k not in dropped},
            changed=tuple(k for k in self.changed if k not in dropped),
        )

    @property
    def foreign_keys(self) -> List[str]:
        return [key for key in self.values if key in self.relation_fields]

    @property
    def is_join_table(self) -> bool:
        """True for pure association rows: only relation and timestamp fields."""
        business = [
            key for key in self.values if key not in self.relation_fields and key not in TIMESTAMP_FIELDS
        ]
        return len(self.foreign_keys) > 1 and not business


def changelog_name(mapper: Mapper) -> str:
    cls = mapper.class_
    return getattr(cls, "__changelog_name__", None) or mapper.local_table.name


def relation_fields(mapper: Mapper) -> FrozenSet[str]:
    return frozenset(
        attr.key
        for attr in mapper.column_attrs
        if any(column.foreign_keys or column.info.get("relation") for column in attr.columns)
    )


def normalize(value: Any) -> Any:
    """Normalize a value for equality comparison."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return value


def values_equal(old: Any, new: Any) -> bool:
    return normalize(old) == normalize(new)


def serialize_value(value: Any) -> Any:
    """Convert a diff value into something a JSON column accepts."""
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, Enum):
        return serialize_value(value.value)
    if isinstance(value, datetime):
        return normalize(value).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, Mapping):
        return {str(key): serialize_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [serialize_value(item) for item in value]
    raise TypeError(f"Cannot serialize value of type {type(value).__name__}")


def diff(
    state: EntityState,
    operation: str,
    *,
    relation: Optional[str] = None,
    related_id: Any = None,
) -> List[FieldDiff]:
    """Compute the field diffs to record for ``operation`` on ``state``."""
    diff_type = diff_type_for(operation)

    if operation == "create":
        return [FieldDiff(key, None, value, diff_type) for key, value in state.values.items()]

    if operation == "delete":
        return [FieldDiff(key, value, None, diff_type) for key, value in state.values.items()]

    if operation == "update":
        diffs = []
        for key, value in state.values.items():
            old = state.previous_value(key)
            if not values_equal(old, value):
                diffs.append(FieldDiff(key, old, value, diff_type))
        return diffs

    linking = operation == "link"
    if state.is_join_table:
        return [
            FieldDiff(key, None, state.values[key], diff_type)
            if linking
            else FieldDiff(key, state.values[key], None, diff_type)
            for key in state.foreign_keys
        ]

    if linking:
        return [FieldDiff(relation or "relation", None, related_id, diff_type)]
    old = state.previous_value(relation) if relation else None
    return [FieldDiff(relation or "relation", old, None, diff_type)]
