"""Reclassification of updates that only re-point a relation."""
from __future__ import annotations

from typing import List, Tuple

from app.changelog.diff import EntityState


def changed_relation_fields(state: EntityState) -> List[str]:
    """Changed relation fields, in column order."""
    return [key for key in state.changed if key in state.relation_fields]


def relation_operation(state: EntityState, field: str) -> str:
    return "unlink" if state.values.get(field) is None else "link"


def infer_operation(state: EntityState, declared: str) -> str:
    """Return the effective operation for a hook that fired with ``declared``.

    An update whose first changed relation field now holds a value is a
    ``link``; one that cleared it is an ``unlink``. Anything else is returned
    unchanged.
    """
    if declared != "update":
        return declared
    fields = changed_relation_fields(state)
    if not fields:
        return declared
    return relation_operation(state, fields[0])


def relation_changes(state: EntityState) -> List[Tuple[str, str]]:
    """One ``(field, link|unlink)`` pair per relation field changed by an update."""
    return [(key, relation_operation(state, key)) for key in changed_relation_fields(state)]
