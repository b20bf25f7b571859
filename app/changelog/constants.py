"""Immutable lookup tables shared by the change-logging subsystem."""
from __future__ import annotations

from types import MappingProxyType

OPERATIONS = ("create", "update", "delete", "link", "unlink")

DIFF_TYPES = ("added", "changed", "removed")

OPERATION_TO_DIFF_TYPE = MappingProxyType(
    {
        "create": "added",
        "link": "added",
        "update": "changed",
        "delete": "removed",
        "unlink": "removed",
    }
)

# Change-log name of a tracked model -> association column on ``change_logs``.
ASSOCIATION_FIELDS = MappingProxyType(
    {
        "item": "item_id",
        "category": "category_id",
        "department": "department_id",
        "permission": "permission_id",
        "role": "role_id",
        "user": "user_id",
    }
)

# Bookkeeping columns that do not count as business attributes when deciding
# whether a row is a pure join-table row.
TIMESTAMP_FIELDS = frozenset(
    {
        "creation_date",
        "updated_on",
        "deletion_date",
        "created_at",
        "updated_at",
        "deleted_at",
    }
)

SOFT_DELETE_FIELD = "deletion_date"

SYSTEM_ACTOR_ID = 0


def diff_type_for(operation: str) -> str:
    """Return the diff type recorded for ``operation``."""
    try:
        return OPERATION_TO_DIFF_TYPE[operation]
    except KeyError:
        raise ValueError(f"Unknown change-log operation: {operation!r}") from None
