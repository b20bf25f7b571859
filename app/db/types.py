"""Custom SQLAlchemy column types and column helpers."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.dialects.postgresql import JSONB as PGJSONB
from sqlalchemy.dialects.sqlite import JSON as SQLiteJSON


def JSONBType(**kwargs):
    """Return a JSONB column type compatible with SQLite for tests."""
    pg_jsonb = PGJSONB(**kwargs)
    return pg_jsonb.with_variant(SQLiteJSON(), "sqlite")


def utcnow() -> datetime:
    """Timezone-aware "now" used for Python-side timestamp defaults."""
    return datetime.now(timezone.utc)


def enum_values(enum_cls) -> list[str]:
    """Persist enum values (not member names) in ``Enum`` columns."""
    return [member.value for member in enum_cls]
