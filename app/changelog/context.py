"""Acting-user attribution carried on the database session."""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from app.core.exceptions import MissingActorError

_OPTIONS_KEY = "changelog_options"


def validate_actor(actor_id: Any) -> int:
    """Return ``actor_id`` if it is a usable numeric user id.

    ``0`` is the system actor used by bootstrap code and is valid.
    """
    if isinstance(actor_id, bool) or not isinstance(actor_id, int) or actor_id < 0:
        raise MissingActorError(actor_id)
    return actor_id


@dataclass(frozen=True)
class AuditOptions:
    """Caller options attached to a session for user-initiated mutations."""

    actor_id: Any = None

    def require_actor(self) -> int:
        return validate_actor(self.actor_id)


def audit_options(session) -> Optional[AuditOptions]:
    """Options of ``session``; ``None`` means the mutation is internal."""
    if session is None:
        return None
    return session.info.get(_OPTIONS_KEY)


@contextmanager
def acting_as(session, actor_id: Any) -> Iterator[Any]:
    """Attribute every flush inside the block to ``actor_id``.

    Works with both ``Session`` and ``AsyncSession`` (which shares ``info``
    with its sync session). The flush has to happen inside the block.
    """
    previous = session.info.get(_OPTIONS_KEY)
    session.info[_OPTIONS_KEY] = AuditOptions(actor_id=actor_id)
    try:
        yield session
    finally:
        if previous is None:
            session.info.pop(_OPTIONS_KEY, None)
        else:
            session.info[_OPTIONS_KEY] = previous
