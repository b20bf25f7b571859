"""Read side of the change log."""
from typing import Any, Dict, Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.changelog.constants import ASSOCIATION_FIELDS
from app.config import settings
from app.core.exceptions import UnknownAssociationError
from app.crud.base import empty_page, page_result
from app.models.changelog import ChangeLog
from app.schemas.changelog import ChangeLogResponse


def redact(change_log: ChangeLogResponse, sensitive_fields: Iterable[str] = None) -> ChangeLogResponse:
    """Copy of ``change_log`` with sensitive detail values masked."""
    if sensitive_fields is None:
        sensitive_fields = settings.AUDIT_SENSITIVE_FIELDS
    sensitive = set(sensitive_fields)
    if not any(detail.field in sensitive for detail in change_log.details):
        return change_log
    details = [
        detail.model_copy(update={"old_value": settings.AUDIT_MASK, "new_value": settings.AUDIT_MASK})
        if detail.field in sensitive
        else detail
        for detail in change_log.details
    ]
    return change_log.model_copy(update={"details": details})


async def list_by_association(
    db: AsyncSession,
    association: str,
    entity_id: int,
    page: int = 1,
    page_size: int = 10,
    *,
    redact_sensitive: bool = True,
) -> Dict[str, Any]:
    """Change logs of one entity, oldest first, with their details.

    ``association`` is a tracked model name (``"item"``, ``"user"``, ...).
    ``redact_sensitive=False`` is for trusted internal callers only.
    """
    try:
        column = getattr(ChangeLog, ASSOCIATION_FIELDS[association])
    except KeyError:
        raise UnknownAssociationError(association) from None

    if page < 1 or page_size < 1:
        return empty_page(page)

    total = (
        await db.execute(select(func.count(ChangeLog.id)).where(column == entity_id))
    ).scalar_one()
    result = await db.execute(
        select(ChangeLog)
        .where(column == entity_id)
        .order_by(ChangeLog.changed_at, ChangeLog.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    rows = [ChangeLogResponse.model_validate(row) for row in result.scalars().all()]
    if redact_sensitive:
        rows = [redact(row) for row in rows]
    return page_result(rows, total, page, page_size)
