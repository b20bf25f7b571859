"""Change log models: one ChangeLog per mutation, one ChangeLogDetail per field."""
from typing import Any, Mapping

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, event
from sqlalchemy.orm import relationship

from app.changelog.constants import ASSOCIATION_FIELDS, DIFF_TYPES, OPERATIONS
from app.core.exceptions import InvariantViolationError
from app.database import Base
from app.db.types import JSONBType, utcnow


def _in_list(column: str, values) -> str:
    quoted = ", ".join(f"'{value}'" for value in values)
    return f"{column} IN ({quoted})"


class ChangeLog(Base):
    """Append-only audit record of a single mutation.

    Association columns are plain indexed integers rather than foreign keys:
    the audit trail has to outlive hard-deleted entities.
    """

    __tablename__ = "change_logs"
    __table_args__ = (CheckConstraint(_in_list("operation", OPERATIONS), name="ck_change_logs_operation"),)

    id = Column(Integer, primary_key=True, index=True)
    operation = Column(String(16), nullable=False, index=True)
    change_details = Column(JSONBType(), nullable=True)
    changed_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    changed_by = Column(Integer, nullable=False, index=True)

    item_id = Column(Integer, nullable=True, index=True)
    category_id = Column(Integer, nullable=True, index=True)
    department_id = Column(Integer, nullable=True, index=True)
    permission_id = Column(Integer, nullable=True, index=True)
    role_id = Column(Integer, nullable=True, index=True)
    user_id = Column(Integer, nullable=True, index=True)

    details = relationship(
        "ChangeLogDetail",
        back_populates="change_log",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ChangeLogDetail.id",
        lazy="selectin",
    )

    @staticmethod
    def require_association(values: Mapping[str, Any]) -> None:
        """Raise unless at least one association column is set."""
        if not any(values.get(field) is not None for field in ASSOCIATION_FIELDS.values()):
            raise InvariantViolationError("ChangeLog: at least one association must be set")


class ChangeLogDetail(Base):
    """Old/new value of one field touched by a logged mutation."""

    __tablename__ = "change_log_details"
    __table_args__ = (CheckConstraint(_in_list("diff_type", DIFF_TYPES), name="ck_change_log_details_diff_type"),)

    id = Column(Integer, primary_key=True, index=True)
    change_log_id = Column(
        Integer,
        ForeignKey("change_logs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    field = Column(String(255), nullable=False)
    old_value = Column(JSONBType(), nullable=True)
    new_value = Column(JSONBType(), nullable=True)
    diff_type = Column(String(16), nullable=False)
    metadata_json = Column("metadata", JSONBType(), nullable=True)

    change_log = relationship("ChangeLog", back_populates="details")


@event.listens_for(ChangeLog, "before_insert")
def _enforce_association(mapper, connection, target: ChangeLog) -> None:
    ChangeLog.require_association(
        {field: getattr(target, field) for field in ASSOCIATION_FIELDS.values()}
    )
