"""Change log read schemas."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ChangeLogDetailResponse(BaseModel):
    """One field of a logged mutation."""

    id: int
    field: str
    old_value: Any = None
    new_value: Any = None
    diff_type: str
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="metadata_json")

    class Config:
        from_attributes = True


class ChangeLogResponse(BaseModel):
    """A logged mutation with its details."""

    id: int
    operation: str
    change_details: Optional[Dict[str, Any]] = None
    changed_at: datetime
    changed_by: int
    item_id: Optional[int] = None
    category_id: Optional[int] = None
    department_id: Optional[int] = None
    permission_id: Optional[int] = None
    role_id: Optional[int] = None
    user_id: Optional[int] = None
    details: List[ChangeLogDetailResponse] = []

    class Config:
        from_attributes = True
