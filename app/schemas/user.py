"""User, role and permission schemas."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class PermissionCreate(BaseModel):
    """Permission creation schema."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=255)


class PermissionUpdate(BaseModel):
    """Permission update schema."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=255)


class PermissionResponse(BaseModel):
    """Permission response schema."""

    id: int
    name: str
    description: str

    class Config:
        from_attributes = True


class RoleCreate(BaseModel):
    """Role creation schema."""

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    permission_ids: List[int] = []


class RoleUpdate(BaseModel):
    """Role update schema; ``permission_ids`` replaces the whole set."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    permission_ids: Optional[List[int]] = None


class RoleResponse(BaseModel):
    """Role response schema."""

    id: int
    name: str
    description: Optional[str] = None
    permissions: List[PermissionResponse] = []
    creation_date: Optional[datetime] = None
    updated_on: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    """User creation schema."""

    username: str = Field(..., min_length=1, max_length=150)
    password: str = Field(..., min_length=1)
    is_active: bool = True
    role_ids: List[int] = []


class UserUpdate(BaseModel):
    """User update schema."""

    username: Optional[str] = Field(None, min_length=1, max_length=150)
    password: Optional[str] = Field(None, min_length=1)
    is_active: Optional[bool] = None
    role_ids: Optional[List[int]] = None


class UserResponse(BaseModel):
    """User response schema; the password hash is never exposed."""

    id: int
    username: str
    is_active: bool
    roles: List[RoleResponse] = []
    creation_date: datetime
    updated_on: datetime

    class Config:
        from_attributes = True
