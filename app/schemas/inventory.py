"""Schemas for departments, categories and items."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.models.inventory import UnitType


class DepartmentCreate(BaseModel):
    """Department creation payload."""

    name: str = Field(..., min_length=1, max_length=255)


class DepartmentUpdate(BaseModel):
    """Department update payload."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)


class DepartmentResponse(BaseModel):
    """Department response."""

    id: int
    name: str
    creation_date: datetime
    updated_on: datetime

    class Config:
        from_attributes = True


class CategoryCreate(BaseModel):
    """Category creation payload."""

    name: str = Field(..., min_length=1, max_length=255)


class CategoryUpdate(BaseModel):
    """Category update payload."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)


class CategoryResponse(BaseModel):
    """Category response."""

    id: int
    name: str
    creation_date: datetime
    updated_on: datetime

    class Config:
        from_attributes = True


class ItemCreate(BaseModel):
    """Item creation payload."""

    name: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(1, ge=1)
    unit: UnitType = UnitType.UND
    department_id: int = Field(..., ge=0)
    category_id: Optional[int] = None


class ItemUpdate(BaseModel):
    """Item update payload; ``category_id: null`` detaches the category."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    quantity: Optional[int] = Field(None, ge=1)
    unit: Optional[UnitType] = None
    department_id: Optional[int] = Field(None, ge=0)
    category_id: Optional[int] = None


class ItemResponse(BaseModel):
    """Item response with its department and category."""

    id: int
    name: str
    quantity: int
    unit: UnitType
    department_id: int
    category_id: Optional[int] = None
    department: Optional[DepartmentResponse] = None
    category: Optional[CategoryResponse] = None
    creation_date: datetime
    updated_on: datetime

    class Config:
        from_attributes = True
