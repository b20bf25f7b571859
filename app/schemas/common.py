"""Common schemas."""
from typing import Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of results with totals."""

    data: List[T]
    total: int
    totalPages: int
    currentPage: int


class Message(BaseModel):
    """Plain message response."""

    message: str
