"""Inventory models: departments, categories and items."""
from __future__ import annotations

from enum import Enum

from sqlalchemy import CheckConstraint, Column, DateTime, Enum as SQLEnum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.database import Base
from app.db.types import enum_values, utcnow


class UnitType(str, Enum):
    """Unit an item quantity is measured in."""

    UND = "und."
    KG = "kg"
    L = "l"
    M = "m"


class Department(Base):
    """Department owning inventory items."""

    __tablename__ = "departments"
    __changelog_name__ = "department"
    __soft_delete__ = True

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False, index=True)
    creation_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_on = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    deletion_date = Column(DateTime(timezone=True), nullable=True)

    items = relationship("Item", back_populates="department")


class Category(Base):
    """Optional grouping for items."""

    __tablename__ = "categories"
    __changelog_name__ = "category"
    __soft_delete__ = True

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False, index=True)
    creation_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_on = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    deletion_date = Column(DateTime(timezone=True), nullable=True)

    items = relationship("Item", back_populates="category")


class Item(Base):
    """Inventory item."""

    __tablename__ = "items"
    __changelog_name__ = "item"
    __soft_delete__ = True
    __table_args__ = (CheckConstraint("quantity >= 1", name="ck_items_quantity_positive"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=1)
    unit = Column(
        SQLEnum(UnitType, name="unit_type", native_enum=False, values_callable=enum_values),
        nullable=False,
        default=UnitType.UND,
    )
    creation_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_on = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    deletion_date = Column(DateTime(timezone=True), nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=True, index=True)
    department_id = Column(Integer, ForeignKey("departments.id", ondelete="RESTRICT"), nullable=False, index=True)

    category = relationship("Category", back_populates="items", lazy="selectin")
    department = relationship("Department", back_populates="items", lazy="selectin")
