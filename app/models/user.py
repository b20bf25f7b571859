"""User, Role and Permission models."""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.database import Base
from app.db.types import utcnow


class UserRole(Base):
    """Join row assigning a role to a user."""

    __tablename__ = "user_roles"
    __changelog_name__ = "user_role"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True)


class RolePermission(Base):
    """Join row granting a permission to a role."""

    __tablename__ = "role_permissions"
    __changelog_name__ = "role_permission"

    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True)
    permission_id = Column(Integer, ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True)


class User(Base):
    """User model."""

    __tablename__ = "users"
    __changelog_name__ = "user"
    __soft_delete__ = True

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(150), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    creation_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_on = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    deletion_date = Column(DateTime(timezone=True), nullable=True)

    # Assignments are written through ``UserRole`` rows so they reach the change log.
    roles = relationship(
        "Role",
        secondary="user_roles",
        primaryjoin="User.id == UserRole.user_id",
        secondaryjoin="and_(Role.id == UserRole.role_id, Role.deletion_date.is_(None))",
        viewonly=True,
        lazy="selectin",
    )


class Role(Base):
    """Role model with permissions."""

    __tablename__ = "roles"
    __changelog_name__ = "role"
    __soft_delete__ = True

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    creation_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_on = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    deletion_date = Column(DateTime(timezone=True), nullable=True)

    permissions = relationship(
        "Permission",
        secondary="role_permissions",
        primaryjoin="Role.id == RolePermission.role_id",
        secondaryjoin="and_(Permission.id == RolePermission.permission_id, Permission.deletion_date.is_(None))",
        viewonly=True,
        lazy="selectin",
    )


class Permission(Base):
    """Named permission checked by the API."""

    __tablename__ = "permissions"
    __changelog_name__ = "permission"
    __soft_delete__ = True

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(String(255), nullable=False)
    deletion_date = Column(DateTime(timezone=True), nullable=True)

