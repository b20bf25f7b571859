"""RBAC permission helpers."""
from typing import List, Set

from app.core.security import Permission
from app.models.user import User


def get_user_permissions(user: User) -> List[str]:
    """Get all permission names granted to a user through their roles."""
    permissions: Set[str] = set()
    for role in user.roles:
        permissions.update(permission.name for permission in role.permissions)
    return sorted(permissions)


def has_permission(user: User, permission: Permission) -> bool:
    """Check if user has a specific permission."""
    if not user.is_active:
        return False
    return permission.value in get_user_permissions(user)
