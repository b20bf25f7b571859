"""Security constants and permissions."""
from enum import Enum


class Permission(str, Enum):
    """Permission constants for RBAC."""

    # Categories
    CATEGORY_CREATE = "create_category"
    CATEGORY_VIEW = "get_category"
    CATEGORY_UPDATE = "edit_category"
    CATEGORY_DELETE = "delete_category"

    # Departments
    DEPARTMENT_CREATE = "create_department"
    DEPARTMENT_VIEW = "get_department"
    DEPARTMENT_UPDATE = "edit_department"
    DEPARTMENT_DELETE = "delete_department"

    # Items
    ITEM_CREATE = "create_item"
    ITEM_VIEW = "get_item"
    ITEM_UPDATE = "edit_item"
    ITEM_DELETE = "delete_item"

    # Permission management
    PERMISSION_CREATE = "create_permission"
    PERMISSION_VIEW = "get_permission"
    PERMISSION_UPDATE = "edit_permission"
    PERMISSION_DELETE = "delete_permission"

    # Role management
    ROLE_CREATE = "create_role"
    ROLE_VIEW = "get_role"
    ROLE_UPDATE = "edit_role"
    ROLE_DELETE = "delete_role"

    # User management
    USER_CREATE = "create_user"
    USER_VIEW = "get_user"
    USER_UPDATE = "edit_user"
    USER_DELETE = "delete_user"


PERMISSION_DESCRIPTIONS = {
    permission: permission.value.replace("_", " ").capitalize() for permission in Permission
}

ADMIN_ROLE_NAME = "admin"
ADMIN_ROLE_DESCRIPTION = "Administrator role with full permissions"

# Role definitions with permissions
ROLE_PERMISSIONS = {
    ADMIN_ROLE_NAME: list(Permission),
    "viewer": [
        Permission.CATEGORY_VIEW,
        Permission.DEPARTMENT_VIEW,
        Permission.ITEM_VIEW,
    ],
}
