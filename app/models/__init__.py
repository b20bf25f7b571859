"""Model modules."""
from app.models.inventory import Category, Department, Item, UnitType
from app.models.user import Permission, Role, RolePermission, User, UserRole
from app.models.changelog import ChangeLog, ChangeLogDetail

__all__ = [
    "Category",
    "Department",
    "Item",
    "UnitType",
    "Permission",
    "Role",
    "RolePermission",
    "User",
    "UserRole",
    "ChangeLog",
    "ChangeLogDetail",
]
