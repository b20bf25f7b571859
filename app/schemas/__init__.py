"""Schema modules."""
from app.schemas.auth import (
    CurrentUserResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
    TokenRequest,
    TokenResponse,
)
from app.schemas.changelog import ChangeLogDetailResponse, ChangeLogResponse
from app.schemas.common import Message, Page
from app.schemas.inventory import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    DepartmentCreate,
    DepartmentResponse,
    DepartmentUpdate,
    ItemCreate,
    ItemResponse,
    ItemUpdate,
)
from app.schemas.user import (
    PermissionCreate,
    PermissionResponse,
    PermissionUpdate,
    RoleCreate,
    RoleResponse,
    RoleUpdate,
    UserCreate,
    UserResponse,
    UserUpdate,
)
