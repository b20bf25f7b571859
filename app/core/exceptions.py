"""Custom exceptions."""
from typing import Any, Optional
from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """Resource not found exception."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail or "Resource not found")


class UnauthorizedError(HTTPException):
    """Unauthorized exception."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail or "Not authenticated")


class ForbiddenError(HTTPException):
    """Forbidden exception."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail or "Permission denied")


class ValidationError(HTTPException):
    """Validation exception."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail or "Validation error",
        )


class ConflictError(HTTPException):
    """Conflict exception."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail or "Resource conflict")


class ChangeLogError(Exception):
    """Base class for change-logging failures."""


class MissingActorError(ChangeLogError):
    """A user-initiated mutation carried no valid numeric actor id."""

    def __init__(self, actor_id: Any = None):
        self.actor_id = actor_id
        super().__init__(f"A valid numeric actor id is required for change logging (got {actor_id!r})")


class UnknownAssociationError(ChangeLogError):
    """The model has no association column on ``change_logs``."""

    def __init__(self, model_name: Any):
        self.model_name = model_name
        super().__init__(f"No change-log association is mapped for model {model_name!r}")


class InvariantViolationError(ChangeLogError):
    """A change log would be written without any association set."""


class UnloggableStatementError(ChangeLogError):
    """A bulk statement on a logged model whose affected rows cannot be determined."""


class DetailPersistError(ChangeLogError):
    """A single change-log detail row could not be written."""

    def __init__(self, field: str, cause: BaseException):
        self.field = field
        self.cause = cause
        super().__init__(f"Could not persist change-log detail {field!r}: {cause}")
