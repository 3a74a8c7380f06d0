"""
Taskboard Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for every recoverable failure kind.
How:   Each exception carries a user-safe message plus an optional context
       dict for logs. `taskboard.error_handlers.classify` maps them to HTTP
       responses; nothing else assigns status codes.
Who:   Raised by the validation layers, repositories, FileService and services.

Exception Hierarchy:
    TaskboardError (base)
    ├── ValidationFailure          → 422, [{field, message}, ...]
    │   └── UniqueConstraintFailure → 422, [{field, message}]
    ├── UnsupportedMediaType       → 415, {message}
    ├── NotFoundError              → 404, {message}
    └── FileStorageError           → 500, {message}
"""

from typing import Any, Dict, List, Optional


class TaskboardError(Exception):
    """
    Base exception for all Taskboard application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationFailure(TaskboardError):
    """
    Raised when one or more fields break a validation rule.

    Can be built for a single field (`field`, `message`) or from a list of
    `{"field": ..., "message": ...}` dicts (`errors`).

    Example response body:
        [{"field": "tel", "message": "Phone must match +380XXXXXXXXX or 0XXXXXXXXX"}]
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        errors: Optional[List[Dict[str, str]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if errors is None:
            errors = [{"field": field or "", "message": message}]
        self.errors = errors
        self.field = field or (errors[0]["field"] if errors else None)
        super().__init__(message=message, context=context)


class UniqueConstraintFailure(ValidationFailure):
    """Raised when a write collides with an existing unique value."""

    def __init__(self, field: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"{field} is already taken",
            field=field,
            context=context,
        )


class UnsupportedMediaType(TaskboardError):
    """
    Raised when an upload's Content-Type is not an allowed image type.

    Always raised before any byte of the upload is written to disk.
    """

    def __init__(
        self,
        content_type: Optional[str],
        allowed: List[str],
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"File type '{content_type or 'unknown'}' is not supported. "
            f"Allowed types: {', '.join(allowed)}"
        )
        ctx = context or {}
        ctx["content_type"] = content_type
        super().__init__(message=message, context=ctx)
        self.content_type = content_type
        self.allowed = allowed


class NotFoundError(TaskboardError):
    """
    Raised when a referenced entity does not exist.

    SQLAlchemy returns None for missing rows; repositories and services turn
    that None into this exception where the caller needs a 404.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)


class FileStorageError(TaskboardError):
    """
    Raised when file system operations fail.

    Disk full, permission denied, directory not writable. The client only
    sees a generic message; the OS error stays in the context for logs.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
