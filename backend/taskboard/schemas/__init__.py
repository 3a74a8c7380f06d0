"""Pydantic request/response schemas (the API contract)."""

from taskboard.schemas.common import FieldError, HealthResponse, MessageResponse
from taskboard.schemas.task import TaskCreate, TaskOwner, TaskPublic, TaskWithOwner
from taskboard.schemas.user import UserCreate, UserPage, UserPublic, UserUpdate

__all__ = [
    "FieldError",
    "HealthResponse",
    "MessageResponse",
    "TaskCreate",
    "TaskOwner",
    "TaskPublic",
    "TaskWithOwner",
    "UserCreate",
    "UserPage",
    "UserPublic",
    "UserUpdate",
]
