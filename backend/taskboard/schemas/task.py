"""Task-related Pydantic schemas."""

from datetime import date
from typing import TYPE_CHECKING, Optional

from pydantic import Field, field_validator

from taskboard.schemas.common import CamelModel
from taskboard.validation import MESSAGES, is_non_empty, is_valid_deadline

if TYPE_CHECKING:
    from taskboard.models.task import Task


class TaskCreate(CamelModel):
    """JSON body of POST /api/tasks."""

    body: str
    deadline: Optional[date] = None
    user_id: int = Field(ge=1)

    @field_validator("body")
    @classmethod
    def _check_body(cls, value: str) -> str:
        if not is_non_empty(value):
            raise ValueError(MESSAGES["body"])
        return value

    @field_validator("deadline")
    @classmethod
    def _check_deadline(cls, value: Optional[date]) -> Optional[date]:
        if value is not None and not is_valid_deadline(value):
            raise ValueError(MESSAGES["deadline"])
        return value


class TaskPublic(CamelModel):
    id: int
    body: str
    deadline: Optional[date] = None
    user_id: int

    @classmethod
    def from_orm_task(cls, task: "Task") -> "TaskPublic":
        return cls(id=task.id, body=task.body, deadline=task.deadline, user_id=task.user_id)


class TaskOwner(CamelModel):
    nickname: str


class TaskWithOwner(TaskPublic):
    """A task carrying its owner's nickname (GET /api/tasks)."""

    user: TaskOwner

    @classmethod
    def from_orm_task(cls, task: "Task") -> "TaskWithOwner":
        return cls(
            id=task.id,
            body=task.body,
            deadline=task.deadline,
            user_id=task.user_id,
            user=TaskOwner(nickname=task.user.nickname),
        )
