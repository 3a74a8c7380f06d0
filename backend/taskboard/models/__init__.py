"""ORM models; importing this package registers every table on Base.metadata."""

from taskboard.models.common import TimestampMixin
from taskboard.models.task import Task
from taskboard.models.user import User

__all__ = ["Task", "TimestampMixin", "User"]
