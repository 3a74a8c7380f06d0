"""ORM model for the `tasks` table; each task belongs to exactly one user."""

from datetime import date
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from taskboard.database import Base
from taskboard.models.common import TimestampMixin, enforce
from taskboard.validation import (
    is_non_empty,
    is_valid_deadline,
    non_empty_check,
    not_before_today_check,
)

if TYPE_CHECKING:
    from taskboard.models.user import User


def task_check_constraints() -> tuple:
    """CHECK constraints for `tasks`; shared with the Alembic revision."""
    return (
        CheckConstraint(non_empty_check("body"), name="body"),
        CheckConstraint(not_before_today_check("deadline"), name="deadline").ddl_if(
            dialect="postgresql"
        ),
    )


class Task(TimestampMixin, Base):
    __tablename__ = "tasks"
    __table_args__ = task_check_constraints()

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    deadline: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user: Mapped["User"] = relationship(back_populates="tasks")

    @validates("body")
    def _validate_body(self, key, value):
        return enforce("body", is_non_empty, value)

    @validates("deadline")
    def _validate_deadline(self, key, value):
        if value is None:
            return value
        return enforce("deadline", is_valid_deadline, value)

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, user_id={self.user_id})>"
