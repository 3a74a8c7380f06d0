"""
Taskboard Backend — User SQLAlchemy Model
===========================================

What:  ORM model for the `users` table.
Who:   UserRepository (CRUD), TaskRepository (owner join), Alembic.

Storage-side validation (two layers, same predicates as the API schemas):
    - `@validates` hooks reject bad values on any ORM write path
    - CHECK constraints reject bad values on any SQL write path
      (ck_users_nickname, ck_users_email, ck_users_tel everywhere;
       ck_users_birthday on PostgreSQL only)

Unique: nickname, email, tel (uq_users_nickname, uq_users_email, uq_users_tel).
Deleting a user deletes its tasks (ORM cascade + ON DELETE CASCADE).
"""

from datetime import date
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, Date, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from taskboard.database import Base
from taskboard.models.common import TimestampMixin, enforce
from taskboard.validation import (
    EMAIL_MAX_LENGTH,
    NICKNAME_MAX_LENGTH,
    email_check,
    is_non_empty,
    is_valid_birthday,
    is_valid_email,
    is_valid_phone,
    non_empty_check,
    not_after_today_check,
    phone_check,
)

if TYPE_CHECKING:
    from taskboard.models.task import Task


def user_check_constraints() -> tuple:
    """CHECK constraints for `users`; shared with the Alembic revision."""
    return (
        CheckConstraint(non_empty_check("nickname"), name="nickname"),
        CheckConstraint(email_check("email"), name="email"),
        CheckConstraint(phone_check("tel"), name="tel"),
        CheckConstraint(not_after_today_check("birthday"), name="birthday").ddl_if(
            dialect="postgresql"
        ),
    )


class User(TimestampMixin, Base):
    """A registered user. `password_hash` never leaves the repository layer."""

    __tablename__ = "users"
    __table_args__ = user_check_constraints()

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    nickname: Mapped[str] = mapped_column(
        String(NICKNAME_MAX_LENGTH), nullable=False, unique=True
    )
    email: Mapped[str] = mapped_column(String(EMAIL_MAX_LENGTH), nullable=False, unique=True)
    tel: Mapped[str] = mapped_column(String(13), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    birthday: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    role: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    # Relative to Settings.static_root, e.g. 2024/01/15/<uuid>.png
    image: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    tasks: Mapped[List["Task"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("nickname")
    def _validate_nickname(self, key, value):
        return enforce("nickname", is_non_empty, value)

    @validates("email")
    def _validate_email(self, key, value):
        return enforce("email", is_valid_email, value)

    @validates("tel")
    def _validate_tel(self, key, value):
        return enforce("tel", is_valid_phone, value)

    @validates("birthday")
    def _validate_birthday(self, key, value):
        if value is None:
            return value
        return enforce("birthday", is_valid_birthday, value)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, nickname='{self.nickname}')>"
