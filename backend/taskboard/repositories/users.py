"""
Taskboard Backend — User Repository
=====================================

What:  CRUD on the `users` table plus the tasks-by-user association query.
Who:   UserService.

Return Contract:
    create / find_by_id / update / list  → UserPublic (never the ORM row)
    update                               → None when no row matched (not an error)
    tasks_of                             → NotFoundError when the user is missing
    delete                               → False when no row matched

Failures (IntegrityError from the UNIQUE / CHECK constraints, ValidationFailure
from the model's `@validates` hooks) propagate unchanged.

Query plan (list):
    SELECT * FROM users ORDER BY id LIMIT :limit OFFSET :offset
    SELECT count(users.id) FROM users
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.exceptions import NotFoundError
from taskboard.models.task import Task
from taskboard.models.user import User
from taskboard.schemas.task import TaskPublic
from taskboard.schemas.user import UserPublic

logger = logging.getLogger(__name__)


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _sync_id_sequence(self) -> None:
        """
        Move the PostgreSQL id sequence past an explicitly inserted id.

        Only needed after the PUT fallthrough inserts a row under the id from
        the URL; otherwise the next generated id could collide with it.
        """
        if self.session.get_bind().dialect.name != "postgresql":
            return
        await self.session.execute(
            text(
                "SELECT setval(pg_get_serial_sequence('users', 'id'), "
                "(SELECT MAX(id) FROM users))"
            )
        )

    async def create(self, fields: Dict[str, Any]) -> UserPublic:
        """
        Insert a user. `fields` must already carry `password_hash`.

        Raises:
            ValidationFailure: a `@validates` hook rejected a value
            IntegrityError:    a UNIQUE / CHECK / NOT NULL constraint fired on flush
        """
        user = User(**fields)
        self.session.add(user)
        await self.session.flush()

        if fields.get("id") is not None:
            await self._sync_id_sequence()

        logger.info("User created: id=%s", user.id)
        return UserPublic.from_orm_user(user)

    async def find_by_id(self, user_id: int) -> Optional[UserPublic]:
        user = await self.session.get(User, user_id)
        if user is None:
            return None
        return UserPublic.from_orm_user(user)

    async def exists(self, user_id: int) -> bool:
        result = await self.session.execute(select(User.id).where(User.id == user_id))
        return result.scalar_one_or_none() is not None

    async def update(self, user_id: int, fields: Dict[str, Any]) -> Optional[UserPublic]:
        """
        Apply `fields` to the user with `user_id`.

        Returns None when no such user exists. Assignments go through the
        model's `@validates` hooks, so invalid values fail before the flush.
        """
        user = await self.session.get(User, user_id)
        if user is None:
            return None

        for key, value in fields.items():
            setattr(user, key, value)
        await self.session.flush()

        logger.info("User updated: id=%s fields=%s", user_id, sorted(fields))
        return UserPublic.from_orm_user(user)

    async def list(self, limit: int, offset: int) -> Tuple[List[UserPublic], int]:
        """Return one slice of users ordered by id, plus the total count."""
        result = await self.session.execute(
            select(User).order_by(User.id).limit(limit).offset(offset)
        )
        users = [UserPublic.from_orm_user(user) for user in result.scalars().all()]

        count_result = await self.session.execute(select(func.count(User.id)))
        total = count_result.scalar() or 0

        return users, total

    async def tasks_of(self, user_id: int) -> List[TaskPublic]:
        if not await self.exists(user_id):
            raise NotFoundError(resource="user", resource_id=user_id)

        result = await self.session.execute(
            select(Task).where(Task.user_id == user_id).order_by(Task.id)
        )
        return [TaskPublic.from_orm_task(task) for task in result.scalars().all()]

    async def delete(self, user_id: int) -> bool:
        """Delete a user; ON DELETE CASCADE removes its tasks."""
        user = await self.session.get(User, user_id)
        if user is None:
            return False

        await self.session.delete(user)
        await self.session.flush()
        logger.info("User deleted: id=%s", user_id)
        return True
