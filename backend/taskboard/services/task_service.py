"""Task business logic: creation against an existing owner, owner-joined listing."""

import logging
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.exceptions import ValidationFailure
from taskboard.repositories.tasks import TaskRepository
from taskboard.repositories.users import UserRepository
from taskboard.schemas.task import TaskCreate, TaskPublic, TaskWithOwner

logger = logging.getLogger(__name__)


class TaskService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.tasks = TaskRepository(session)
        self.users = UserRepository(session)

    async def create_task(self, payload: TaskCreate) -> TaskPublic:
        """
        Insert a task for an existing user.

        A missing owner is a field error on `userId` (422), the same
        response the foreign-key constraint produces if the owner disappears
        before the insert.
        """
        if not await self.users.exists(payload.user_id):
            raise ValidationFailure(message="Referenced user does not exist", field="userId")

        task = await self.tasks.create(payload.model_dump())
        await self.session.commit()
        return task

    async def list_tasks(self) -> List[TaskWithOwner]:
        return await self.tasks.list_all()
