"""Task repository: insert and the owner-joined listing."""

import logging
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from taskboard.models.task import Task
from taskboard.schemas.task import TaskPublic, TaskWithOwner

logger = logging.getLogger(__name__)


class TaskRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, fields: Dict[str, Any]) -> TaskPublic:
        task = Task(**fields)
        self.session.add(task)
        await self.session.flush()

        logger.info("Task created: id=%s user_id=%s", task.id, task.user_id)
        return TaskPublic.from_orm_task(task)

    async def list_all(self) -> List[TaskWithOwner]:
        """
        All tasks with their owner's nickname.

        One query: SELECT tasks.*, users.* FROM tasks JOIN users ... ORDER BY tasks.id
        """
        result = await self.session.execute(
            select(Task).options(joinedload(Task.user)).order_by(Task.id)
        )
        return [TaskWithOwner.from_orm_task(task) for task in result.scalars().all()]
