"""
Taskboard Backend — Task Route Handlers
=========================================

What:  GET /api/tasks (every task with its owner's nickname) and
       POST /api/tasks (JSON body {body, deadline, userId}).
"""

from typing import List

from fastapi import APIRouter, Depends

from taskboard.deps import get_task_service
from taskboard.schemas.task import TaskCreate, TaskPublic, TaskWithOwner
from taskboard.services.task_service import TaskService

router = APIRouter(prefix="/api/tasks", tags=["Tasks"])


@router.get("", response_model=List[TaskWithOwner], summary="List tasks with owners")
async def list_tasks(service: TaskService = Depends(get_task_service)) -> List[TaskWithOwner]:
    return await service.list_tasks()


@router.post(
    "",
    status_code=201,
    response_model=TaskPublic,
    responses={422: {"description": "Validation failed: [{field, message}, ...]"}},
    summary="Create a task",
)
async def create_task(
    payload: TaskCreate,
    service: TaskService = Depends(get_task_service),
) -> TaskPublic:
    return await service.create_task(payload)
