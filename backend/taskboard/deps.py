"""
FastAPI dependency providers.

Everything is built from objects `create_app()` put on `app.state`, so one
process can host several apps with different settings (the test suite does).
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.config import Settings
from taskboard.database import get_db_session
from taskboard.services.file_service import FileService
from taskboard.services.task_service import TaskService
from taskboard.services.user_service import UserService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_file_service(request: Request) -> FileService:
    return request.app.state.file_service


def get_user_service(
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
    file_service: FileService = Depends(get_file_service),
) -> UserService:
    return UserService(db, settings, file_service)


def get_task_service(db: AsyncSession = Depends(get_db_session)) -> TaskService:
    return TaskService(db)
