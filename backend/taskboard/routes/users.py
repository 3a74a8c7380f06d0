"""
Taskboard Backend — User Route Handlers
=========================================

What:  /api/users endpoints: create, list, read, update-or-create, delete,
       tasks-of-user and image replacement.
How:   Collects form fields and the optional `image` part, delegates to
       UserService, returns the sanitized UserPublic projection.
Who:   Called by the frontend user forms and listing pages.

Request Format (POST / PUT / PATCH images):
    multipart/form-data; text fields nickname, email, tel, password,
    birthday (YYYY-MM-DD), gender, role; one file field `image`.

Form fields are declared optional here so that missing values reach the
service's schema validation and come back as `[{field, message}]` like
every other rule violation.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, Path, Query, Response, UploadFile

from taskboard.deps import get_user_service
from taskboard.schemas.common import MessageResponse
from taskboard.schemas.task import TaskPublic
from taskboard.schemas.user import UserPage, UserPublic
from taskboard.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])

_ERRORS = {
    404: {"description": "User not found", "model": MessageResponse},
    415: {"description": "Image type not allowed", "model": MessageResponse},
    422: {"description": "Validation failed: [{field, message}, ...]"},
}


def _form_fields(**values: Optional[str]) -> Dict[str, Any]:
    """Keep only the form fields the client actually sent."""
    return {name: value for name, value in values.items() if value is not None}


@router.post(
    "",
    status_code=201,
    response_model=UserPublic,
    responses={415: _ERRORS[415], 422: _ERRORS[422]},
    summary="Create a user",
)
async def create_user(
    nickname: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    tel: Optional[str] = Form(None, description="+380XXXXXXXXX or 0XXXXXXXXX"),
    password: Optional[str] = Form(None),
    birthday: Optional[str] = Form(None, description="YYYY-MM-DD, not in the future"),
    gender: Optional[str] = Form(None),
    role: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None, description="JPEG, PNG or GIF"),
    service: UserService = Depends(get_user_service),
) -> UserPublic:
    fields = _form_fields(
        nickname=nickname,
        email=email,
        tel=tel,
        password=password,
        birthday=birthday,
        gender=gender,
        role=role,
    )
    return await service.register_user(fields, image)


@router.get(
    "",
    response_model=UserPage,
    responses={422: _ERRORS[422]},
    summary="List users page by page",
)
async def list_users(
    page: int = Query(default=1, ge=1, description="1-based page number"),
    results: Optional[int] = Query(
        default=None,
        ge=1,
        description="Page size; defaults to DEFAULT_PAGE_SIZE, capped by MAX_PAGE_SIZE",
    ),
    service: UserService = Depends(get_user_service),
) -> UserPage:
    """
    Example:
        GET /api/users?page=2&results=10  →  users 11-20, plus total / page / pageSize
    """
    page_size = results if results is not None else service.settings.default_page_size
    return await service.list_users(page=page, page_size=page_size)


@router.get(
    "/{user_id}",
    response_model=UserPublic,
    responses={404: _ERRORS[404]},
    summary="Get one user",
)
async def get_user(
    user_id: int = Path(ge=1),
    service: UserService = Depends(get_user_service),
) -> UserPublic:
    return await service.get_user(user_id)


@router.put(
    "/{user_id}",
    response_model=UserPublic,
    responses={
        201: {"description": "No user had this id; it was created", "model": UserPublic},
        415: _ERRORS[415],
        422: _ERRORS[422],
    },
    summary="Update a user, or create it under this id",
)
async def put_user(
    response: Response,
    user_id: int = Path(ge=1),
    nickname: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    tel: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    birthday: Optional[str] = Form(None),
    gender: Optional[str] = Form(None),
    role: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    service: UserService = Depends(get_user_service),
) -> UserPublic:
    """
    200 with the updated user when `user_id` exists; otherwise the same
    fields (and the same stored image) create it, answering 201.
    """
    fields = _form_fields(
        nickname=nickname,
        email=email,
        tel=tel,
        password=password,
        birthday=birthday,
        gender=gender,
        role=role,
    )
    user, created = await service.upsert_user(user_id, fields, image)
    response.status_code = 201 if created else 200
    return user


@router.delete(
    "/{user_id}",
    status_code=204,
    response_class=Response,
    responses={404: _ERRORS[404]},
    summary="Delete a user and its tasks",
)
async def delete_user(
    user_id: int = Path(ge=1),
    service: UserService = Depends(get_user_service),
) -> Response:
    await service.delete_user(user_id)
    return Response(status_code=204)


@router.get(
    "/{user_id}/tasks",
    response_model=List[TaskPublic],
    responses={404: _ERRORS[404]},
    summary="List one user's tasks",
)
async def list_user_tasks(
    user_id: int = Path(ge=1),
    service: UserService = Depends(get_user_service),
) -> List[TaskPublic]:
    return await service.tasks_of(user_id)


@router.patch(
    "/{user_id}/images",
    response_model=UserPublic,
    responses=_ERRORS,
    summary="Replace a user's image",
)
async def replace_user_image(
    user_id: int = Path(ge=1),
    image: Optional[UploadFile] = File(None, description="JPEG, PNG or GIF; required"),
    service: UserService = Depends(get_user_service),
) -> UserPublic:
    return await service.replace_image(user_id, image)
