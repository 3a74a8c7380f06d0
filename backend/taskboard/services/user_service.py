"""
Taskboard Backend — User Service (Business Logic Orchestrator)
================================================================

What:  Coordinates upload → validate → hash → persist for every user operation.
How:   Composes FileService, PasswordHasher and UserRepository on one
       AsyncSession; commits explicitly once a write has succeeded.
Who:   Called by the /api/users route handlers.

PUT /api/users/{userId} (update-or-create):
    ┌──────────┐    ┌────────────────┐  Updated(user)   ┌──────────────┐
    │  Store   │───▶│ attempt_update │─────────────────▶│ 200 + user   │
    │  upload  │    └────────────────┘                  └──────────────┘
    │  (once)  │            │ NoMatch(user_id)
    └──────────┘            ▼
                    ┌────────────────────────────┐      ┌──────────────┐
                    │ create_user(id=user_id,    │─────▶│ 201 + user   │
                    │   same image path)         │      └──────────────┘
                    └────────────────────────────┘

    The upload is read and written exactly once, before the attempt; both
    branches receive the same stored path.

Error Recovery:
    Any failure after an upload was stored removes the stored file, then the
    original exception propagates unchanged to the error classifier.
    A successful image replacement (PATCH, or PUT with a file) deletes the
    superseded file after the commit.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple, Union

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.config import Settings
from taskboard.exceptions import NotFoundError, ValidationFailure
from taskboard.repositories.users import UserRepository
from taskboard.schemas.task import TaskPublic
from taskboard.schemas.user import UserCreate, UserPage, UserPublic, UserUpdate
from taskboard.security import PasswordHasher
from taskboard.services.file_service import FileService, StoredImage

logger = logging.getLogger(__name__)


# ── Update outcome ────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Updated:
    user: UserPublic


@dataclass(frozen=True)
class NoMatch:
    user_id: int


UpdateResult = Union[Updated, NoMatch]


class UserService:
    """
    Business logic layer for user operations.

    Responsibilities:
        - register_user():  POST, optional image
        - upsert_user():    PUT, update with fallthrough to create
        - replace_image():  PATCH images, required image
        - list_users() / get_user() / delete_user() / tasks_of()
    """

    def __init__(self, session: AsyncSession, settings: Settings, file_service: FileService):
        self.session = session
        self.settings = settings
        self.file_service = file_service
        self.users = UserRepository(session)
        self.hasher = PasswordHasher(settings.hash_rounds)

    # ── Helpers ───────────────────────────────────────────────────────────
    @asynccontextmanager
    async def _stored_upload(
        self, upload: Optional[UploadFile], required: bool = False
    ) -> AsyncIterator[Optional[StoredImage]]:
        """Store the upload, removing it again if the block raises."""
        stored = await self.file_service.save_upload(upload, required=required)
        try:
            yield stored
        except Exception:
            if stored is not None:
                await self.file_service.cleanup_file(stored.absolute_path)
            raise

    async def _current_image(self, user_id: int) -> Optional[str]:
        current = await self.users.find_by_id(user_id)
        return current.image if current is not None else None

    async def _discard_image(self, previous: Optional[str], keep: Optional[str]) -> None:
        """Delete a superseded image file; only called after the new path is committed."""
        if previous and previous != keep:
            await self.file_service.remove_stored(previous)

    def _to_columns(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """Swap a plaintext `password` for `password_hash`."""
        columns = dict(values)
        password = columns.pop("password", None)
        if password is not None:
            columns["password_hash"] = self.hasher.hash(password)
        return columns

    # ── Create ────────────────────────────────────────────────────────────
    async def create_user(
        self, fields: Dict[str, Any], image_path: Optional[str] = None
    ) -> UserPublic:
        """
        Validate and insert a user.

        Args:
            fields:     Raw input (form values); may include `id` for the PUT fallthrough
            image_path: Relative path of an already stored upload

        Raises:
            pydantic.ValidationError: a field failed the application-level rules
            IntegrityError:           a UNIQUE / CHECK constraint fired
        """
        payload = UserCreate.model_validate(fields)
        columns = self._to_columns(payload.model_dump(exclude_none=True))
        if image_path is not None:
            columns["image"] = image_path

        user = await self.users.create(columns)
        await self.session.commit()
        return user

    async def register_user(
        self, fields: Dict[str, Any], upload: Optional[UploadFile] = None
    ) -> UserPublic:
        async with self._stored_upload(upload) as stored:
            return await self.create_user(
                fields, image_path=stored.relative_path if stored else None
            )

    # ── Update-or-create ──────────────────────────────────────────────────
    async def attempt_update(
        self, user_id: int, fields: Dict[str, Any], image_path: Optional[str] = None
    ) -> UpdateResult:
        """
        Apply a partial update. Does not commit.

        Returns:
            Updated(user) when a row matched, NoMatch(user_id) otherwise.
        """
        payload = UserUpdate.model_validate(fields)
        columns = self._to_columns(payload.model_dump(exclude_none=True))
        if image_path is not None:
            columns["image"] = image_path

        user = await self.users.update(user_id, columns)
        if user is None:
            return NoMatch(user_id=user_id)
        return Updated(user=user)

    async def upsert_user(
        self,
        user_id: int,
        fields: Dict[str, Any],
        upload: Optional[UploadFile] = None,
    ) -> Tuple[UserPublic, bool]:
        """
        PUT semantics: update user `user_id`, or create it under that id.

        Returns:
            (user, created); `created` is True when the fallthrough inserted a row.
        """
        async with self._stored_upload(upload) as stored:
            image_path = stored.relative_path if stored else None
            previous_image = await self._current_image(user_id) if stored else None

            result = await self.attempt_update(user_id, fields, image_path)
            if isinstance(result, Updated):
                await self.session.commit()
                await self._discard_image(previous_image, keep=image_path)
                return result.user, False

            logger.info("No user with id=%s; creating it", result.user_id)
            user = await self.create_user({**fields, "id": result.user_id}, image_path)
            return user, True

    async def replace_image(self, user_id: int, upload: Optional[UploadFile]) -> UserPublic:
        """
        Store a new image and point the user at it; the file is required.

        The previous image file is deleted once the new path is committed.
        """
        current = await self.users.find_by_id(user_id)
        if current is None:
            raise NotFoundError(resource="user", resource_id=user_id)

        async with self._stored_upload(upload, required=True) as stored:
            user = await self.users.update(user_id, {"image": stored.relative_path})
            if user is None:
                # Deleted between the lookup and the update
                raise NotFoundError(resource="user", resource_id=user_id)
            await self.session.commit()

        await self._discard_image(current.image, keep=stored.relative_path)
        return user

    # ── Reads & delete ────────────────────────────────────────────────────
    async def list_users(self, page: int, page_size: int) -> UserPage:
        """
        One page of users ordered by id; offset = (page - 1) * page_size.

        The route's Query bounds already reject these values; the checks
        here keep the service safe for other callers.
        """
        if page < 1:
            raise ValidationFailure(message="Page must be at least 1", field="page")
        if not 1 <= page_size <= self.settings.max_page_size:
            raise ValidationFailure(
                message=f"Results must be between 1 and {self.settings.max_page_size}",
                field="results",
            )

        items, total = await self.users.list(limit=page_size, offset=(page - 1) * page_size)
        return UserPage(items=items, total=total, page=page, page_size=page_size)

    async def get_user(self, user_id: int) -> UserPublic:
        user = await self.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=user_id)
        return user

    async def delete_user(self, user_id: int) -> None:
        if not await self.users.delete(user_id):
            raise NotFoundError(resource="user", resource_id=user_id)
        await self.session.commit()

    async def tasks_of(self, user_id: int) -> List[TaskPublic]:
        return await self.users.tasks_of(user_id)
