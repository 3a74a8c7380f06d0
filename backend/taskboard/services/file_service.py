"""
Taskboard Backend — Image Upload Service
==========================================

What:  Accepts one uploaded image, checks its type and size, stores it under
       the static root and returns a root-relative path.
How:   Content-Type allow-list check first (before reading any bytes), then
       emptiness and size checks, then an async write to a date-organized
       directory with a UUID filename.
Who:   UserService on POST / PUT / PATCH-images.

Outcomes of `save_upload()`:
    no file / zero-byte file, optional  → None (nothing written)
    no file / zero-byte file, required  → ValidationFailure(field="image")
    Content-Type not allowed            → UnsupportedMediaType (nothing written)
    larger than max_file_size           → ValidationFailure(field="image")
    otherwise                           → StoredImage(absolute_path, relative_path)

Directory Structure:
    static/
    └── 2024/
        └── 01/
            └── 15/
                ├── a1b2c3d4-....jpg
                └── e5f6a7b8-....png
"""

import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles
from fastapi import UploadFile

from taskboard.config import Settings
from taskboard.exceptions import FileStorageError, UnsupportedMediaType, ValidationFailure

logger = logging.getLogger(__name__)

# Multipart field carrying the image on every user route
IMAGE_FIELD = "image"

# ── Allowed File Types ────────────────────────────────────────────────────
# Mapping of allowed MIME types to the extension used on disk
ALLOWED_MIME_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
}


@dataclass(frozen=True)
class StoredImage:
    """An image written to disk; `relative_path` is what the user row stores."""

    absolute_path: str
    relative_path: str


class FileService:
    """
    Manages upload validation, storage and cleanup under `Settings.static_root`.

    Lifecycle of an uploaded file:
        1. Route receives multipart upload → FileService.save_upload()
        2. Content-Type check against ALLOWED_MIME_TYPES
        3. Content is read into memory; empty / oversized files are handled
        4. File is written to YYYY/MM/DD/<uuid><ext>
        5. Relative path is returned (stored on the user row)
        6. If the row write then fails: cleanup_file() removes the orphan
    """

    def __init__(self, settings: Settings):
        self.storage_root = Path(settings.static_root).resolve()
        self.max_file_size = settings.max_file_size
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    @staticmethod
    def _normalize_content_type(content_type: Optional[str]) -> str:
        # "image/png; charset=binary" → "image/png"
        return (content_type or "").split(";")[0].strip().lower()

    def validate_content_type(self, content_type: Optional[str]) -> str:
        """
        Check the declared Content-Type of the upload.

        Returns:
            The file extension to store the image under.
        Raises:
            UnsupportedMediaType if the type is not in ALLOWED_MIME_TYPES.
        """
        normalized = self._normalize_content_type(content_type)
        extension = ALLOWED_MIME_TYPES.get(normalized)
        if extension is None:
            raise UnsupportedMediaType(
                content_type=content_type,
                allowed=sorted(ALLOWED_MIME_TYPES),
            )
        return extension

    def validate_size(self, size: int) -> None:
        if size > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            raise ValidationFailure(
                message=f"File size exceeds maximum of {max_mb:.0f}MB",
                field=IMAGE_FIELD,
                context={"max_size": self.max_file_size, "actual_size": size},
            )

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        """
        Build a unique YYYY/MM/DD/<uuid><ext> path.

        Returns: Tuple of (absolute_path, relative_path_from_storage_root).
        The relative path always uses forward slashes.
        """
        now = datetime.now(timezone.utc)
        date_dir = now.strftime("%Y/%m/%d")
        unique_name = f"{uuid.uuid4()}{extension}"

        relative_path = f"{date_dir}/{unique_name}"
        absolute_path = self.storage_root / relative_path

        return absolute_path, relative_path

    async def store_file(self, content: bytes, extension: str) -> StoredImage:
        """
        Write validated file content to disk.

        Raises:
            FileStorageError if directory creation or file write fails.
        """
        absolute_path, relative_path = self._generate_storage_path(extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            ) from e

        logger.info("File stored: %s (%d bytes)", relative_path, len(content))
        return StoredImage(absolute_path=str(absolute_path), relative_path=relative_path)

    async def cleanup_file(self, file_path: str) -> None:
        """
        Remove a stored file: an orphan from a failed write, or an image
        nothing references any more.

        Missing files are ignored; other OS errors are logged, because the
        caller is either propagating the original failure or has already
        committed.
        """
        path = Path(file_path)
        try:
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))

    async def remove_stored(self, relative_path: str) -> None:
        """Remove an image a user no longer references, given its stored relative path."""
        path = (self.storage_root / relative_path).resolve()
        if self.storage_root not in path.parents:
            logger.warning("Refusing to remove path outside storage root: %s", relative_path)
            return
        await self.cleanup_file(str(path))

    async def save_upload(
        self,
        upload: Optional[UploadFile],
        required: bool = False,
    ) -> Optional[StoredImage]:
        """
        Complete validation and storage pipeline for one multipart file.

        Validation order:
            1. Presence (a part with no filename counts as absent)
            2. Content-Type, before any byte is read or written
            3. Emptiness and size, on the bytes actually received
            4. Store file
        """
        if upload is None or not upload.filename:
            if required:
                raise ValidationFailure(message="An image file is required", field=IMAGE_FIELD)
            return None

        extension = self.validate_content_type(upload.content_type)

        content = await upload.read()
        if not content:
            if required:
                raise ValidationFailure(message="The uploaded image is empty", field=IMAGE_FIELD)
            logger.debug("Ignoring empty optional upload: %s", upload.filename)
            return None

        self.validate_size(len(content))
        return await self.store_file(content, extension)
