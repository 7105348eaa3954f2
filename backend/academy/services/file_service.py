"""
Football Academy Backend — Player Photo Storage Service
=========================================================

What:  Validates, stores and removes player profile photos.
How:   Validates extension, size and sniffed MIME type, then writes the
       bytes under STORAGE_ROOT/players/YYYY/MM/<uuid>.<ext> with aiofiles.
Who:   PlayerService (upload/replace photo) and the photo download route.

Upload checks, cheapest first:
    1. Extension:  .png, .jpg, .jpeg
    2. Size:       non-empty and at most MAX_FILE_SIZE
    3. MIME type:  libmagic reads the header bytes (catches renamed files)
    4. UUID name:  no user input reaches the filesystem path
"""

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles
import magic

from academy.config import settings
from academy.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
}

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg"}

PHOTO_DIR = "players"


class FileService:
    """
    Directory Structure:
        storage/
        └── players/
            └── 2024/
                └── 09/
                    ├── a1b2c3d4-....jpg
                    └── e5f6g7h8-....png
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                          If None, settings.storage_root is read on each call.
        """
        self._storage_root = storage_root

    @property
    def storage_root(self) -> Path:
        return Path(self._storage_root or settings.storage_root).resolve()

    def validate_extension(self, filename: str) -> str:
        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or 'none'}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Checks the Content-Length header first, then the real byte count
        (clients can send a wrong header).
        """
        max_mb = settings.max_file_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(message="Uploaded file is empty.", field="file")

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller image.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def validate_mime_type(self, content: bytes) -> str:
        """
        Sniff the real content type with libmagic.

        Raises:
            ValidationError if the bytes are not PNG or JPEG
            FileStorageError if libmagic itself fails
        """
        try:
            mime_type = magic.from_buffer(content, mime=True)
        except magic.MagicException as e:
            logger.error("MIME type detection failed: %s", e)
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"File content type '{mime_type}' is not supported. "
                    "The photo must be a PNG or JPEG image."
                ),
                field="file",
                context={"detected_mime": mime_type, "allowed": list(ALLOWED_MIME_TYPES)},
            )
        return mime_type

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        now = datetime.now(timezone.utc)
        relative_path = f"{PHOTO_DIR}/{now:%Y/%m}/{uuid.uuid4()}{extension}"
        return self.storage_root / relative_path, relative_path

    async def store_file(self, content: bytes, extension: str) -> str:
        """Write validated bytes to disk. Returns the path relative to the storage root."""
        absolute_path, relative_path = self._generate_storage_path(extension)
        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, e)
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("File stored: %s (%d bytes)", relative_path, len(content))
        return relative_path

    async def validate_and_store(
        self,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> str:
        ext = self.validate_extension(filename)
        self.validate_size(content_length, len(content))
        mime_type = self.validate_mime_type(content)
        # Normalise the stored extension to the sniffed type
        return await self.store_file(content, ALLOWED_MIME_TYPES.get(mime_type, ext))

    def resolve(self, relative_path: str) -> Path:
        """
        Map a stored relative path back to disk, refusing anything that
        escapes the storage root (e.g. ../../etc/passwd).
        """
        root = self.storage_root
        full_path = (root / relative_path).resolve()
        if root != full_path and root not in full_path.parents:
            raise ValidationError(message="Invalid file path")
        if not full_path.is_file():
            raise NotFoundError(resource="file", resource_id=relative_path)
        return full_path

    async def cleanup_file(self, relative_path: str) -> None:
        """
        Best-effort removal of a replaced or orphaned photo. Failures are
        logged, never raised: the database row has already moved on.
        """
        try:
            path = (self.storage_root / relative_path).resolve()
            if self.storage_root not in path.parents:
                logger.warning("Refusing to clean up path outside storage: %s", relative_path)
                return
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", relative_path)
            else:
                logger.debug("Cleanup: file already gone: %s", relative_path)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", relative_path, e)


file_service = FileService()
