"""
YelpCamp Backend - Image Storage Service
==========================================

What:  Validates, stores, serves and removes campground images.
How:   Extension and size checks, then an async write (aiofiles) into a
       date-organized directory with a UUID filename. Each stored image is
       described by the same {url, filename} pair a campground embeds:
           url:      /images/<YYYY>/<MM>/<DD>/<uuid>.<ext>
           filename: <YYYY>/<MM>/<DD>/<uuid>.<ext>  (relative to storage root)
Who:   Called by CampgroundService on create/update/delete, and by the
       /images route to serve files back.
When:  After guards and payload validation, before the campground is written.

Security Model:
    1. Extension allow-list (.png, .jpg, .jpeg)
    2. Size limit (settings.max_file_size) and a per-request image count limit
    3. UUID filenames, so no user input reaches the file system path
    4. resolve() refuses any path that escapes the storage root

Images whose filename is not a local relative path (e.g. seeded remote
images such as "seeder/autumn_cqyggb") are never touched on disk.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import aiofiles

from app.config import settings
from app.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg"}
URL_PREFIX = "/images/"


@dataclass(frozen=True)
class ImageUpload:
    """One uploaded file part, already read into memory."""

    filename: str
    content: bytes


class FileService:
    """
    Manages the lifecycle of uploaded campground images.

    Directory Structure:
        storage/
        └── 2024/
            └── 01/
                └── 15/
                    ├── a1b2c3d4-....jpg
                    └── e5f6a7b8-....png
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    # ── Validation ────────────────────────────────────────────────────────

    def validate_extension(self, filename: str) -> str:
        """Returns the normalized extension (lowercase with dot)."""
        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="image",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Checks the reported size (when known) and the real byte count.

        Raises:
            ValidationError for empty files or files over settings.max_file_size
        """
        max_mb = settings.max_file_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(message="Uploaded image is empty.", field="image")

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"Image exceeds maximum size of {max_mb:.0f}MB.",
                field="image",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=(
                    f"Image ({actual_size / (1024 * 1024):.1f}MB) exceeds "
                    f"maximum size of {max_mb:.0f}MB."
                ),
                field="image",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def validate_uploads(self, uploads: List[ImageUpload]) -> List[str]:
        """Validate a whole request's uploads before anything is written."""
        if len(uploads) > settings.max_images_per_request:
            raise ValidationError(
                message=f"At most {settings.max_images_per_request} images can be uploaded at once.",
                field="image",
                context={"count": len(uploads)},
            )
        extensions = []
        for upload in uploads:
            extensions.append(self.validate_extension(upload.filename))
            self.validate_size(None, len(upload.content))
        return extensions

    # ── Storage ───────────────────────────────────────────────────────────

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        """Returns (absolute_path, relative_path) for YYYY/MM/DD/<uuid><ext>."""
        now = datetime.now(timezone.utc)
        relative_path = f"{now.strftime('%Y/%m/%d')}/{uuid.uuid4()}{extension}"
        return self.storage_root / relative_path, relative_path

    async def store_file(self, content: bytes, extension: str) -> Tuple[str, str]:
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
            )

        logger.info("File stored: %s (%d bytes)", relative_path, len(content))
        return str(absolute_path), relative_path

    async def save_images(self, uploads: List[ImageUpload]) -> List[Dict[str, str]]:
        """
        Validate and store every upload; returns the image references.

        All uploads are validated before the first write. If a write fails,
        files already written for this request are removed again.
        """
        if not uploads:
            return []
        extensions = self.validate_uploads(uploads)

        images: List[Dict[str, str]] = []
        try:
            for upload, ext in zip(uploads, extensions):
                _, relative_path = await self.store_file(upload.content, ext)
                images.append({"url": URL_PREFIX + relative_path, "filename": relative_path})
        except FileStorageError:
            await self.remove_images(images)
            raise
        return images

    # ── Lookup & cleanup ──────────────────────────────────────────────────

    def resolve(self, relative_path: str) -> Optional[Path]:
        """
        Absolute path of a stored file, or None when it does not exist or
        would escape the storage root (e.g. "../../etc/passwd").
        """
        candidate = (self.storage_root / relative_path).resolve()
        if not candidate.is_relative_to(self.storage_root):
            logger.warning("Rejected path outside storage root: %s", relative_path)
            return None
        if not candidate.is_file():
            return None
        return candidate

    async def cleanup_file(self, relative_path: str) -> None:
        """
        Best-effort removal of one stored file.

        Missing files and OS errors are logged, never raised; a leftover
        file is not a user-facing error.
        """
        path = self.resolve(relative_path)
        if path is None:
            logger.debug("Cleanup: nothing stored at %s", relative_path)
            return
        try:
            path.unlink()
            logger.info("Cleaned up file: %s", relative_path)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", relative_path, str(e))

    async def remove_images(self, images: Iterable[Dict[str, str]]) -> None:
        """Remove the stored files behind local image references."""
        for image in images:
            if str(image.get("url", "")).startswith(URL_PREFIX):
                await self.cleanup_file(image.get("filename", ""))


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
