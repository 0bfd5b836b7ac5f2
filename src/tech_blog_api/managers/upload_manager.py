"""
# Upload Manager

Stores uploaded images on the local filesystem and manages them afterwards.

## Storage Layout

```
<UPLOAD_DIR>/
├── posts/     # images embedded in or featured on posts
└── avatars/   # user profile pictures
```

Stored names are `<sanitized-stem>-<epochms>-<random><ext>`; files are served back by the
static mount at `<UPLOAD_URL_PREFIX>/<type>/<filename>`.

## Validation

An upload is accepted only when **all** of these hold:

1. The extension is one of `.jpeg`, `.jpg`, `.png`, `.gif`, `.webp`.
2. The declared MIME type names one of those formats.
3. The leading bytes match the format the extension claims.
4. The size is non-zero and at most `MAX_FILE_SIZE`.

Any failure raises `UploadError` (400).
"""

import os
import random
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from starlette.concurrency import run_in_threadpool

from tech_blog_api.config import Settings
from tech_blog_api.database.manager import DatabaseManager
from tech_blog_api.managers.logging_manager import get_logger
from tech_blog_api.models.common import as_object_id
from tech_blog_api.models.upload_models import UploadedFile, UploadType
from tech_blog_api.services.query_builder import PaginationParams, build_pagination
from tech_blog_api.utils.errors import NotFoundError, UploadError, ValidationFailedError

logger = get_logger(prefix="[Upload Manager]")

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp"}
ALLOWED_MIME_PATTERN = re.compile(r"jpeg|jpg|png|gif|webp")
IMAGE_TYPE_MESSAGE = "Only image files (JPEG, JPG, PNG, GIF, WebP) are allowed!"
_STEM_RE = re.compile(r"[^a-zA-Z0-9]")


def detect_image_format(ext: str, content: bytes) -> Optional[str]:
    """Return the MIME type when `content` starts with the signature `ext` claims."""
    ext = ext.lower().lstrip(".")
    head = content[:16]
    if ext == "png":
        return "image/png" if head.startswith(b"\x89PNG\r\n\x1a\n") else None
    if ext in ("jpg", "jpeg"):
        return "image/jpeg" if head.startswith(b"\xff\xd8") else None
    if ext == "gif":
        return "image/gif" if head.startswith((b"GIF87a", b"GIF89a")) else None
    if ext == "webp":
        return "image/webp" if len(head) >= 12 and head.startswith(b"RIFF") and head[8:12] == b"WEBP" else None
    return None


def build_stored_filename(original_name: str, now_ms: Optional[int] = None) -> str:
    """`photo of me.PNG` → `photo-of-me-1718000000000-123456789.PNG`."""
    stem, ext = os.path.splitext(os.path.basename(original_name))
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{_STEM_RE.sub('-', stem)}-{now_ms}-{random.randint(0, 10**9)}{ext}"


def is_safe_filename(filename: str) -> bool:
    if not filename or filename in (".", "..") or "\x00" in filename:
        return False
    if "/" in filename or "\\" in filename:
        return False
    return os.path.basename(filename) == filename


class UploadManager:
    """
    Manages image uploads under `settings.UPLOAD_DIR`.

    Attributes:
        settings (Settings): Upload limits, directory and URL configuration.
        db (Optional[DatabaseManager]): Used to record avatar URLs on user documents.
    """

    def __init__(self, settings: Settings, db: Optional[DatabaseManager] = None):
        self.settings = settings
        self.db = db
        self.root = Path(settings.UPLOAD_DIR)

    def ensure_directories(self) -> None:
        for upload_type in UploadType:
            (self.root / upload_type.value).mkdir(parents=True, exist_ok=True)

    def _directory(self, upload_type: str) -> Path:
        if upload_type not in {t.value for t in UploadType}:
            raise ValidationFailedError("Invalid file type")
        return self.root / upload_type

    def _url(self, upload_type: str, filename: str) -> str:
        return f"{self.settings.UPLOAD_URL_PREFIX}/{upload_type}/{filename}"

    def _describe(self, upload_type: str, filename: str, size: int, original_name: Optional[str] = None,
                  created_at: Optional[datetime] = None) -> Dict[str, Any]:
        url = self._url(upload_type, filename)
        return UploadedFile(
            filename=filename,
            original_name=original_name,
            size=size,
            url=url,
            full_url=f"{self.settings.BASE_URL.rstrip('/')}{url}",
            created_at=created_at,
        ).model_dump(by_alias=True, exclude_none=True)

    def validate_image(self, filename: Optional[str], content_type: Optional[str], content: bytes) -> None:
        """
        Check an uploaded image against the type and size rules.

        Raises:
            UploadError: On a disallowed type, a signature mismatch, an empty file or an
                oversized file.
        """
        ext = os.path.splitext(filename or "")[1].lower()
        mime = (content_type or "").split(";")[0].strip().lower()
        if ext not in ALLOWED_EXTENSIONS or not ALLOWED_MIME_PATTERN.search(mime):
            raise UploadError(IMAGE_TYPE_MESSAGE)
        if not content:
            raise UploadError("Uploaded file is empty")
        if len(content) > self.settings.MAX_FILE_SIZE:
            max_mb = self.settings.MAX_FILE_SIZE / (1024 * 1024)
            raise UploadError(f"File too large. Maximum size is {max_mb:g}MB.")
        if detect_image_format(ext, content) is None:
            raise UploadError(IMAGE_TYPE_MESSAGE)

    async def _read_capped(self, upload) -> bytes:
        # One byte past the limit is enough for validate_image to reject the file
        return await upload.read(self.settings.MAX_FILE_SIZE + 1)

    async def save_image(self, upload_type: str, upload) -> Dict[str, Any]:
        """
        Validate and store one `UploadFile`.

        Returns:
            Dict[str, Any]: `{filename, originalName, size, url, fullUrl}`.
        """
        directory = self._directory(upload_type)
        content = await self._read_capped(upload)
        self.validate_image(upload.filename, upload.content_type, content)

        filename = build_stored_filename(upload.filename)
        await run_in_threadpool(directory.mkdir, parents=True, exist_ok=True)
        await run_in_threadpool((directory / filename).write_bytes, content)
        logger.info("Stored %s upload %s (%d bytes)", upload_type, filename, len(content))
        return self._describe(upload_type, filename, len(content), original_name=upload.filename)

    async def save_images(self, upload_type: str, uploads: List[Any]) -> List[Dict[str, Any]]:
        """Store several images; every file is validated before any is written."""
        if len(uploads) > self.settings.MAX_FILES_PER_REQUEST:
            raise UploadError(f"Too many files. Maximum is {self.settings.MAX_FILES_PER_REQUEST} files.")

        for upload in uploads:
            content = await self._read_capped(upload)
            self.validate_image(upload.filename, upload.content_type, content)
            await upload.seek(0)

        return [await self.save_image(upload_type, upload) for upload in uploads]

    async def set_user_avatar(self, user_id: Any, avatar_url: str) -> bool:
        """Record the avatar URL on the user's document. Returns whether a user was updated."""
        if self.db is None:
            return False
        result = await self.db.users.update_one(
            {"_id": as_object_id(user_id)}, {"$set": {"avatar": avatar_url}}
        )
        return result.matched_count > 0

    async def delete_file(self, upload_type: str, filename: str) -> None:
        """
        Remove a stored file.

        Raises:
            ValidationFailedError: Unknown type or a filename that escapes its directory.
            NotFoundError: No such file.
        """
        directory = self._directory(upload_type)
        if not is_safe_filename(filename):
            raise ValidationFailedError("Invalid filename")

        path = directory / filename
        if not path.resolve().is_relative_to(directory.resolve()):
            raise ValidationFailedError("Invalid filename")
        if not path.is_file():
            raise NotFoundError("File not found")

        await run_in_threadpool(path.unlink)
        logger.info("Deleted %s upload %s", upload_type, filename)

    def _scan(self, directory: Path) -> List[Tuple[str, os.stat_result]]:
        entries = []
        for entry in directory.iterdir():
            if entry.is_file():
                entries.append((entry.name, entry.stat()))
        return entries

    async def list_files(self, upload_type: str, params: PaginationParams) -> Dict[str, Any]:
        """List stored files of a type, newest first, with `totalFiles` pagination."""
        directory = self._directory(upload_type)
        if not directory.exists():
            return {"files": [], "pagination": build_pagination(params.page, params.limit, 0, "totalFiles")}

        entries = await run_in_threadpool(self._scan, directory)
        entries.sort(key=lambda e: e[1].st_mtime, reverse=True)
        page = entries[params.skip: params.skip + params.limit]
        files = [
            self._describe(
                upload_type,
                name,
                stat.st_size,
                created_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            )
            for name, stat in page
        ]
        return {"files": files, "pagination": build_pagination(params.page, params.limit, len(entries), "totalFiles")}
