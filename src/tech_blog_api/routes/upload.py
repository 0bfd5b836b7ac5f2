"""
# Upload Routes

Image upload and stored-file management, mounted at `/api/upload`.

- `POST /api/upload/post-image` - One image in field `image` (admin)
- `POST /api/upload/post-images` - Up to `MAX_FILES_PER_REQUEST` images in field `images` (admin)
- `POST /api/upload/avatar` - One image in field `avatar`; recorded on the caller's user (authenticated)
- `DELETE /api/upload/{type}/{filename}` - Remove a stored file (admin)
- `GET /api/upload/files/{type}` - Stored files, newest first, paginated (admin)

`type` is `posts` or `avatars`. Rejected uploads (wrong type, too large, too many) answer 400.

Attributes:
    router (APIRouter): FastAPI router with `/upload` prefix
"""

from typing import List

from fastapi import APIRouter, Depends, File, Query, UploadFile

from tech_blog_api.managers.logging_manager import get_logger
from tech_blog_api.managers.upload_manager import UploadManager
from tech_blog_api.models.common import envelope
from tech_blog_api.models.upload_models import UploadType
from tech_blog_api.routes.dependencies import get_upload_manager, require_admin, require_auth
from tech_blog_api.services.query_builder import MAX_LIMIT, PaginationParams
from tech_blog_api.utils.errors import BlogAPIError, UploadError, server_error

logger = get_logger(prefix="[Upload Routes]")

router = APIRouter(prefix="/upload", tags=["upload"])


@router.post("/post-image")
async def upload_post_image(
    image: UploadFile = File(None),
    current_user: dict = Depends(require_admin),
    uploads: UploadManager = Depends(get_upload_manager),
):
    """
    Upload a single image for a post.

    Returns:
        Dict: `{filename, originalName, size, url, fullUrl}`.

    Raises:
        UploadError(400): No file, wrong type, or larger than `MAX_FILE_SIZE`.
    """
    if image is None:
        raise UploadError("No image file provided")
    try:
        stored = await uploads.save_image(UploadType.POSTS.value, image)
        return envelope(data=stored, message="Image uploaded successfully")

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to upload post image: %s", e, exc_info=True)
        raise server_error(e, "Server error during image upload") from e


@router.post("/post-images")
async def upload_post_images(
    images: List[UploadFile] = File(None),
    current_user: dict = Depends(require_admin),
    uploads: UploadManager = Depends(get_upload_manager),
):
    if not images:
        raise UploadError("No image files provided")
    try:
        stored = await uploads.save_images(UploadType.POSTS.value, images)
        return envelope(data={"images": stored}, message=f"{len(stored)} images uploaded successfully")

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to upload post images: %s", e, exc_info=True)
        raise server_error(e, "Server error during images upload") from e


@router.post("/avatar")
async def upload_avatar(
    avatar: UploadFile = File(None),
    current_user: dict = Depends(require_auth),
    uploads: UploadManager = Depends(get_upload_manager),
):
    """
    Upload the caller's avatar.

    **Side Effects:**
    *   Sets `avatar` on the caller's user document when one exists.
    """
    if avatar is None:
        raise UploadError("No avatar file provided")
    try:
        stored = await uploads.save_image(UploadType.AVATARS.value, avatar)
        if not await uploads.set_user_avatar(current_user["_id"], stored["url"]):
            logger.info("No user document for %s; avatar stored without profile update", current_user["_id"])
        return envelope(data=stored, message="Avatar uploaded successfully")

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to upload avatar: %s", e, exc_info=True)
        raise server_error(e, "Server error during avatar upload") from e


@router.delete("/{upload_type}/{filename}")
async def delete_upload(
    upload_type: str,
    filename: str,
    current_user: dict = Depends(require_admin),
    uploads: UploadManager = Depends(get_upload_manager),
):
    """
    Delete a stored file.

    Raises:
        ValidationFailedError(400): Unknown type or a filename with path components.
        NotFoundError(404): No such file.
    """
    try:
        await uploads.delete_file(upload_type, filename)
        return envelope(message="File deleted successfully")

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to delete %s/%s: %s", upload_type, filename, e, exc_info=True)
        raise server_error(e, "Server error during file deletion") from e


@router.get("/files/{upload_type}")
async def list_uploads(
    upload_type: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=MAX_LIMIT),
    current_user: dict = Depends(require_admin),
    uploads: UploadManager = Depends(get_upload_manager),
):
    try:
        result = await uploads.list_files(upload_type, PaginationParams(page=page, limit=limit))
        return envelope(data=result)

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to list %s files: %s", upload_type, e, exc_info=True)
        raise server_error(e, "Server error while listing files") from e
