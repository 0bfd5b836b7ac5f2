"""
# Comment Routes

Moderated comments, mounted at `/api/comments`.

- `GET /api/comments/{post_id}` - Approved comments, newest first, replies nested
- `POST /api/comments` - Submit a comment (`postId` in the body)
- `POST /api/comments/{post_id}` - Submit a comment on the post in the path
- `GET /api/comments/admin/pending` - Comments awaiting approval (admin)
- `PUT /api/comments/{comment_id}/approve` - Approve (admin)
- `DELETE /api/comments/{comment_id}` - Delete (admin)

Submitted comments stay hidden until approved.

Attributes:
    router (APIRouter): FastAPI router with `/comments` prefix
"""

from fastapi import APIRouter, Depends, status

from tech_blog_api.managers.comment_manager import CommentManager
from tech_blog_api.managers.logging_manager import get_logger
from tech_blog_api.models.comment_models import CommentBody, CommentResponse, CreateCommentRequest
from tech_blog_api.models.common import envelope
from tech_blog_api.routes.dependencies import get_comment_manager, require_admin
from tech_blog_api.utils.errors import BlogAPIError, server_error

logger = get_logger(prefix="[Comment Routes]")

router = APIRouter(prefix="/comments", tags=["comments"])

SUBMITTED_MESSAGE = "Comment submitted for approval"


@router.get("/admin/pending")
async def list_pending_comments(
    current_user: dict = Depends(require_admin),
    comments: CommentManager = Depends(get_comment_manager),
):
    try:
        items = await comments.list_pending()
        return envelope(data={"comments": [CommentResponse.render(c) for c in items]})

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to list pending comments: %s", e, exc_info=True)
        raise server_error(e, "Server error while fetching comments") from e


@router.get("/{post_id}")
async def list_comments(post_id: str, comments: CommentManager = Depends(get_comment_manager)):
    """Approved comments on a post; each top-level comment carries its `replies`."""
    try:
        thread = await comments.list_approved(post_id)
        return envelope(data={"comments": [CommentResponse.render(c) for c in thread]})

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to list comments for post %s: %s", post_id, e, exc_info=True)
        raise server_error(e, "Server error while fetching comments") from e


async def _submit(post_id: str, body: CommentBody, comments: CommentManager):
    try:
        comment = await comments.create(post_id, body.model_dump())
        return envelope(data={"comment": CommentResponse.render(comment)}, message=SUBMITTED_MESSAGE)

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to submit comment on post %s: %s", post_id, e, exc_info=True)
        raise server_error(e, "Server error while submitting comment") from e


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
async def create_comment(
    request: CreateCommentRequest,
    comments: CommentManager = Depends(get_comment_manager),
):
    """
    Submit a comment for moderation.

    Raises:
        NotFoundError(404): The post does not exist.
        ValidationFailedError(400): Comments are disabled on the post.
    """
    return await _submit(request.post_id, request, comments)


@router.post("/{post_id}", status_code=status.HTTP_201_CREATED)
async def create_comment_for_post(
    post_id: str,
    request: CommentBody,
    comments: CommentManager = Depends(get_comment_manager),
):
    return await _submit(post_id, request, comments)


@router.put("/{comment_id}/approve")
async def approve_comment(
    comment_id: str,
    current_user: dict = Depends(require_admin),
    comments: CommentManager = Depends(get_comment_manager),
):
    """Approve a comment; the first approval increments the post's `commentCount`."""
    try:
        comment = await comments.approve(comment_id)
        return envelope(data={"comment": CommentResponse.render(comment)}, message="Comment approved")

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to approve comment %s: %s", comment_id, e, exc_info=True)
        raise server_error(e, "Server error while approving comment") from e


@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: str,
    current_user: dict = Depends(require_admin),
    comments: CommentManager = Depends(get_comment_manager),
):
    try:
        await comments.delete(comment_id)
        return envelope(message="Comment deleted")

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to delete comment %s: %s", comment_id, e, exc_info=True)
        raise server_error(e, "Server error while deleting comment") from e
