"""
# Post Routes

REST endpoints for blog posts, mounted at `/api/posts`.

## Endpoints

### Public
- `GET /api/posts` - Published posts, paginated, filterable by category, tags and search,
  sorted `latest` | `oldest` | `popular` | `trending`
- `GET /api/posts/trending` - Most viewed/liked posts from the last 7 days
- `GET /api/posts/tags` - Tag histogram over published posts (top 50)
- `GET /api/posts/{slug}` - A published post; counts a view unless the caller is its author
- `POST /api/posts/{post_id}/like` - Increment the like counter

### Admin
- `GET /api/posts/admin` - All posts, any status, sorted `latest` | `oldest` | `title` | `views`
- `POST /api/posts` - Create
- `PUT /api/posts/{post_id}` - Partial update
- `DELETE /api/posts/{post_id}` - Delete

Every response uses the `{success, message, data}` envelope. List items omit `content`.

Attributes:
    router (APIRouter): FastAPI router with `/posts` prefix
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status

from tech_blog_api.managers.logging_manager import get_logger
from tech_blog_api.managers.post_manager import PostManager
from tech_blog_api.models.common import ObjectIdStr, envelope
from tech_blog_api.models.post_models import (
    AdminPostSort,
    CreatePostRequest,
    PostListItem,
    PostResponse,
    PostStatus,
    PublicPostSort,
    UpdatePostRequest,
)
from tech_blog_api.routes.dependencies import get_optional_user, get_post_manager, require_admin
from tech_blog_api.services.query_builder import MAX_LIMIT, PaginationParams
from tech_blog_api.utils.errors import BlogAPIError, server_error

logger = get_logger(prefix="[Post Routes]")

router = APIRouter(prefix="/posts", tags=["posts"])


def _listing(result: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "posts": [PostListItem.render(p) for p in result["posts"]],
        "pagination": result["pagination"],
    }


@router.get("")
@router.get("/", include_in_schema=False)
async def list_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
    category: Optional[ObjectIdStr] = None,
    tags: Optional[str] = None,
    search: Optional[str] = None,
    sort: PublicPostSort = PublicPostSort.LATEST,
    posts: PostManager = Depends(get_post_manager),
):
    """
    List published posts.

    **Filtering:**
    *   **category**: Category id.
    *   **tags**: Comma-separated; a post matches when it has any of them.
    *   **search**: Case-insensitive match on title, content, excerpt and tags.

    **Sorting:** `trending` also restricts results to posts published in the last 7 days.

    Returns:
        Dict: `{posts, pagination}` where pagination carries `currentPage`, `totalPages`,
        `totalPosts`, `hasNextPage`, `hasPrevPage` and `limit`.
    """
    try:
        result = await posts.list_published(
            PaginationParams(page=page, limit=limit),
            category=category,
            tags=tags,
            search=search,
            sort=sort.value,
        )
        return envelope(data=_listing(result))

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to list posts: %s", e, exc_info=True)
        raise server_error(e, "Server error while fetching posts") from e


@router.get("/trending")
async def trending_posts(
    limit: int = Query(5, ge=1, le=MAX_LIMIT),
    posts: PostManager = Depends(get_post_manager),
):
    """Posts published in the last 7 days, ordered by views then likes."""
    try:
        items = await posts.list_trending(limit)
        return envelope(data={"posts": [PostListItem.render(p) for p in items]})

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to get trending posts: %s", e, exc_info=True)
        raise server_error(e, "Server error while fetching trending posts") from e


@router.get("/tags")
async def post_tags(posts: PostManager = Depends(get_post_manager)):
    try:
        return envelope(data={"tags": await posts.tag_histogram()})

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to get tags: %s", e, exc_info=True)
        raise server_error(e, "Server error while fetching tags") from e


@router.get("/admin")
async def list_admin_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
    post_status: Optional[PostStatus] = Query(None, alias="status"),
    sort: AdminPostSort = AdminPostSort.LATEST,
    current_user: dict = Depends(require_admin),
    posts: PostManager = Depends(get_post_manager),
):
    """
    List posts of any status for the admin dashboard.

    **Access Control:** Requires the admin role.
    """
    try:
        result = await posts.list_admin(
            PaginationParams(page=page, limit=limit),
            status=post_status.value if post_status else None,
            sort=sort.value,
        )
        return envelope(data=_listing(result))

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to list admin posts: %s", e, exc_info=True)
        raise server_error(e, "Server error while fetching posts") from e


@router.get("/{slug}")
async def get_post(
    slug: str,
    current_user: Optional[dict] = Depends(get_optional_user),
    posts: PostManager = Depends(get_post_manager),
):
    """
    Retrieve a published post by slug.

    **Side Effects:**
    *   Increments `views` by one, except when the authenticated caller is the post's author.

    Raises:
        NotFoundError(404): No published post has this slug.
    """
    try:
        post = await posts.get_published_by_slug(slug, viewer=current_user)
        return envelope(data={"post": PostResponse.render(post)})

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to get post %s: %s", slug, e, exc_info=True)
        raise server_error(e, "Server error while fetching post") from e


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
async def create_post(
    request: CreatePostRequest,
    current_user: dict = Depends(require_admin),
    posts: PostManager = Depends(get_post_manager),
):
    """
    Create a post authored by the caller.

    **Process:**
    1.  Verifies the category exists (400 `Invalid category` otherwise).
    2.  Derives slug, excerpt, reading time, SEO defaults and, for published posts,
        `publishedAt`.
    3.  Inserts the document; a slug collision is reported as 409.

    Returns:
        Dict: The created post, populated with author and category summaries.
    """
    try:
        post = await posts.create(request.model_dump(), author_id=current_user["_id"])
        logger.info("Created post %s by %s", post["_id"], current_user["_id"])
        return envelope(data={"post": PostResponse.render(post)}, message="Post created successfully")

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to create post: %s", e, exc_info=True)
        raise server_error(e, "Server error while creating post") from e


@router.put("/{post_id}")
async def update_post(
    post_id: str,
    request: UpdatePostRequest,
    current_user: dict = Depends(require_admin),
    posts: PostManager = Depends(get_post_manager),
):
    """
    Apply a partial update. Only fields present in the body change; unknown fields are a 400.

    Raises:
        NotFoundError(404): No post has this id.
        ValidationFailedError(400): The new category does not exist.
    """
    try:
        post = await posts.update(post_id, request.to_changes())
        return envelope(data={"post": PostResponse.render(post)}, message="Post updated successfully")

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to update post %s: %s", post_id, e, exc_info=True)
        raise server_error(e, "Server error while updating post") from e


@router.delete("/{post_id}")
async def delete_post(
    post_id: str,
    current_user: dict = Depends(require_admin),
    posts: PostManager = Depends(get_post_manager),
):
    try:
        await posts.delete(post_id)
        return envelope(message="Post deleted successfully")

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to delete post %s: %s", post_id, e, exc_info=True)
        raise server_error(e, "Server error while deleting post") from e


@router.post("/{post_id}/like")
async def like_post(post_id: str, posts: PostManager = Depends(get_post_manager)):
    """Increment the like counter. Every call counts; there is no per-caller de-duplication."""
    try:
        likes = await posts.like(post_id)
        return envelope(data={"likes": likes}, message="Post liked successfully")

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to like post %s: %s", post_id, e, exc_info=True)
        raise server_error(e, "Server error while liking post") from e
