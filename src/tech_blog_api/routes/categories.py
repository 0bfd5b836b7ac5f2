"""
# Category Routes

REST endpoints for the category tree, mounted at `/api/categories`.

## Endpoints

### Public
- `GET /api/categories` - Active categories with their subcategories
- `GET /api/categories/with-counts` - Active categories with live post counts
- `GET /api/categories/{slug}` - One active category with its subcategories
- `GET /api/categories/{slug}/posts` - Published posts in the category, paginated

### Admin
- `GET /api/categories/admin` - All categories, including inactive ones
- `POST /api/categories` - Create
- `PUT /api/categories/{category_id}` - Partial update
- `DELETE /api/categories/{category_id}` - Delete (409 while posts or subcategories exist)
- `PUT /api/categories/{category_id}/update-counts` - Recompute `postCount` and `totalViews`

Attributes:
    router (APIRouter): FastAPI router with `/categories` prefix
"""

from fastapi import APIRouter, Depends, Query, status

from tech_blog_api.managers.category_manager import CategoryManager
from tech_blog_api.managers.logging_manager import get_logger
from tech_blog_api.managers.post_manager import PostManager
from tech_blog_api.models.category_models import CategoryResponse, CreateCategoryRequest, UpdateCategoryRequest
from tech_blog_api.models.common import envelope
from tech_blog_api.models.post_models import PostListItem
from tech_blog_api.routes.dependencies import get_category_manager, get_post_manager, require_admin
from tech_blog_api.services.query_builder import MAX_LIMIT, PaginationParams
from tech_blog_api.utils.errors import BlogAPIError, server_error

logger = get_logger(prefix="[Category Routes]")

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("")
@router.get("/", include_in_schema=False)
async def list_categories(categories: CategoryManager = Depends(get_category_manager)):
    """Active categories ordered by `sortOrder` then name, each with `subcategories`."""
    try:
        items = await categories.list_active()
        return envelope(data={"categories": [CategoryResponse.render(c) for c in items]})

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to list categories: %s", e, exc_info=True)
        raise server_error(e, "Server error while fetching categories") from e


@router.get("/with-counts")
async def list_categories_with_counts(categories: CategoryManager = Depends(get_category_manager)):
    try:
        items = await categories.list_with_counts()
        return envelope(data={"categories": [CategoryResponse.render(c) for c in items]})

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to list categories with counts: %s", e, exc_info=True)
        raise server_error(e, "Server error while fetching categories") from e


@router.get("/admin")
async def list_admin_categories(
    current_user: dict = Depends(require_admin),
    categories: CategoryManager = Depends(get_category_manager),
):
    try:
        items = await categories.list_all()
        return envelope(data={"categories": [CategoryResponse.render(c) for c in items]})

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to list admin categories: %s", e, exc_info=True)
        raise server_error(e, "Server error while fetching categories") from e


@router.get("/{slug}")
async def get_category(slug: str, categories: CategoryManager = Depends(get_category_manager)):
    try:
        category = await categories.get_active_by_slug(slug)
        return envelope(data={"category": CategoryResponse.render(category)})

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to get category %s: %s", slug, e, exc_info=True)
        raise server_error(e, "Server error while fetching category") from e


@router.get("/{slug}/posts")
async def get_category_posts(
    slug: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
    categories: CategoryManager = Depends(get_category_manager),
    posts: PostManager = Depends(get_post_manager),
):
    """
    Published posts in an active category, newest first.

    Returns:
        Dict: `{category, posts, pagination}`.
    """
    try:
        category = await categories.get_active_by_slug(slug, with_subcategories=False)
        result = await posts.list_by_category(category["_id"], PaginationParams(page=page, limit=limit))
        return envelope(
            data={
                "category": CategoryResponse.render(category),
                "posts": [PostListItem.render(p) for p in result["posts"]],
                "pagination": result["pagination"],
            }
        )

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to get posts for category %s: %s", slug, e, exc_info=True)
        raise server_error(e, "Server error while fetching category posts") from e


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
async def create_category(
    request: CreateCategoryRequest,
    current_user: dict = Depends(require_admin),
    categories: CategoryManager = Depends(get_category_manager),
):
    """
    Create a category.

    Raises:
        ValidationFailedError(400): The name is taken or the parent category does not exist.
    """
    try:
        category = await categories.create(request.model_dump())
        return envelope(data={"category": CategoryResponse.render(category)}, message="Category created successfully")

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to create category: %s", e, exc_info=True)
        raise server_error(e, "Server error while creating category") from e


@router.put("/{category_id}")
async def update_category(
    category_id: str,
    request: UpdateCategoryRequest,
    current_user: dict = Depends(require_admin),
    categories: CategoryManager = Depends(get_category_manager),
):
    try:
        category = await categories.update(category_id, request.to_changes())
        return envelope(data={"category": CategoryResponse.render(category)}, message="Category updated successfully")

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to update category %s: %s", category_id, e, exc_info=True)
        raise server_error(e, "Server error while updating category") from e


@router.delete("/{category_id}")
async def delete_category(
    category_id: str,
    current_user: dict = Depends(require_admin),
    categories: CategoryManager = Depends(get_category_manager),
):
    """
    Delete a category.

    Raises:
        ConflictError(409): The category still has posts or subcategories; nothing is deleted.
    """
    try:
        await categories.delete(category_id)
        return envelope(message="Category deleted successfully")

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to delete category %s: %s", category_id, e, exc_info=True)
        raise server_error(e, "Server error while deleting category") from e


@router.put("/{category_id}/update-counts")
async def update_category_counts(
    category_id: str,
    current_user: dict = Depends(require_admin),
    categories: CategoryManager = Depends(get_category_manager),
):
    try:
        category = await categories.update_counts(category_id)
        return envelope(data={"category": CategoryResponse.render(category)}, message="Category counts updated")

    except BlogAPIError:
        raise
    except Exception as e:
        logger.error("Failed to update counts for category %s: %s", category_id, e, exc_info=True)
        raise server_error(e, "Server error while updating category counts") from e
