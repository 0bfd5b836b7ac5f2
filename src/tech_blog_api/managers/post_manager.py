"""
# Post Manager

Business logic for blog posts on top of the `posts` collection.

## Responsibilities

- **Listings**: public (published only), trending, admin (any status) and per-category,
  all paginated through `services.query_builder`.
- **Reads**: single post by slug with view counting that skips the post's own author.
- **Writes**: create/update through `services.lifecycle.prepare_post_for_persist`, delete,
  and the atomic like counter.
- **Population**: author (from `users`), category and related posts are joined in with
  summary projections, one `$in` query per collection per page.

Unique-index violations on `slug` surface as `ConflictError`.
"""

from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from tech_blog_api.database.manager import DatabaseManager
from tech_blog_api.managers.logging_manager import get_logger
from tech_blog_api.models.common import as_object_id, utcnow
from tech_blog_api.services.lifecycle import POST_DERIVED_FIELDS, prepare_post_for_persist, update_fields
from tech_blog_api.services.query_builder import (
    PaginationParams,
    build_admin_sort,
    build_pagination,
    build_post_filter,
    build_public_sort,
    trending_cutoff,
)
from tech_blog_api.utils.errors import ConflictError, NotFoundError, ValidationFailedError

logger = get_logger(prefix="[Post Manager]")

AUTHOR_SUMMARY = {"first_name": 1, "last_name": 1, "username": 1, "avatar": 1}
AUTHOR_DETAIL = {**AUTHOR_SUMMARY, "bio": 1}
CATEGORY_SUMMARY = {"name": 1, "slug": 1, "color": 1}
CATEGORY_DETAIL = {**CATEGORY_SUMMARY, "description": 1}
RELATED_SUMMARY = {"title": 1, "slug": 1, "excerpt": 1, "featured_image": 1, "published_at": 1}
LIST_PROJECTION = {"content": 0}
TAG_HISTOGRAM_LIMIT = 50


def _to_object_id(value: str, what: str = "post") -> ObjectId:
    if not ObjectId.is_valid(value):
        raise NotFoundError(f"{what.capitalize()} not found")
    return ObjectId(value)


class PostManager:
    """
    Manages blog posts.

    Attributes:
        db (DatabaseManager): The connected database manager.
    """

    def __init__(self, db: DatabaseManager):
        self.db = db

    # --- population ---

    async def _fetch_by_ids(self, collection, ids: Iterable[Any], projection: Dict[str, int]) -> Dict[str, Dict]:
        unique = {as_object_id(i) for i in ids if i is not None}
        if not unique:
            return {}
        cursor = collection.find({"_id": {"$in": list(unique)}}, projection)
        docs = await cursor.to_list(length=len(unique))
        return {str(d["_id"]): d for d in docs}

    async def populate(self, posts: List[Dict[str, Any]], detailed: bool = False) -> List[Dict[str, Any]]:
        """
        Replace `author`, `category` (and `related_posts` when `detailed`) ids with summary documents.

        References whose target no longer exists are left as the raw id.
        """
        if not posts:
            return posts

        authors = await self._fetch_by_ids(
            self.db.users, (p.get("author") for p in posts), AUTHOR_DETAIL if detailed else AUTHOR_SUMMARY
        )
        categories = await self._fetch_by_ids(
            self.db.categories, (p.get("category") for p in posts), CATEGORY_DETAIL if detailed else CATEGORY_SUMMARY
        )
        related: Dict[str, Dict] = {}
        if detailed:
            related_ids = [r for p in posts for r in p.get("related_posts") or []]
            related = await self._fetch_by_ids(self.db.posts, related_ids, RELATED_SUMMARY)

        for post in posts:
            author = post.get("author")
            if author is not None and str(author) in authors:
                post["author"] = authors[str(author)]
            category = post.get("category")
            if category is not None and str(category) in categories:
                post["category"] = categories[str(category)]
            if detailed:
                post["related_posts"] = [
                    related[str(r)] for r in post.get("related_posts") or [] if str(r) in related
                ]
        return posts

    async def _page(
        self, query: Dict[str, Any], sort, params: PaginationParams
    ) -> Dict[str, Any]:
        cursor = self.db.posts.find(query, LIST_PROJECTION).sort(sort).skip(params.skip).limit(params.limit)
        posts = await cursor.to_list(length=params.limit)
        total = await self.db.posts.count_documents(query)
        await self.populate(posts)
        return {"posts": posts, "pagination": build_pagination(params.page, params.limit, total)}

    # --- reads ---

    async def list_published(
        self,
        params: PaginationParams,
        category: Optional[str] = None,
        tags: Optional[str] = None,
        search: Optional[str] = None,
        sort: str = "latest",
    ) -> Dict[str, Any]:
        """
        Public listing of published posts.

        Returns:
            Dict[str, Any]: `{"posts": [...], "pagination": {...}}`; posts exclude `content`.
        """
        query = build_post_filter(category=category, tags=tags, search=search, status="published")
        query, sort_spec = build_public_sort(sort, query, utcnow())
        return await self._page(query, sort_spec, params)

    async def list_trending(self, limit: int = 5) -> List[Dict[str, Any]]:
        query = {"status": "published", "published_at": {"$gte": trending_cutoff(utcnow())}}
        cursor = (
            self.db.posts.find(query, LIST_PROJECTION)
            .sort([("views", DESCENDING), ("likes", DESCENDING)])
            .limit(limit)
        )
        posts = await cursor.to_list(length=limit)
        return await self.populate(posts)

    async def tag_histogram(self) -> List[Dict[str, Any]]:
        """Top tags over published posts as `[{"name", "count"}]`, most used first."""
        pipeline = [
            {"$match": {"status": "published"}},
            {"$unwind": "$tags"},
            {"$group": {"_id": "$tags", "count": {"$sum": 1}}},
            {"$sort": {"count": -1}},
            {"$limit": TAG_HISTOGRAM_LIMIT},
        ]
        rows = await self.db.posts.aggregate(pipeline).to_list(length=TAG_HISTOGRAM_LIMIT)
        return [{"name": row["_id"], "count": row["count"]} for row in rows]

    async def list_admin(
        self, params: PaginationParams, status: Optional[str] = None, sort: str = "latest"
    ) -> Dict[str, Any]:
        query = build_post_filter(status=status)
        return await self._page(query, build_admin_sort(sort), params)

    async def list_by_category(self, category_id: Any, params: PaginationParams) -> Dict[str, Any]:
        query = {"category": category_id, "status": "published"}
        return await self._page(query, [("published_at", DESCENDING)], params)

    async def get_published_by_slug(self, slug: str, viewer: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Fetch a published post and count the view.

        The view counter is incremented atomically unless `viewer` is the post's author.
        The returned document reflects the stored count before this view.

        Raises:
            NotFoundError: No published post has this slug.
        """
        post = await self.db.posts.find_one({"slug": slug, "status": "published"})
        if post is None:
            raise NotFoundError("Post not found")

        is_author = viewer is not None and str(viewer.get("_id")) == str(post.get("author"))
        if not is_author:
            await self.db.posts.update_one({"_id": post["_id"]}, {"$inc": {"views": 1}})

        await self.populate([post], detailed=True)
        return post

    async def get_by_id(self, post_id: str) -> Dict[str, Any]:
        post = await self.db.posts.find_one({"_id": _to_object_id(post_id)})
        if post is None:
            raise NotFoundError("Post not found")
        return post

    # --- writes ---

    async def _ensure_category(self, category_id: str) -> ObjectId:
        oid = ObjectId(category_id)
        if await self.db.categories.find_one({"_id": oid}, {"_id": 1}) is None:
            raise ValidationFailedError("Invalid category", errors=[{"field": "category", "message": "Invalid category"}])
        return oid

    @staticmethod
    def _to_storage(changes: Dict[str, Any]) -> Dict[str, Any]:
        if "related_posts" in changes and changes["related_posts"] is not None:
            changes["related_posts"] = [ObjectId(r) for r in changes["related_posts"]]
        return changes

    async def create(self, fields: Dict[str, Any], author_id: Any) -> Dict[str, Any]:
        """
        Create a post authored by `author_id`.

        Args:
            fields (Dict[str, Any]): Validated `CreatePostRequest` fields.
            author_id (Any): Id of the authenticated caller.

        Raises:
            ValidationFailedError: The category does not exist.
            ConflictError: The generated slug collides with an existing post.
        """
        changes = self._to_storage(dict(fields))
        changes["category"] = await self._ensure_category(changes["category"])
        changes["author"] = as_object_id(author_id)

        doc = prepare_post_for_persist(None, changes, utcnow())
        try:
            result = await self.db.posts.insert_one(doc)
        except DuplicateKeyError as e:
            logger.warning("Duplicate slug on create: %s", doc.get("slug"))
            raise ConflictError("A post with this slug already exists") from e

        doc["_id"] = result.inserted_id
        logger.info("Created post %s (%s)", doc["_id"], doc["slug"])
        await self.populate([doc])
        return doc

    async def update(self, post_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply a typed patch to a post.

        Raises:
            NotFoundError: No post has this id.
            ValidationFailedError: A new category does not exist.
            ConflictError: A retitled post's slug collides with another post.
        """
        previous = await self.get_by_id(post_id)
        changes = self._to_storage(dict(changes))
        if changes.get("category") is not None:
            changes["category"] = await self._ensure_category(changes["category"])

        doc = prepare_post_for_persist(previous, changes, utcnow())
        try:
            updated = await self.db.posts.find_one_and_update(
                {"_id": previous["_id"]},
                {"$set": update_fields(doc, changes, POST_DERIVED_FIELDS)},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            raise ConflictError("A post with this slug already exists") from e

        if updated is None:
            raise NotFoundError("Post not found")
        logger.info("Updated post %s", post_id)
        await self.populate([updated])
        return updated

    async def delete(self, post_id: str) -> None:
        result = await self.db.posts.delete_one({"_id": _to_object_id(post_id)})
        if result.deleted_count == 0:
            raise NotFoundError("Post not found")
        logger.info("Deleted post %s", post_id)

    async def like(self, post_id: str) -> int:
        """Increment `likes` by one and return the new count. Repeated calls keep counting."""
        updated = await self.db.posts.find_one_and_update(
            {"_id": _to_object_id(post_id)},
            {"$inc": {"likes": 1}},
            projection={"likes": 1},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise NotFoundError("Post not found")
        return updated["likes"]
