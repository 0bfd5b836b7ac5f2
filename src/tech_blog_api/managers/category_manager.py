"""
# Category Manager

Business logic for the category tree stored in the `categories` collection.

- **Reads**: active categories (public), all categories (admin), a single active category by
  slug, each with its direct `subcategories`; plus an aggregation that attaches live post
  counts.
- **Writes**: create and update through `prepare_category_for_persist`, with name-uniqueness
  and parent checks; delete guarded by post and subcategory counts.
- **Counters**: `update_counts` recomputes `post_count` and `total_views` from published posts.

Parent checks only reject a category being its own parent; deeper cycles are not detected.
"""

from typing import Any, Dict, List

from bson import ObjectId
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from tech_blog_api.database.manager import DatabaseManager
from tech_blog_api.managers.logging_manager import get_logger
from tech_blog_api.services.lifecycle import CATEGORY_DERIVED_FIELDS, prepare_category_for_persist, update_fields
from tech_blog_api.models.common import utcnow
from tech_blog_api.utils.errors import ConflictError, NotFoundError, ValidationFailedError

logger = get_logger(prefix="[Category Manager]")

CATEGORY_SORT = [("sort_order", ASCENDING), ("name", ASCENDING)]
MAX_CATEGORIES = 1000


def _category_id(category_id: str) -> ObjectId:
    if not ObjectId.is_valid(category_id):
        raise NotFoundError("Category not found")
    return ObjectId(category_id)


class CategoryManager:
    """Manages blog categories and their denormalized counters."""

    def __init__(self, db: DatabaseManager):
        self.db = db

    async def _attach_subcategories(self, categories: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not categories:
            return categories
        ids = [c["_id"] for c in categories]
        cursor = self.db.categories.find({"parent_category": {"$in": ids}}).sort(CATEGORY_SORT)
        children = await cursor.to_list(length=MAX_CATEGORIES)
        by_parent: Dict[str, List[Dict[str, Any]]] = {}
        for child in children:
            by_parent.setdefault(str(child["parent_category"]), []).append(child)
        for category in categories:
            category["subcategories"] = by_parent.get(str(category["_id"]), [])
        return categories

    async def list_active(self) -> List[Dict[str, Any]]:
        cursor = self.db.categories.find({"is_active": True}).sort(CATEGORY_SORT)
        categories = await cursor.to_list(length=MAX_CATEGORIES)
        return await self._attach_subcategories(categories)

    async def list_all(self) -> List[Dict[str, Any]]:
        cursor = self.db.categories.find({}).sort(CATEGORY_SORT)
        categories = await cursor.to_list(length=MAX_CATEGORIES)
        return await self._attach_subcategories(categories)

    async def list_with_counts(self) -> List[Dict[str, Any]]:
        """Active categories with `post_count` computed live from the posts collection."""
        pipeline = [
            {"$match": {"is_active": True}},
            {
                "$lookup": {
                    "from": self.db.settings.POSTS_COLLECTION,
                    "localField": "_id",
                    "foreignField": "category",
                    "as": "posts",
                }
            },
            {"$addFields": {"post_count": {"$size": "$posts"}}},
            {"$project": {"posts": 0}},
            {"$sort": {"sort_order": 1, "name": 1}},
        ]
        return await self.db.categories.aggregate(pipeline).to_list(length=MAX_CATEGORIES)

    async def get_active_by_slug(self, slug: str, with_subcategories: bool = True) -> Dict[str, Any]:
        category = await self.db.categories.find_one({"slug": slug, "is_active": True})
        if category is None:
            raise NotFoundError("Category not found")
        if with_subcategories:
            await self._attach_subcategories([category])
        return category

    async def get_by_id(self, category_id: str) -> Dict[str, Any]:
        category = await self.db.categories.find_one({"_id": _category_id(category_id)})
        if category is None:
            raise NotFoundError("Category not found")
        return category

    async def _ensure_name_free(self, name: str) -> None:
        if await self.db.categories.find_one({"name": name}, {"_id": 1}) is not None:
            raise ValidationFailedError(
                "Category with this name already exists",
                errors=[{"field": "name", "message": "Category with this name already exists"}],
            )

    async def _ensure_parent(self, parent_id: str) -> ObjectId:
        oid = ObjectId(parent_id)
        if await self.db.categories.find_one({"_id": oid}, {"_id": 1}) is None:
            raise ValidationFailedError(
                "Parent category not found",
                errors=[{"field": "parentCategory", "message": "Parent category not found"}],
            )
        return oid

    async def create(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a category.

        Raises:
            ValidationFailedError: The name is taken or the parent does not exist.
            ConflictError: The derived slug or name collides at the unique index.
        """
        changes = dict(fields)
        await self._ensure_name_free(changes["name"])
        if changes.get("parent_category"):
            changes["parent_category"] = await self._ensure_parent(changes["parent_category"])

        doc = prepare_category_for_persist(None, changes, utcnow())
        try:
            result = await self.db.categories.insert_one(doc)
        except DuplicateKeyError as e:
            raise ConflictError("Category with this name or slug already exists") from e

        doc["_id"] = result.inserted_id
        logger.info("Created category %s (%s)", doc["_id"], doc["slug"])
        return doc

    async def update(self, category_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply a typed patch to a category.

        Raises:
            NotFoundError: No category has this id.
            ValidationFailedError: Name taken, category made its own parent, or parent missing.
        """
        previous = await self.get_by_id(category_id)
        changes = dict(changes)

        if changes.get("name") and changes["name"] != previous.get("name"):
            await self._ensure_name_free(changes["name"])

        parent = changes.get("parent_category")
        if parent:
            if ObjectId(parent) == previous["_id"]:
                raise ValidationFailedError(
                    "Category cannot be its own parent",
                    errors=[{"field": "parentCategory", "message": "Category cannot be its own parent"}],
                )
            changes["parent_category"] = await self._ensure_parent(parent)

        doc = prepare_category_for_persist(previous, changes, utcnow())
        try:
            updated = await self.db.categories.find_one_and_update(
                {"_id": previous["_id"]},
                {"$set": update_fields(doc, changes, CATEGORY_DERIVED_FIELDS)},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            raise ConflictError("Category with this name or slug already exists") from e

        if updated is None:
            raise NotFoundError("Category not found")
        logger.info("Updated category %s", category_id)
        return updated

    async def delete(self, category_id: str) -> None:
        """
        Delete a category with no posts and no subcategories.

        Both counts are checked before the delete runs; when either is non-zero nothing is
        written.

        Raises:
            NotFoundError: No category has this id.
            ConflictError: The category still has posts or subcategories.
        """
        category = await self.get_by_id(category_id)

        post_count = await self.db.posts.count_documents({"category": category["_id"]})
        if post_count > 0:
            raise ConflictError(
                f"Cannot delete category. It has {post_count} posts. Please move or delete the posts first."
            )

        subcategory_count = await self.db.categories.count_documents({"parent_category": category["_id"]})
        if subcategory_count > 0:
            raise ConflictError(
                f"Cannot delete category. It has {subcategory_count} subcategories. "
                "Please move or delete the subcategories first."
            )

        await self.db.categories.delete_one({"_id": category["_id"]})
        logger.info("Deleted category %s", category_id)

    async def update_counts(self, category_id: str) -> Dict[str, Any]:
        """Recompute `post_count` and `total_views` over the category's published posts."""
        category = await self.get_by_id(category_id)
        match = {"category": category["_id"], "status": "published"}

        post_count = await self.db.posts.count_documents(match)
        rows = await self.db.posts.aggregate(
            [{"$match": match}, {"$group": {"_id": None, "total_views": {"$sum": "$views"}}}]
        ).to_list(length=1)
        total_views = rows[0]["total_views"] if rows else 0

        updated = await self.db.categories.find_one_and_update(
            {"_id": category["_id"]},
            {"$set": {"post_count": post_count, "total_views": total_views, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise NotFoundError("Category not found")
        logger.info("Recomputed counts for category %s: %d posts, %d views", category_id, post_count, total_views)
        return updated

