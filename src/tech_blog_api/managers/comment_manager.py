"""
# Comment Manager

Moderated comments on posts.

New comments are stored with `is_approved=False` and only appear publicly after an admin
approves them. Approval and deletion keep the parent post's `comment_count` in step with
the number of approved comments. Replies reference their parent through `parent_id` and are
nested under it when a post's thread is read.
"""

from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument

from tech_blog_api.database.manager import DatabaseManager
from tech_blog_api.managers.logging_manager import get_logger
from tech_blog_api.models.common import utcnow
from tech_blog_api.utils.errors import NotFoundError, ValidationFailedError

logger = get_logger(prefix="[Comment Manager]")

MAX_THREAD_SIZE = 1000
MAX_PENDING = 500


def _comment_id(comment_id: str) -> ObjectId:
    if not ObjectId.is_valid(comment_id):
        raise NotFoundError("Comment not found")
    return ObjectId(comment_id)


def build_thread(comments: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Nest comments under their parents.

    Input order is preserved at every level. Replies whose parent is not in `comments`
    (unapproved or deleted) are dropped along with their subtree.
    """
    by_id = {str(c["_id"]): c for c in comments}
    for comment in comments:
        comment["replies"] = []
    roots: List[Dict[str, Any]] = []
    for comment in comments:
        parent_id = comment.get("parent_id")
        if parent_id is None:
            roots.append(comment)
        elif str(parent_id) in by_id:
            by_id[str(parent_id)]["replies"].append(comment)
    return roots


class CommentManager:
    """Manages comment submission, moderation and threaded reads."""

    def __init__(self, db: DatabaseManager):
        self.db = db

    async def list_approved(self, post_id: str) -> List[Dict[str, Any]]:
        """Approved comments on a post, newest first, with replies nested."""
        if not ObjectId.is_valid(post_id):
            return []
        cursor = self.db.comments.find(
            {"post_id": ObjectId(post_id), "is_approved": True}, {"email": 0}
        ).sort([("created_at", DESCENDING)])
        comments = await cursor.to_list(length=MAX_THREAD_SIZE)
        return build_thread(comments)

    async def list_pending(self) -> List[Dict[str, Any]]:
        cursor = self.db.comments.find({"is_approved": False}).sort([("created_at", DESCENDING)])
        return await cursor.to_list(length=MAX_PENDING)

    async def create(self, post_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Submit a comment for moderation.

        Raises:
            NotFoundError: The post does not exist.
            ValidationFailedError: Comments are disabled on the post, or `parent_id` does not
                name a comment on the same post.
        """
        if not ObjectId.is_valid(post_id):
            raise NotFoundError("Post not found")
        post_oid = ObjectId(post_id)

        post = await self.db.posts.find_one({"_id": post_oid}, {"comments_enabled": 1})
        if post is None:
            raise NotFoundError("Post not found")
        if not post.get("comments_enabled", True):
            raise ValidationFailedError("Comments are disabled for this post")

        parent_oid: Optional[ObjectId] = None
        if fields.get("parent_id"):
            parent_oid = ObjectId(fields["parent_id"])
            parent = await self.db.comments.find_one({"_id": parent_oid, "post_id": post_oid}, {"_id": 1})
            if parent is None:
                raise ValidationFailedError.for_field("parentId", "Parent comment not found")

        now = utcnow()
        doc = {
            "post_id": post_oid,
            "author": fields["author"],
            "email": fields["email"],
            "content": fields["content"],
            "parent_id": parent_oid,
            "is_approved": False,
            "created_at": now,
            "updated_at": now,
        }
        result = await self.db.comments.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info("Comment %s submitted on post %s", doc["_id"], post_id)
        return doc

    async def approve(self, comment_id: str) -> Dict[str, Any]:
        """
        Approve a comment and count it on its post.

        Approving an already approved comment changes nothing.
        """
        previous = await self.db.comments.find_one_and_update(
            {"_id": _comment_id(comment_id)},
            {"$set": {"is_approved": True, "updated_at": utcnow()}},
            return_document=ReturnDocument.BEFORE,
        )
        if previous is None:
            raise NotFoundError("Comment not found")

        if not previous.get("is_approved"):
            await self.db.posts.update_one({"_id": previous["post_id"]}, {"$inc": {"comment_count": 1}})
            logger.info("Approved comment %s", comment_id)

        previous["is_approved"] = True
        return previous

    async def delete(self, comment_id: str) -> None:
        deleted = await self.db.comments.find_one_and_delete({"_id": _comment_id(comment_id)})
        if deleted is None:
            raise NotFoundError("Comment not found")
        if deleted.get("is_approved"):
            await self.db.posts.update_one({"_id": deleted["post_id"]}, {"$inc": {"comment_count": -1}})
        logger.info("Deleted comment %s", comment_id)
