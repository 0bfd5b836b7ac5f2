"""
Command-line tool that loads sample categories and posts into the blog database.

Posts and categories go through the same managers the API uses, so slugs, excerpts,
reading times and SEO defaults are derived exactly as they would be for a real author.

Usage:
    tech-blog-seed --clear
    tech-blog-seed --author-id 65f1c0ffee0000000000abcd
"""

import argparse
import asyncio
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from tech_blog_api.config import settings
from tech_blog_api.database import DatabaseManager
from tech_blog_api.managers.category_manager import CategoryManager
from tech_blog_api.managers.logging_manager import get_logger
from tech_blog_api.managers.post_manager import PostManager
from tech_blog_api.models.category_models import CreateCategoryRequest
from tech_blog_api.models.common import as_object_id, utcnow
from tech_blog_api.models.post_models import CreatePostRequest

logger = get_logger(prefix="[SeedCLI]")

SAMPLE_CATEGORIES: List[Dict[str, Any]] = [
    {
        "name": "Tech News",
        "description": "Latest technology news and updates from around the world",
        "color": "#3B82F6",
        "icon": "newspaper",
        "sort_order": 1,
    },
    {
        "name": "Tech How-To Guides",
        "description": "Step-by-step tutorials and guides for technology",
        "color": "#10B981",
        "icon": "book-open",
        "sort_order": 2,
    },
    {
        "name": "AI Tools & Productivity Apps",
        "description": "Reviews and guides for AI tools and productivity applications",
        "color": "#8B5CF6",
        "icon": "cpu-chip",
        "sort_order": 3,
    },
]

# Each post is assigned to the category at the same index.
SAMPLE_POSTS: List[Dict[str, Any]] = [
    {
        "post": {
            "title": "Top 10 Gadgets Launched at WWDC 2025: Full Recap",
            "content": (
                "# Top 10 Gadgets Launched at WWDC 2025\n\n"
                "This year's developer conference leaned hard on on-device AI. "
                "Below is a rundown of the hardware and software that stood out.\n\n"
                "## Phones and laptops\n\n"
                "The new flagship phone ships a faster neural engine, and the thin-and-light "
                "laptop line moves to a new chip generation with longer battery life.\n\n"
                "## Wearables\n\n"
                "The watch gains new health sensors while the earbuds add adaptive audio.\n\n"
                "## Conclusion\n\n"
                "Expect these devices to roll out over the rest of the year."
            ),
            "excerpt": (
                "A recap of the WWDC 2025 announcements, from new phones and laptops to "
                "wearables and mixed-reality headsets."
            ),
            "tags": ["apple", "wwdc", "gadgets", "technology", "ai"],
            "status": "published",
            "featured_image": {
                "url": "/uploads/posts/wwdc-2025-recap.jpg",
                "alt": "WWDC 2025 keynote stage",
                "caption": "WWDC 2025 keynote",
            },
            "seo": {
                "meta_title": "Top 10 WWDC 2025 Gadgets: Complete Recap",
                "meta_keywords": ["WWDC 2025", "Apple gadgets", "tech news"],
            },
        },
        "published_at": datetime(2025, 6, 15, tzinfo=timezone.utc),
        "views": 1250,
        "likes": 89,
    },
    {
        "post": {
            "title": "How to Speed Up Any Android Phone Without Root [2025 Guide]",
            "content": (
                "# Speed Up Your Android Phone\n\n"
                "A sluggish phone is rarely beyond saving. These steps need no root access.\n\n"
                "## 1. Clear cached data\n\n"
                "Open Settings, then Storage, and clear the cache of the heaviest apps.\n\n"
                "## 2. Reduce animations\n\n"
                "Enable developer options and set every animation scale to 0.5x.\n\n"
                "## 3. Remove unused apps\n\n"
                "Background services from forgotten apps cost memory and battery."
            ),
            "tags": ["android", "performance", "how-to", "smartphone"],
            "status": "published",
            "featured_image": {
                "url": "/uploads/posts/android-speed.jpg",
                "alt": "Android phone settings screen",
                "caption": "",
            },
        },
        "published_at": datetime(2025, 6, 20, tzinfo=timezone.utc),
        "views": 3200,
        "likes": 245,
    },
    {
        "post": {
            "title": "Best Free AI Tools for Students in 2025 (No Sign-Up Needed)",
            "content": (
                "# Best Free AI Tools for Students\n\n"
                "You do not need a subscription to get real help from AI.\n\n"
                "## Writing assistants\n\n"
                "Grammar checkers and paraphrasing tools catch mistakes before submission.\n\n"
                "## Research helpers\n\n"
                "Summarizers turn long papers into study notes in seconds.\n\n"
                "## Study planners\n\n"
                "Schedulers spread revision across the weeks before an exam."
            ),
            "tags": ["ai", "students", "productivity", "free-tools"],
            "status": "published",
        },
        "published_at": datetime(2025, 6, 18, tzinfo=timezone.utc),
        "views": 2100,
        "likes": 156,
    },
]

SEED_ADMIN: Dict[str, Any] = {
    "username": "admin",
    "email": "admin@techblog.com",
    "first_name": "Tech",
    "last_name": "Admin",
    "bio": "Administrator of the Tech Blog website",
    "role": "admin",
}


class SeedCLI:
    """Seeds the blog collections through the application managers."""

    def __init__(self, db: DatabaseManager):
        self.db = db
        self.categories = CategoryManager(db)
        self.posts = PostManager(db)

    async def clear(self) -> None:
        for collection in (self.db.posts, self.db.categories, self.db.comments):
            result = await collection.delete_many({})
            logger.info("Cleared %d documents from %s", result.deleted_count, collection.name)

    async def ensure_author(self, author_id: Optional[str] = None) -> Any:
        """
        Resolve the author for seeded posts.

        An explicit `author_id` is used as given. Otherwise the first admin profile is reused,
        or a minimal one is created.
        """
        if author_id:
            return as_object_id(author_id)

        existing = await self.db.users.find_one({"role": "admin"}, {"_id": 1})
        if existing:
            return existing["_id"]

        profile = dict(SEED_ADMIN, created_at=utcnow())
        result = await self.db.users.insert_one(profile)
        logger.info("Created admin profile %s", result.inserted_id)
        return result.inserted_id

    async def seed(self, author_id: Optional[str] = None) -> Dict[str, int]:
        author = await self.ensure_author(author_id)

        created_categories = []
        for data in SAMPLE_CATEGORIES:
            category = await self.categories.create(CreateCategoryRequest(**data).model_dump())
            created_categories.append(category)
            logger.info("Created category: %s (%s)", category["name"], category["slug"])

        created_posts = 0
        for category, sample in zip(created_categories, SAMPLE_POSTS):
            fields = CreatePostRequest(**sample["post"], category=str(category["_id"])).model_dump()
            post = await self.posts.create(fields, author_id=author)
            await self.db.posts.update_one(
                {"_id": post["_id"]},
                {"$set": {"published_at": sample["published_at"], "views": sample["views"], "likes": sample["likes"]}},
            )
            created_posts += 1
            logger.info("Created post: %s (%s)", post["title"], post["slug"])
            # Slug suffixes come from the millisecond clock.
            await asyncio.sleep(0.005)

        for category in created_categories:
            await self.categories.update_counts(str(category["_id"]))

        return {"categories": len(created_categories), "posts": created_posts}


async def run(clear: bool, author_id: Optional[str]) -> int:
    db = DatabaseManager(settings)
    try:
        await db.connect()
        await db.create_indexes()

        cli = SeedCLI(db)
        if clear:
            await cli.clear()
        summary = await cli.seed(author_id)

        logger.info(
            "Database seeded: %d categories, %d posts (totals now %d categories, %d posts)",
            summary["categories"],
            summary["posts"],
            await db.categories.count_documents({}),
            await db.posts.count_documents({}),
        )
        return 0
    except Exception as e:
        logger.error("Seeding failed: %s", e, exc_info=True)
        return 1
    finally:
        await db.disconnect()


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Tech Blog sample data loader",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Delete existing posts, categories and comments before seeding",
    )
    parser.add_argument(
        "--author-id",
        help="User id to author the sample posts (default: first admin profile, created if missing)",
    )

    args = parser.parse_args()
    sys.exit(asyncio.run(run(clear=args.clear, author_id=args.author_id)))


if __name__ == "__main__":
    main()
