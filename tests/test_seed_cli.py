"""
Tests for the sample-data loader.
"""
import re
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from bson import ObjectId

from tech_blog_api.cli.seed_cli import SAMPLE_CATEGORIES, SAMPLE_POSTS, SeedCLI


@pytest.fixture
def seeder(mock_db):
    mock_db.categories.find_one.return_value = None
    mock_db.categories.insert_one.side_effect = lambda doc: MagicMock(inserted_id=ObjectId())
    mock_db.posts.insert_one.side_effect = lambda doc: MagicMock(inserted_id=ObjectId())
    return SeedCLI(mock_db)


@pytest.mark.asyncio
async def test_seed_creates_categories_and_posts(seeder, mock_db):
    author_id = str(ObjectId())
    # Category existence checks during post creation must succeed.
    with patch.object(seeder.posts, "_ensure_category", AsyncMock(side_effect=lambda cid: ObjectId(cid))), \
         patch.object(seeder.categories, "update_counts", AsyncMock()) as update_counts:
        summary = await seeder.seed(author_id)

    assert summary == {"categories": len(SAMPLE_CATEGORIES), "posts": len(SAMPLE_POSTS)}
    assert update_counts.await_count == len(SAMPLE_CATEGORIES)

    stored_posts = [c.args[0] for c in mock_db.posts.insert_one.call_args_list]
    assert all(re.fullmatch(r"[a-z0-9-]+-\d{4}", p["slug"]) for p in stored_posts)
    assert all(p["author"] == ObjectId(author_id) for p in stored_posts)
    assert all(p["reading_time"] >= 1 for p in stored_posts)

    stats = mock_db.posts.update_one.await_args_list[0].args[1]["$set"]
    assert stats["views"] == SAMPLE_POSTS[0]["views"]


@pytest.mark.asyncio
async def test_ensure_author_creates_admin_profile(seeder, mock_db):
    mock_db.users.find_one.return_value = None
    mock_db.users.insert_one.return_value = MagicMock(inserted_id="new-admin")

    assert await seeder.ensure_author() == "new-admin"
    assert mock_db.users.insert_one.await_args.args[0]["role"] == "admin"


@pytest.mark.asyncio
async def test_ensure_author_reuses_existing_admin(seeder, mock_db):
    existing = ObjectId()
    mock_db.users.find_one.return_value = {"_id": existing}

    assert await seeder.ensure_author() == existing
    mock_db.users.insert_one.assert_not_awaited()


@pytest.mark.asyncio
async def test_clear(seeder, mock_db):
    for collection in (mock_db.posts, mock_db.categories, mock_db.comments):
        collection.delete_many.return_value = MagicMock(deleted_count=0)

    await seeder.clear()

    mock_db.posts.delete_many.assert_awaited_once_with({})
    mock_db.comments.delete_many.assert_awaited_once_with({})
