"""
Tests for CategoryManager.
"""
from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from tech_blog_api.managers.category_manager import CategoryManager
from tech_blog_api.utils.errors import ConflictError, NotFoundError, ValidationFailedError

from conftest import make_cursor


@pytest.fixture
def manager(mock_db):
    return CategoryManager(mock_db)


@pytest.fixture
def category():
    return {"_id": ObjectId(), "name": "Tech News", "slug": "tech-news", "is_active": True, "seo": {}}


@pytest.mark.asyncio
async def test_list_active_attaches_subcategories(manager, mock_db, category):
    child = {"_id": ObjectId(), "name": "Mobile", "parent_category": category["_id"]}
    mock_db.categories.find.side_effect = [make_cursor([category]), make_cursor([child])]

    [result] = await manager.list_active()

    assert mock_db.categories.find.call_args_list[0].args[0] == {"is_active": True}
    assert result["subcategories"] == [child]


@pytest.mark.asyncio
async def test_get_active_by_slug_missing(manager, mock_db):
    mock_db.categories.find_one.return_value = None
    with pytest.raises(NotFoundError):
        await manager.get_active_by_slug("nope")


@pytest.mark.asyncio
async def test_create_derives_slug(manager, mock_db):
    mock_db.categories.find_one.return_value = None
    mock_db.categories.insert_one.return_value = MagicMock(inserted_id=ObjectId())

    created = await manager.create({"name": "AI Tools & Productivity Apps", "description": "Reviews"})

    stored = mock_db.categories.insert_one.call_args.args[0]
    assert stored["slug"] == "ai-tools-productivity-apps"
    assert stored["seo"]["meta_description"] == "Reviews"
    assert created["_id"] == mock_db.categories.insert_one.return_value.inserted_id


@pytest.mark.asyncio
async def test_create_duplicate_name(manager, mock_db, category):
    mock_db.categories.find_one.return_value = {"_id": category["_id"]}
    with pytest.raises(ValidationFailedError) as exc_info:
        await manager.create({"name": "Tech News"})
    assert exc_info.value.message == "Category with this name already exists"
    mock_db.categories.insert_one.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_unique_index_race_is_conflict(manager, mock_db):
    mock_db.categories.find_one.return_value = None
    mock_db.categories.insert_one.side_effect = DuplicateKeyError("E11000")
    with pytest.raises(ConflictError):
        await manager.create({"name": "Tech News"})


@pytest.mark.asyncio
async def test_create_with_missing_parent(manager, mock_db):
    mock_db.categories.find_one.side_effect = [None, None]
    with pytest.raises(ValidationFailedError) as exc_info:
        await manager.create({"name": "Mobile", "parent_category": str(ObjectId())})
    assert exc_info.value.message == "Parent category not found"


@pytest.mark.asyncio
@pytest.mark.parametrize("transform", [str.lower, str.upper])
async def test_update_rejects_self_parent(manager, mock_db, category, transform):
    mock_db.categories.find_one.return_value = category
    with pytest.raises(ValidationFailedError) as exc_info:
        await manager.update(str(category["_id"]), {"parent_category": transform(str(category["_id"]))})
    assert exc_info.value.message == "Category cannot be its own parent"
    mock_db.categories.find_one_and_update.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_rename_changes_slug(manager, mock_db, category):
    mock_db.categories.find_one.side_effect = [category, None]
    mock_db.categories.find_one_and_update.return_value = dict(category, name="Industry News")

    await manager.update(str(category["_id"]), {"name": "Industry News"})

    update_doc = mock_db.categories.find_one_and_update.call_args.args[1]
    assert update_doc["$set"]["slug"] == "industry-news"
    assert "_id" not in update_doc["$set"]


@pytest.mark.asyncio
async def test_update_leaves_counters_alone(manager, mock_db, category):
    mock_db.categories.find_one.return_value = dict(category, post_count=4, total_views=90)
    mock_db.categories.find_one_and_update.return_value = category

    await manager.update(str(category["_id"]), {"description": "Daily headlines"})

    update_set = mock_db.categories.find_one_and_update.call_args.args[1]["$set"]
    assert update_set["description"] == "Daily headlines"
    assert "post_count" not in update_set
    assert "total_views" not in update_set


@pytest.mark.asyncio
async def test_delete_with_posts_is_conflict_without_mutation(manager, mock_db, category):
    mock_db.categories.find_one.return_value = category
    mock_db.posts.count_documents.return_value = 3

    with pytest.raises(ConflictError) as exc_info:
        await manager.delete(str(category["_id"]))

    assert "It has 3 posts" in exc_info.value.message
    mock_db.categories.delete_one.assert_not_awaited()
    mock_db.posts.update_one.assert_not_awaited()


@pytest.mark.asyncio
async def test_delete_with_subcategories_is_conflict_without_mutation(manager, mock_db, category):
    mock_db.categories.find_one.return_value = category
    mock_db.posts.count_documents.return_value = 0
    mock_db.categories.count_documents.return_value = 2

    with pytest.raises(ConflictError) as exc_info:
        await manager.delete(str(category["_id"]))

    assert "It has 2 subcategories" in exc_info.value.message
    mock_db.categories.delete_one.assert_not_awaited()


@pytest.mark.asyncio
async def test_delete_empty_category(manager, mock_db, category):
    mock_db.categories.find_one.return_value = category

    await manager.delete(str(category["_id"]))

    mock_db.categories.delete_one.assert_awaited_once_with({"_id": category["_id"]})


@pytest.mark.asyncio
async def test_update_counts(manager, mock_db, category):
    mock_db.categories.find_one.return_value = category
    mock_db.posts.count_documents.return_value = 4
    mock_db.posts.aggregate.return_value = make_cursor([{"_id": None, "total_views": 900}])
    mock_db.categories.find_one_and_update.return_value = dict(category, post_count=4, total_views=900)

    updated = await manager.update_counts(str(category["_id"]))

    mock_db.posts.count_documents.assert_awaited_once_with({"category": category["_id"], "status": "published"})
    update_doc = mock_db.categories.find_one_and_update.call_args.args[1]
    assert update_doc["$set"]["post_count"] == 4
    assert update_doc["$set"]["total_views"] == 900
    assert updated["post_count"] == 4
