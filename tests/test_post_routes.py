"""
Tests for the /api/posts endpoints with the PostManager mocked out.
"""
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId

from tech_blog_api.models.common import utcnow
from tech_blog_api.routes.dependencies import get_post_manager
from tech_blog_api.utils.errors import ConflictError, NotFoundError, ValidationFailedError


@pytest.fixture
def post_doc():
    return {
        "_id": ObjectId(),
        "title": "Hello, World!",
        "slug": "hello-world-1234",
        "content": "Body text",
        "excerpt": "Body text",
        "status": "published",
        "category": {"_id": ObjectId(), "name": "Tech News", "slug": "tech-news", "color": "#3B82F6"},
        "author": {"_id": ObjectId(), "username": "admin", "first_name": "Tech"},
        "featured_image": {"url": None, "alt": "", "caption": ""},
        "seo": {"meta_title": "Hello, World!", "meta_description": "Body text"},
        "tags": ["ai"],
        "published_at": utcnow(),
        "views": 5,
        "likes": 1,
        "reading_time": 0,
    }


@pytest.fixture
def posts(app):
    manager = AsyncMock()
    app.dependency_overrides[get_post_manager] = lambda: manager
    return manager


def test_list_posts(client, posts, post_doc):
    posts.list_published.return_value = {
        "posts": [post_doc],
        "pagination": {"currentPage": 1, "totalPages": 1, "totalPosts": 1, "hasNextPage": False, "hasPrevPage": False, "limit": 10},
    }

    response = client.get("/api/posts", params={"search": "hello", "tags": "ai", "sort": "popular"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    [item] = body["data"]["posts"]
    assert item["id"] == str(post_doc["_id"])
    assert item["url"] == "/blog/hello-world-1234"
    assert item["estimatedReadingTime"] == 1
    assert item["category"]["name"] == "Tech News"
    assert item["author"]["firstName"] == "Tech"
    assert item["seo"]["metaTitle"] == "Hello, World!"
    assert "content" not in item
    assert body["data"]["pagination"]["totalPosts"] == 1

    kwargs = posts.list_published.await_args.kwargs
    assert kwargs["search"] == "hello"
    assert kwargs["sort"] == "popular"


@pytest.mark.parametrize("params", [{"limit": 51}, {"page": 0}, {"sort": "random"}, {"category": "not-an-id"}])
def test_list_posts_rejects_bad_query(client, posts, params):
    response = client.get("/api/posts", params=params)
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert body["errors"][0]["field"]


def test_trending_and_tags(client, posts, post_doc):
    posts.list_trending.return_value = [post_doc]
    posts.tag_histogram.return_value = [{"name": "ai", "count": 3}]

    assert client.get("/api/posts/trending").json()["data"]["posts"][0]["slug"] == "hello-world-1234"
    posts.list_trending.assert_awaited_once_with(5)
    assert client.get("/api/posts/tags").json()["data"]["tags"] == [{"name": "ai", "count": 3}]


def test_get_post_by_slug(client, posts, post_doc, user_headers, user_id):
    posts.get_published_by_slug.return_value = post_doc

    response = client.get("/api/posts/hello-world-1234", headers=user_headers)

    assert response.status_code == 200
    post = response.json()["data"]["post"]
    assert post["content"] == "Body text"
    assert post["estimatedReadingTime"] == 1
    viewer = posts.get_published_by_slug.await_args.kwargs["viewer"]
    assert viewer["_id"] == user_id


def test_get_post_anonymous_with_bad_token(client, posts, post_doc):
    posts.get_published_by_slug.return_value = post_doc
    response = client.get("/api/posts/hello-world-1234", headers={"Authorization": "Bearer junk"})
    assert response.status_code == 200
    assert posts.get_published_by_slug.await_args.kwargs["viewer"] is None


def test_get_post_not_found(client, posts):
    posts.get_published_by_slug.side_effect = NotFoundError("Post not found")
    response = client.get("/api/posts/missing")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Post not found"}


def test_admin_listing_requires_admin(client, posts, user_headers):
    assert client.get("/api/posts/admin").status_code == 401
    response = client.get("/api/posts/admin", headers=user_headers)
    assert response.status_code == 403
    assert response.json()["message"] == "Access denied. Admin privileges required."


def test_admin_listing_status_filter(client, posts, admin_headers, post_doc):
    posts.list_admin.return_value = {"posts": [dict(post_doc, status="draft")], "pagination": {}}

    response = client.get("/api/posts/admin", params={"status": "draft", "sort": "title"}, headers=admin_headers)

    assert response.status_code == 200
    assert posts.list_admin.await_args.kwargs == {"status": "draft", "sort": "title"}


def test_create_post(client, posts, admin_headers, admin_id, post_doc):
    posts.create.return_value = post_doc
    payload = {
        "title": "  Hello, World!  ",
        "content": "Body text",
        "category": str(ObjectId()),
        "tags": ["AI", " ai ", "Gadgets"],
        "status": "published",
        "featuredImage": {"url": "/uploads/posts/x.png", "alt": "x"},
    }

    response = client.post("/api/posts", json=payload, headers=admin_headers)

    assert response.status_code == 201
    assert response.json()["message"] == "Post created successfully"
    fields = posts.create.await_args.args[0]
    assert fields["title"] == "Hello, World!"
    assert fields["tags"] == ["ai", "gadgets"]
    assert fields["status"] == "published"
    assert fields["featured_image"]["url"] == "/uploads/posts/x.png"
    assert posts.create.await_args.kwargs["author_id"] == admin_id


def test_create_post_trailing_slash(client, posts, admin_headers, post_doc):
    posts.create.return_value = post_doc
    payload = {"title": "T", "content": "C", "category": str(ObjectId())}
    assert client.post("/api/posts/", json=payload, headers=admin_headers).status_code == 201


@pytest.mark.parametrize(
    "payload",
    [
        {"content": "C", "category": "65f1c0ffee0000000000abcd"},
        {"title": "T" * 201, "content": "C", "category": "65f1c0ffee0000000000abcd"},
        {"title": "T", "content": "C", "category": "nope"},
        {"title": "T", "content": "C", "category": "65f1c0ffee0000000000abcd", "views": 999},
        {"title": "T", "content": "C", "category": "65f1c0ffee0000000000abcd", "status": "archived-ish"},
    ],
)
def test_create_post_validation(client, posts, admin_headers, payload):
    response = client.post("/api/posts", json=payload, headers=admin_headers)
    assert response.status_code == 400
    posts.create.assert_not_awaited()


def test_create_post_invalid_category(client, posts, admin_headers):
    posts.create.side_effect = ValidationFailedError(
        "Invalid category", errors=[{"field": "category", "message": "Invalid category"}]
    )
    response = client.post(
        "/api/posts", json={"title": "T", "content": "C", "category": str(ObjectId())}, headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["errors"] == [{"field": "category", "message": "Invalid category"}]


def test_create_post_slug_conflict(client, posts, admin_headers):
    posts.create.side_effect = ConflictError("A post with this slug already exists")
    response = client.post(
        "/api/posts", json={"title": "T", "content": "C", "category": str(ObjectId())}, headers=admin_headers
    )
    assert response.status_code == 409


def test_update_post_sends_only_present_fields(client, posts, admin_headers, post_doc):
    posts.update.return_value = post_doc

    response = client.put(
        f"/api/posts/{post_doc['_id']}", json={"status": "draft", "excerpt": None}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Post updated successfully"
    post_id, changes = posts.update.await_args.args
    assert post_id == str(post_doc["_id"])
    assert changes == {"status": "draft"}


def test_update_post_rejects_unknown_fields(client, posts, admin_headers):
    response = client.put(f"/api/posts/{ObjectId()}", json={"likes": 100}, headers=admin_headers)
    assert response.status_code == 400
    posts.update.assert_not_awaited()


def test_delete_post(client, posts, admin_headers):
    response = client.delete(f"/api/posts/{ObjectId()}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Post deleted successfully"}


def test_like_post(client, posts):
    posts.like.side_effect = [3, 4]
    post_id = str(ObjectId())

    first = client.post(f"/api/posts/{post_id}/like").json()["data"]["likes"]
    second = client.post(f"/api/posts/{post_id}/like").json()["data"]["likes"]

    assert (first, second) == (3, 4)
    assert posts.like.await_count == 2


def test_unexpected_error_is_wrapped(client, posts):
    posts.tag_histogram.side_effect = RuntimeError("boom")
    response = client.get("/api/posts/tags")
    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Server error while fetching tags"}
