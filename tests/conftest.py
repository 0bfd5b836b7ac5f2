"""
Shared fixtures: a mocked `DatabaseManager`, signed bearer tokens and an API client.
"""
import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DEBUG", "true")

from typing import Any, Dict, Iterable
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from jose import jwt

from tech_blog_api.config import settings


def make_cursor(docs: Iterable[Dict[str, Any]] = ()):
    """A Motor-like cursor whose chainable methods return itself."""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=list(docs))
    return cursor


def make_collection(name: str):
    collection = MagicMock()
    collection.name = name
    for method in (
        "find_one",
        "insert_one",
        "update_one",
        "delete_one",
        "delete_many",
        "count_documents",
        "find_one_and_update",
        "find_one_and_delete",
    ):
        setattr(collection, method, AsyncMock())
    collection.find.return_value = make_cursor()
    collection.aggregate.return_value = make_cursor()
    collection.count_documents.return_value = 0
    return collection


def make_token(user_id: str, role: str = "user", username: str = "tester") -> str:
    return jwt.encode(
        {"sub": user_id, "role": role, "username": username},
        settings.SECRET_KEY.get_secret_value(),
        algorithm=settings.ALGORITHM,
    )


@pytest.fixture
def mock_db():
    db = MagicMock()
    db.settings = settings
    db.posts = make_collection("posts")
    db.categories = make_collection("categories")
    db.comments = make_collection("comments")
    db.users = make_collection("users")
    db.health_check = AsyncMock(return_value=True)
    return db


@pytest.fixture
def admin_id():
    return str(ObjectId())


@pytest.fixture
def user_id():
    return str(ObjectId())


@pytest.fixture
def admin_headers(admin_id):
    return {"Authorization": f"Bearer {make_token(admin_id, role='admin', username='admin')}"}


@pytest.fixture
def user_headers(user_id):
    return {"Authorization": f"Bearer {make_token(user_id)}"}


@pytest.fixture
def app(mock_db):
    from tech_blog_api.main import app as application
    from tech_blog_api.routes.dependencies import get_db_manager

    application.dependency_overrides[get_db_manager] = lambda: mock_db
    application.state.db_manager = mock_db
    application.state.rate_limiter.reset()
    yield application
    application.dependency_overrides.clear()
    application.state.db_manager = None


@pytest.fixture
def client(app):
    # Not used as a context manager: the lifespan would try to reach MongoDB.
    return TestClient(app)
