"""
Tests for the /api/upload endpoints against a temporary upload directory.
"""
from unittest.mock import MagicMock

import pytest

from tech_blog_api.config import Settings
from tech_blog_api.managers.upload_manager import UploadManager
from tech_blog_api.routes.dependencies import get_upload_manager


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path


@pytest.fixture
def uploads(app, upload_dir, mock_db):
    manager = UploadManager(Settings(UPLOAD_DIR=str(upload_dir), MAX_FILES_PER_REQUEST=2), mock_db)
    manager.ensure_directories()
    app.dependency_overrides[get_upload_manager] = lambda: manager
    return manager


def test_post_image_requires_admin(client, uploads, user_headers):
    files = {"image": ("cover.png", PNG_BYTES, "image/png")}
    assert client.post("/api/upload/post-image", files=files).status_code == 401
    assert client.post("/api/upload/post-image", files=files, headers=user_headers).status_code == 403


def test_post_image(client, uploads, admin_headers, upload_dir):
    response = client.post(
        "/api/upload/post-image", files={"image": ("cover.png", PNG_BYTES, "image/png")}, headers=admin_headers
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["url"].startswith("/uploads/posts/cover-")
    assert (upload_dir / "posts" / data["filename"]).exists()


def test_post_image_missing_file(client, uploads, admin_headers):
    response = client.post("/api/upload/post-image", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "No image file provided"


def test_post_image_rejects_non_image(client, uploads, admin_headers):
    response = client.post(
        "/api/upload/post-image", files={"image": ("notes.txt", b"hello", "text/plain")}, headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Only image files (JPEG, JPG, PNG, GIF, WebP) are allowed!"


def test_post_images_too_many(client, uploads, admin_headers):
    files = [("images", (f"{i}.png", PNG_BYTES, "image/png")) for i in range(3)]
    response = client.post("/api/upload/post-images", files=files, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Too many files. Maximum is 2 files."


def test_post_images(client, uploads, admin_headers):
    files = [("images", (f"{i}.png", PNG_BYTES, "image/png")) for i in range(2)]
    response = client.post("/api/upload/post-images", files=files, headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "2 images uploaded successfully"
    assert len(body["data"]["images"]) == 2


def test_avatar_updates_user(client, uploads, user_headers, user_id, mock_db):
    mock_db.users.update_one.return_value = MagicMock(matched_count=1)

    response = client.post(
        "/api/upload/avatar", files={"avatar": ("me.png", PNG_BYTES, "image/png")}, headers=user_headers
    )

    assert response.status_code == 200
    filter_doc, update_doc = mock_db.users.update_one.await_args.args
    assert str(filter_doc["_id"]) == user_id
    assert update_doc["$set"]["avatar"] == response.json()["data"]["url"]


def test_list_and_delete_files(client, uploads, admin_headers, upload_dir):
    (upload_dir / "posts" / "a.png").write_bytes(PNG_BYTES)

    listed = client.get("/api/upload/files/posts", headers=admin_headers).json()["data"]
    assert [f["filename"] for f in listed["files"]] == ["a.png"]
    assert listed["pagination"]["totalFiles"] == 1

    response = client.delete("/api/upload/posts/a.png", headers=admin_headers)
    assert response.json() == {"success": True, "message": "File deleted successfully"}
    assert not (upload_dir / "posts" / "a.png").exists()


def test_delete_missing_file(client, uploads, admin_headers):
    response = client.delete("/api/upload/posts/ghost.png", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "File not found"


def test_unknown_upload_type(client, uploads, admin_headers):
    response = client.get("/api/upload/files/documents", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid file type"
