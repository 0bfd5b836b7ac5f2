"""
Tests for the post and category lifecycle rules.
"""
from datetime import datetime, timedelta, timezone
import re

import pytest

from tech_blog_api.services.lifecycle import (
    compute_reading_time,
    generate_excerpt,
    prepare_category_for_persist,
    prepare_post_for_persist,
    slugify,
    timestamp_suffix,
)


NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def new_post():
    return {
        "title": "Hello, World!",
        "content": "<p>Some body text</p> with a few more words",
        "category": "65f1c0ffee0000000000abcd",
        "status": "draft",
    }


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Hello, World!", "hello-world"),
        ("Café Déjà Vu", "cafe-deja-vu"),
        ("AI Tools & Productivity Apps", "ai-tools-productivity-apps"),
        ("  Speed (Up) Android: 2025 Guide  ", "speed-up-android-2025-guide"),
        ("C++ vs. Rust", "c-vs-rust"),
    ],
)
def test_slugify(text, expected):
    assert slugify(text) == expected


def test_timestamp_suffix_is_last_four_millisecond_digits():
    now = datetime(2024, 6, 15, 12, 0, 1, tzinfo=timezone.utc)
    assert timestamp_suffix(now) == "1000"


def test_generate_excerpt_strips_tags_and_truncates():
    content = "<h1>Title</h1>" + "a" * 250
    excerpt = generate_excerpt(content)
    assert excerpt == "Title" + "a" * 195 + "..."


def test_generate_excerpt_short_content_unchanged():
    assert generate_excerpt("<b>short</b> text") == "short text"


@pytest.mark.parametrize("words,minutes", [(1, 1), (200, 1), (201, 2), (1000, 5)])
def test_compute_reading_time(words, minutes):
    assert compute_reading_time(" ".join(["word"] * words)) == minutes


def test_create_derives_slug_with_suffix(new_post):
    doc = prepare_post_for_persist(None, new_post, NOW)
    assert re.fullmatch(r"hello-world-\d{4}", doc["slug"])
    assert doc["slug"].endswith(timestamp_suffix(NOW))


def test_posts_created_at_different_times_get_different_slugs(new_post):
    first = prepare_post_for_persist(None, new_post, NOW)
    second = prepare_post_for_persist(None, new_post, NOW + timedelta(milliseconds=7))
    assert first["slug"] != second["slug"]


def test_create_fills_defaults_and_derived_fields(new_post):
    doc = prepare_post_for_persist(None, new_post, NOW)
    assert doc["excerpt"] == "Some body text with a few more words"
    assert doc["reading_time"] == 1
    assert doc["views"] == 0
    assert doc["likes"] == 0
    assert doc["comments_enabled"] is True
    assert doc["published_at"] is None
    assert doc["created_at"] == NOW
    assert doc["updated_at"] == NOW
    assert doc["seo"]["meta_title"] == "Hello, World!"
    assert doc["seo"]["meta_description"] == doc["excerpt"]


def test_create_keeps_provided_excerpt(new_post):
    new_post["excerpt"] = "Hand written summary"
    doc = prepare_post_for_persist(None, new_post, NOW)
    assert doc["excerpt"] == "Hand written summary"


def test_content_change_does_not_override_existing_excerpt(new_post):
    stored = prepare_post_for_persist(None, dict(new_post, excerpt="Kept"), NOW)
    updated = prepare_post_for_persist(stored, {"content": "entirely new content"}, NOW + timedelta(hours=1))
    assert updated["excerpt"] == "Kept"
    assert updated["content"] == "entirely new content"


def test_create_published_sets_published_at(new_post):
    new_post["status"] = "published"
    doc = prepare_post_for_persist(None, new_post, NOW)
    assert doc["published_at"] == NOW


def test_published_at_never_reset(new_post):
    new_post["status"] = "published"
    stored = prepare_post_for_persist(None, new_post, NOW)

    later = NOW + timedelta(days=3)
    drafted = prepare_post_for_persist(stored, {"status": "draft"}, later)
    republished = prepare_post_for_persist(drafted, {"status": "published"}, later + timedelta(days=1))

    assert drafted["published_at"] == NOW
    assert republished["published_at"] == NOW


def test_update_without_title_change_keeps_slug(new_post):
    stored = prepare_post_for_persist(None, new_post, NOW)
    updated = prepare_post_for_persist(stored, {"title": "Hello, World!", "tags": ["x"]}, NOW + timedelta(days=1))
    assert updated["slug"] == stored["slug"]
    assert updated["created_at"] == NOW
    assert updated["updated_at"] == NOW + timedelta(days=1)


def test_retitle_regenerates_slug_without_suffix(new_post):
    stored = prepare_post_for_persist(None, new_post, NOW)
    updated = prepare_post_for_persist(stored, {"title": "Goodbye World"}, NOW + timedelta(days=1))
    assert updated["slug"] == "goodbye-world"


def test_seo_fields_are_not_overwritten(new_post):
    new_post["seo"] = {"meta_title": "Custom", "meta_description": "Custom description"}
    doc = prepare_post_for_persist(None, new_post, NOW)
    assert doc["seo"]["meta_title"] == "Custom"
    assert doc["seo"]["meta_description"] == "Custom description"


def test_seo_title_is_truncated(new_post):
    new_post["title"] = "T" * 120
    doc = prepare_post_for_persist(None, new_post, NOW)
    assert doc["seo"]["meta_title"] == "T" * 60


def test_prepare_does_not_mutate_inputs(new_post):
    stored = prepare_post_for_persist(None, new_post, NOW)
    snapshot = dict(stored)
    prepare_post_for_persist(stored, {"title": "Another"}, NOW)
    assert stored == snapshot


def test_category_create():
    doc = prepare_category_for_persist(
        None, {"name": "Tech How-To Guides", "description": "Step-by-step tutorials"}, NOW
    )
    assert doc["slug"] == "tech-how-to-guides"
    assert doc["color"] == "#3B82F6"
    assert doc["icon"] == "folder"
    assert doc["is_active"] is True
    assert doc["post_count"] == 0
    assert doc["seo"] == {"meta_title": "Tech How-To Guides", "meta_description": "Step-by-step tutorials"}


def test_category_rename_regenerates_slug():
    stored = prepare_category_for_persist(None, {"name": "Tech News"}, NOW)
    renamed = prepare_category_for_persist(stored, {"name": "Industry News"}, NOW)
    untouched = prepare_category_for_persist(stored, {"color": "#000"}, NOW)
    assert renamed["slug"] == "industry-news"
    assert untouched["slug"] == "tech-news"
