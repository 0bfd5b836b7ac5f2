"""
Tests for listing filters, sort modes and pagination.
"""
from datetime import datetime, timedelta, timezone
import math
import re

import pytest
from bson import ObjectId
from pymongo import ASCENDING, DESCENDING

from tech_blog_api.services.query_builder import (
    PaginationParams,
    build_admin_sort,
    build_pagination,
    build_post_filter,
    build_public_sort,
    parse_tags,
    trending_cutoff,
)


NOW = datetime(2025, 6, 20, tzinfo=timezone.utc)


def test_pagination_params_skip():
    assert PaginationParams(page=3, limit=10).skip == 20
    assert PaginationParams().skip == 0


@pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), (1, 51)])
def test_pagination_params_rejects_out_of_range(page, limit):
    with pytest.raises(ValueError):
        PaginationParams(page=page, limit=limit)


def test_parse_tags():
    assert parse_tags(" AI, Python ,,gadgets ") == ["ai", "python", "gadgets"]
    assert parse_tags(None) == []
    assert parse_tags("") == []


def test_default_filter_is_published_only():
    assert build_post_filter() == {"status": "published"}


def test_filter_with_all_parameters():
    category_id = str(ObjectId())
    query = build_post_filter(category=category_id, tags="AI,Tools", search="wwdc")

    assert query["status"] == "published"
    assert query["category"] == ObjectId(category_id)
    assert query["tags"] == {"$in": ["ai", "tools"]}
    assert {"title": {"$regex": "wwdc", "$options": "i"}} in query["$or"]
    assert len(query["$or"]) == 4


def test_admin_filter_any_status():
    assert "status" not in build_post_filter(status=None)


def test_search_is_case_insensitive():
    pattern = build_post_filter(search="WWDC")["$or"][0]["title"]
    compiled = re.compile(pattern["$regex"], re.IGNORECASE if "i" in pattern["$options"] else 0)
    assert compiled.search("recap of wwdc 2025")
    assert compiled.search("Recap of WWDC 2025")


def test_search_escapes_regex_metacharacters():
    pattern = build_post_filter(search="c++ (beta)")["$or"][0]["title"]["$regex"]
    assert re.search(pattern, "learning c++ (beta) today")
    assert not re.search(pattern, "cc beta")


@pytest.mark.parametrize(
    "sort,expected",
    [
        ("latest", [("published_at", DESCENDING)]),
        ("oldest", [("published_at", ASCENDING)]),
        ("popular", [("views", DESCENDING), ("likes", DESCENDING)]),
    ],
)
def test_public_sort_modes(sort, expected):
    query, spec = build_public_sort(sort, {"status": "published"}, NOW)
    assert spec == expected
    assert query == {"status": "published"}


def test_trending_restricts_to_last_seven_days():
    base = {"status": "published"}
    query, spec = build_public_sort("trending", base, NOW)

    cutoff = query["published_at"]["$gte"]
    assert cutoff == trending_cutoff(NOW) == NOW - timedelta(days=7)
    assert spec == [("views", DESCENDING), ("likes", DESCENDING)]
    assert "published_at" not in base

    assert NOW - timedelta(days=2) >= cutoff
    assert not NOW - timedelta(days=10) >= cutoff


@pytest.mark.parametrize(
    "sort,expected",
    [
        ("latest", [("created_at", DESCENDING)]),
        ("oldest", [("created_at", ASCENDING)]),
        ("title", [("title", ASCENDING)]),
        ("views", [("views", DESCENDING)]),
    ],
)
def test_admin_sort_modes(sort, expected):
    assert build_admin_sort(sort) == expected


@pytest.mark.parametrize(
    "page,limit,total",
    [(1, 10, 0), (1, 10, 10), (1, 10, 11), (2, 10, 11), (3, 7, 50), (5, 50, 1000)],
)
def test_pagination_identities(page, limit, total):
    block = build_pagination(page, limit, total)
    assert block["totalPages"] == math.ceil(total / limit)
    assert block["hasNextPage"] == (page < block["totalPages"])
    assert block["hasPrevPage"] == (page > 1)
    assert block["totalPosts"] == total
    assert block["currentPage"] == page


def test_pagination_custom_total_key():
    block = build_pagination(1, 20, 45, total_key="totalFiles")
    assert block["totalFiles"] == 45
    assert "totalPosts" not in block
