"""
# Query Builder

Pure helpers that turn validated request parameters into the pieces of a MongoDB query:
a filter document, a sort document and the pagination block returned to clients.

Parameter ranges (page ≥ 1, 1 ≤ limit ≤ 50, sort enums) are enforced by FastAPI `Query`
declarations in the routes, so nothing here runs on out-of-range input.

```python
params = PaginationParams(page=2, limit=10)
query = build_post_filter(tags="AI, Python", search="wwdc")
query, sort = build_public_sort("trending", query, now=utcnow())
cursor = posts.find(query).sort(sort).skip(params.skip).limit(params.limit)
pagination = build_pagination(params.page, params.limit, total)
```
"""

import math
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 50
TRENDING_WINDOW = timedelta(days=7)

SortSpec = List[Tuple[str, int]]


@dataclass(frozen=True)
class PaginationParams:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    def __post_init__(self):
        if self.page < 1:
            raise ValueError("Page must be a positive integer")
        if not 1 <= self.limit <= MAX_LIMIT:
            raise ValueError(f"Limit must be between 1 and {MAX_LIMIT}")

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def parse_tags(tags: Optional[str]) -> List[str]:
    """Split a comma-separated tag string into lowercase, trimmed, non-empty tags."""
    if not tags:
        return []
    return [t.strip().lower() for t in tags.split(",") if t.strip()]


def build_post_filter(
    category: Optional[str] = None,
    tags: Optional[str] = None,
    search: Optional[str] = None,
    status: Optional[str] = "published",
    author: Optional[Any] = None,
) -> Dict[str, Any]:
    """
    Build the filter document for a post listing.

    Args:
        category (Optional[str]): Category ObjectId string.
        tags (Optional[str]): Comma-separated tags; a post matches if it has any of them.
        search (Optional[str]): Case-insensitive substring matched against title, content,
            excerpt and tags. Regex metacharacters in the input are escaped.
        status (Optional[str]): Status to match, `None` for any status.
        author (Optional[Any]): Author id to match.

    Returns:
        Dict[str, Any]: A MongoDB filter.
    """
    query: Dict[str, Any] = {}
    if status:
        query["status"] = status
    if category:
        query["category"] = ObjectId(category)
    tag_list = parse_tags(tags)
    if tag_list:
        query["tags"] = {"$in": tag_list}
    if author is not None:
        query["author"] = author
    if search:
        pattern = {"$regex": re.escape(search), "$options": "i"}
        query["$or"] = [
            {"title": pattern},
            {"content": pattern},
            {"excerpt": pattern},
            {"tags": pattern},
        ]
    return query


def trending_cutoff(now: datetime) -> datetime:
    return now - TRENDING_WINDOW


def build_public_sort(sort: str, query: Dict[str, Any], now: datetime) -> Tuple[Dict[str, Any], SortSpec]:
    """
    Resolve a public sort mode.

    `trending` also narrows the filter to posts published within the last seven days, so a
    new filter dict is returned alongside the sort.
    """
    query = dict(query)
    if sort == "oldest":
        return query, [("published_at", ASCENDING)]
    if sort == "popular":
        return query, [("views", DESCENDING), ("likes", DESCENDING)]
    if sort == "trending":
        query["published_at"] = {"$gte": trending_cutoff(now)}
        return query, [("views", DESCENDING), ("likes", DESCENDING)]
    return query, [("published_at", DESCENDING)]


def build_admin_sort(sort: str) -> SortSpec:
    if sort == "oldest":
        return [("created_at", ASCENDING)]
    if sort == "title":
        return [("title", ASCENDING)]
    if sort == "views":
        return [("views", DESCENDING)]
    return [("created_at", DESCENDING)]


def build_pagination(page: int, limit: int, total: int, total_key: str = "totalPosts") -> Dict[str, Any]:
    """
    Build the pagination block from the total match count.

    `totalPages` is derived from `total` and `limit`, never from the size of the returned page.
    """
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "currentPage": page,
        "totalPages": total_pages,
        total_key: total,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
        "limit": limit,
    }
