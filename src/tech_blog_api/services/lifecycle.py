"""
# Entity Lifecycle Rules

Pure functions that compute the next stored state of a Post or Category before it is
written. The write path in each manager calls them explicitly:

```python
doc = prepare_post_for_persist(previous=None, changes=request_fields, now=utcnow())
await db.posts.insert_one(doc)
```

They never touch the database and never mutate their arguments, which keeps every derived
field testable in isolation.

## Post Rules

| Field | Rule |
|-------|------|
| `slug` | From `title` on create or when the title changes; on create a 4-digit timestamp suffix is added |
| `excerpt` | Only when content changed and the excerpt is empty: tags stripped, 200 chars, `...` |
| `reading_time` | Only when content changed: `ceil(words / 200)` |
| `published_at` | Only when status becomes `published` and it is unset; never reset |
| `seo.meta_title` / `seo.meta_description` | Fill-if-empty from title and excerpt/content |
| `created_at` / `updated_at` | Stamped with `now` |

## Category Rules

`slug` follows `name` (no suffix); SEO is fill-if-empty from name and description.

## Updates

`update_fields()` narrows a prepared document to the patched keys plus the derived fields, so
an update never rewrites `views`, `likes`, `comment_count`, `post_count` or `total_views`.
Those counters only move through `$inc`.
"""

import copy
import math
import re
import unicodedata
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

WORDS_PER_MINUTE = 200
EXCERPT_LENGTH = 200
META_TITLE_LENGTH = 60
META_DESCRIPTION_LENGTH = 160

_REMOVED_CHARS = re.compile(r"[*+~.()'\"!:@]")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_TAG_RE = re.compile(r"<[^>]*>")

POST_DEFAULTS: Dict[str, Any] = {
    "excerpt": "",
    "featured_image": {"url": None, "alt": "", "caption": ""},
    "tags": [],
    "status": "draft",
    "published_at": None,
    "scheduled_for": None,
    "views": 0,
    "likes": 0,
    "reading_time": 0,
    "seo": {},
    "content_type": "markdown",
    "related_posts": [],
    "comments_enabled": True,
    "comment_count": 0,
    "external_links": [],
    "affiliate_links": [],
    "ad_sense_enabled": True,
    "analytics": {"impressions": 0, "clicks": 0, "shares": 0, "avg_time_on_page": 0},
}

CATEGORY_DEFAULTS: Dict[str, Any] = {
    "description": "",
    "color": "#3B82F6",
    "icon": "folder",
    "image": None,
    "parent_category": None,
    "is_active": True,
    "sort_order": 0,
    "seo": {},
    "post_count": 0,
    "total_views": 0,
}

POST_DERIVED_FIELDS = ("slug", "excerpt", "reading_time", "published_at", "seo", "updated_at")
CATEGORY_DERIVED_FIELDS = ("slug", "seo", "updated_at")


def slugify(text: str) -> str:
    """
    Turn a title or name into a URL-safe token.

    >>> slugify("Hello, World!")
    'hello-world'
    >>> slugify("Café Déjà Vu")
    'cafe-deja-vu'
    """
    normalized = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    normalized = _REMOVED_CHARS.sub("", normalized).lower()
    return _NON_ALNUM.sub("-", normalized).strip("-")


def timestamp_suffix(now: datetime) -> str:
    """Last four digits of the epoch-millisecond timestamp of `now`."""
    return str(int(now.timestamp() * 1000))[-4:]


def generate_excerpt(content: str) -> str:
    plain = _TAG_RE.sub("", content)
    if len(plain) > EXCERPT_LENGTH:
        return plain[:EXCERPT_LENGTH] + "..."
    return plain


def compute_reading_time(content: str) -> int:
    words = len(content.split())
    return math.ceil(words / WORDS_PER_MINUTE)


def _changed(previous: Optional[Dict[str, Any]], changes: Dict[str, Any], field: str) -> bool:
    if previous is None:
        return True
    return field in changes and changes[field] != previous.get(field)


def _merge(
    previous: Optional[Dict[str, Any]], changes: Dict[str, Any], defaults: Dict[str, Any]
) -> Dict[str, Any]:
    base = copy.deepcopy(previous) if previous is not None else copy.deepcopy(defaults)
    for key, value in changes.items():
        base[key] = copy.deepcopy(value)
    if previous is None:
        for key, value in defaults.items():
            if base.get(key) is None and value is not None:
                base[key] = copy.deepcopy(value)
    return base


def prepare_post_for_persist(
    previous: Optional[Dict[str, Any]], changes: Dict[str, Any], now: datetime
) -> Dict[str, Any]:
    """
    Apply the post lifecycle rules and return the document to store.

    Args:
        previous (Optional[Dict[str, Any]]): The stored document, or `None` when creating.
        changes (Dict[str, Any]): Validated incoming fields (snake_case).
        now (datetime): The persist time; drives timestamps and the slug suffix.

    Returns:
        Dict[str, Any]: The full next state, including derived fields.
    """
    is_new = previous is None
    doc = _merge(previous, changes, POST_DEFAULTS)

    if is_new or _changed(previous, changes, "title"):
        slug = slugify(doc["title"])
        if is_new:
            slug = f"{slug}-{timestamp_suffix(now)}"
        doc["slug"] = slug

    content_changed = _changed(previous, changes, "content")
    if content_changed and not doc.get("excerpt"):
        doc["excerpt"] = generate_excerpt(doc["content"])

    if content_changed:
        doc["reading_time"] = compute_reading_time(doc["content"])

    if _changed(previous, changes, "status") and doc.get("status") == "published" and not doc.get("published_at"):
        doc["published_at"] = now

    seo = dict(doc.get("seo") or {})
    if not seo.get("meta_title"):
        seo["meta_title"] = doc["title"][:META_TITLE_LENGTH]
    if not seo.get("meta_description"):
        seo["meta_description"] = (doc.get("excerpt") or doc["content"])[:META_DESCRIPTION_LENGTH]
    doc["seo"] = seo

    if is_new:
        doc["created_at"] = now
    doc["updated_at"] = now
    return doc


def prepare_category_for_persist(
    previous: Optional[Dict[str, Any]], changes: Dict[str, Any], now: datetime
) -> Dict[str, Any]:
    """Apply the category lifecycle rules and return the document to store."""
    is_new = previous is None
    doc = _merge(previous, changes, CATEGORY_DEFAULTS)

    if is_new or _changed(previous, changes, "name"):
        doc["slug"] = slugify(doc["name"])

    seo = dict(doc.get("seo") or {})
    if not seo.get("meta_title"):
        seo["meta_title"] = doc["name"][:META_TITLE_LENGTH]
    if not seo.get("meta_description") and doc.get("description"):
        seo["meta_description"] = doc["description"][:META_DESCRIPTION_LENGTH]
    doc["seo"] = seo

    if is_new:
        doc["created_at"] = now
    doc["updated_at"] = now
    return doc


def update_fields(doc: Dict[str, Any], changes: Dict[str, Any], derived: Tuple[str, ...]) -> Dict[str, Any]:
    """Select the `$set` payload for an update: patched keys plus derived fields."""
    keys = set(changes) | set(derived)
    return {key: doc[key] for key in keys if key in doc and key != "_id"}
