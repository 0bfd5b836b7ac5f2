"""
# Post Models

Data structures for blog posts: the enumerations that constrain status, content type and
sort modes, the nested sub-documents (featured image, SEO block, links, analytics), the
request models for create and partial update, and the response shapes.

## Publishing Workflow

- **Status Lifecycle**: `draft` → `published` (or `archived`).
- **publishedAt** is stamped the first time a post becomes `published` and never moves after.

## Partial Updates

`UpdatePostRequest` enumerates every updatable field and forbids anything else, so a typo'd
or read-only field (`views`, `slug`) is rejected at the boundary with a 400 instead of being
silently ignored.

## Usage

```python
post = CreatePostRequest(
    title="Top 10 Gadgets Launched at WWDC 2025",
    content="# Top 10...",
    category="65f0c0ffee0000000000abcd",
    tags=["Apple", "WWDC"],
    status="published",
)
post.tags  # ["apple", "wwdc"]
```
"""

import math
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, computed_field, field_validator

from tech_blog_api.models.common import CamelDict, CamelModel, IdStr, ObjectIdStr

POST_STATUSES = ["draft", "published", "archived"]
CONTENT_TYPES = ["markdown", "html", "richtext"]

TITLE_MAX_LENGTH = 200
EXCERPT_MAX_LENGTH = 500
META_TITLE_MAX_LENGTH = 60
META_DESCRIPTION_MAX_LENGTH = 160


class PostStatus(str, Enum):
    """Enumeration of post lifecycle states.

    Attributes:
        DRAFT: Post is being written, not publicly visible.
        PUBLISHED: Post is live and accessible.
        ARCHIVED: Post is no longer listed but preserved.
    """
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class ContentType(str, Enum):
    MARKDOWN = "markdown"
    HTML = "html"
    RICHTEXT = "richtext"


class PublicPostSort(str, Enum):
    """Sort modes accepted by the public post listing."""
    LATEST = "latest"
    OLDEST = "oldest"
    POPULAR = "popular"
    TRENDING = "trending"


class AdminPostSort(str, Enum):
    """Sort modes accepted by the admin post listing."""
    LATEST = "latest"
    OLDEST = "oldest"
    TITLE = "title"
    VIEWS = "views"


class AffiliatePosition(str, Enum):
    TOP = "top"
    MIDDLE = "middle"
    BOTTOM = "bottom"


class FeaturedImage(CamelModel):
    url: Optional[str] = None
    alt: str = ""
    caption: str = ""


class PostSEO(CamelModel):
    """SEO block. `meta_title` and `meta_description` are filled from the post when left empty."""

    meta_title: Optional[str] = Field(None, max_length=META_TITLE_MAX_LENGTH)
    meta_description: Optional[str] = Field(None, max_length=META_DESCRIPTION_MAX_LENGTH)
    meta_keywords: List[str] = Field(default_factory=list)
    og_image: Optional[str] = None
    canonical_url: Optional[str] = None

    @field_validator("meta_keywords")
    @classmethod
    def strip_keywords(cls, v):
        return [k.strip() for k in v if k and k.strip()]


class ExternalLink(CamelModel):
    title: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    description: Optional[str] = None
    is_default: bool = False
    open_in_new_tab: bool = True
    order: int = 0

    @field_validator("title", "url", "description")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class AffiliateLink(CamelModel):
    text: Optional[str] = None
    url: Optional[str] = None
    position: Optional[AffiliatePosition] = None


class PostAnalytics(CamelModel):
    impressions: int = 0
    clicks: int = 0
    shares: int = 0
    avg_time_on_page: float = 0


def _normalize_tags(v: Optional[List[str]]) -> Optional[List[str]]:
    if v is None:
        return v
    tags: List[str] = []
    for tag in v:
        tag = tag.strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


class CreatePostRequest(CamelModel):
    """
    Request model for creating a post.

    **Validation:**
    *   **title**: Required, trimmed, at most 200 characters.
    *   **content**: Required, non-empty.
    *   **category**: Required, must be a valid ObjectId (existence is checked by the manager).
    *   **tags**: Trimmed, lowercased and de-duplicated.
    *   **excerpt**: At most 500 characters; derived from content when omitted.
    """

    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    content: str = Field(..., min_length=1)
    excerpt: Optional[str] = Field(None, max_length=EXCERPT_MAX_LENGTH)
    category: ObjectIdStr
    tags: List[str] = Field(default_factory=list)
    status: PostStatus = PostStatus.DRAFT
    featured_image: FeaturedImage = Field(default_factory=FeaturedImage)
    seo: PostSEO = Field(default_factory=PostSEO)
    content_type: ContentType = ContentType.MARKDOWN
    scheduled_for: Optional[datetime] = None
    related_posts: List[ObjectIdStr] = Field(default_factory=list)
    external_links: List[ExternalLink] = Field(default_factory=list)
    affiliate_links: List[AffiliateLink] = Field(default_factory=list)
    ad_sense_enabled: bool = True
    comments_enabled: bool = True

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Content is required")
        return v

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v):
        return _normalize_tags(v)


class UpdatePostRequest(CamelModel):
    """
    Typed patch for an existing post.

    Every field is optional; only the fields present in the request body are applied.
    Unknown fields are rejected.
    """

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=1, max_length=TITLE_MAX_LENGTH)
    content: Optional[str] = Field(None, min_length=1)
    excerpt: Optional[str] = Field(None, max_length=EXCERPT_MAX_LENGTH)
    category: Optional[ObjectIdStr] = None
    tags: Optional[List[str]] = None
    status: Optional[PostStatus] = None
    featured_image: Optional[FeaturedImage] = None
    seo: Optional[PostSEO] = None
    content_type: Optional[ContentType] = None
    scheduled_for: Optional[datetime] = None
    related_posts: Optional[List[ObjectIdStr]] = None
    external_links: Optional[List[ExternalLink]] = None
    affiliate_links: Optional[List[AffiliateLink]] = None
    ad_sense_enabled: Optional[bool] = None
    comments_enabled: Optional[bool] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v):
        return _normalize_tags(v)

    def to_changes(self) -> Dict[str, Any]:
        """Return the non-null fields the caller actually sent, in storage form."""
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


class PostListItem(CamelModel):
    """
    Response model for a post inside a listing.

    Listings omit `content` to keep payloads small; `author` and `category` are populated
    summaries when the referenced documents exist.
    """

    id: IdStr
    title: str
    slug: str
    excerpt: Optional[str] = None
    featured_image: Optional[CamelDict] = None
    category: Optional[CamelDict] = None
    tags: List[str] = []
    author: Optional[CamelDict] = None
    status: str
    published_at: Optional[datetime] = None
    scheduled_for: Optional[datetime] = None
    views: int = 0
    likes: int = 0
    reading_time: int = 0
    seo: Optional[CamelDict] = None
    content_type: str = ContentType.MARKDOWN.value
    comments_enabled: bool = True
    comment_count: int = 0
    ad_sense_enabled: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def url(self) -> str:
        return f"/blog/{self.slug}"

    @computed_field
    @property
    def estimated_reading_time(self) -> int:
        return self.reading_time or 1


class PostResponse(PostListItem):
    """Response model for a single post, including the full content and related posts."""

    content: str
    related_posts: List[CamelDict] = []
    external_links: List[CamelDict] = []
    affiliate_links: List[CamelDict] = []
    analytics: Optional[CamelDict] = None

    @computed_field
    @property
    def estimated_reading_time(self) -> int:
        if self.reading_time:
            return self.reading_time
        return max(1, math.ceil(len(self.content.split()) / 200))
