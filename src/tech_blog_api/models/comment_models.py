"""
# Comment Models

Public comment submission and the moderated response shape. Comment bodies are sanitized
with **bleach** down to a small set of inline formatting tags before they reach the store.
"""

from datetime import datetime
from typing import List, Optional

import bleach
from pydantic import ConfigDict, EmailStr, Field, field_validator

from tech_blog_api.models.common import CamelModel, IdStr, ObjectIdStr

ALLOWED_COMMENT_TAGS = ["b", "i", "em", "strong", "code", "a", "p", "br"]
ALLOWED_COMMENT_ATTRIBUTES = {"a": ["href", "title"]}

AUTHOR_MAX_LENGTH = 100
CONTENT_MAX_LENGTH = 2000


def sanitize_comment(content: str) -> str:
    """Strip disallowed markup from a comment body."""
    return bleach.clean(
        content,
        tags=ALLOWED_COMMENT_TAGS,
        attributes=ALLOWED_COMMENT_ATTRIBUTES,
        strip=True,
    ).strip()


class CommentBody(CamelModel):
    """Fields shared by both comment submission routes."""

    model_config = ConfigDict(extra="forbid")

    author: str = Field(..., min_length=1, max_length=AUTHOR_MAX_LENGTH)
    email: EmailStr
    content: str = Field(..., min_length=1, max_length=CONTENT_MAX_LENGTH)
    parent_id: Optional[ObjectIdStr] = None

    @field_validator("author", mode="before")
    @classmethod
    def strip_author(cls, v):
        return bleach.clean(v, tags=[], strip=True).strip() if isinstance(v, str) else v

    @field_validator("content")
    @classmethod
    def clean_content(cls, v):
        cleaned = sanitize_comment(v)
        if not cleaned:
            raise ValueError("Comment content is required")
        return cleaned


class CreateCommentRequest(CommentBody):
    """Body of `POST /api/comments`, which carries the post id in the payload."""

    post_id: ObjectIdStr


class CommentResponse(CamelModel):
    id: IdStr
    post_id: IdStr
    author: str
    content: str
    parent_id: Optional[IdStr] = None
    is_approved: bool = False
    replies: Optional[List["CommentResponse"]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
