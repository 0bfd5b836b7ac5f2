"""
# Category Models

Request and response models for blog categories. Categories form a tree through
`parent_category`; the response adds the derived `url` and, on routes that populate them,
the direct `subcategories`.
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, computed_field, field_validator

from tech_blog_api.models.common import CamelDict, CamelModel, IdStr, ObjectIdStr

HEX_COLOR_PATTERN = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")

DEFAULT_COLOR = "#3B82F6"
DEFAULT_ICON = "folder"
NAME_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 500


class CategorySEO(CamelModel):
    meta_title: Optional[str] = Field(None, max_length=60)
    meta_description: Optional[str] = Field(None, max_length=160)
    meta_keywords: List[str] = Field(default_factory=list)


def _check_color(v: Optional[str]) -> Optional[str]:
    if v is not None and not HEX_COLOR_PATTERN.match(v):
        raise ValueError("Color must be a valid hex color")
    return v


class CreateCategoryRequest(CamelModel):
    """
    Request model for creating a category.

    **Validation:**
    *   **name**: Required, trimmed, at most 50 characters.
    *   **description**: At most 500 characters.
    *   **color**: `#RGB` or `#RRGGBB`.
    *   **parent_category**: Valid ObjectId (existence checked by the manager).
    *   **sort_order**: Non-negative integer.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    description: str = Field("", max_length=DESCRIPTION_MAX_LENGTH)
    color: str = DEFAULT_COLOR
    icon: str = DEFAULT_ICON
    image: Optional[str] = None
    parent_category: Optional[ObjectIdStr] = None
    sort_order: int = Field(0, ge=0)
    seo: CategorySEO = Field(default_factory=CategorySEO)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("color")
    @classmethod
    def validate_color(cls, v):
        return _check_color(v)


class UpdateCategoryRequest(CamelModel):
    """Typed patch for a category. Unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=NAME_MAX_LENGTH)
    description: Optional[str] = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    color: Optional[str] = None
    icon: Optional[str] = None
    image: Optional[str] = None
    parent_category: Optional[ObjectIdStr] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = Field(None, ge=0)
    seo: Optional[CategorySEO] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("color")
    @classmethod
    def validate_color(cls, v):
        return _check_color(v)

    def to_changes(self) -> Dict[str, Any]:
        changes = self.model_dump(exclude_unset=True)
        # parent_category may be cleared with null; other nulls mean "unchanged"
        return {k: v for k, v in changes.items() if v is not None or k == "parent_category"}


class CategoryResponse(CamelModel):
    id: IdStr
    name: str
    slug: str
    description: str = ""
    color: str = DEFAULT_COLOR
    icon: str = DEFAULT_ICON
    image: Optional[str] = None
    parent_category: Optional[IdStr] = None
    is_active: bool = True
    sort_order: int = 0
    seo: Optional[CamelDict] = None
    post_count: int = 0
    total_views: int = 0
    subcategories: Optional[List["CategoryResponse"]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def url(self) -> str:
        return f"/category/{self.slug}"
