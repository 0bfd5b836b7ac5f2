"""
# Upload Models

Shapes returned by the upload routes. Files live under `<UPLOAD_DIR>/<type>/` where `type`
is one of the `UploadType` values, and are served back under `/uploads/<type>/<filename>`.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from tech_blog_api.models.common import CamelModel


class UploadType(str, Enum):
    POSTS = "posts"
    AVATARS = "avatars"


class UploadedFile(CamelModel):
    """
    A stored image.

    Attributes:
        filename (str): Name on disk, `<stem>-<epochms>-<rand><ext>`.
        original_name (Optional[str]): Client-supplied filename, when known.
        size (int): Size in bytes.
        url (str): Path relative to the server, e.g. `/uploads/posts/x.png`.
        full_url (str): `url` prefixed with the configured `BASE_URL`.
        created_at (Optional[datetime]): File modification time, set on listings.
    """

    filename: str
    original_name: Optional[str] = None
    size: int
    url: str
    full_url: str
    created_at: Optional[datetime] = None
