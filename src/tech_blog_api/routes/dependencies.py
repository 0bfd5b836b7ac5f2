"""
# Route Dependencies

FastAPI dependencies shared by every router: access to the per-application
`DatabaseManager`, the resource managers built on it, and bearer-token authentication.

## Authentication

Tokens are issued by an external auth service. This service only **verifies** them: an
HS256 JWT signed with `SECRET_KEY` whose claims carry the user id in `sub` and the role in
`role`.

| Dependency | No / invalid token | Valid token, non-admin | Admin |
|------------|--------------------|------------------------|-------|
| `get_optional_user` | `None` | user | user |
| `require_auth` | 401 | user | user |
| `require_admin` | 401 | 403 | user |

## Usage

```python
@router.delete("/{post_id}")
async def delete_post(
    post_id: str,
    current_user: dict = Depends(require_admin),
    posts: PostManager = Depends(get_post_manager),
):
    ...
```
"""

from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from tech_blog_api.config import settings
from tech_blog_api.database.manager import DatabaseManager
from tech_blog_api.managers.category_manager import CategoryManager
from tech_blog_api.managers.comment_manager import CommentManager
from tech_blog_api.managers.logging_manager import get_logger
from tech_blog_api.managers.post_manager import PostManager
from tech_blog_api.managers.upload_manager import UploadManager
from tech_blog_api.utils.errors import AuthenticationError, AuthorizationError, StoreUnavailableError

logger = get_logger(prefix="[Auth]")

bearer_scheme = HTTPBearer(auto_error=False)


def get_db_manager(request: Request) -> DatabaseManager:
    """Return the `DatabaseManager` the lifespan stored on `app.state`."""
    db_manager = getattr(request.app.state, "db_manager", None)
    if db_manager is None:
        raise StoreUnavailableError("Database not initialized")
    return db_manager


def get_post_manager(db: DatabaseManager = Depends(get_db_manager)) -> PostManager:
    return PostManager(db)


def get_category_manager(db: DatabaseManager = Depends(get_db_manager)) -> CategoryManager:
    return CategoryManager(db)


def get_comment_manager(db: DatabaseManager = Depends(get_db_manager)) -> CommentManager:
    return CommentManager(db)


def get_upload_manager(request: Request) -> UploadManager:
    return UploadManager(settings, getattr(request.app.state, "db_manager", None))


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify a bearer token and turn its claims into the `current_user` dict.

    Returns:
        Dict[str, Any]: `{"_id": sub, "role": role, "username": ...}`.

    Raises:
        AuthenticationError: Bad signature, expired, or no `sub` claim.
    """
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY.get_secret_value(), algorithms=[settings.ALGORITHM]
        )
    except JWTError as e:
        logger.debug("Token verification failed: %s", e)
        raise AuthenticationError("Token is not valid") from e

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Token is not valid")
    return {
        "_id": str(user_id),
        "role": payload.get("role", "user"),
        "username": payload.get("username"),
    }


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[Dict[str, Any]]:
    """The caller when a valid token is present, otherwise `None`. Never raises."""
    if credentials is None:
        return None
    try:
        return decode_access_token(credentials.credentials)
    except AuthenticationError:
        return None


async def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Dict[str, Any]:
    if credentials is None:
        raise AuthenticationError("No token, authorization denied")
    return decode_access_token(credentials.credentials)


async def require_admin(user: Dict[str, Any] = Depends(require_auth)) -> Dict[str, Any]:
    if user.get("role") != settings.ADMIN_ROLE:
        logger.warning("Admin access denied for user %s", user.get("_id"))
        raise AuthorizationError("Access denied. Admin privileges required.")
    return user
