"""
# API Error Taxonomy

Domain exceptions raised by managers and route handlers. Each carries the HTTP status code
and the message that ends up in the response envelope; `main.py` registers one handler for
the whole `BlogAPIError` family.

| Exception | Status | Raised when |
|-----------|--------|-------------|
| `ValidationFailedError` | 400 | Malformed or out-of-range input |
| `UploadError` | 400 | File too large, wrong type, too many files |
| `AuthenticationError` | 401 | Missing or invalid bearer token |
| `AuthorizationError` | 403 | Caller lacks the admin role |
| `NotFoundError` | 404 | Referenced id/slug absent |
| `ConflictError` | 409 | Duplicate name/slug, blocked delete |
| `StoreUnavailableError` | 503 | MongoDB unreachable |
"""

from typing import Any, Dict, List, Optional

from pymongo.errors import ConnectionFailure


class BlogAPIError(Exception):
    """Base class for errors that map onto an HTTP status and envelope message."""

    status_code: int = 500

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class ValidationFailedError(BlogAPIError):
    status_code = 400

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationFailedError":
        return cls("Validation failed", errors=[{"field": field, "message": message}])


class UploadError(BlogAPIError):
    status_code = 400


class AuthenticationError(BlogAPIError):
    status_code = 401


class AuthorizationError(BlogAPIError):
    status_code = 403


class NotFoundError(BlogAPIError):
    status_code = 404


class ConflictError(BlogAPIError):
    status_code = 409


class StoreUnavailableError(BlogAPIError):
    status_code = 503


def server_error(exc: Exception, message: str) -> BlogAPIError:
    """
    Translate an unexpected exception at a route boundary.

    Lost store connectivity becomes a 503; anything else is a 500 carrying `message`.
    """
    if isinstance(exc, (ConnectionFailure, ConnectionError)):
        return StoreUnavailableError("Database temporarily unavailable")
    return BlogAPIError(message)
