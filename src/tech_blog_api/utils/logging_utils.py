"""
# Logging Utilities

Request- and lifecycle-level logging helpers.

- **`RequestLoggingMiddleware`**: One line per request with method, path, status, duration,
  client IP and request id. The request id is taken from `X-Request-ID` when the client sends
  one, generated otherwise, and echoed back on the response.
- **`log_application_lifecycle()`**: Structured startup/shutdown events.
- **`log_error_with_context()`**: Error logging with an operation context dict.
"""

import time
import uuid
from typing import Any, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from tech_blog_api.managers.logging_manager import get_logger

request_logger = get_logger(prefix="[REQUEST]")
lifecycle_logger = get_logger(prefix="[LIFECYCLE]")
error_logger = get_logger(prefix="[ERROR]")

REQUEST_ID_HEADER = "X-Request-ID"


def get_client_ip(request: Request) -> str:
    """Client address, preferring the first `X-Forwarded-For` hop."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with its outcome and timing."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:16]
        start = time.time()
        try:
            response = await call_next(request)
        except Exception:
            request_logger.error(
                "%s %s failed after %.3fs [ip=%s id=%s]",
                request.method,
                request.url.path,
                time.time() - start,
                get_client_ip(request),
                request_id,
                exc_info=True,
            )
            raise

        duration = time.time() - start
        level = "warning" if response.status_code >= 400 else "info"
        getattr(request_logger, level)(
            "%s %s -> %d in %.3fs [ip=%s id=%s]",
            request.method,
            request.url.path,
            response.status_code,
            duration,
            get_client_ip(request),
            request_id,
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def log_application_lifecycle(event: str, details: Optional[Dict[str, Any]] = None) -> None:
    """
    Log a startup/shutdown event.

    Args:
        event (str): Event name, e.g. `"database_connected"`.
        details (Optional[Dict[str, Any]]): Extra key/values appended to the line.
    """
    if details:
        rendered = ", ".join(f"{k}={v}" for k, v in details.items())
        lifecycle_logger.info("%s: %s", event, rendered)
    else:
        lifecycle_logger.info("%s", event)


def log_error_with_context(error: Exception, context: Dict[str, Any]) -> None:
    rendered = ", ".join(f"{k}={v}" for k, v in context.items())
    error_logger.error("%s: %s [%s]", type(error).__name__, error, rendered, exc_info=error)
