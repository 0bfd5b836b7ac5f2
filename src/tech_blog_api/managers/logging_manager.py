"""
# Logging Manager

Central access point for application loggers.

Every module obtains its logger through `get_logger()`, optionally passing a bracketed
`prefix` (e.g. `"[DATABASE]"`, `"[Post Routes]"`) that is prepended to each message so
that log lines from one subsystem can be grepped together.

```python
from tech_blog_api.managers.logging_manager import get_logger

logger = get_logger(prefix="[Post Routes]")
logger.info("Created post: %s", post_id)
# 2026-10-18 12:00:00 | INFO     | tech_blog_api | [Post Routes] Created post: 65f...
```

The root application logger is configured once, lazily, from `settings.DEFAULT_LOG_LEVEL`
and `settings.LOG_FORMAT`.
"""

import logging
import sys
from typing import Any, MutableMapping, Optional, Tuple

from tech_blog_api.config import settings

APP_LOGGER_NAME = "tech_blog_api"

_configured = False


class PrefixAdapter(logging.LoggerAdapter):
    """Logger adapter that prepends a fixed prefix to every message."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        prefix = self.extra.get("prefix") if self.extra else None
        if prefix:
            return f"{prefix} {msg}", kwargs
        return msg, kwargs


def _configure_root() -> None:
    global _configured
    if _configured:
        return

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(settings.DEFAULT_LOG_LEVEL)
    if not app_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(settings.LOG_FORMAT))
        app_logger.addHandler(handler)
    app_logger.propagate = False
    _configured = True


def get_logger(name: str = APP_LOGGER_NAME, prefix: Optional[str] = None) -> PrefixAdapter:
    """
    Return a configured application logger.

    Args:
        name (str): Logger name. Names outside the application namespace are nested under it.
        prefix (Optional[str]): Text prepended to every message, e.g. `"[DATABASE]"`.

    Returns:
        PrefixAdapter: A logger adapter usable like a `logging.Logger`.
    """
    _configure_root()
    if name != APP_LOGGER_NAME and not name.startswith(APP_LOGGER_NAME + "."):
        name = f"{APP_LOGGER_NAME}.{name}"
    return PrefixAdapter(logging.getLogger(name), {"prefix": prefix})
