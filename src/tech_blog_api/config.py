"""
# Configuration Management Module

This module provides the configuration system for the Tech Blog API.
Built on **Pydantic Settings**, it loads values from environment variables and an optional
dotenv-style config file, validates them at startup, and exposes a single `settings` instance.

## Configuration Loading Hierarchy

```
┌─────────────────────────────────────────────────────────────┐
│  1. Environment Variables (HIGHEST PRIORITY)                │
├─────────────────────────────────────────────────────────────┤
│  2. TECH_BLOG_CONFIG_PATH                                   │
│     - Custom config file path from env var                  │
├─────────────────────────────────────────────────────────────┤
│  3. .techblog File (Project Root)                           │
├─────────────────────────────────────────────────────────────┤
│  4. .env File (Project Root)                                │
├─────────────────────────────────────────────────────────────┤
│  5. Default Values (LOWEST PRIORITY)                        │
└─────────────────────────────────────────────────────────────┘
```

If no configuration file is found, the application runs in **environment-only mode**.

## Configuration Groups

| Group | Purpose |
|-------|---------|
| **Server** | Host, port, debug mode, base URL |
| **Database (MongoDB)** | Connection URL, database name, timeouts, credentials |
| **Auth** | Secret and algorithm used to verify bearer tokens |
| **CORS** | Allowed origins for browser clients |
| **Rate Limiting** | Per-IP request budget for `/api/` |
| **Uploads** | Storage directory, size and count limits |
| **Logging** | Level and format |

## Usage

```python
from tech_blog_api.config import settings

if settings.is_production:
    ...
```
"""

import os
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Constants ---
TECHBLOG_FILENAME: str = ".techblog"
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "TECH_BLOG_CONFIG_PATH"
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent

DEV_CORS_ORIGINS: List[str] = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """
    Determines the configuration file path based on a predefined precedence order.

    1.  **Environment Variable**: `TECH_BLOG_CONFIG_PATH` (if set and file exists).
    2.  **Project Config**: `.techblog` file in the project root directory.
    3.  **Dotenv Config**: `.env` file in the project root directory.
    4.  **Fallback**: Returns `None`, triggering environment-variable-only mode.

    Returns:
        Optional[str]: The absolute path to the configuration file, or `None` if not found.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    project_path: Path = PROJECT_ROOT / TECHBLOG_FILENAME
    if project_path.exists():
        return str(project_path)
    env_path_file: Path = PROJECT_ROOT / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    load_dotenv(dotenv_path=CONFIG_PATH, override=True)


class Settings(BaseSettings):
    """
    Application configuration settings model.

    **Validation:**
    The MongoDB URL must not be empty, numeric limits must be positive, and the log level
    must be a name the `logging` module understands.
    """

    model_config = SettingsConfigDict(
        env_file=CONFIG_PATH if CONFIG_PATH else None,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",
    )

    # Server configuration
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    DEBUG: bool = True
    BASE_URL: str = "http://localhost:5000"
    API_PREFIX: str = "/api"

    # MongoDB configuration
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "tech_blog"
    MONGODB_CONNECTION_TIMEOUT: int = 10000
    MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000
    MONGODB_MAX_POOL_SIZE: int = 50
    MONGODB_MIN_POOL_SIZE: int = 5
    MONGODB_USERNAME: Optional[str] = None
    MONGODB_PASSWORD: Optional[SecretStr] = None

    # Bearer token verification (tokens are issued by the external auth service)
    SECRET_KEY: SecretStr = SecretStr("")
    ALGORITHM: str = "HS256"
    ADMIN_ROLE: str = "admin"

    # CORS configuration
    ALLOWED_ORIGINS: Optional[str] = None  # Comma-separated, used when DEBUG=False
    CORS_ORIGINS: Optional[str] = None  # Comma-separated extras, always added

    # Rate limiting configuration
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_REQUESTS: int = 100
    RATE_LIMIT_PERIOD_SECONDS: int = 15 * 60

    # Upload configuration
    UPLOAD_DIR: str = str(PROJECT_ROOT / "uploads")
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_FILE_SIZE: int = 5 * 1024 * 1024
    MAX_FILES_PER_REQUEST: int = 5

    # Logging configuration
    DEFAULT_LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

    # Collections
    POSTS_COLLECTION: str = "posts"
    CATEGORIES_COLLECTION: str = "categories"
    COMMENTS_COLLECTION: str = "comments"
    USERS_COLLECTION: str = "users"

    @field_validator("MONGODB_URL", mode="before")
    @classmethod
    def no_empty_urls(cls, v: Any, info: Any) -> Any:
        """
        Validates that the MongoDB URL is not empty.

        Raises:
            ValueError: If the URL is empty or whitespace.
        """
        if not v or not str(v).strip():
            raise ValueError(f"{info.field_name} must be set via environment or .techblog and not empty!")
        return v

    @field_validator(
        "RATE_LIMIT_REQUESTS",
        "RATE_LIMIT_PERIOD_SECONDS",
        "MAX_FILE_SIZE",
        "MAX_FILES_PER_REQUEST",
        mode="before",
    )
    @classmethod
    def validate_positive_integers(cls, v: Any, info: Any) -> int:
        """
        Validates that numeric settings are positive integers.

        Raises:
            ValueError: If the value is not a positive integer.
        """
        value = int(v)
        if value <= 0:
            raise ValueError(f"{info.field_name} must be a positive integer")
        return value

    @field_validator("DEFAULT_LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: Any) -> str:
        level = str(v).upper()
        if level not in ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"):
            raise ValueError("DEFAULT_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG")
        return level

    @property
    def is_production(self) -> bool:
        """
        Determine if the application is running in production mode.

        **Production mode** is defined as `DEBUG=False`: unhandled errors are reported with a
        generic message, CORS is restricted to `ALLOWED_ORIGINS`, and HSTS is sent.

        Returns:
            `bool`: `True` if running in production (`DEBUG=False`), `False` otherwise.
        """
        return not self.DEBUG

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Resolve the list of origins allowed by CORS.

        Development uses the local frontend dev servers; production uses `ALLOWED_ORIGINS`.
        `CORS_ORIGINS` is appended in both modes.
        """
        if self.is_production:
            origins = [o.strip() for o in (self.ALLOWED_ORIGINS or "").split(",") if o.strip()]
        else:
            origins = list(DEV_CORS_ORIGINS)
        if self.CORS_ORIGINS:
            origins.extend(o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip())
        return origins


# Global settings instance
settings: Settings = Settings()
