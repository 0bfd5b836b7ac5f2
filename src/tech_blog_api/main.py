"""
# Tech Blog API - Main Application Module

Entry point and lifecycle orchestrator for the Tech Blog API.

**Startup** (`lifespan`):
1.  Connect to MongoDB through `DatabaseManager` (with retries).
2.  Create the collection indexes.
3.  Make sure the upload directories exist.
4.  Publish the manager on `app.state.db_manager` for request dependencies.

**Shutdown**: close the MongoDB client.

**Request pipeline** (outermost first): CORS, request logging, security headers,
per-IP rate limiting on `/api/`, then the routers mounted under `settings.API_PREFIX`.
Uploaded files are served from `settings.UPLOAD_URL_PREFIX` and Prometheus metrics from
`/metrics`.

**Errors**: every error, including request validation failures and unknown routes, is
rendered as the `{success: false, message, errors?}` envelope.

Usage:
    ```bash
    uvicorn tech_blog_api.main:app --reload
    # or
    python -m tech_blog_api.main
    ```
"""

from contextlib import asynccontextmanager
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from tech_blog_api.config import settings
from tech_blog_api.database import DatabaseManager
from tech_blog_api.managers.logging_manager import get_logger
from tech_blog_api.managers.upload_manager import UploadManager
from tech_blog_api.models.common import envelope
from tech_blog_api.routes import categories_router, comments_router, contact_router, health_router
from tech_blog_api.routes import posts_router, upload_router
from tech_blog_api.utils.errors import BlogAPIError
from tech_blog_api.utils.logging_utils import (
    RequestLoggingMiddleware,
    log_application_lifecycle,
    log_error_with_context,
)
from tech_blog_api.utils.rate_limit import InMemoryRateLimiter, RateLimitMiddleware
from tech_blog_api.utils.security_headers import SecurityHeadersMiddleware

logger = get_logger(prefix="[MAIN]")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Connect to the database on startup and release it on shutdown."""
    startup_start_time = time.time()
    log_application_lifecycle(
        "startup_initiated",
        {"environment": "production" if settings.is_production else "development", "port": settings.PORT},
    )

    db_manager = DatabaseManager(settings)
    try:
        db_connect_start = time.time()
        await db_manager.connect()
        log_application_lifecycle(
            "database_connected",
            {"database": settings.MONGODB_DATABASE, "duration": f"{time.time() - db_connect_start:.3f}s"},
        )

        await db_manager.create_indexes()
        log_application_lifecycle("database_indexes_ready")

        UploadManager(settings).ensure_directories()
        _app.state.db_manager = db_manager

        log_application_lifecycle(
            "startup_completed", {"duration": f"{time.time() - startup_start_time:.3f}s"}
        )
    except Exception as e:
        log_error_with_context(e, {"operation": "application_startup"})
        raise

    yield

    shutdown_start_time = time.time()
    log_application_lifecycle("shutdown_initiated")
    try:
        await db_manager.disconnect()
        log_application_lifecycle("database_disconnected")
    except Exception as e:
        log_error_with_context(e, {"operation": "database_disconnect"})
    finally:
        _app.state.db_manager = None
    log_application_lifecycle(
        "shutdown_completed", {"duration": f"{time.time() - shutdown_start_time:.3f}s"}
    )


app = FastAPI(
    title="Tech Blog API",
    description="REST backend for a technology blog: posts, categories, comments and image uploads.",
    version="1.0.0",
    lifespan=lifespan,
    redirect_slashes=False,
)
app.state.db_manager = None

rate_limiter = InMemoryRateLimiter(settings.RATE_LIMIT_REQUESTS, settings.RATE_LIMIT_PERIOD_SECONDS)
app.state.rate_limiter = rate_limiter

# Registered innermost first.
app.add_middleware(
    RateLimitMiddleware,
    limiter=rate_limiter,
    path_prefix=f"{settings.API_PREFIX}/",
    enabled=settings.RATE_LIMIT_ENABLED,
)
app.add_middleware(SecurityHeadersMiddleware, enable_hsts=settings.is_production)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)


def _error_response(status_code: int, message: str, errors=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=envelope(success=False, message=message, errors=errors))


@app.exception_handler(BlogAPIError)
async def blog_api_error_handler(request: Request, exc: BlogAPIError):
    return _error_response(exc.status_code, exc.message, exc.errors)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(location), "message": error.get("msg", "Invalid value")})
    return _error_response(400, "Validation failed", errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return _error_response(404, "API endpoint not found")
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    log_error_with_context(exc, {"method": request.method, "path": request.url.path})
    message = "Something went wrong!" if settings.is_production else str(exc)
    return _error_response(500, message)


routers_config = [
    ("health", health_router, "Liveness and database status"),
    ("posts", posts_router, "Blog post listing, reading and authoring"),
    ("categories", categories_router, "Category tree and management"),
    ("comments", comments_router, "Comment submission and moderation"),
    ("upload", upload_router, "Image uploads and stored files"),
    ("contact", contact_router, "Contact form"),
]

for router_name, router, description in routers_config:
    try:
        app.include_router(router, prefix=settings.API_PREFIX)
        logger.info("Router included: %s (%s)", router_name, description)
    except Exception as e:
        log_error_with_context(e, {"operation": "router_inclusion", "router": router_name})
        raise

app.mount(
    settings.UPLOAD_URL_PREFIX,
    StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
    name="uploads",
)

try:
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_respect_env_var=False,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/metrics"],
    )
    instrumentator.instrument(app).expose(app, include_in_schema=False, endpoint="/metrics")
    logger.info("Prometheus instrumentation enabled at /metrics")
except Exception as e:
    log_error_with_context(e, {"operation": "instrumentation_setup"})


if __name__ == "__main__":
    uvicorn.run(
        "tech_blog_api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.DEFAULT_LOG_LEVEL.lower(),
    )
