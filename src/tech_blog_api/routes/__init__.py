"""
# Routes Package

All routers are mounted under `settings.API_PREFIX` by `tech_blog_api.main`.
"""

from tech_blog_api.routes.categories import router as categories_router
from tech_blog_api.routes.comments import router as comments_router
from tech_blog_api.routes.contact import router as contact_router
from tech_blog_api.routes.health import router as health_router
from tech_blog_api.routes.posts import router as posts_router
from tech_blog_api.routes.upload import router as upload_router

__all__ = [
    "categories_router",
    "comments_router",
    "contact_router",
    "health_router",
    "posts_router",
    "upload_router",
]
