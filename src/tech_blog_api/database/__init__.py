"""
# Database Package

The persistence layer of the Tech Blog API, built on **Motor** (async MongoDB driver).

- **`manager`**: The `DatabaseManager` that owns the client, the connection pool and the indexes.

There is no module-level singleton: the application lifespan constructs one manager and
publishes it on `app.state`, and `routes.dependencies.get_db_manager` hands it to handlers.
"""

from tech_blog_api.database.manager import DatabaseManager

__all__ = ["DatabaseManager"]
