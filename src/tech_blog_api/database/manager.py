"""
# Database Manager

This module implements the `DatabaseManager`, which owns the **Motor** (async MongoDB) client
for the Tech Blog API. It handles connection establishment with retry, index creation,
health checks and graceful shutdown.

## Lifecycle

The manager is **constructed explicitly** in the FastAPI lifespan and stored on
`app.state.db_manager`. Route handlers receive it through the `get_db_manager` dependency
rather than importing a process-wide handle, so tests can inject a manager backed by mocks.

```python
manager = DatabaseManager(settings)
await manager.connect()
await manager.create_indexes()
posts = manager.get_collection("posts")
...
await manager.disconnect()
```

## Connection Pooling

- **Min Pool Size**: `MONGODB_MIN_POOL_SIZE` (default 5)
- **Max Pool Size**: `MONGODB_MAX_POOL_SIZE` (default 50)
- **Timeouts**: `MONGODB_SERVER_SELECTION_TIMEOUT`, `MONGODB_CONNECTION_TIMEOUT`

## Indexes

| Collection | Index | Options |
|------------|-------|---------|
| posts | `slug` | unique |
| posts | `(status, published_at desc)` | |
| posts | `(category, status)` | |
| posts | `tags`, `author`, `created_at desc`, `views desc` | |
| categories | `name` | unique |
| categories | `slug` | unique |
| categories | `(is_active, sort_order)`, `parent_category` | |
| comments | `(post_id, is_approved, created_at desc)`, `parent_id` | |

Attributes:
    db_logger (Logger): Logger for database operations (`[DATABASE]`).
    perf_logger (Logger): Logger for timing metrics (`[DB_PERFORMANCE]`).
    health_logger (Logger): Logger for health checks (`[DB_HEALTH]`).
"""

import asyncio
import time
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

from tech_blog_api.config import Settings
from tech_blog_api.managers.logging_manager import get_logger

db_logger = get_logger(prefix="[DATABASE]")
perf_logger = get_logger(prefix="[DB_PERFORMANCE]")
health_logger = get_logger(prefix="[DB_HEALTH]")


class DatabaseManager:
    """
    Manages the MongoDB connection, collections and indexes for the application.

    Attributes:
        settings (Settings): Configuration the connection is built from.
        client (Optional[AsyncIOMotorClient]): The Motor client, `None` until `connect()`.
        database (Optional[AsyncIOMotorDatabase]): The selected database, `None` until `connect()`.
    """

    def __init__(self, settings: Settings, connection_retries: int = 3):
        """
        Initialize the DatabaseManager with empty connection state.

        No network I/O happens here; the connection is established by `connect()`.

        Args:
            settings (Settings): Application settings holding the `MONGODB_*` values.
            connection_retries (int): Maximum connection attempts before giving up.
        """
        self.settings = settings
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self._connection_retries = connection_retries

    def _connection_string(self) -> str:
        settings = self.settings
        if settings.MONGODB_USERNAME and settings.MONGODB_PASSWORD:
            password = settings.MONGODB_PASSWORD.get_secret_value()
            db_logger.debug("Using authenticated connection to MongoDB")
            return (
                f"mongodb://{settings.MONGODB_USERNAME}:{password}@"
                f"{settings.MONGODB_URL.replace('mongodb://', '')}"
            )
        db_logger.debug("Using unauthenticated connection to MongoDB")
        return settings.MONGODB_URL

    async def connect(self) -> None:
        """
        Establish the connection to MongoDB with exponential backoff.

        Up to `connection_retries` attempts are made, waiting 1s, 2s, 4s... between them.
        Each attempt creates the client, selects the database and pings the server.

        Raises:
            ServerSelectionTimeoutError: If MongoDB is unreachable after all attempts.
            ConnectionFailure: If authentication fails on the last attempt.
        """
        start_time = time.time()
        db_logger.info("Starting MongoDB connection process")

        for attempt in range(self._connection_retries):
            attempt_start = time.time()
            try:
                db_logger.info("Connection attempt %d/%d to MongoDB", attempt + 1, self._connection_retries)
                db_logger.info(
                    "MongoDB connection config - Database: %s, MaxPool: %d, MinPool: %d, ServerTimeout: %dms, ConnTimeout: %dms",
                    self.settings.MONGODB_DATABASE,
                    self.settings.MONGODB_MAX_POOL_SIZE,
                    self.settings.MONGODB_MIN_POOL_SIZE,
                    self.settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    self.settings.MONGODB_CONNECTION_TIMEOUT,
                )

                self.client = AsyncIOMotorClient(
                    self._connection_string(),
                    serverSelectionTimeoutMS=self.settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    connectTimeoutMS=self.settings.MONGODB_CONNECTION_TIMEOUT,
                    maxPoolSize=self.settings.MONGODB_MAX_POOL_SIZE,
                    minPoolSize=self.settings.MONGODB_MIN_POOL_SIZE,
                    tz_aware=True,
                )
                self.database = self.client[self.settings.MONGODB_DATABASE]

                ping_start = time.time()
                await self.client.admin.command("ping")
                ping_duration = time.time() - ping_start

                perf_logger.info(
                    "MongoDB connection established successfully in %.3fs (ping: %.3fs)",
                    time.time() - start_time,
                    ping_duration,
                )
                db_logger.info("Successfully connected to MongoDB database: %s", self.settings.MONGODB_DATABASE)
                return

            except (ServerSelectionTimeoutError, ConnectionFailure) as e:
                perf_logger.warning("Connection attempt %d failed after %.3fs", attempt + 1, time.time() - attempt_start)
                db_logger.warning(
                    "Failed to connect to MongoDB (attempt %d/%d): %s", attempt + 1, self._connection_retries, e
                )
                if attempt == self._connection_retries - 1:
                    db_logger.error("All connection attempts failed after %.3fs", time.time() - start_time)
                    raise

                backoff_time = 2**attempt
                db_logger.info("Waiting %.1fs before retry (exponential backoff)", backoff_time)
                await asyncio.sleep(backoff_time)

    async def disconnect(self) -> None:
        """Close the Motor client and release the connection pool."""
        db_logger.info("Starting MongoDB disconnection process")
        if self.client is None:
            db_logger.warning("Disconnect called but no active MongoDB connection found")
            return

        start_time = time.time()
        self.client.close()
        self.client = None
        self.database = None
        perf_logger.info("MongoDB disconnection completed in %.3fs", time.time() - start_time)
        db_logger.info("Successfully disconnected from MongoDB")

    async def health_check(self) -> bool:
        """
        Ping the database.

        Returns:
            bool: `True` if the server answered the ping, `False` otherwise. Never raises.
        """
        start_time = time.time()
        if self.client is None:
            health_logger.warning("Health check failed: No database client available")
            return False

        try:
            await self.client.admin.command("ping")
            perf_logger.debug("Database health check completed in %.3fs", time.time() - start_time)
            return True
        except (ServerSelectionTimeoutError, ConnectionFailure) as e:
            health_logger.error("Database health check failed: %s", e)
            return False
        except PyMongoError as e:
            health_logger.error("Unexpected error during health check: %s", e)
            return False

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        """
        Retrieve a MongoDB collection by name.

        Args:
            collection_name (str): Collection name, e.g. `"posts"`.

        Returns:
            AsyncIOMotorCollection: The Motor collection.

        Raises:
            ConnectionError: If `connect()` has not been called.
        """
        if self.database is None:
            db_logger.error("Attempted to get collection '%s' without database connection", collection_name)
            raise ConnectionError("Database not connected. Call connect() first.")
        return self.database[collection_name]

    @property
    def posts(self) -> AsyncIOMotorCollection:
        return self.get_collection(self.settings.POSTS_COLLECTION)

    @property
    def categories(self) -> AsyncIOMotorCollection:
        return self.get_collection(self.settings.CATEGORIES_COLLECTION)

    @property
    def comments(self) -> AsyncIOMotorCollection:
        return self.get_collection(self.settings.COMMENTS_COLLECTION)

    @property
    def users(self) -> AsyncIOMotorCollection:
        return self.get_collection(self.settings.USERS_COLLECTION)

    async def create_indexes(self) -> None:
        """Create the indexes the blog collections rely on, including the unique slug/name indexes."""
        start_time = time.time()
        db_logger.info("Starting database index creation process")

        index_plan: Dict[str, List[tuple]] = {
            self.settings.POSTS_COLLECTION: [
                ("slug", {"unique": True}),
                ([("status", ASCENDING), ("published_at", DESCENDING)], {}),
                ([("category", ASCENDING), ("status", ASCENDING)], {}),
                ("tags", {}),
                ("author", {}),
                ([("created_at", DESCENDING)], {}),
                ([("views", DESCENDING)], {}),
            ],
            self.settings.CATEGORIES_COLLECTION: [
                ("name", {"unique": True}),
                ("slug", {"unique": True}),
                ([("is_active", ASCENDING), ("sort_order", ASCENDING)], {}),
                ("parent_category", {}),
            ],
            self.settings.COMMENTS_COLLECTION: [
                ([("post_id", ASCENDING), ("is_approved", ASCENDING), ("created_at", DESCENDING)], {}),
                ("parent_id", {}),
            ],
        }

        for collection_name, indexes in index_plan.items():
            db_logger.info("Creating indexes for '%s' collection", collection_name)
            collection = self.get_collection(collection_name)
            for field_spec, options in indexes:
                await self._create_index_if_not_exists(collection, field_spec, options)

        perf_logger.info("Database index creation completed in %.3fs", time.time() - start_time)
        db_logger.info("Database indexes created successfully")

    async def _create_index_if_not_exists(
        self, collection: AsyncIOMotorCollection, field_spec: Any, options: Dict[str, Any]
    ) -> None:
        """Create an index if it doesn't already exist. Failures on unique indexes are re-raised."""
        start_time = time.time()
        try:
            await collection.create_index(field_spec, **options)
            perf_logger.debug("Created/ensured index '%s' in %.3fs", field_spec, time.time() - start_time)
        except PyMongoError as e:
            perf_logger.warning("Failed to create/ensure index '%s' after %.3fs", field_spec, time.time() - start_time)
            db_logger.warning("Could not create/ensure index '%s': %s", field_spec, e)
            if options.get("unique"):
                db_logger.error("Unique index '%s' is required to enforce uniqueness", field_spec)
                raise
