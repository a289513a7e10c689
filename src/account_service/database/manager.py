"""
# Database Management Module

MongoDB connection lifecycle for the Account Service.

`DatabaseManager` owns the Motor client. It connects with exponential backoff, exposes
collections to the repositories and creates the indexes the service relies on.

## Index Catalog

| Collection | Fields | Type | Purpose |
|------------|--------|------|---------|
| `users` | `username` (1), `type` (1) | Unique | Username is unique per user type; races surface as conflicts |
| `users` | `type` (1), `created_at` (-1) | Compound | Default listing order per type |
| `users` | `institution` (1) | Single | Institution cascade on delete |
| `users` | `children` (1) | Single | Pulling a deleted child from families |
| `institutions` | `created_at` (-1) | Single | Default listing order |
| `children_groups` | `user_id` (1), `name` (1) | Compound | Group name lookup within an owner |
| `children_groups` | `children` (1) | Single | Pulling a deleted child from groups |

## Module Attributes

Attributes:
    db_logger (Logger): Logger for database operations (`[DATABASE]`).
    perf_logger (Logger): Logger for timing metrics (`[DB_PERFORMANCE]`).
    db_manager (DatabaseManager): Global singleton, connected in the FastAPI lifespan.
"""

import asyncio
import time
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

from account_service.config import settings
from account_service.managers.logging_manager import get_logger

db_logger = get_logger(prefix="[DATABASE]")
perf_logger = get_logger(prefix="[DB_PERFORMANCE]")

USERS_COLLECTION = "users"
INSTITUTIONS_COLLECTION = "institutions"
CHILDREN_GROUPS_COLLECTION = "children_groups"


class DatabaseManager:
    """
    Owns the Motor client and the selected database.

    Used as a singleton via the `db_manager` global instance. Connection happens in
    `connect()`; instantiation performs no I/O.
    """

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self._connection_retries = 3

    def _connection_string(self) -> str:
        if settings.MONGODB_USERNAME and settings.MONGODB_PASSWORD:
            password = settings.MONGODB_PASSWORD.get_secret_value()
            db_logger.debug("Using authenticated connection to MongoDB")
            return (
                f"mongodb://{settings.MONGODB_USERNAME}:{password}@"
                f"{settings.MONGODB_URL.replace('mongodb://', '')}"
            )
        db_logger.debug("Using unauthenticated connection to MongoDB")
        return settings.MONGODB_URL

    async def connect(self):
        """
        Establish the MongoDB connection, retrying with exponential backoff (1s, 2s).

        Raises:
            ServerSelectionTimeoutError: MongoDB unreachable after every attempt.
            ConnectionFailure: Authentication failed or connection refused on the last attempt.
        """
        start_time = time.time()
        db_logger.info("Starting MongoDB connection process")

        for attempt in range(self._connection_retries):
            attempt_start = time.time()
            try:
                db_logger.info("Connection attempt %d/%d to MongoDB", attempt + 1, self._connection_retries)
                db_logger.info(
                    "MongoDB connection config - URL: %s, Database: %s, ServerTimeout: %dms, ConnTimeout: %dms",
                    settings.MONGODB_URL,
                    settings.MONGODB_DATABASE,
                    settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    settings.MONGODB_CONNECTION_TIMEOUT,
                )

                self.client = AsyncIOMotorClient(
                    self._connection_string(),
                    serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    connectTimeoutMS=settings.MONGODB_CONNECTION_TIMEOUT,
                    tz_aware=True,
                )
                self.database = self.client[settings.MONGODB_DATABASE]

                ping_start = time.time()
                await self.client.admin.command("ping")
                ping_duration = time.time() - ping_start

                perf_logger.info(
                    "MongoDB connection established successfully in %.3fs (ping: %.3fs)",
                    time.time() - start_time,
                    ping_duration,
                )
                db_logger.info("Successfully connected to MongoDB database: %s", settings.MONGODB_DATABASE)
                return

            except (ServerSelectionTimeoutError, ConnectionFailure) as e:
                perf_logger.warning(
                    "Connection attempt %d failed after %.3fs", attempt + 1, time.time() - attempt_start
                )
                db_logger.warning(
                    "Failed to connect to MongoDB (attempt %d/%d): %s", attempt + 1, self._connection_retries, e
                )
                if attempt == self._connection_retries - 1:
                    db_logger.error("All connection attempts failed after %.3fs", time.time() - start_time)
                    raise

                backoff_time = 2**attempt
                db_logger.info("Waiting %.1fs before retry (exponential backoff)", backoff_time)
                await asyncio.sleep(backoff_time)

    async def disconnect(self):
        """Close the Motor client. Safe to call when not connected."""
        if self.client is None:
            db_logger.info("No MongoDB client to disconnect")
            return
        start_time = time.time()
        self.client.close()
        self.client = None
        self.database = None
        perf_logger.info("MongoDB disconnection completed in %.3fs", time.time() - start_time)
        db_logger.info("Successfully disconnected from MongoDB")

    async def health_check(self) -> bool:
        """Ping the server. Returns `False` instead of raising when the database is unreachable."""
        if self.client is None:
            db_logger.warning("Health check failed: no MongoDB client")
            return False
        try:
            await self.client.admin.command("ping")
            return True
        except PyMongoError as e:
            db_logger.error("Health check failed: %s", e)
            return False

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        """
        Return a Motor collection from the connected database.

        Raises:
            ConnectionError: If `connect()` has not been called.
        """
        if self.database is None:
            db_logger.error("Attempted to get collection '%s' without database connection", collection_name)
            raise ConnectionError("Database not connected. Call connect() first.")
        return self.database[collection_name]

    async def create_indexes(self):
        """Create the indexes listed in the module catalog. Existing indexes are left untouched."""
        start_time = time.time()
        db_logger.info("Starting database index creation process")

        users = self.get_collection(USERS_COLLECTION)
        await self._create_index_if_not_exists(
            users, [("username", 1), ("type", 1)], {"name": "username_type_unique", "unique": True}
        )
        await self._create_index_if_not_exists(users, [("type", 1), ("created_at", -1)], {"name": "type_created_at"})
        await self._create_index_if_not_exists(users, "institution", {"name": "institution_idx"})
        await self._create_index_if_not_exists(users, "children", {"name": "children_idx"})

        institutions = self.get_collection(INSTITUTIONS_COLLECTION)
        await self._create_index_if_not_exists(institutions, [("created_at", -1)], {"name": "created_at_desc"})

        groups = self.get_collection(CHILDREN_GROUPS_COLLECTION)
        await self._create_index_if_not_exists(groups, [("user_id", 1), ("name", 1)], {"name": "owner_name_idx"})
        await self._create_index_if_not_exists(groups, "children", {"name": "children_idx"})

        perf_logger.info("Database index creation completed in %.3fs", time.time() - start_time)
        db_logger.info("Database indexes created successfully")

    async def _create_index_if_not_exists(
        self, collection: AsyncIOMotorCollection, field_spec: Any, options: Dict[str, Any]
    ):
        """Create an index if it doesn't already exist"""
        start_time = time.time()
        try:
            await collection.create_index(field_spec, **options)
            perf_logger.debug("Created/ensured index '%s' in %.3fs", field_spec, time.time() - start_time)
        except PyMongoError as e:
            perf_logger.warning(
                "Failed to create/ensure index '%s' after %.3fs", field_spec, time.time() - start_time
            )
            db_logger.warning("Could not create/ensure index '%s': %s", field_spec, e)


db_manager = DatabaseManager()
