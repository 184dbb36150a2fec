"""
Tubely MongoDB Database Client Module

Async MongoDB connection management for the Tubely video record store using
Motor. It provides:
- Connection pooling with configurable pool sizes
- Connection retry with exponential backoff at startup
- Accessor for the ``videos`` collection and its indexes
- Startup/shutdown lifecycle functions for FastAPI integration
"""

import asyncio
import logging

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from tubely.config import Settings, get_settings


logger = logging.getLogger(__name__)

VIDEOS_COLLECTION = "videos"

CONNECT_MAX_RETRIES = 3
SERVER_SELECTION_TIMEOUT_MS = 5000


class DatabaseClient:
    """
    Async MongoDB client wrapper with connection pooling and lifecycle management.

    Example usage:
        ```python
        db_client = DatabaseClient(get_settings())
        await db_client.connect()

        videos = db_client.get_videos_collection()
        await videos.find_one({"_id": "..."})

        await db_client.close()
        ```
    """

    def __init__(self, settings: Settings) -> None:
        self._mongodb_uri = settings.mongodb_uri
        self._db_name = settings.mongodb_db_name
        self._min_pool_size = settings.mongodb_min_pool_size
        self._max_pool_size = settings.mongodb_max_pool_size
        self._client: AsyncIOMotorClient | None = None
        self._database: AsyncIOMotorDatabase | None = None

    async def connect(self) -> bool:
        """
        Establish the MongoDB connection, retrying with exponential backoff.

        Returns:
            bool: True if the server answered a ping, False after all retries failed.
        """
        retry_delay = 1.0

        for attempt in range(1, CONNECT_MAX_RETRIES + 1):
            try:
                logger.info(
                    "Attempting MongoDB connection",
                    extra={"attempt": attempt, "max_retries": CONNECT_MAX_RETRIES},
                )
                self._client = AsyncIOMotorClient(
                    self._mongodb_uri,
                    minPoolSize=self._min_pool_size,
                    maxPoolSize=self._max_pool_size,
                    serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS,
                    tz_aware=True,
                )
                self._database = self._client[self._db_name]
                await self._client.admin.command("ping")

                logger.info("Connected to MongoDB", extra={"database": self._db_name})
                return True

            except (ServerSelectionTimeoutError, ConnectionFailure):
                logger.exception(
                    "MongoDB connection failed",
                    extra={"attempt": attempt, "max_retries": CONNECT_MAX_RETRIES},
                )
                if attempt < CONNECT_MAX_RETRIES:
                    await asyncio.sleep(retry_delay)
                    retry_delay *= 2

        logger.error(
            "Failed to connect to MongoDB; check mongodb_uri and server availability",
            extra={"attempts": CONNECT_MAX_RETRIES},
        )
        return False

    async def close(self) -> None:
        """Close the Motor client. Safe to call when not connected."""
        if self._client is not None:
            self._client.close()
            logger.info("MongoDB connection closed", extra={"database": self._db_name})
        self._client = None
        self._database = None

    def get_database(self) -> AsyncIOMotorDatabase:
        """
        Raises:
            RuntimeError: If not connected to MongoDB.
        """
        if self._database is None:
            raise RuntimeError(
                "MongoDB database not available. Call connect() first or check connection status."
            )
        return self._database

    def get_videos_collection(self) -> AsyncIOMotorCollection:
        """
        Get the videos collection holding VideoRecord documents.

        Documents are keyed by the video id (``_id``) and carry the owner's
        ``user_id``, title, description, the thumbnail and video URLs and
        the creation/update timestamps.
        """
        return self.get_database()[VIDEOS_COLLECTION]

    async def create_indexes(self) -> None:
        """Create the indexes used by owner lookups."""
        videos = self.get_videos_collection()
        await videos.create_index("user_id")
        await videos.create_index([("user_id", 1), ("created_at", -1)])
        logger.info("MongoDB indexes created", extra={"collection": VIDEOS_COLLECTION})


class _DatabaseClientContainer:
    """Container for database client singleton to avoid global statements."""

    client: DatabaseClient | None = None


_container = _DatabaseClientContainer()


async def init_db(settings: Settings | None = None) -> DatabaseClient:
    """
    Initialize the global database client singleton.

    Connects to MongoDB and creates indexes. Called during FastAPI startup.

    Raises:
        RuntimeError: If the connection fails after all retries.
    """
    if _container.client is not None:
        logger.warning("Database client already initialized, returning existing instance")
        return _container.client

    client = DatabaseClient(settings or get_settings())
    if not await client.connect():
        raise RuntimeError(
            "Failed to establish MongoDB connection. "
            "Check mongodb_uri configuration and server availability."
        )
    await client.create_indexes()

    _container.client = client
    return client


async def close_db() -> None:
    """Close the global database client, if any."""
    if _container.client is not None:
        await _container.client.close()
        _container.client = None


def get_db_client() -> DatabaseClient:
    """
    Get the global database client singleton instance.

    Raises:
        RuntimeError: If init_db() has not been called.
    """
    if _container.client is None:
        raise RuntimeError(
            "Database client not initialized. Call init_db() first during application startup."
        )
    return _container.client
