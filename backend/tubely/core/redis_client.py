"""
Tubely Async Redis Client Module

Async Redis client backing the ``redis`` thumbnail store. Values are kept as
raw bytes (``decode_responses=False``) because thumbnails are binary.

- Connection management with retry logic (3 attempts, exponential backoff)
- Hash operations for thumbnail payloads (``hset`` with a mapping, ``hgetall``)
- Startup/shutdown lifecycle functions

Usage:
    ```python
    from tubely.core.redis_client import init_redis

    client = await init_redis()
    await client.hset_mapping("thumbnail:abc", {"data": b"...", "media_type": "image/png"})
    fields = await client.hgetall("thumbnail:abc")
    ```
"""

import asyncio
import logging

import redis.asyncio as redis

from redis.exceptions import ConnectionError as RedisConnectionError, RedisError

from tubely.config import Settings, get_settings


logger = logging.getLogger(__name__)

CONNECT_MAX_RETRIES = 3


class _RedisClientContainer:
    """Container for Redis client singleton to avoid global statements."""

    client: "RedisClient | None" = None


_container = _RedisClientContainer()


class RedisClient:
    """
    Binary-safe async Redis client wrapper.

    Attributes:
        settings: Application settings containing the Redis URL
        _client: Underlying redis.asyncio client, None until connected
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._client: redis.Redis | None = None

    @staticmethod
    def _mask_url(url: str) -> str:
        """Hide credentials in a Redis URL for logging."""
        if "@" in url:
            return f"redis://***@{url.split('@')[-1]}"
        return url

    async def connect(self) -> bool:
        """
        Connect and ping Redis, retrying with exponential backoff.

        Returns:
            bool: True if connected, False after all attempts failed.
        """
        base_delay = 1.0

        for attempt in range(1, CONNECT_MAX_RETRIES + 1):
            try:
                self._client = redis.from_url(  # type: ignore[no-untyped-call]
                    self.settings.redis_url,
                    decode_responses=False,
                    socket_connect_timeout=5.0,
                    socket_timeout=5.0,
                )
                await self._client.ping()  # type: ignore[misc]
                logger.info(
                    "Connected to Redis",
                    extra={"url": self._mask_url(self.settings.redis_url)},
                )
                return True
            except RedisConnectionError as e:
                logger.warning(
                    "Redis connection failed (attempt %d/%d): %s",
                    attempt,
                    CONNECT_MAX_RETRIES,
                    str(e),
                )
                if attempt < CONNECT_MAX_RETRIES:
                    await asyncio.sleep(base_delay * (2 ** (attempt - 1)))

        logger.error("Failed to connect to Redis after %d attempts", CONNECT_MAX_RETRIES)
        self._client = None
        return False

    async def close(self) -> None:
        """Close the connection pool. Safe to call multiple times."""
        if self._client is not None:
            try:
                await self._client.aclose()
                logger.info("Redis connection closed")
            except RedisError:
                logger.exception("Error closing Redis connection")
            finally:
                self._client = None

    def _require_client(self) -> redis.Redis:
        if self._client is None:
            raise RuntimeError("Redis client not connected. Call connect() first.")
        return self._client

    async def hset_mapping(self, name: str, mapping: dict[str, bytes | str]) -> None:
        """
        Set several fields of a hash in one command.

        Raises:
            RedisError: If the command fails.
        """
        await self._require_client().hset(name, mapping=mapping)  # type: ignore[misc,arg-type]
        logger.debug("Set hash fields", extra={"name": name, "fields": sorted(mapping)})

    async def hgetall(self, name: str) -> dict[bytes, bytes]:
        """
        Get all fields of a hash as raw bytes; empty dict if it doesn't exist.

        Raises:
            RedisError: If the command fails.
        """
        result: dict[bytes, bytes] = await self._require_client().hgetall(name)  # type: ignore[misc]
        return result or {}


# =============================================================================
# Module-Level Initialization Functions
# =============================================================================


async def init_redis(settings: Settings | None = None) -> RedisClient:
    """
    Initialize and connect the global Redis client singleton.

    Raises:
        RuntimeError: If Redis connection fails after retry attempts.
    """
    if _container.client is not None:
        return _container.client

    client = RedisClient(settings)
    if not await client.connect():
        raise RuntimeError(
            "Failed to establish Redis connection. Check redis_url and server availability."
        )
    _container.client = client
    return client


async def close_redis() -> None:
    """Close the global Redis client, if any."""
    if _container.client is not None:
        await _container.client.close()
        _container.client = None
