"""
Thumbnail storage backends.

Every backend implements ``save(video_id, data, media_type, extension) -> url``
and ``get(video_id) -> Thumbnail | None``:

- DiskThumbnailStore writes ``<assets_root>/<random>.<ext>``; the file is
  served by the ``/assets`` static mount so ``get`` always returns None.
- MemoryThumbnailStore keeps thumbnails in a dict owned by the store
  instance, which is created at startup and held on ``app.state``.
- RedisThumbnailStore keeps them in the hash ``thumbnail:{video_id}`` with
  fields ``data`` and ``media_type``.

Memory and Redis URLs point at ``GET /api/v1/thumbnails/{video_id}``.
"""

import asyncio
import logging
import os
import secrets

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

import aiofiles

from redis.exceptions import RedisError

from tubely.config import Settings
from tubely.core.errors import StorageOperationError
from tubely.core.redis_client import RedisClient


logger = logging.getLogger(__name__)

THUMBNAIL_NAME_BYTES = 32
REDIS_KEY_PREFIX = "thumbnail"


@dataclass(frozen=True)
class Thumbnail:
    data: bytes
    media_type: str


class ThumbnailStore(Protocol):
    async def save(self, video_id: UUID, data: bytes, media_type: str, extension: str) -> str: ...

    async def get(self, video_id: UUID) -> Thumbnail | None: ...


def thumbnail_route_url(public_base_url: str, video_id: UUID) -> str:
    return f"{public_base_url}/api/v1/thumbnails/{video_id}"


class DiskThumbnailStore:
    """Thumbnails as files under ``assets_root``, served from ``/assets``."""

    def __init__(self, assets_root: str, public_base_url: str) -> None:
        self.assets_root = assets_root
        self.public_base_url = public_base_url
        os.makedirs(self.assets_root, exist_ok=True)

    async def save(self, video_id: UUID, data: bytes, media_type: str, extension: str) -> str:
        filename = f"{secrets.token_urlsafe(THUMBNAIL_NAME_BYTES)}.{extension}"
        path = os.path.join(self.assets_root, filename)
        try:
            async with aiofiles.open(path, "wb") as handle:
                await handle.write(data)
        except OSError as e:
            logger.exception("Failed to write thumbnail", extra={"path": path})
            raise StorageOperationError(f"Failed to write thumbnail {path}") from e

        logger.info(
            "Saved thumbnail to disk",
            extra={"video_id": str(video_id), "path": path, "size": len(data)},
        )
        return f"{self.public_base_url}/assets/{filename}"

    async def get(self, video_id: UUID) -> Thumbnail | None:
        return None


class MemoryThumbnailStore:
    """Process-local thumbnails, lost on restart."""

    def __init__(self, public_base_url: str) -> None:
        self.public_base_url = public_base_url
        self._thumbnails: dict[UUID, Thumbnail] = {}
        self._lock = asyncio.Lock()

    async def save(self, video_id: UUID, data: bytes, media_type: str, extension: str) -> str:
        async with self._lock:
            self._thumbnails[video_id] = Thumbnail(data=data, media_type=media_type)
        logger.info(
            "Saved thumbnail in memory", extra={"video_id": str(video_id), "size": len(data)}
        )
        return thumbnail_route_url(self.public_base_url, video_id)

    async def get(self, video_id: UUID) -> Thumbnail | None:
        async with self._lock:
            return self._thumbnails.get(video_id)


class RedisThumbnailStore:
    """Thumbnails in Redis hashes shared by every worker."""

    def __init__(self, client: RedisClient, public_base_url: str) -> None:
        self.client = client
        self.public_base_url = public_base_url

    @staticmethod
    def _key(video_id: UUID) -> str:
        return f"{REDIS_KEY_PREFIX}:{video_id}"

    async def save(self, video_id: UUID, data: bytes, media_type: str, extension: str) -> str:
        try:
            await self.client.hset_mapping(
                self._key(video_id), {"data": data, "media_type": media_type}
            )
        except RedisError as e:
            logger.exception("Failed to store thumbnail in Redis", extra={"video_id": str(video_id)})
            raise StorageOperationError(f"Failed to store thumbnail for {video_id}") from e

        logger.info(
            "Saved thumbnail in Redis", extra={"video_id": str(video_id), "size": len(data)}
        )
        return thumbnail_route_url(self.public_base_url, video_id)

    async def get(self, video_id: UUID) -> Thumbnail | None:
        try:
            fields = await self.client.hgetall(self._key(video_id))
        except RedisError as e:
            logger.exception("Failed to read thumbnail from Redis", extra={"video_id": str(video_id)})
            raise StorageOperationError(f"Failed to read thumbnail for {video_id}") from e

        if b"data" not in fields or b"media_type" not in fields:
            return None
        return Thumbnail(data=fields[b"data"], media_type=fields[b"media_type"].decode("utf-8"))


def build_thumbnail_store(settings: Settings, redis_client: RedisClient | None = None) -> ThumbnailStore:
    """
    Create the backend named by ``thumbnail_store_backend``.

    Raises:
        ValueError: If the redis backend is selected without a client.
    """
    backend = settings.thumbnail_store_backend
    if backend == "memory":
        return MemoryThumbnailStore(settings.public_base_url)
    if backend == "redis":
        if redis_client is None:
            raise ValueError("The redis thumbnail backend requires a connected RedisClient")
        return RedisThumbnailStore(redis_client, settings.public_base_url)
    return DiskThumbnailStore(settings.assets_root, settings.public_base_url)
