"""
MongoDB-backed record store for videos.

Thin wrapper over the Motor ``videos`` collection. Driver errors are logged
and re-raised as RecordStoreError so the API layer can render an opaque 500.
"""

import logging

from datetime import UTC, datetime
from uuid import UUID

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from tubely.core.errors import RecordStoreError
from tubely.models.video import VideoRecord


logger = logging.getLogger(__name__)


class VideoRepository:
    """
    Record store operations for VideoRecord documents.

    Example usage:
        ```python
        repository = VideoRepository(get_db_client().get_videos_collection())
        video = await repository.get(video_id)
        video.video_url = url
        await repository.update(video)
        ```
    """

    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self.collection = collection

    async def get(self, video_id: UUID) -> VideoRecord | None:
        """Return the record for ``video_id`` or None if it doesn't exist."""
        try:
            document = await self.collection.find_one({"_id": str(video_id)})
        except PyMongoError as e:
            logger.exception("Failed to fetch video", extra={"video_id": str(video_id)})
            raise RecordStoreError(f"Failed to fetch video {video_id}") from e

        if document is None:
            return None
        return VideoRecord.from_document(document)

    async def create(self, video: VideoRecord) -> VideoRecord:
        """Insert a new record."""
        try:
            await self.collection.insert_one(video.to_document())
        except PyMongoError as e:
            logger.exception("Failed to create video", extra={"video_id": str(video.id)})
            raise RecordStoreError(f"Failed to create video {video.id}") from e

        logger.info(
            "Created video", extra={"video_id": str(video.id), "user_id": str(video.user_id)}
        )
        return video

    async def update(self, video: VideoRecord) -> VideoRecord:
        """
        Persist the mutable fields of ``video`` and bump ``updated_at``.

        Concurrent updates to the same record are last-write-wins.

        Raises:
            RecordStoreError: If the write fails or the record no longer exists.
        """
        updated = video.model_copy(update={"updated_at": datetime.now(UTC)})
        fields = {
            "title": updated.title,
            "description": updated.description,
            "thumbnail_url": updated.thumbnail_url,
            "video_url": updated.video_url,
            "updated_at": updated.updated_at,
        }
        try:
            result = await self.collection.update_one({"_id": str(video.id)}, {"$set": fields})
        except PyMongoError as e:
            logger.exception("Failed to update video", extra={"video_id": str(video.id)})
            raise RecordStoreError(f"Failed to update video {video.id}") from e

        if result.matched_count == 0:
            logger.error("Video disappeared before update", extra={"video_id": str(video.id)})
            raise RecordStoreError(f"Video {video.id} not found for update")

        return updated
