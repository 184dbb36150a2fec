"""
Thumbnail upload handling.

Same id, authentication and ownership rules as video uploads, with the
thumbnail media-type allow-list and a smaller size cap. Thumbnails are read
into memory (they are capped at ``max_thumbnail_size_mb``) and handed to the
configured ThumbnailStore.
"""

import logging

from uuid import UUID

from tubely.config import Settings
from tubely.core.errors import InvalidInputError, NotFoundError, PayloadTooLargeError
from tubely.core.thumbnail_store import Thumbnail, ThumbnailStore
from tubely.models.video import VideoRecord
from tubely.services.ownership import resolve_owned_video
from tubely.services.video_repository import VideoRepository
from tubely.services.video_upload_service import UploadedPart
from tubely.utils.logger import add_log_context
from tubely.utils.media_types import THUMBNAIL_MEDIA_TYPES, classify_content_type


logger = logging.getLogger(__name__)


class ThumbnailService:
    def __init__(
        self,
        repository: VideoRepository,
        store: ThumbnailStore,
        settings: Settings,
    ) -> None:
        self.repository = repository
        self.store = store
        self.settings = settings

    async def upload_thumbnail(
        self,
        video_id: UUID,
        user_id: UUID,
        upload: UploadedPart | None,
    ) -> VideoRecord:
        """
        Store a thumbnail for ``video_id`` and record its URL.

        Raises:
            UnauthorizedError: Unknown video or not owned by ``user_id``.
            InvalidInputError: Missing form part or unsupported content type.
            PayloadTooLargeError: Thumbnail larger than ``max_thumbnail_size_mb``.
            StorageOperationError: The store rejected the write.
            RecordStoreError: Reading or updating the record failed.
        """
        ctx_logger = add_log_context(logger, video_id=str(video_id), user_id=str(user_id))

        video = await resolve_owned_video(self.repository, video_id, user_id)

        if upload is None:
            raise InvalidInputError("Couldn't find thumbnail in form field 'thumbnail'")
        media_type, extension = classify_content_type(upload.content_type, THUMBNAIL_MEDIA_TYPES)

        max_bytes = self.settings.max_thumbnail_size_bytes
        data = await upload.read(max_bytes + 1)
        if len(data) > max_bytes:
            ctx_logger.warning("Thumbnail too large", extra={"limit": max_bytes})
            raise PayloadTooLargeError(f"Thumbnail exceeds {max_bytes} bytes")

        video.thumbnail_url = await self.store.save(video_id, data, media_type, extension)
        updated = await self.repository.update(video)

        ctx_logger.info(
            "Thumbnail uploaded",
            extra={"media_type": media_type, "size": len(data), "url": updated.thumbnail_url},
        )
        return updated

    async def get_thumbnail(self, video_id: UUID) -> Thumbnail:
        """
        Raises:
            NotFoundError: If the store holds no thumbnail for ``video_id``.
        """
        thumbnail = await self.store.get(video_id)
        if thumbnail is None:
            raise NotFoundError("Thumbnail not found")
        return thumbnail
