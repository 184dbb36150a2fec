"""
Video Ingestion Pipeline for Tubely

``VideoUploadService.upload_video`` takes one uploaded video from raw bytes
to a durably stored, fast-start object with a public URL on its record:

    received -> authorized -> staged -> analyzed -> rewritten -> uploaded -> published

1. Authorized: the record exists and belongs to the caller.
2. The declared content type is checked against VIDEO_MEDIA_TYPES.
3. Staged: the upload is streamed to a temporary file.
4. Analyzed: ffprobe's display aspect ratio picks the orientation partition.
5. Rewritten: ffmpeg moves the container index to the front.
6. Uploaded: the rewritten file goes to S3 under ``<partition>/<random>.<ext>``.
7. Published: the public URL is written to ``video_url``.

Any failure stops the pipeline. Every temporary file is registered on an
AsyncExitStack as soon as its path is known, so it is removed on every
exit path. The current stage travels in the log context of each record.

An object uploaded in step 6 is not deleted if step 7 fails.
"""

import logging

from contextlib import AsyncExitStack
from enum import Enum
from typing import Protocol
from uuid import UUID

from tubely.config import Settings
from tubely.core.errors import InvalidInputError, TubelyError
from tubely.core.storage import generate_object_key
from tubely.models.video import VideoRecord
from tubely.services.media_processor import (
    MediaProcessor,
    classify_aspect_ratio,
    processing_output_path,
)
from tubely.services.ownership import resolve_owned_video
from tubely.services.video_repository import VideoRepository
from tubely.utils.logger import add_log_context
from tubely.utils.media_types import VIDEO_MEDIA_TYPES, classify_content_type
from tubely.utils.staging import AsyncReadable, discard_on_exit, staged_upload


logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    """Progress of a single upload request."""

    RECEIVED = "received"
    AUTHORIZED = "authorized"
    STAGED = "staged"
    ANALYZED = "analyzed"
    REWRITTEN = "rewritten"
    UPLOADED = "uploaded"
    PUBLISHED = "published"
    FAILED = "failed"


class UploadedPart(AsyncReadable, Protocol):
    """The slice of starlette's UploadFile the pipeline reads."""

    content_type: str | None


class ObjectStore(Protocol):
    async def upload_file(self, file_path: str, key: str, content_type: str) -> None: ...

    def public_url(self, key: str) -> str: ...


class VideoUploadService:
    """
    Runs the video ingestion pipeline.

    Collaborators are injected so tests can swap the media toolchain, the
    object store and the record store independently.
    """

    def __init__(
        self,
        repository: VideoRepository,
        media_processor: MediaProcessor,
        storage: ObjectStore,
        settings: Settings,
    ) -> None:
        self.repository = repository
        self.media_processor = media_processor
        self.storage = storage
        self.settings = settings

    async def upload_video(
        self,
        video_id: UUID,
        user_id: UUID,
        upload: UploadedPart | None,
    ) -> VideoRecord:
        """
        Ingest ``upload`` for ``video_id`` on behalf of ``user_id``.

        Returns:
            VideoRecord: The record with its new ``video_url``.

        Raises:
            UnauthorizedError: Unknown video or not owned by ``user_id``.
            InvalidInputError: Missing form part or unsupported content type.
            PayloadTooLargeError: Body exceeded the ingress limit.
            StagingError: The upload couldn't be written to a temporary file.
            MediaProcessingError: ffprobe or ffmpeg failed.
            StorageOperationError: The object upload failed.
            RecordStoreError: Reading or updating the record failed.
        """
        ctx_logger = add_log_context(
            logger,
            video_id=str(video_id),
            user_id=str(user_id),
            stage=PipelineStage.RECEIVED.value,
        )
        ctx_logger.info("Video upload received")

        try:
            video = await resolve_owned_video(self.repository, video_id, user_id)
            ctx_logger.bind(stage=PipelineStage.AUTHORIZED.value)

            if upload is None:
                raise InvalidInputError("Couldn't find video file in form field 'video'")
            media_type, extension = classify_content_type(upload.content_type, VIDEO_MEDIA_TYPES)

            async with AsyncExitStack() as stack:
                staged = await stack.enter_async_context(
                    staged_upload(
                        upload,
                        directory=self.settings.staging_dir,
                        chunk_size=self.settings.upload_chunk_size_bytes,
                        suffix=f".{extension}",
                    )
                )
                ctx_logger.bind(stage=PipelineStage.STAGED.value)
                ctx_logger.info("Upload staged", extra={"size": staged.size})

                aspect_ratio = await self.media_processor.inspect(staged.path)
                partition = classify_aspect_ratio(aspect_ratio)
                ctx_logger.bind(stage=PipelineStage.ANALYZED.value)
                ctx_logger.info(
                    "Video analyzed",
                    extra={"display_aspect_ratio": aspect_ratio, "partition": partition.value},
                )

                stack.enter_context(discard_on_exit(processing_output_path(staged.path)))
                processed_path = await self.media_processor.rewrite_for_streaming(staged.path)
                if processed_path != processing_output_path(staged.path):
                    stack.enter_context(discard_on_exit(processed_path))
                ctx_logger.bind(stage=PipelineStage.REWRITTEN.value)

                key = generate_object_key(partition.value, extension)
                await self.storage.upload_file(processed_path, key, media_type)
                ctx_logger.bind(stage=PipelineStage.UPLOADED.value)

                video.video_url = self.storage.public_url(key)
                updated = await self.repository.update(video)
                ctx_logger.bind(stage=PipelineStage.PUBLISHED.value)

        except TubelyError as e:
            ctx_logger.warning(
                "Video upload failed",
                extra={
                    "failed_stage": ctx_logger.extra["stage"],  # type: ignore[index]
                    "error_type": type(e).__name__,
                    "reason": str(e),
                },
            )
            ctx_logger.bind(stage=PipelineStage.FAILED.value)
            raise
        except Exception:
            ctx_logger.exception(
                "Video upload failed unexpectedly",
                extra={"failed_stage": ctx_logger.extra["stage"]},  # type: ignore[index]
            )
            ctx_logger.bind(stage=PipelineStage.FAILED.value)
            raise

        ctx_logger.info("Video published", extra={"key": key, "video_url": updated.video_url})
        return updated
