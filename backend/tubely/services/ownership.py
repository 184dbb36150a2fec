"""
Video id parsing and ownership checks shared by every video-scoped endpoint.

A lookup miss and an owner mismatch produce the same UnauthorizedError so
callers can't probe which video ids exist.
"""

import logging

from uuid import UUID

from tubely.core.errors import InvalidInputError, UnauthorizedError
from tubely.models.video import VideoRecord
from tubely.services.video_repository import VideoRepository


logger = logging.getLogger(__name__)

NOT_OWNER_MESSAGE = "Not the owner of the video"


def parse_video_id(raw: str) -> UUID:
    """
    Parse a path parameter as a UUID.

    Raises:
        InvalidInputError: If ``raw`` is not a valid UUID.
    """
    try:
        return UUID(raw)
    except (ValueError, AttributeError, TypeError) as e:
        raise InvalidInputError("Invalid ID") from e


async def resolve_owned_video(
    repository: VideoRepository, video_id: UUID, user_id: UUID
) -> VideoRecord:
    """
    Fetch ``video_id`` and confirm ``user_id`` owns it.

    Raises:
        UnauthorizedError: If the video doesn't exist or belongs to someone else.
        RecordStoreError: If the lookup itself fails.
    """
    video = await repository.get(video_id)
    if video is None:
        logger.info(
            "Video lookup miss", extra={"video_id": str(video_id), "user_id": str(user_id)}
        )
        raise UnauthorizedError(NOT_OWNER_MESSAGE)
    if video.user_id != user_id:
        logger.warning(
            "Ownership mismatch",
            extra={"video_id": str(video_id), "user_id": str(user_id)},
        )
        raise UnauthorizedError(NOT_OWNER_MESSAGE)
    return video
