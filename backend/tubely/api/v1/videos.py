"""
FastAPI Video Router for Tubely

Endpoints:
- POST /video_upload/{video_id} - Ingest a video for an owned record
- GET /videos/{video_id} - Read an owned record

Errors are raised as TubelyError subclasses and rendered by the
application-level handlers as ``{"error": "<message>"}``.
"""

import logging

from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile, status

from tubely.api.dependencies import (
    get_video_id,
    get_video_repository,
    get_video_upload_service,
)
from tubely.core.auth import get_current_user_id
from tubely.models.video import VideoRecord
from tubely.services.ownership import resolve_owned_video
from tubely.services.video_repository import VideoRepository
from tubely.services.video_upload_service import VideoUploadService


logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"description": "Invalid video id, missing file or unsupported media type"},
    401: {"description": "Missing or invalid JWT, or not the owner of the video"},
    413: {"description": "Request body exceeds the upload limit"},
    500: {"description": "Processing, storage or record store failure"},
}


@router.post(
    "/video_upload/{video_id}",
    response_model=VideoRecord,
    status_code=status.HTTP_200_OK,
    summary="Upload a video",
    description="Multipart upload (field 'video', video/mp4) processed for fast-start playback.",
    responses=ERROR_RESPONSES,
)
async def upload_video(
    video_id: UUID = Depends(get_video_id),
    video: UploadFile | None = File(None, description="MP4 video file"),
    user_id: UUID = Depends(get_current_user_id),
    service: VideoUploadService = Depends(get_video_upload_service),
) -> VideoRecord:
    """
    Upload, process and publish a video for ``video_id``.

    Returns:
        VideoRecord: The record with its updated ``video_url``.
    """
    return await service.upload_video(video_id, user_id, video)


@router.get(
    "/videos/{video_id}",
    response_model=VideoRecord,
    summary="Get a video",
    responses={k: ERROR_RESPONSES[k] for k in (400, 401, 500)},
)
async def get_video(
    video_id: UUID = Depends(get_video_id),
    user_id: UUID = Depends(get_current_user_id),
    repository: VideoRepository = Depends(get_video_repository),
) -> VideoRecord:
    return await resolve_owned_video(repository, video_id, user_id)
