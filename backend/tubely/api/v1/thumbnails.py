"""
FastAPI Thumbnail Router for Tubely

Endpoints:
- POST /thumbnail_upload/{video_id} - Store a PNG/JPEG thumbnail for an owned record
- GET /thumbnails/{video_id} - Serve a thumbnail held by the memory or Redis store
"""

import logging

from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response

from tubely.api.dependencies import get_thumbnail_service, get_video_id
from tubely.core.auth import get_current_user_id
from tubely.models.video import VideoRecord
from tubely.services.thumbnail_service import ThumbnailService


logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/thumbnail_upload/{video_id}",
    response_model=VideoRecord,
    summary="Upload a thumbnail",
    responses={
        400: {"description": "Invalid video id, missing file or unsupported media type"},
        401: {"description": "Missing or invalid JWT, or not the owner of the video"},
        413: {"description": "Thumbnail exceeds the size limit"},
        500: {"description": "Thumbnail store or record store failure"},
    },
)
async def upload_thumbnail(
    video_id: UUID = Depends(get_video_id),
    thumbnail: UploadFile | None = File(None, description="PNG or JPEG image"),
    user_id: UUID = Depends(get_current_user_id),
    service: ThumbnailService = Depends(get_thumbnail_service),
) -> VideoRecord:
    return await service.upload_thumbnail(video_id, user_id, thumbnail)


@router.get(
    "/thumbnails/{video_id}",
    summary="Get a thumbnail",
    response_class=Response,
    responses={
        200: {"content": {"image/png": {}, "image/jpeg": {}}},
        404: {"description": "No thumbnail stored for this video"},
    },
)
async def get_thumbnail(
    video_id: UUID = Depends(get_video_id),
    service: ThumbnailService = Depends(get_thumbnail_service),
) -> Response:
    """Serve the stored bytes with their media type."""
    thumbnail = await service.get_thumbnail(video_id)
    return Response(content=thumbnail.data, media_type=thumbnail.media_type)
