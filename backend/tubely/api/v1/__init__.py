"""
Tubely API v1 Router Aggregator.

Combines the v1 endpoint routers into a single APIRouter that the
application mounts under the /api/v1 prefix.

Router Structure:
    - /video_upload/{video_id}, /videos/{video_id}: Video ingestion and reads
    - /thumbnail_upload/{video_id}, /thumbnails/{video_id}: Thumbnails
"""

import logging

from fastapi import APIRouter

from tubely.api.v1.thumbnails import router as thumbnails_router
from tubely.api.v1.videos import router as videos_router


logger = logging.getLogger(__name__)

api_router = APIRouter()

api_router.include_router(videos_router, tags=["videos"])
api_router.include_router(thumbnails_router, tags=["thumbnails"])


__all__ = ["api_router"]
