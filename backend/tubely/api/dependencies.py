"""
FastAPI dependency providers.

Each collaborator of the upload services has its own provider so tests can
replace exactly one of them through ``app.dependency_overrides``.
"""

from uuid import UUID

from fastapi import Depends, Request

from tubely.config import Settings, get_settings
from tubely.core.database import get_db_client
from tubely.core.storage import StorageClient, get_storage_client
from tubely.core.thumbnail_store import ThumbnailStore
from tubely.services.media_processor import FFmpegMediaProcessor, MediaProcessor
from tubely.services.ownership import parse_video_id
from tubely.services.thumbnail_service import ThumbnailService
from tubely.services.video_repository import VideoRepository
from tubely.services.video_upload_service import VideoUploadService


def get_video_id(video_id: str) -> UUID:
    """
    The ``video_id`` path parameter as a UUID.

    Declared ahead of the auth dependency on each route, so a malformed id is
    rejected with 400 before the token is looked at.
    """
    return parse_video_id(video_id)


def get_video_repository() -> VideoRepository:
    return VideoRepository(get_db_client().get_videos_collection())


def get_media_processor(settings: Settings = Depends(get_settings)) -> MediaProcessor:
    return FFmpegMediaProcessor(settings)


def get_storage(settings: Settings = Depends(get_settings)) -> StorageClient:
    return get_storage_client(settings)


def get_thumbnail_store(request: Request) -> ThumbnailStore:
    """The store created at startup and held on ``app.state``."""
    return request.app.state.thumbnail_store


def get_video_upload_service(
    repository: VideoRepository = Depends(get_video_repository),
    media_processor: MediaProcessor = Depends(get_media_processor),
    storage: StorageClient = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> VideoUploadService:
    return VideoUploadService(repository, media_processor, storage, settings)


def get_thumbnail_service(
    repository: VideoRepository = Depends(get_video_repository),
    store: ThumbnailStore = Depends(get_thumbnail_store),
    settings: Settings = Depends(get_settings),
) -> ThumbnailService:
    return ThumbnailService(repository, store, settings)
