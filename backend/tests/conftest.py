"""
Pytest Configuration and Test Fixtures for the Tubely Backend

This module provides shared fixtures including:
- Test Settings with an isolated staging directory and assets root
- A mocked record store (VideoRepository) backed by a dict
- A mocked S3 storage client
- A fake MediaProcessor that behaves like ffprobe/ffmpeg without processes
- Real JWTs signed with the test secret
- FastAPI TestClient with dependency overrides for authenticated requests
"""

import os

from collections.abc import Generator
from pathlib import Path
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest

from fastapi.testclient import TestClient

from tubely.api.dependencies import (
    get_media_processor,
    get_storage,
    get_thumbnail_store,
    get_video_repository,
)
from tubely.config import Settings, get_settings
from tubely.core.auth import create_access_token
from tubely.core.storage import StorageClient
from tubely.core.thumbnail_store import MemoryThumbnailStore
from tubely.main import app
from tubely.models.video import VideoRecord
from tubely.services.media_processor import processing_output_path
from tubely.services.video_repository import VideoRepository


# ==============================================================================
# Pytest Configuration
# ==============================================================================


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def staging_dir(tmp_path: Path) -> Path:
    path = tmp_path / "staging"
    path.mkdir()
    return path


@pytest.fixture
def test_settings(tmp_path: Path, staging_dir: Path) -> Settings:
    """Settings isolated from the environment and the real filesystem."""
    return Settings(
        _env_file=None,
        app_env="testing",
        app_name="tubely-test",
        debug=False,
        public_base_url="http://localhost:8091",
        secret_key="test-secret-key-for-jwt-signing-minimum-32-chars",
        jwt_algorithm="HS256",
        mongodb_uri="mongodb://localhost:27017",
        mongodb_db_name="tubely_test",
        s3_bucket_name="test-bucket",
        s3_region="us-east-1",
        s3_access_key_id="test-access-key",
        s3_secret_access_key="test-secret-key",
        staging_dir=str(staging_dir),
        upload_chunk_size_bytes=1024,
        thumbnail_store_backend="memory",
        assets_root=str(tmp_path / "assets"),
    )


# ==============================================================================
# Identity Fixtures
# ==============================================================================


@pytest.fixture
def owner_id() -> UUID:
    return uuid4()


@pytest.fixture
def other_user_id() -> UUID:
    return uuid4()


@pytest.fixture
def owner_token(test_settings: Settings, owner_id: UUID) -> str:
    return create_access_token(owner_id, settings=test_settings)


@pytest.fixture
def auth_headers(owner_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {owner_token}"}


@pytest.fixture
def other_user_headers(test_settings: Settings, other_user_id: UUID) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(other_user_id, settings=test_settings)}"}


# ==============================================================================
# Record Store Fixtures
# ==============================================================================


@pytest.fixture
def test_video(owner_id: UUID) -> VideoRecord:
    return VideoRecord(
        id=uuid4(),
        user_id=owner_id,
        title="Boots on the ground",
        description="A short clip",
    )


@pytest.fixture
def video_store(test_video: VideoRecord) -> dict[UUID, VideoRecord]:
    return {test_video.id: test_video}


@pytest.fixture
def mock_repository(video_store: dict[UUID, VideoRecord]) -> Mock:
    """VideoRepository mock reading from and writing to ``video_store``."""
    mock = Mock(spec=VideoRepository)

    async def _get(video_id: UUID) -> VideoRecord | None:
        video = video_store.get(video_id)
        return video.model_copy() if video is not None else None

    async def _update(video: VideoRecord) -> VideoRecord:
        video_store[video.id] = video.model_copy()
        return video

    mock.get = AsyncMock(side_effect=_get)
    mock.update = AsyncMock(side_effect=_update)
    mock.create = AsyncMock(side_effect=_update)
    return mock


# ==============================================================================
# Storage Fixtures
# ==============================================================================


@pytest.fixture
def mock_storage(test_settings: Settings) -> Mock:
    """StorageClient mock that records uploads without touching S3."""
    mock = Mock(spec=StorageClient)
    mock.bucket_name = test_settings.s3_bucket_name
    mock.upload_file = AsyncMock(return_value=None)
    mock.public_url = Mock(
        side_effect=lambda key: (
            f"https://{test_settings.s3_bucket_name}.s3.{test_settings.s3_region}"
            f".amazonaws.com/{key}"
        )
    )
    return mock


# ==============================================================================
# Media Processing Fixtures
# ==============================================================================


class FakeMediaProcessor:
    """
    MediaProcessor stand-in.

    ``inspect`` returns a preset ratio (or raises ``inspect_error``);
    ``rewrite_for_streaming`` copies the input to ``<path>.processing``.
    The calls and any file contents seen are recorded for assertions.
    """

    def __init__(self, aspect_ratio: str = "16:9") -> None:
        self.aspect_ratio = aspect_ratio
        self.inspect_error: Exception | None = None
        self.rewrite_error: Exception | None = None
        self.inspected: list[str] = []
        self.rewritten: list[str] = []
        self.staged_bytes: bytes | None = None

    async def inspect(self, path: str) -> str:
        self.inspected.append(path)
        with open(path, "rb") as handle:
            self.staged_bytes = handle.read()
        if self.inspect_error is not None:
            raise self.inspect_error
        return self.aspect_ratio

    async def rewrite_for_streaming(self, path: str) -> str:
        self.rewritten.append(path)
        output = processing_output_path(path)
        with open(path, "rb") as src, open(output, "wb") as dst:
            dst.write(src.read())
        if self.rewrite_error is not None:
            raise self.rewrite_error
        return output


@pytest.fixture
def fake_processor() -> FakeMediaProcessor:
    return FakeMediaProcessor()


# ==============================================================================
# Test Client Fixtures
# ==============================================================================


@pytest.fixture
def thumbnail_store(test_settings: Settings) -> MemoryThumbnailStore:
    return MemoryThumbnailStore(test_settings.public_base_url)


@pytest.fixture
def authed_test_client(
    test_settings: Settings,
    mock_repository: Mock,
    mock_storage: Mock,
    fake_processor: FakeMediaProcessor,
    thumbnail_store: MemoryThumbnailStore,
) -> Generator[TestClient, None, None]:
    """TestClient with every external collaborator replaced."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_video_repository] = lambda: mock_repository
    app.dependency_overrides[get_storage] = lambda: mock_storage
    app.dependency_overrides[get_media_processor] = lambda: fake_processor
    app.dependency_overrides[get_thumbnail_store] = lambda: thumbnail_store

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()


@pytest.fixture
def mp4_bytes() -> bytes:
    """Enough bytes to span several staging chunks."""
    return b"\x00\x00\x00\x18ftypmp42" + os.urandom(5000)
