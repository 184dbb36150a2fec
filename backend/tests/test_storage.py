"""S3 storage client tests with boto3 patched out."""

import re

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from botocore.exceptions import ClientError, EndpointConnectionError

from tubely.config import Settings
from tubely.core.errors import StorageOperationError
from tubely.core.storage import StorageClient, generate_object_key


@pytest.fixture
def s3_mock() -> MagicMock:
    return MagicMock()


@pytest.fixture
def storage(test_settings: Settings, s3_mock: MagicMock) -> StorageClient:
    with patch("tubely.core.storage.boto3.client", return_value=s3_mock):
        return StorageClient(test_settings)


@pytest.fixture
def processed_file(tmp_path: Path) -> Path:
    path = tmp_path / "upload.mp4.processing"
    path.write_bytes(b"faststart bytes")
    return path


class TestGenerateObjectKey:
    def test_format(self) -> None:
        key = generate_object_key("landscape", "mp4")
        assert re.fullmatch(r"landscape/[A-Za-z0-9_-]{43}\.mp4", key)

    def test_keys_are_unique(self) -> None:
        keys = {generate_object_key("other", "mp4") for _ in range(1000)}
        assert len(keys) == 1000

    @pytest.mark.parametrize("extension", ["mp4", "png", "jpeg"])
    def test_extension(self, extension: str) -> None:
        assert generate_object_key("portrait", extension).endswith(f".{extension}")


class TestStorageClientInit:
    def test_single_attempt_configuration(self, test_settings: Settings) -> None:
        with patch("tubely.core.storage.boto3.client") as client_factory:
            StorageClient(test_settings)

        kwargs = client_factory.call_args.kwargs
        assert client_factory.call_args.args == ("s3",)
        assert kwargs["region_name"] == "us-east-1"
        assert kwargs["config"].retries["max_attempts"] == 1


class TestUploadFile:
    @pytest.mark.asyncio
    async def test_put_object(
        self, storage: StorageClient, s3_mock: MagicMock, processed_file: Path
    ) -> None:
        await storage.upload_file(str(processed_file), "landscape/abc.mp4", "video/mp4")

        s3_mock.put_object.assert_called_once()
        kwargs = s3_mock.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "test-bucket"
        assert kwargs["Key"] == "landscape/abc.mp4"
        assert kwargs["ContentType"] == "video/mp4"
        assert kwargs["Body"].name == str(processed_file)

    @pytest.mark.asyncio
    async def test_client_error(
        self, storage: StorageClient, s3_mock: MagicMock, processed_file: Path
    ) -> None:
        s3_mock.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "PutObject"
        )

        with pytest.raises(StorageOperationError):
            await storage.upload_file(str(processed_file), "landscape/abc.mp4", "video/mp4")
        assert s3_mock.put_object.call_count == 1

    @pytest.mark.asyncio
    async def test_connection_error(
        self, storage: StorageClient, s3_mock: MagicMock, processed_file: Path
    ) -> None:
        s3_mock.put_object.side_effect = EndpointConnectionError(endpoint_url="http://s3")

        with pytest.raises(StorageOperationError):
            await storage.upload_file(str(processed_file), "landscape/abc.mp4", "video/mp4")

    @pytest.mark.asyncio
    async def test_missing_local_file(self, storage: StorageClient, tmp_path: Path) -> None:
        with pytest.raises(StorageOperationError):
            await storage.upload_file(str(tmp_path / "gone"), "other/abc.mp4", "video/mp4")


class TestPublicUrl:
    def test_aws_url(self, storage: StorageClient) -> None:
        assert (
            storage.public_url("portrait/abc.mp4")
            == "https://test-bucket.s3.us-east-1.amazonaws.com/portrait/abc.mp4"
        )

    def test_public_base_url_override(self, test_settings: Settings) -> None:
        settings = test_settings.model_copy(
            update={"s3_public_base_url": "http://localhost:9000/test-bucket"}
        )
        with patch("tubely.core.storage.boto3.client"):
            storage = StorageClient(settings)

        assert storage.public_url("other/abc.mp4") == "http://localhost:9000/test-bucket/other/abc.mp4"
