"""
Tubely S3-Compatible Storage Client

This module provides the object storage layer for processed videos using
boto3. It works against AWS S3 in production and MinIO in development,
selected by ``s3_endpoint_url``.

Key Features:
- Streaming upload of a local file with content-type metadata
- Orientation-partitioned, collision-resistant object keys
- Public URL composition (AWS virtual-hosted style or a configured base URL)
- Blocking boto3 calls moved off the event loop with asyncio.to_thread
- Exactly one attempt per upload (botocore retries disabled)
- Singleton accessor for resource efficiency
"""

import asyncio
import logging
import secrets

import boto3

from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from tubely.config import Settings, get_settings
from tubely.core.errors import StorageOperationError


# Configure module-level logger
logger = logging.getLogger(__name__)

# Random bytes behind each object name (43 url-safe base64 characters)
OBJECT_NAME_BYTES = 32

# Singleton container for storage client instance
_singleton_container: dict[str, "StorageClient"] = {}


def generate_object_key(partition: str, extension: str) -> str:
    """
    Build ``<partition>/<random>.<extension>``.

    The random part is 32 bytes from the OS CSPRNG, url-safe base64 encoded
    without padding.
    """
    return f"{partition}/{secrets.token_urlsafe(OBJECT_NAME_BYTES)}.{extension}"


class StorageClient:
    """
    S3-compatible storage client for processed video objects.

    Attributes:
        settings: Application settings containing S3 configuration
        s3_client: Initialized boto3 S3 client
        bucket_name: Target bucket for all operations

    Example usage:
        ```python
        from tubely.core.storage import generate_object_key, get_storage_client

        storage = get_storage_client()
        key = generate_object_key("landscape", "mp4")
        await storage.upload_file("/tmp/video.mp4.processing", key, "video/mp4")
        url = storage.public_url(key)
        ```
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """
        Initialize the boto3 S3 client from settings.

        When ``s3_endpoint_url`` is set the client talks to that endpoint with
        path-style addressing (MinIO); otherwise boto3 targets AWS S3.
        """
        self.settings = settings or get_settings()

        client_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
            retries={"max_attempts": 1, "mode": "standard"},
        )

        self.s3_client = boto3.client(
            "s3",
            endpoint_url=self.settings.s3_endpoint_url,
            aws_access_key_id=self.settings.s3_access_key_id,
            aws_secret_access_key=self.settings.s3_secret_access_key,
            region_name=self.settings.s3_region,
            config=client_config,
        )
        self.bucket_name = self.settings.s3_bucket_name

        logger.info(
            "S3 storage client initialized",
            extra={
                "bucket": self.bucket_name,
                "region": self.settings.s3_region,
                "endpoint": self.settings.s3_endpoint_url or "AWS S3 (default)",
            },
        )

    def _put_file(self, file_path: str, key: str, content_type: str) -> None:
        with open(file_path, "rb") as body:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=body,
                ContentType=content_type,
            )

    async def upload_file(self, file_path: str, key: str, content_type: str) -> None:
        """
        Stream a local file to ``key`` in the configured bucket.

        Args:
            file_path: Local path of the file to upload.
            key: Destination object key.
            content_type: Content-Type stored with the object.

        Raises:
            StorageOperationError: If the upload fails for any reason.
        """
        try:
            await asyncio.to_thread(self._put_file, file_path, key, content_type)
        except (ClientError, BotoCoreError, OSError) as e:
            logger.exception(
                "Failed to upload object",
                extra={"bucket": self.bucket_name, "key": key},
            )
            raise StorageOperationError(f"Failed to upload {key}: {e}") from e

        logger.info(
            "Uploaded object",
            extra={"bucket": self.bucket_name, "key": key, "content_type": content_type},
        )

    def public_url(self, key: str) -> str:
        """
        Public URL of ``key``.

        ``https://{bucket}.s3.{region}.amazonaws.com/{key}`` unless
        ``s3_public_base_url`` overrides it.
        """
        if self.settings.s3_public_base_url:
            return f"{self.settings.s3_public_base_url}/{key}"
        return f"https://{self.bucket_name}.s3.{self.settings.s3_region}.amazonaws.com/{key}"


def get_storage_client(settings: Settings | None = None) -> StorageClient:
    """
    Get or create the singleton StorageClient instance.

    Args:
        settings: Optional Settings used only on first creation.

    Returns:
        StorageClient: The shared storage client.
    """
    if "instance" not in _singleton_container:
        _singleton_container["instance"] = StorageClient(settings)
    return _singleton_container["instance"]


def reset_storage_client() -> None:
    """Drop the cached singleton (used by tests and on shutdown)."""
    _singleton_container.clear()
