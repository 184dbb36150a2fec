"""
Tubely Configuration Management Module

This module provides configuration management for the Tubely video ingestion
service using Pydantic Settings. It loads and validates all environment
variables required for:
- Application settings (name, environment, debug mode, logging, public URL)
- MongoDB connection for the video record store
- Redis connection for the optional Redis thumbnail store
- S3/MinIO object storage for processed videos
- Local JWT authentication
- Upload limits and staging of uploaded files
- External media tooling (ffprobe / ffmpeg)
- Thumbnail storage backend selection

All settings support environment variable overrides and .env file loading.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BYTES_PER_MB = 1024 * 1024

THUMBNAIL_BACKENDS = {"disk", "memory", "redis"}


class Settings(BaseSettings):
    """
    Configuration settings for the Tubely service.

    Configuration Categories:
    - Application: Core app settings like name, environment, debug mode
    - MongoDB: Record store connection URI and pool settings
    - Redis: Connection URL for the Redis thumbnail backend
    - S3/MinIO: Object storage credentials and bucket configuration
    - Auth: Local JWT signing parameters
    - Upload: Body size limits, chunk size and staging directory
    - Media tools: ffprobe/ffmpeg binaries and optional wall-clock timeout
    - Thumbnails: Store backend and local assets directory

    Example usage:
        ```python
        from tubely.config import get_settings

        settings = get_settings()
        print(f"Uploading to bucket: {settings.s3_bucket_name}")
        ```
    """

    # =========================================================================
    # Application Settings
    # =========================================================================

    app_name: str = Field(default="tubely", description="Application name used in logs")

    app_env: str = Field(
        default="development",
        description="Application environment (development, staging, production, testing)",
    )

    debug: bool = Field(default=True, description="Enable debug mode with hot-reload")

    log_level: str = Field(
        default="info", description="Logging level (debug, info, warning, error, critical)"
    )

    json_logs: bool = Field(
        default=False, description="Emit structured JSON logs instead of plain text"
    )

    host: str = Field(default="0.0.0.0", description="Host address for the API server to bind to")

    port: int = Field(default=8091, description="Port number for the API server", ge=1, le=65535)

    public_base_url: str = Field(
        default="http://localhost:8091",
        description="Externally reachable base URL used to build thumbnail URLs",
    )

    cors_origins: list[str] = Field(
        default=["http://localhost:8091"],
        description="List of allowed CORS origins for frontend access",
    )

    # =========================================================================
    # MongoDB Configuration
    # =========================================================================

    mongodb_uri: str = Field(
        default="mongodb://localhost:27017", description="MongoDB connection URI"
    )

    mongodb_db_name: str = Field(default="tubely", description="MongoDB database name")

    mongodb_min_pool_size: int = Field(default=1, ge=0, description="Minimum pool connections")

    mongodb_max_pool_size: int = Field(default=50, ge=1, description="Maximum pool connections")

    # =========================================================================
    # Redis Configuration
    # =========================================================================

    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL, used when thumbnail_store_backend is 'redis'",
    )

    # =========================================================================
    # S3/MinIO Storage Configuration
    # =========================================================================

    s3_endpoint_url: str | None = Field(
        default=None, description="S3-compatible endpoint URL for MinIO (None for AWS S3)"
    )

    s3_access_key_id: str | None = Field(
        default=None, description="S3 access key ID (None falls back to the AWS credential chain)"
    )

    s3_secret_access_key: str | None = Field(
        default=None, description="S3 secret access key"
    )

    s3_bucket_name: str = Field(default="tubely-videos", description="Bucket for processed videos")

    s3_region: str = Field(default="us-east-1", description="AWS region of the bucket")

    s3_public_base_url: str | None = Field(
        default=None,
        description="Override for public object URLs (e.g. http://localhost:9000/tubely-videos)",
    )

    # =========================================================================
    # Authentication
    # =========================================================================

    secret_key: str = Field(
        default="development-secret-key-change-in-production-32chars",
        description="Secret key for JWT signing. Must be a secure random string.",
        min_length=32,
    )

    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")

    jwt_expiration_hours: int = Field(
        default=24, description="JWT token expiration time in hours", ge=1, le=168
    )

    # =========================================================================
    # Upload Settings
    # =========================================================================

    max_upload_size_mb: int = Field(
        default=1024,
        description="Maximum request body size in megabytes (1 GiB)",
        ge=1,
    )

    max_thumbnail_size_mb: int = Field(
        default=10, description="Maximum thumbnail size in megabytes", ge=1
    )

    upload_chunk_size_bytes: int = Field(
        default=BYTES_PER_MB,
        description="Chunk size used when streaming uploads to the staging file",
        ge=1024,
    )

    staging_dir: str | None = Field(
        default=None, description="Directory for staging files (None uses the system temp dir)"
    )

    # =========================================================================
    # Media Tooling
    # =========================================================================

    ffprobe_path: str = Field(default="ffprobe", description="ffprobe executable")

    ffmpeg_path: str = Field(default="ffmpeg", description="ffmpeg executable")

    media_process_timeout_seconds: float | None = Field(
        default=None,
        description="Wall-clock limit for ffprobe/ffmpeg runs (None waits indefinitely)",
        gt=0,
    )

    # =========================================================================
    # Thumbnail Storage
    # =========================================================================

    thumbnail_store_backend: str = Field(
        default="disk", description="Thumbnail store backend (disk, memory, redis)"
    )

    assets_root: str = Field(default="assets", description="Directory for disk thumbnails")

    # =========================================================================
    # Model Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"debug", "info", "warning", "error", "critical"}
        normalized = v.lower()
        if normalized not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {', '.join(valid_levels)}")
        return normalized

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate that app_env is a valid environment name."""
        valid_envs = {"development", "staging", "production", "testing"}
        normalized = v.lower()
        if normalized not in valid_envs:
            raise ValueError(f"Invalid app_env '{v}'. Must be one of: {', '.join(valid_envs)}")
        return normalized

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        """Only symmetric algorithms are usable with a shared secret key."""
        valid_algorithms = {"HS256", "HS384", "HS512"}
        if v.upper() not in valid_algorithms:
            raise ValueError(
                f"Invalid jwt_algorithm '{v}'. Must be one of: {', '.join(valid_algorithms)}"
            )
        return v.upper()

    @field_validator("thumbnail_store_backend")
    @classmethod
    def validate_thumbnail_backend(cls, v: str) -> str:
        normalized = v.lower()
        if normalized not in THUMBNAIL_BACKENDS:
            raise ValueError(
                f"Invalid thumbnail_store_backend '{v}'. "
                f"Must be one of: {', '.join(sorted(THUMBNAIL_BACKENDS))}"
            )
        return normalized

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string if provided as string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("public_base_url", "s3_public_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str | None:
        return v.rstrip("/") if v else v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def max_upload_size_bytes(self) -> int:
        """Maximum request body size in bytes."""
        return self.max_upload_size_mb * BYTES_PER_MB

    @property
    def max_thumbnail_size_bytes(self) -> int:
        """Maximum thumbnail size in bytes."""
        return self.max_thumbnail_size_mb * BYTES_PER_MB


@lru_cache
def get_settings() -> Settings:
    """
    Get the global Settings instance.

    The @lru_cache decorator ensures that the Settings object is created only
    once on first call; later calls return the cached instance without
    re-reading environment variables or .env files.

    Returns:
        Settings: The global configuration instance.
    """
    return Settings()
