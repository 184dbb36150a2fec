"""
Tubely Backend Application Package

This package contains the Tubely FastAPI application for ingesting
user-uploaded videos. The service provides:

- Authenticated, owner-checked video uploads
- Aspect-ratio inspection with ffprobe and fast-start rewriting with ffmpeg
- Orientation-partitioned storage in S3/MinIO
- Thumbnail uploads to local disk, process memory or Redis

Package Structure:
- api/: REST API endpoints organized by version (v1)
- core/: Core infrastructure (database, redis, storage, auth, errors, ingress)
- models/: Pydantic data models
- services/: Business logic layer (media processing, upload pipeline)
- utils/: Logging, media-type parsing and staging helpers
"""

__version__ = "1.0.0"
__app_name__ = "tubely"
