"""
Video Pydantic model for Tubely.

A VideoRecord is created externally (seeding script, other services) and is
mutated here only by the upload paths: ``video_url`` after a successful
video ingestion and ``thumbnail_url`` after a thumbnail upload. Both URLs
are overwritten, never appended.

In MongoDB the id is stored as ``_id`` and UUIDs are stored as strings.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class VideoRecord(BaseModel):
    """
    Pydantic model for a video owned by a user.

    Attributes:
        id: Externally assigned video UUID
        created_at: Creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)
        thumbnail_url: Retrieval URL of the current thumbnail, if any
        video_url: Public URL of the processed video object, if any
        title: Video title
        description: Video description
        user_id: UUID of the owning user

    Example:
        ```python
        video = VideoRecord(
            id=uuid4(),
            user_id=uuid4(),
            title="Boots on the ground",
            description="A short clip",
        )
        ```
    """

    id: UUID = Field(..., description="Video UUID")

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Creation timestamp (UTC)"
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Last modification timestamp (UTC)"
    )

    thumbnail_url: str | None = Field(default=None, description="Thumbnail retrieval URL")

    video_url: str | None = Field(default=None, description="Processed video URL")

    title: str = Field(default="", max_length=500, description="Video title")

    description: str = Field(default="", max_length=5000, description="Video description")

    user_id: UUID = Field(..., description="Owning user's UUID")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "0b9a4c1e-6a52-4c8e-9f7d-3f1d2e0c7b11",
                "created_at": "2026-01-15T10:30:00Z",
                "updated_at": "2026-01-15T10:31:12Z",
                "thumbnail_url": "http://localhost:8091/assets/3Qe...Zw.png",
                "video_url": "https://tubely-videos.s3.us-east-1.amazonaws.com/landscape/Xy...Q.mp4",
                "title": "Boots on the ground",
                "description": "A short clip",
                "user_id": "6f2d8f5e-12a4-4d3b-8b9e-7a0c5d4e3f21",
            }
        },
    )

    def to_document(self) -> dict[str, Any]:
        """Serialize for MongoDB (``_id`` key, UUIDs as strings)."""
        document = self.model_dump(mode="python")
        document["_id"] = str(document.pop("id"))
        document["user_id"] = str(document["user_id"])
        return document

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "VideoRecord":
        """Build a VideoRecord from a MongoDB document."""
        data = dict(document)
        data["id"] = data.pop("_id")
        return cls.model_validate(data)
