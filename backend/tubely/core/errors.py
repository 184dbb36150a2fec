"""
Tubely Error Taxonomy

Every failure the service reports to a client is raised as a subclass of
TubelyError. Each class carries the HTTP status it maps to, and the
application-level exception handler in tubely.main renders it into the
``{"error": "<message>"}`` envelope.

Client errors (4xx) expose their message verbatim. Server-side processing
errors (5xx) expose only ``public_message``; the detailed message and any
chained cause are logged instead.
"""

from fastapi import status


class TubelyError(Exception):
    """Base exception for all Tubely service errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message: str = "Internal server error"

    @property
    def client_message(self) -> str:
        """Message safe to return to the client."""
        if self.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            return self.public_message
        return str(self) or self.public_message


class InvalidInputError(TubelyError):
    """Raised for malformed ids, unsupported content types or missing form fields."""

    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "Invalid input"


class UnauthorizedError(TubelyError):
    """Raised for missing or invalid credentials and ownership mismatches."""

    status_code = status.HTTP_401_UNAUTHORIZED
    public_message = "Unauthorized"


class NotFoundError(TubelyError):
    """Raised when a requested thumbnail does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    public_message = "Not found"


class PayloadTooLargeError(TubelyError):
    """Raised when an upload exceeds the configured size limit."""

    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    public_message = "Request body too large"


class ProcessingError(TubelyError):
    """Base exception for server-side pipeline failures."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message = "Couldn't process upload"


class StagingError(ProcessingError):
    """Raised when an upload can't be written to a temporary file."""

    public_message = "Couldn't stage upload"


class MediaProcessingError(ProcessingError):
    """Raised when ffprobe or ffmpeg fails."""

    public_message = "Couldn't process video"


class StorageOperationError(ProcessingError):
    """Raised when an object storage operation fails."""

    public_message = "Couldn't upload file to storage"


class RecordStoreError(ProcessingError):
    """Raised when reading or writing a video record fails."""

    public_message = "Couldn't update video"


__all__ = [
    "TubelyError",
    "InvalidInputError",
    "UnauthorizedError",
    "NotFoundError",
    "PayloadTooLargeError",
    "ProcessingError",
    "StagingError",
    "MediaProcessingError",
    "StorageOperationError",
    "RecordStoreError",
]
