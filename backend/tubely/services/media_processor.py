"""
Media Processing Service for Tubely

Wraps the two external tools the ingestion pipeline depends on:

- ``ffprobe`` reports the display aspect ratio of the first video stream,
  which ``classify_aspect_ratio`` maps to an OrientationPartition.
- ``ffmpeg`` rewrites the container with ``-movflags faststart`` (stream
  copy, no re-encode) so playback can begin before the download finishes.

Both tools are invoked with argument lists, never through a shell. The
blocking ``subprocess.run`` call is moved off the event loop with
``asyncio.to_thread``. An optional wall-clock timeout kills the child and
surfaces as MediaProcessingError.

The ``MediaProcessor`` protocol is the seam the upload pipeline depends on,
so tests substitute a fake without spawning processes.
"""

import asyncio
import json
import logging
import subprocess

from enum import Enum
from typing import Protocol

from tubely.config import Settings
from tubely.core.errors import MediaProcessingError
from tubely.utils.staging import remove_quietly


logger = logging.getLogger(__name__)

PROCESSING_SUFFIX = ".processing"

# Characters of stderr kept in log records
STDERR_LOG_LIMIT = 2000


class OrientationPartition(str, Enum):
    """Storage key prefix derived from the declared display aspect ratio."""

    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"


def classify_aspect_ratio(aspect_ratio: str | None) -> OrientationPartition:
    """
    Map a declared display aspect ratio to a partition.

    Only the exact strings "16:9" and "9:16" are recognized; every other
    value, including an empty or missing one, is OTHER. The ratio is not
    computed from width and height.
    """
    if aspect_ratio == "16:9":
        return OrientationPartition.LANDSCAPE
    if aspect_ratio == "9:16":
        return OrientationPartition.PORTRAIT
    return OrientationPartition.OTHER


def processing_output_path(path: str) -> str:
    """Deterministic output path of the fast-start rewrite."""
    return f"{path}{PROCESSING_SUFFIX}"


class MediaProcessor(Protocol):
    """Capability the upload pipeline needs from a media toolchain."""

    async def inspect(self, path: str) -> str:
        """Return the display aspect ratio of the file at ``path``."""
        ...

    async def rewrite_for_streaming(self, path: str) -> str:
        """Write a fast-start copy of ``path`` and return the new path."""
        ...


class FFmpegMediaProcessor:
    """
    MediaProcessor backed by the ffprobe and ffmpeg executables.

    Example usage:
        ```python
        processor = FFmpegMediaProcessor(get_settings())
        ratio = await processor.inspect("/tmp/tubely-upload-abc.mp4")
        partition = classify_aspect_ratio(ratio)
        processed = await processor.rewrite_for_streaming("/tmp/tubely-upload-abc.mp4")
        ```
    """

    def __init__(self, settings: Settings) -> None:
        self.ffprobe_path = settings.ffprobe_path
        self.ffmpeg_path = settings.ffmpeg_path
        self.timeout = settings.media_process_timeout_seconds

    async def _run(self, args: list[str]) -> subprocess.CompletedProcess[bytes]:
        tool = args[0]
        try:
            result = await asyncio.to_thread(
                subprocess.run,
                args,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                check=False,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            logger.exception("Media tool not found", extra={"tool": tool})
            raise MediaProcessingError(f"{tool} executable not found") from e
        except subprocess.TimeoutExpired as e:
            logger.error(
                "Media tool timed out",
                extra={"tool": tool, "timeout_seconds": self.timeout},
            )
            raise MediaProcessingError(f"{tool} timed out after {self.timeout}s") from e

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace")
            logger.error(
                "Media tool exited with non-zero status",
                extra={
                    "tool": tool,
                    "returncode": result.returncode,
                    "stderr": stderr[:STDERR_LOG_LIMIT],
                },
            )
            raise MediaProcessingError(f"{tool} exited with status {result.returncode}")

        return result

    async def inspect(self, path: str) -> str:
        """
        Run ffprobe and return ``display_aspect_ratio`` of the first video stream.

        Falls back to the first stream of any kind when no stream reports
        ``codec_type == "video"``. A stream without the field yields "".

        Raises:
            MediaProcessingError: On a failed run, unparseable output or no streams.
        """
        result = await self._run(
            [self.ffprobe_path, "-v", "error", "-print_format", "json", "-show_streams", path]
        )

        try:
            payload = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            logger.exception("ffprobe produced invalid JSON", extra={"path": path})
            raise MediaProcessingError("ffprobe produced invalid JSON") from e

        streams = payload.get("streams") if isinstance(payload, dict) else None
        if not streams:
            logger.error("ffprobe reported no streams", extra={"path": path})
            raise MediaProcessingError("No streams found in media file")

        stream = next(
            (s for s in streams if isinstance(s, dict) and s.get("codec_type") == "video"),
            streams[0],
        )
        aspect_ratio = stream.get("display_aspect_ratio", "") if isinstance(stream, dict) else ""

        logger.debug(
            "Inspected media file", extra={"path": path, "display_aspect_ratio": aspect_ratio}
        )
        return str(aspect_ratio or "")

    async def rewrite_for_streaming(self, path: str) -> str:
        """
        Run ffmpeg with ``-c copy -movflags faststart`` into ``<path>.processing``.

        Any partial output is removed when the rewrite fails.

        Raises:
            MediaProcessingError: If ffmpeg fails, is missing or times out.
        """
        output_path = processing_output_path(path)
        try:
            await self._run(
                [
                    self.ffmpeg_path,
                    "-i",
                    path,
                    "-c",
                    "copy",
                    "-movflags",
                    "faststart",
                    "-f",
                    "mp4",
                    output_path,
                ]
            )
        except MediaProcessingError:
            remove_quietly(output_path)
            raise

        logger.debug("Rewrote media for streaming", extra={"path": output_path})
        return output_path
