"""
Request-scoped temporary files for uploaded media.

``staged_upload`` streams an uploaded part to a fresh temporary file in fixed
size chunks, rewinds it and yields a StagedUpload. The handle is closed and
the file unlinked when the context exits, whether the body of the ``async
with`` block succeeded or raised. ``discard_on_exit`` gives the same
guarantee for files produced later in the pipeline (e.g. the fast-start
output).
"""

import logging
import os
import tempfile

from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from dataclasses import dataclass
from typing import Any, Protocol

import aiofiles

from tubely.core.errors import PayloadTooLargeError, StagingError


logger = logging.getLogger(__name__)

STAGING_PREFIX = "tubely-upload-"


class AsyncReadable(Protocol):
    """Anything with an awaitable ``read(size)``, e.g. starlette's UploadFile."""

    async def read(self, size: int = -1) -> bytes: ...


@dataclass
class StagedUpload:
    """A staged copy of an uploaded file with an open read/write handle."""

    path: str
    handle: Any
    size: int


def remove_quietly(path: str) -> None:
    """Unlink ``path`` if it exists, logging (not raising) on OS errors."""
    try:
        os.unlink(path)
    except FileNotFoundError:
        return
    except OSError:
        logger.exception("Failed to remove temporary file", extra={"path": path})
    else:
        logger.debug("Removed temporary file", extra={"path": path})


@asynccontextmanager
async def staged_upload(
    source: AsyncReadable,
    directory: str | None = None,
    chunk_size: int = 1024 * 1024,
    suffix: str = "",
    max_bytes: int | None = None,
) -> AsyncIterator[StagedUpload]:
    """
    Copy ``source`` to a new temporary file and yield it rewound to offset 0.

    Args:
        source: Upload to read from.
        directory: Directory for the staging file (system temp dir if None).
        chunk_size: Bytes read from ``source`` per iteration.
        suffix: Filename suffix, e.g. ".mp4".
        max_bytes: Optional cap on the staged size.

    Raises:
        PayloadTooLargeError: If ``max_bytes`` is exceeded while copying.
        StagingError: If the temporary file can't be created or written.
    """
    try:
        fd, path = tempfile.mkstemp(prefix=STAGING_PREFIX, suffix=suffix, dir=directory)
    except OSError as e:
        logger.exception("Error creating tmp file", extra={"directory": directory})
        raise StagingError("Error creating tmp file") from e
    os.close(fd)

    try:
        try:
            handle = await aiofiles.open(path, "w+b")
        except OSError as e:
            logger.exception("Error opening tmp file", extra={"path": path})
            raise StagingError("Error creating tmp file") from e

        try:
            size = await _copy_into(source, handle, chunk_size, max_bytes, path)
            logger.debug("Staged upload", extra={"path": path, "size": size})
            yield StagedUpload(path=path, handle=handle, size=size)
        finally:
            await handle.close()
    finally:
        remove_quietly(path)


async def _copy_into(
    source: AsyncReadable, handle: Any, chunk_size: int, max_bytes: int | None, path: str
) -> int:
    size = 0
    try:
        while chunk := await source.read(chunk_size):
            size += len(chunk)
            if max_bytes is not None and size > max_bytes:
                raise PayloadTooLargeError(f"Upload exceeds {max_bytes} bytes")
            await handle.write(chunk)
        await handle.flush()
        await handle.seek(0)
    except OSError as e:
        logger.exception("Not able to copy file", extra={"path": path, "copied": size})
        raise StagingError("Not able to copy file") from e
    return size


@contextmanager
def discard_on_exit(path: str) -> Iterator[str]:
    """Yield ``path`` and remove the file there, if any, on exit."""
    try:
        yield path
    finally:
        remove_quietly(path)
