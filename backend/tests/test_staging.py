"""Staging writer tests: chunked copy, rewind, size cap and cleanup."""

import os

from pathlib import Path

import pytest

from tubely.core.errors import PayloadTooLargeError, StagingError
from tubely.utils.staging import discard_on_exit, staged_upload


class ChunkRecordingSource:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.offset = 0
        self.requested_sizes: list[int] = []

    async def read(self, size: int = -1) -> bytes:
        self.requested_sizes.append(size)
        chunk = self.data[self.offset : self.offset + size]
        self.offset += len(chunk)
        return chunk


class FailingSource:
    async def read(self, size: int = -1) -> bytes:
        raise OSError(28, "No space left on device")


class TestStagedUpload:
    @pytest.mark.asyncio
    async def test_copies_in_chunks_and_rewinds(self, staging_dir: Path) -> None:
        data = os.urandom(10_000)
        source = ChunkRecordingSource(data)

        async with staged_upload(source, directory=str(staging_dir), chunk_size=4096) as staged:
            assert staged.size == len(data)
            assert await staged.handle.tell() == 0
            assert await staged.handle.read() == data
            assert Path(staged.path).parent == staging_dir

        assert set(source.requested_sizes) == {4096}

    @pytest.mark.asyncio
    async def test_suffix_and_prefix(self, staging_dir: Path) -> None:
        async with staged_upload(
            ChunkRecordingSource(b"x"), directory=str(staging_dir), suffix=".mp4"
        ) as staged:
            name = Path(staged.path).name
            assert name.startswith("tubely-upload-")
            assert name.endswith(".mp4")

    @pytest.mark.asyncio
    async def test_file_removed_on_exit(self, staging_dir: Path) -> None:
        async with staged_upload(ChunkRecordingSource(b"abc"), directory=str(staging_dir)) as staged:
            assert Path(staged.path).exists()

        assert list(staging_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_file_removed_when_body_raises(self, staging_dir: Path) -> None:
        with pytest.raises(ValueError):
            async with staged_upload(ChunkRecordingSource(b"abc"), directory=str(staging_dir)):
                raise ValueError("downstream failure")

        assert list(staging_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_size_cap(self, staging_dir: Path) -> None:
        with pytest.raises(PayloadTooLargeError):
            async with staged_upload(
                ChunkRecordingSource(b"a" * 100),
                directory=str(staging_dir),
                chunk_size=16,
                max_bytes=50,
            ):
                pass

        assert list(staging_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(StagingError, match="Error creating tmp file"):
            async with staged_upload(
                ChunkRecordingSource(b"abc"), directory=str(tmp_path / "missing")
            ):
                pass

    @pytest.mark.asyncio
    async def test_copy_failure(self, staging_dir: Path) -> None:
        with pytest.raises(StagingError, match="Not able to copy file") as exc_info:
            async with staged_upload(FailingSource(), directory=str(staging_dir)):
                pass

        assert exc_info.value.status_code == 500
        assert isinstance(exc_info.value.__cause__, OSError)
        assert list(staging_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_body_errors_are_not_wrapped(self, staging_dir: Path) -> None:
        with pytest.raises(FileNotFoundError):
            async with staged_upload(ChunkRecordingSource(b"abc"), directory=str(staging_dir)):
                raise FileNotFoundError("ffprobe")

        assert list(staging_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_empty_upload(self, staging_dir: Path) -> None:
        async with staged_upload(ChunkRecordingSource(b""), directory=str(staging_dir)) as staged:
            assert staged.size == 0


class TestDiscardOnExit:
    def test_removes_existing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "out.processing"
        with discard_on_exit(str(path)):
            path.write_bytes(b"data")
        assert not path.exists()

    def test_missing_file_is_fine(self, tmp_path: Path) -> None:
        with discard_on_exit(str(tmp_path / "never-created")):
            pass

    def test_removes_on_error(self, tmp_path: Path) -> None:
        path = tmp_path / "out.processing"
        with pytest.raises(RuntimeError):
            with discard_on_exit(str(path)):
                path.write_bytes(b"data")
                raise RuntimeError("boom")
        assert not path.exists()
