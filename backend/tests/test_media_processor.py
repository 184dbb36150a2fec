"""
Media Processor Test Suite

Tests aspect-ratio classification and the ffprobe/ffmpeg wrappers with
``subprocess.run`` patched, so no external binaries are needed.
"""

import json
import subprocess

from pathlib import Path
from unittest.mock import patch

import pytest

from tubely.config import Settings
from tubely.core.errors import MediaProcessingError
from tubely.services.media_processor import (
    FFmpegMediaProcessor,
    OrientationPartition,
    classify_aspect_ratio,
    processing_output_path,
)


RUN_TARGET = "tubely.services.media_processor.subprocess.run"


def completed(args: list[str], stdout: bytes = b"", returncode: int = 0, stderr: bytes = b""):
    return subprocess.CompletedProcess(args, returncode, stdout=stdout, stderr=stderr)


def probe_output(*streams: dict) -> bytes:
    return json.dumps({"streams": list(streams)}).encode()


@pytest.fixture
def processor(test_settings: Settings) -> FFmpegMediaProcessor:
    return FFmpegMediaProcessor(test_settings)


@pytest.fixture
def staged_file(tmp_path: Path) -> Path:
    path = tmp_path / "tubely-upload-abc.mp4"
    path.write_bytes(b"not really an mp4")
    return path


class TestClassifyAspectRatio:
    @pytest.mark.parametrize(
        ("ratio", "expected"),
        [
            ("16:9", OrientationPartition.LANDSCAPE),
            ("9:16", OrientationPartition.PORTRAIT),
            ("4:3", OrientationPartition.OTHER),
            ("1:1", OrientationPartition.OTHER),
            ("32:18", OrientationPartition.OTHER),
            ("", OrientationPartition.OTHER),
            (None, OrientationPartition.OTHER),
        ],
    )
    def test_classification(self, ratio: str | None, expected: OrientationPartition) -> None:
        assert classify_aspect_ratio(ratio) is expected

    def test_partition_values_are_key_prefixes(self) -> None:
        assert {p.value for p in OrientationPartition} == {"landscape", "portrait", "other"}


class TestInspect:
    @pytest.mark.asyncio
    async def test_reads_first_video_stream(
        self, processor: FFmpegMediaProcessor, staged_file: Path
    ) -> None:
        output = probe_output(
            {"codec_type": "audio"},
            {"codec_type": "video", "display_aspect_ratio": "9:16"},
        )
        with patch(RUN_TARGET, return_value=completed([], stdout=output)) as run:
            ratio = await processor.inspect(str(staged_file))

        assert ratio == "9:16"
        args = run.call_args.args[0]
        assert args == [
            "ffprobe",
            "-v",
            "error",
            "-print_format",
            "json",
            "-show_streams",
            str(staged_file),
        ]
        assert run.call_args.kwargs["timeout"] is None

    @pytest.mark.asyncio
    async def test_falls_back_to_first_stream(
        self, processor: FFmpegMediaProcessor, staged_file: Path
    ) -> None:
        output = probe_output({"display_aspect_ratio": "16:9"})
        with patch(RUN_TARGET, return_value=completed([], stdout=output)):
            assert await processor.inspect(str(staged_file)) == "16:9"

    @pytest.mark.asyncio
    async def test_missing_ratio_is_empty(
        self, processor: FFmpegMediaProcessor, staged_file: Path
    ) -> None:
        output = probe_output({"codec_type": "video"})
        with patch(RUN_TARGET, return_value=completed([], stdout=output)):
            ratio = await processor.inspect(str(staged_file))

        assert ratio == ""
        assert classify_aspect_ratio(ratio) is OrientationPartition.OTHER

    @pytest.mark.asyncio
    async def test_no_streams_is_an_error(
        self, processor: FFmpegMediaProcessor, staged_file: Path
    ) -> None:
        with patch(RUN_TARGET, return_value=completed([], stdout=probe_output())):
            with pytest.raises(MediaProcessingError):
                await processor.inspect(str(staged_file))

    @pytest.mark.asyncio
    async def test_invalid_json_is_an_error(
        self, processor: FFmpegMediaProcessor, staged_file: Path
    ) -> None:
        with patch(RUN_TARGET, return_value=completed([], stdout=b"{not json")):
            with pytest.raises(MediaProcessingError):
                await processor.inspect(str(staged_file))

    @pytest.mark.asyncio
    async def test_non_zero_exit_is_an_error(
        self, processor: FFmpegMediaProcessor, staged_file: Path
    ) -> None:
        result = completed([], returncode=1, stderr=b"moov atom not found")
        with patch(RUN_TARGET, return_value=result):
            with pytest.raises(MediaProcessingError, match="status 1"):
                await processor.inspect(str(staged_file))

    @pytest.mark.asyncio
    async def test_missing_binary_is_an_error(
        self, processor: FFmpegMediaProcessor, staged_file: Path
    ) -> None:
        with patch(RUN_TARGET, side_effect=FileNotFoundError("ffprobe")):
            with pytest.raises(MediaProcessingError, match="not found"):
                await processor.inspect(str(staged_file))

    @pytest.mark.asyncio
    async def test_timeout_is_an_error(self, test_settings: Settings, staged_file: Path) -> None:
        settings = test_settings.model_copy(update={"media_process_timeout_seconds": 0.5})
        processor = FFmpegMediaProcessor(settings)

        with patch(RUN_TARGET, side_effect=subprocess.TimeoutExpired("ffprobe", 0.5)) as run:
            with pytest.raises(MediaProcessingError, match="timed out"):
                await processor.inspect(str(staged_file))

        assert run.call_args.kwargs["timeout"] == 0.5


class TestRewriteForStreaming:
    @pytest.mark.asyncio
    async def test_runs_faststart_copy(
        self, processor: FFmpegMediaProcessor, staged_file: Path
    ) -> None:
        with patch(RUN_TARGET, return_value=completed([])) as run:
            output = await processor.rewrite_for_streaming(str(staged_file))

        assert output == f"{staged_file}.processing"
        assert output == processing_output_path(str(staged_file))
        assert run.call_args.args[0] == [
            "ffmpeg",
            "-i",
            str(staged_file),
            "-c",
            "copy",
            "-movflags",
            "faststart",
            "-f",
            "mp4",
            output,
        ]

    @pytest.mark.asyncio
    async def test_failure_removes_partial_output(
        self, processor: FFmpegMediaProcessor, staged_file: Path
    ) -> None:
        partial = Path(processing_output_path(str(staged_file)))

        def fail_after_partial_write(args, **kwargs):
            partial.write_bytes(b"partial")
            return completed(args, returncode=1, stderr=b"error")

        with patch(RUN_TARGET, side_effect=fail_after_partial_write):
            with pytest.raises(MediaProcessingError):
                await processor.rewrite_for_streaming(str(staged_file))

        assert not partial.exists()
        assert staged_file.exists()

    @pytest.mark.asyncio
    async def test_uses_configured_binary(self, test_settings: Settings, staged_file: Path) -> None:
        settings = test_settings.model_copy(update={"ffmpeg_path": "/opt/ffmpeg/bin/ffmpeg"})
        processor = FFmpegMediaProcessor(settings)

        with patch(RUN_TARGET, return_value=completed([])) as run:
            await processor.rewrite_for_streaming(str(staged_file))

        assert run.call_args.args[0][0] == "/opt/ffmpeg/bin/ffmpeg"
