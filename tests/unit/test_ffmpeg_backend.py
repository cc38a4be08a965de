"""Tests for the ffmpeg capture backend.

No real ffmpeg is launched: ``shutil.which`` and
``asyncio.create_subprocess_exec`` are patched, and the fake process feeds
stdout/stderr through real ``asyncio.StreamReader`` objects.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.core.exceptions import CaptureAcquisitionError, EncoderError
from src.services.capture.base import ChunkEvent, FinalizeEvent, MediaStream
from src.services.capture.ffmpeg import FfmpegCaptureBackend, FfmpegEncoder


@pytest.fixture
def backend():
    return FfmpegCaptureBackend(
        ffmpeg_path="ffmpeg",
        display_format="x11grab",
        display_input=":0.0",
        microphone_format="pulse",
        microphone_input="default",
        framerate=15,
        chunk_size=4,
    )


@pytest.fixture
def ffmpeg_available():
    with patch("src.services.capture.ffmpeg.shutil.which", return_value="/usr/bin/ffmpeg"):
        yield


def _fake_process(stdout_data: bytes, stderr_data: bytes = b"", returncode: int = 0):
    stdout = asyncio.StreamReader()
    stdout.feed_data(stdout_data)
    stdout.feed_eof()
    stderr = asyncio.StreamReader()
    stderr.feed_data(stderr_data)
    stderr.feed_eof()

    process = MagicMock()
    process.stdout = stdout
    process.stderr = stderr
    process.stdin = MagicMock()
    process.returncode = None

    async def _wait():
        process.returncode = returncode
        return returncode

    process.wait = AsyncMock(side_effect=_wait)
    return process


async def _combined(backend) -> MediaStream:
    display = await backend.acquire_display(audio=True)
    mic = await backend.acquire_microphone()
    return MediaStream.combine(display, mic)


class TestAcquisition:
    async def test_display_track(self, backend, ffmpeg_available):
        stream = await backend.acquire_display()

        [track] = stream.get_tracks()
        assert track.kind == "video"
        assert track.input_args == ["-f", "x11grab", "-framerate", "15", "-i", ":0.0"]

    async def test_display_with_system_audio(self, ffmpeg_available):
        backend = FfmpegCaptureBackend(
            display_format="x11grab",
            display_input=":0.0",
            display_audio_format="pulse",
            display_audio_input="monitor",
        )

        stream = await backend.acquire_display(audio=True)

        assert [t.kind for t in stream.get_tracks()] == ["video", "audio"]

    async def test_missing_ffmpeg(self, backend):
        with patch("src.services.capture.ffmpeg.shutil.which", return_value=None):
            with pytest.raises(CaptureAcquisitionError, match="ffmpeg not found"):
                await backend.acquire_display()

    async def test_microphone_track(self, backend, ffmpeg_available):
        stream = await backend.acquire_microphone()

        [track] = stream.get_tracks()
        assert track.kind == "audio"
        assert track.input_args == ["-f", "pulse", "-i", "default"]


class TestEncoder:
    async def test_build_command_maps_every_track(self, backend, ffmpeg_available):
        encoder = backend.create_encoder(await _combined(backend), "video/webm")

        cmd = encoder.build_command()

        assert cmd[0] == "ffmpeg"
        assert cmd.count("-i") == 2
        assert cmd.count("-map") == 2
        assert "libvpx" in cmd and "libopus" in cmd
        assert cmd[-3:] == ["-f", "webm", "pipe:1"]

    async def test_events_from_stdout(self, backend, ffmpeg_available):
        encoder = backend.create_encoder(await _combined(backend), "video/webm")
        process = _fake_process(b"abcdefghij")

        with patch(
            "src.services.capture.ffmpeg.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ):
            await encoder.start()

        events = [event async for event in encoder.events()]

        assert events == [
            ChunkEvent(b"abcd"),
            ChunkEvent(b"efgh"),
            ChunkEvent(b"ij"),
            FinalizeEvent(),
        ]

    async def test_nonzero_exit_still_finalizes(self, backend, ffmpeg_available):
        encoder = backend.create_encoder(await _combined(backend), "video/webm")
        process = _fake_process(b"", stderr_data=b"Permission denied", returncode=1)

        with patch(
            "src.services.capture.ffmpeg.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ):
            await encoder.start()

        events = [event async for event in encoder.events()]

        assert events == [FinalizeEvent()]

    async def test_stop_sends_quit(self, backend, ffmpeg_available):
        encoder = backend.create_encoder(await _combined(backend), "video/webm")
        process = _fake_process(b"")

        with patch(
            "src.services.capture.ffmpeg.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ):
            await encoder.start()
        encoder.stop()

        process.stdin.write.assert_called_once_with(b"q")
        process.stdin.close.assert_called_once()

    async def test_track_release_kills_running_process(self, backend, ffmpeg_available):
        stream = await _combined(backend)
        encoder = backend.create_encoder(stream, "video/webm")
        process = _fake_process(b"")

        with patch(
            "src.services.capture.ffmpeg.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ):
            await encoder.start()
        stream.stop_all()

        process.kill.assert_called_once()

    async def test_launch_failure(self, backend, ffmpeg_available):
        encoder = backend.create_encoder(await _combined(backend), "video/webm")

        with patch(
            "src.services.capture.ffmpeg.asyncio.create_subprocess_exec",
            AsyncMock(side_effect=FileNotFoundError("ffmpeg")),
        ):
            with pytest.raises(EncoderError, match="Could not launch ffmpeg"):
                await encoder.start()

    async def test_events_before_start(self):
        encoder = FfmpegEncoder(MediaStream(), "video/webm")

        with pytest.raises(EncoderError):
            async for _ in encoder.events():
                pass
