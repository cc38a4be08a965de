"""
ffmpeg capture backend.

Screen and microphone sources are ffmpeg input devices (x11grab/pulse on
Linux, avfoundation on macOS, gdigrab/dshow on Windows). The encoder runs a
single ffmpeg process that muxes every track of the combined stream into
WebM on stdout; stdout reads become chunk events. Sending ``q`` on stdin
asks ffmpeg to flush and exit, which ends the event sequence.
"""

import asyncio
import logging
import shutil
from collections.abc import AsyncIterator

from src.core.config import get_settings
from src.core.exceptions import CaptureAcquisitionError, EncoderError
from src.services.capture.base import (
    BaseCaptureBackend,
    BaseEncoder,
    ChunkEvent,
    EncoderEvent,
    FinalizeEvent,
    MediaStream,
    MediaTrack,
)

logger = logging.getLogger(__name__)

_STDERR_TAIL = 1000  # Characters of ffmpeg stderr kept for diagnostics


class FfmpegEncoder(BaseEncoder):
    """Encode a combined stream with one ffmpeg subprocess."""

    def __init__(
        self,
        stream: MediaStream,
        content_type: str,
        ffmpeg_path: str = "ffmpeg",
        chunk_size: int = 65536,
    ) -> None:
        super().__init__(stream, content_type)
        self._ffmpeg_path = ffmpeg_path
        self._chunk_size = chunk_size
        self._process: asyncio.subprocess.Process | None = None
        self._killed = False

    def build_command(self) -> list[str]:
        """Assemble the ffmpeg argv for the current stream."""
        tracks = self.stream.get_tracks()
        cmd = [self._ffmpeg_path, "-hide_banner", "-loglevel", "error", "-y"]
        for track in tracks:
            cmd.extend(track.input_args)
        for index in range(len(tracks)):
            cmd.extend(["-map", str(index)])

        if self.stream.video_tracks():
            cmd.extend(["-c:v", "libvpx", "-deadline", "realtime", "-cpu-used", "8"])
        if self.stream.audio_tracks():
            cmd.extend(["-c:a", "libopus"])
        cmd.extend(["-f", "webm", "pipe:1"])
        return cmd

    async def start(self) -> None:
        if self._process is not None:
            raise EncoderError("Encoder already started")
        cmd = self.build_command()
        logger.info("Starting ffmpeg: %s", " ".join(cmd))
        try:
            self._process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise EncoderError(f"Could not launch ffmpeg: {exc}") from exc

        # Releasing any track hard-stops the capture process
        for track in self.stream.get_tracks():
            track.add_stop_callback(self._kill)

    def stop(self) -> None:
        process = self._process
        if process is None or process.returncode is not None or process.stdin is None:
            return
        try:
            process.stdin.write(b"q")
            process.stdin.close()
        except (BrokenPipeError, ConnectionResetError):
            logger.debug("ffmpeg stdin already closed")

    def _kill(self) -> None:
        process = self._process
        if self._killed or process is None:
            return
        self._killed = True
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass

    async def _iter_events(self) -> AsyncIterator[EncoderEvent]:
        process = self._process
        if process is None or process.stdout is None:
            raise EncoderError("Encoder not started")

        stderr_task = asyncio.create_task(process.stderr.read()) if process.stderr else None
        while True:
            data = await process.stdout.read(self._chunk_size)
            if not data:
                break
            yield ChunkEvent(data)

        returncode = await process.wait()
        stderr = (await stderr_task).decode("utf-8", errors="ignore") if stderr_task else ""
        if returncode != 0:
            logger.error("ffmpeg exited with %s: %s", returncode, stderr[-_STDERR_TAIL:])
        else:
            logger.info("ffmpeg finished cleanly")
        yield FinalizeEvent()


class FfmpegCaptureBackend(BaseCaptureBackend):
    """Capture backend driving ffmpeg input devices."""

    def __init__(
        self,
        ffmpeg_path: str | None = None,
        display_format: str | None = None,
        display_input: str | None = None,
        display_audio_format: str | None = None,
        display_audio_input: str | None = None,
        microphone_format: str | None = None,
        microphone_input: str | None = None,
        framerate: int | None = None,
        chunk_size: int | None = None,
    ) -> None:
        settings = get_settings()
        self._ffmpeg_path = ffmpeg_path or settings.ffmpeg_path
        self._display_format = display_format or settings.display_format
        self._display_input = display_input or settings.display_input
        self._display_audio_format = display_audio_format or settings.display_audio_format
        self._display_audio_input = display_audio_input or settings.display_audio_input
        self._microphone_format = microphone_format or settings.microphone_format
        self._microphone_input = microphone_input or settings.microphone_input
        self._framerate = framerate or settings.capture_framerate
        self._chunk_size = chunk_size or settings.chunk_size

    def _require_ffmpeg(self) -> None:
        if shutil.which(self._ffmpeg_path) is None:
            raise CaptureAcquisitionError(f"ffmpeg not found: {self._ffmpeg_path}")

    async def acquire_display(self, audio: bool = True) -> MediaStream:
        self._require_ffmpeg()
        if not self._display_format or not self._display_input:
            raise CaptureAcquisitionError("No display capture source configured")

        tracks = [
            MediaTrack(
                kind="video",
                label=f"{self._display_format}:{self._display_input}",
                input_args=[
                    "-f", self._display_format,
                    "-framerate", str(self._framerate),
                    "-i", self._display_input,
                ],
            )
        ]
        if audio and self._display_audio_format and self._display_audio_input:
            tracks.append(
                MediaTrack(
                    kind="audio",
                    label=f"{self._display_audio_format}:{self._display_audio_input}",
                    input_args=["-f", self._display_audio_format, "-i", self._display_audio_input],
                )
            )
        return MediaStream(tracks)

    async def acquire_microphone(self) -> MediaStream:
        self._require_ffmpeg()
        if not self._microphone_format or not self._microphone_input:
            raise CaptureAcquisitionError("No microphone source configured")
        return MediaStream(
            [
                MediaTrack(
                    kind="audio",
                    label=f"{self._microphone_format}:{self._microphone_input}",
                    input_args=["-f", self._microphone_format, "-i", self._microphone_input],
                )
            ]
        )

    def create_encoder(self, stream: MediaStream, content_type: str) -> FfmpegEncoder:
        return FfmpegEncoder(
            stream,
            content_type,
            ffmpeg_path=self._ffmpeg_path,
            chunk_size=self._chunk_size,
        )
