"""Shared pytest fixtures for ScreenVault test suite.

Provides an in-memory capture backend and sample payloads shaped like the
recordings server's responses. The fake encoder emits preset chunks on
start and finalizes on stop, so tests control exactly when encoder events
arrive.
"""

import asyncio
from collections.abc import AsyncIterator

import pytest

from src.core.exceptions import CaptureAcquisitionError
from src.services.capture.base import (
    BaseCaptureBackend,
    BaseEncoder,
    ChunkEvent,
    EncoderEvent,
    FinalizeEvent,
    MediaStream,
    MediaTrack,
)

# ---------------------------------------------------------------------------
# Capture fakes
# ---------------------------------------------------------------------------


class FakeEncoder(BaseEncoder):
    """Encoder that emits preset chunks on start and finalizes on stop."""

    def __init__(
        self,
        stream: MediaStream,
        content_type: str,
        chunks: tuple[bytes, ...] = (),
    ) -> None:
        super().__init__(stream, content_type)
        self._chunks = chunks
        self._queue: asyncio.Queue[EncoderEvent] = asyncio.Queue()
        self.started = False
        self.stop_calls = 0

    async def start(self) -> None:
        self.started = True
        for chunk in self._chunks:
            self._queue.put_nowait(ChunkEvent(chunk))

    def stop(self) -> None:
        self.stop_calls += 1
        self._queue.put_nowait(FinalizeEvent())

    def emit(self, data: bytes) -> None:
        self._queue.put_nowait(ChunkEvent(data))

    def finish(self) -> None:
        """Finalize without a stop request, as when the process exits."""
        self._queue.put_nowait(FinalizeEvent())

    async def _iter_events(self) -> AsyncIterator[EncoderEvent]:
        while True:
            event = await self._queue.get()
            yield event
            if isinstance(event, FinalizeEvent):
                return


class FakeCaptureBackend(BaseCaptureBackend):
    """Capture backend with switchable permission failures."""

    encoder_cls = FakeEncoder

    def __init__(
        self,
        chunks: tuple[bytes, ...] = (b"chunk-1", b"", b"chunk-2"),
        deny_display: bool = False,
        deny_microphone: bool = False,
    ) -> None:
        self.chunks = chunks
        self.deny_display = deny_display
        self.deny_microphone = deny_microphone
        self.streams: list[MediaStream] = []
        self.encoders: list[FakeEncoder] = []

    async def acquire_display(self, audio: bool = True) -> MediaStream:
        if self.deny_display:
            raise CaptureAcquisitionError("Permission denied for screen capture")
        tracks = [MediaTrack(kind="video", label="screen")]
        if audio:
            tracks.append(MediaTrack(kind="audio", label="system-audio"))
        stream = MediaStream(tracks)
        self.streams.append(stream)
        return stream

    async def acquire_microphone(self) -> MediaStream:
        if self.deny_microphone:
            raise CaptureAcquisitionError("Permission denied for microphone")
        stream = MediaStream([MediaTrack(kind="audio", label="microphone")])
        self.streams.append(stream)
        return stream

    def create_encoder(self, stream: MediaStream, content_type: str) -> FakeEncoder:
        encoder = self.encoder_cls(stream, content_type, chunks=self.chunks)
        self.encoders.append(encoder)
        return encoder

    def all_tracks(self) -> list[MediaTrack]:
        return [t for s in self.streams for t in s.get_tracks()]


# ---------------------------------------------------------------------------
# Capture Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_backend():
    """Factory for capture backends with custom chunks or denied devices."""
    return FakeCaptureBackend


@pytest.fixture
def fake_backend(make_backend):
    """Capture backend that always grants permission.

    Returns:
        FakeCaptureBackend: Emits ``chunk-1``, an empty chunk, and
        ``chunk-2`` when its encoder starts.
    """
    return make_backend()


# ---------------------------------------------------------------------------
# Server payload Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_recordings():
    """Two recordings as returned by GET /api/recordings."""
    return [
        {
            "id": "abc",
            "filename": "recording-1700000000000.webm",
            "filepath": "uploads/recording-1700000000000.webm",
        },
        {
            "id": "xyz",
            "filename": "recording-1700000100000.webm",
            "filepath": "uploads/recording-1700000100000.webm",
        },
    ]
