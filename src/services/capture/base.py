"""
Abstract capture capability.

A backend hands out ``MediaStream`` objects (display and microphone) and
builds an encoder bound to a combined stream. The encoder is an event
source: ``events()`` yields ``ChunkEvent`` items in arrival order and ends
with exactly one ``FinalizeEvent``. It can be subscribed to only once.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field

from src.core.exceptions import EncoderError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Streams and tracks
# ---------------------------------------------------------------------------


@dataclass
class MediaTrack:
    """One capture device feed (a video or an audio source).

    ``input_args`` holds backend-specific arguments describing the source.
    ``on_stop`` callbacks run once, the first time ``stop()`` is called.
    """

    kind: str
    label: str
    input_args: list[str] = field(default_factory=list)
    ended: bool = False
    _on_stop: list[Callable[[], None]] = field(default_factory=list, repr=False)

    def add_stop_callback(self, callback: Callable[[], None]) -> None:
        self._on_stop.append(callback)

    def stop(self) -> None:
        """Release the underlying device. Safe to call more than once."""
        if self.ended:
            return
        self.ended = True
        for callback in self._on_stop:
            try:
                callback()
            except Exception:
                logger.exception("Stop callback failed for track %s", self.label)
        logger.debug("Released %s track %s", self.kind, self.label)


class MediaStream:
    """An ordered set of tracks treated as one source."""

    def __init__(self, tracks: list[MediaTrack] | None = None) -> None:
        self._tracks: list[MediaTrack] = list(tracks or [])

    @classmethod
    def combine(cls, *streams: "MediaStream") -> "MediaStream":
        """Merge the tracks of several streams, preserving their order."""
        return cls([track for stream in streams for track in stream.get_tracks()])

    def get_tracks(self) -> list[MediaTrack]:
        return list(self._tracks)

    def video_tracks(self) -> list[MediaTrack]:
        return [t for t in self._tracks if t.kind == "video"]

    def audio_tracks(self) -> list[MediaTrack]:
        return [t for t in self._tracks if t.kind == "audio"]

    @property
    def active(self) -> bool:
        return any(not t.ended for t in self._tracks)

    def stop_all(self) -> None:
        for track in self._tracks:
            track.stop()


# ---------------------------------------------------------------------------
# Encoder events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChunkEvent:
    """A unit of encoded data produced while capture is running."""

    data: bytes


@dataclass(frozen=True)
class FinalizeEvent:
    """Terminal event: no more chunks will follow."""


EncoderEvent = ChunkEvent | FinalizeEvent


class BaseEncoder(ABC):
    """Encoder bound to a single combined stream."""

    def __init__(self, stream: MediaStream, content_type: str) -> None:
        self.stream = stream
        self.content_type = content_type
        self._subscribed = False

    @abstractmethod
    async def start(self) -> None:
        """Begin encoding.

        Raises:
            EncoderError: If encoding cannot be started.
        """

    @abstractmethod
    def stop(self) -> None:
        """Ask the encoder to stop. Finalization happens asynchronously."""

    @abstractmethod
    def _iter_events(self) -> AsyncIterator[EncoderEvent]:
        """Yield chunk events followed by one finalize event."""

    def events(self) -> AsyncIterator[EncoderEvent]:
        """Subscribe to the encoder's event sequence (once only)."""
        if self._subscribed:
            raise EncoderError("Encoder events can only be consumed once")
        self._subscribed = True
        return self._iter_events()


# ---------------------------------------------------------------------------
# Backend
# ---------------------------------------------------------------------------


class BaseCaptureBackend(ABC):
    """Interface that every capture backend must implement."""

    @abstractmethod
    async def acquire_display(self, audio: bool = True) -> MediaStream:
        """Acquire a screen-capture stream.

        Args:
            audio: Also capture system audio when the platform provides it.

        Raises:
            CaptureAcquisitionError: Permission denied or no capture source.
        """

    @abstractmethod
    async def acquire_microphone(self) -> MediaStream:
        """Acquire a microphone-audio stream.

        Raises:
            CaptureAcquisitionError: Permission denied or no microphone.
        """

    @abstractmethod
    def create_encoder(self, stream: MediaStream, content_type: str) -> BaseEncoder:
        """Build an encoder bound to ``stream``."""
