"""Recording session controller.

Owns the lifecycle of one screen capture: acquire the display and
microphone streams, run the encoder, tick an elapsed-seconds counter with a
hard cap, and on stop package the encoded chunks into one file and hand it
to the library store. Capture devices are released only after the upload
attempt has finished.

Usage::

    controller = RecordingSessionController(backend, library)
    await controller.start()
    ...
    controller.stop()
    await controller.wait_finalized()
"""

import asyncio
import logging
from dataclasses import dataclass, field

from src.core.exceptions import (
    CaptureAcquisitionError,
    EncoderError,
    SessionAlreadyActiveError,
    SessionNotActiveError,
)
from src.core.models import (
    CapturedFile,
    Failure,
    FailureKind,
    OperationResult,
    SessionState,
    Success,
)
from src.core.utils import epoch_millis, format_time, recording_filename
from src.services.capture.base import (
    BaseCaptureBackend,
    BaseEncoder,
    ChunkEvent,
    FinalizeEvent,
    MediaStream,
)
from src.services.storage.library import LibraryStore

logger = logging.getLogger(__name__)


@dataclass
class CaptureSession:
    """State that exists only while one capture is running or finalizing."""

    started_at_ms: int
    stream: MediaStream
    encoder: BaseEncoder
    chunks: list[bytes] = field(default_factory=list)
    consumer: asyncio.Task | None = None


class RecordingSessionController:
    """Drives a single screen capture from start to upload.

    Args:
        backend: Capture backend providing streams and encoders.
        library: Store that receives the finished capture.
        max_seconds: Hard cap on capture length.
        tick_interval: Seconds between elapsed-counter ticks.
        container_ext: File extension for the uploaded capture.
        content_type: MIME type of the uploaded capture.
    """

    def __init__(
        self,
        backend: BaseCaptureBackend,
        library: LibraryStore,
        max_seconds: int = 180,
        tick_interval: float = 1.0,
        container_ext: str = "webm",
        content_type: str = "video/webm",
    ) -> None:
        self._backend = backend
        self._library = library
        self._max_seconds = max_seconds
        self._tick_interval = tick_interval
        self._container_ext = container_ext
        self._content_type = content_type

        self._state = SessionState.idle
        self._starting = False
        self._elapsed = 0
        self._session: CaptureSession | None = None
        self._ticker: asyncio.Task | None = None
        self._last_upload: OperationResult | None = None

    # -- observers --

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state is SessionState.active

    @property
    def elapsed(self) -> int:
        return self._elapsed

    @property
    def max_seconds(self) -> int:
        return self._max_seconds

    @property
    def formatted_time(self) -> str:
        return format_time(self._elapsed)

    @property
    def last_upload(self) -> OperationResult | None:
        """Result of the most recent upload attempt, if any."""
        return self._last_upload

    @property
    def finalizing(self) -> bool:
        """True while the last session's upload/release has not finished."""
        session = self._session
        return bool(session and session.consumer and not session.consumer.done())

    # -- lifecycle --

    async def start(self) -> OperationResult:
        """Acquire streams, start encoding, and begin ticking."""
        if self._state is SessionState.active or self._starting:
            exc = SessionAlreadyActiveError()
            logger.warning("Error starting recording [%s]: %s", exc.code, exc.detail)
            return Failure(kind=FailureKind.invalid_state, message=exc.detail)

        self._starting = True
        try:
            return await self._start()
        finally:
            self._starting = False

    async def _start(self) -> OperationResult:
        acquired: list[MediaStream] = []
        try:
            acquired.append(await self._backend.acquire_display(audio=True))
            acquired.append(await self._backend.acquire_microphone())
            combined = MediaStream.combine(*acquired)
            encoder = self._backend.create_encoder(combined, self._content_type)
            await encoder.start()
        except (CaptureAcquisitionError, EncoderError) as exc:
            logger.error("Error starting recording [%s]: %s", exc.code, exc.detail)
            for stream in acquired:
                stream.stop_all()
            return Failure(kind=FailureKind.acquisition, message=exc.detail)

        session = CaptureSession(
            started_at_ms=epoch_millis(), stream=combined, encoder=encoder
        )
        session.consumer = asyncio.create_task(self._consume(session))
        self._session = session

        self._state = SessionState.active
        self._elapsed = 0
        self._ticker = asyncio.create_task(self._run_ticker())
        logger.info(
            "Recording started with %d tracks", len(combined.get_tracks())
        )
        return Success(value=session.started_at_ms)

    def stop(self) -> OperationResult:
        """Stop ticking and ask the encoder to finish.

        Finalization (packaging, upload, device release) continues
        asynchronously; await ``wait_finalized()`` to observe it.
        """
        if self._state is not SessionState.active or self._session is None:
            exc = SessionNotActiveError()
            logger.debug("Ignoring stop [%s]: %s", exc.code, exc.detail)
            return Failure(kind=FailureKind.invalid_state, message=exc.detail)

        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        self._state = SessionState.idle
        self._session.encoder.stop()
        logger.info("Recording stopped at %s", self.formatted_time)
        return Success(value=self._elapsed)

    def tick(self) -> None:
        """Advance the elapsed counter by one second.

        The cap is checked against the pre-increment value, so the tick that
        takes the counter to the limit requests the stop and the counter
        still shows the limit.
        """
        if self._state is not SessionState.active:
            return
        if self._elapsed + 1 >= self._max_seconds:
            self.stop()
        self._elapsed += 1

    async def wait_finalized(self) -> OperationResult | None:
        """Wait for the current session's finalize step to complete."""
        session = self._session
        if session is not None and session.consumer is not None:
            await asyncio.shield(session.consumer)
        return self._last_upload

    async def _run_ticker(self) -> None:
        while True:
            await asyncio.sleep(self._tick_interval)
            self.tick()

    # -- encoder subscription --

    async def _consume(self, session: CaptureSession) -> None:
        """Collect chunk events until the finalize event arrives."""
        try:
            async for event in session.encoder.events():
                if isinstance(event, ChunkEvent):
                    if event.data:
                        session.chunks.append(event.data)
                elif isinstance(event, FinalizeEvent):
                    await self._finalize(session)
                    return
        except Exception:
            logger.exception("Encoder failed; releasing capture devices")
            self._end_without_stop(session)
            self._release(session)
            return

        # Event source ended without a finalize event
        logger.warning("Encoder ended without finalizing; releasing capture devices")
        self._end_without_stop(session)
        self._release(session)

    def _end_without_stop(self, session: CaptureSession) -> None:
        """Return to idle when the encoder ends an active session by itself."""
        if self._session is not session or self._state is not SessionState.active:
            return
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        self._state = SessionState.idle
        logger.warning("Encoder ended the recording at %s", self.formatted_time)

    def _release(self, session: CaptureSession) -> None:
        if self._state is SessionState.idle:
            self._elapsed = 0
        session.stream.stop_all()

    async def _finalize(self, session: CaptureSession) -> None:
        """Package the chunks, upload them, then release the devices."""
        self._end_without_stop(session)
        file = CapturedFile(
            filename=recording_filename(session.started_at_ms, self._container_ext),
            content_type=self._content_type,
            data=b"".join(session.chunks),
        )
        logger.info("Finalizing %s (%d bytes)", file.filename, file.size)
        try:
            self._last_upload = await self._library.submit_recording(file)
        finally:
            self._release(session)
