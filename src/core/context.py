"""
Application context.

One ``AppContext`` lives for the whole process and owns the settings, the
HTTP client, the library store, and the recording session controller.
Components receive their collaborators from here instead of reading
module-level globals.
"""

import logging
from dataclasses import dataclass

import httpx

from src.core.config import Settings, get_settings
from src.core.models import OperationResult
from src.services.capture import BaseCaptureBackend, create_capture_backend
from src.services.capture.session import RecordingSessionController
from src.services.storage.api_client import RecordingsAPIClient
from src.services.storage.library import LibraryStore

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Process-lifetime owner of every long-lived component."""

    settings: Settings
    client: RecordingsAPIClient
    library: LibraryStore
    controller: RecordingSessionController

    async def startup(self) -> OperationResult:
        """Load the recordings list once at process start."""
        logger.info("Connecting to recordings server at %s", self.client.base_url)
        return await self.library.list_recordings()

    async def shutdown(self) -> None:
        """Stop any running capture, wait for its upload, close the client."""
        if self.controller.is_recording:
            self.controller.stop()
        await self.controller.wait_finalized()
        await self.client.aclose()


def create_app_context(
    settings: Settings | None = None,
    backend: BaseCaptureBackend | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AppContext:
    """Wire up an ``AppContext`` from settings.

    Args:
        settings: Configuration; defaults to ``get_settings()``.
        backend: Capture backend override; defaults to the configured one.
        transport: Optional httpx transport override for the API client.
    """
    settings = settings or get_settings()
    client = RecordingsAPIClient(
        base_url=settings.api_base_url,
        timeout=settings.request_timeout,
        transport=transport,
    )
    library = LibraryStore(client, upload_field=settings.upload_field)
    if backend is None:
        backend = create_capture_backend(
            settings.capture_backend,
            ffmpeg_path=settings.ffmpeg_path,
            display_format=settings.display_format,
            display_input=settings.display_input,
            display_audio_format=settings.display_audio_format,
            display_audio_input=settings.display_audio_input,
            microphone_format=settings.microphone_format,
            microphone_input=settings.microphone_input,
            framerate=settings.capture_framerate,
            chunk_size=settings.chunk_size,
        )
    controller = RecordingSessionController(
        backend,
        library,
        max_seconds=settings.max_recording_seconds,
        tick_interval=settings.tick_interval,
        container_ext=settings.container_ext,
        content_type=settings.content_type,
    )
    return AppContext(
        settings=settings, client=client, library=library, controller=controller
    )
