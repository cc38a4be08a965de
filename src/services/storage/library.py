"""
Recording library store.

Keeps the client-side list of ``RecordingAsset`` records and reconciles it
with the recordings server. The list is replaced wholesale on every
successful listing and patched locally only on delete. Failures are logged
and returned as ``Failure`` results; the list is never touched by a failed
operation and nothing is retried.
"""

import logging

from pydantic import TypeAdapter, ValidationError

from src.core.models import (
    CapturedFile,
    Failure,
    FailureKind,
    OperationResult,
    RecordingAsset,
    Success,
)
from src.services.storage.api_client import APIError, RecordingsAPIClient

logger = logging.getLogger(__name__)

_ASSET_LIST = TypeAdapter(list[RecordingAsset])

_CATEGORY_TO_KIND = {
    "http": FailureKind.rejected,
    "parse": FailureKind.parse,
}


def _failure_from(exc: APIError) -> Failure:
    return Failure(
        kind=_CATEGORY_TO_KIND.get(exc.category, FailureKind.network),
        message=exc.message,
    )


class LibraryStore:
    """Client-side cache of the server's recordings.

    Args:
        client: HTTP client for the recordings server.
        upload_field: Multipart field name used for uploads.
    """

    def __init__(self, client: RecordingsAPIClient, upload_field: str = "video") -> None:
        self._client = client
        self._upload_field = upload_field
        self._recordings: list[RecordingAsset] = []

    @property
    def recordings(self) -> list[RecordingAsset]:
        """Snapshot of the current in-memory list."""
        return list(self._recordings)

    async def list_recordings(self) -> OperationResult:
        """Fetch every recording and replace the in-memory list."""
        try:
            payload = await self._client.list_recordings()
            assets = _ASSET_LIST.validate_python(payload)
        except APIError as exc:
            logger.error("Error fetching recordings: %s", exc.message)
            return _failure_from(exc)
        except ValidationError as exc:
            logger.error("Error fetching recordings: unexpected payload: %s", exc)
            return Failure(kind=FailureKind.parse, message=str(exc))

        self._recordings = assets
        logger.debug("Loaded %d recordings", len(assets))
        return Success(value=self.recordings)

    async def submit_recording(self, file: CapturedFile) -> OperationResult:
        """Upload a finished capture, then refresh the list on success."""
        try:
            await self._client.upload_recording(
                file.filename, file.data, file.content_type, field=self._upload_field
            )
        except APIError as exc:
            if exc.category == "http":
                logger.error("Upload failed: %s", exc.message)
            else:
                logger.error("Error uploading: %s", exc.message)
            return _failure_from(exc)

        logger.info("Uploaded %s (%d bytes)", file.filename, file.size)
        await self.list_recordings()
        return Success(value=file.filename)

    async def delete_recording(self, recording_id: str | int) -> OperationResult:
        """Delete a recording and drop it from the in-memory list."""
        try:
            await self._client.delete_recording(recording_id)
        except APIError as exc:
            logger.error("Error deleting recording %s: %s", recording_id, exc.message)
            return _failure_from(exc)

        self._recordings = [r for r in self._recordings if r.id != recording_id]
        logger.info("Deleted recording %s", recording_id)
        return Success(value=recording_id)

    def playback_url(self, asset: RecordingAsset) -> str:
        return self._client.asset_url(asset.filepath)

    def download_url(self, asset: RecordingAsset) -> str:
        return self._client.asset_url(asset.filepath)
